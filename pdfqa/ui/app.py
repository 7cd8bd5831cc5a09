# pdfqa/ui/app.py
import os

import requests
import streamlit as st

API_BASE = os.getenv("PDFQA_API_BASE", "http://127.0.0.1:8000")

st.set_page_config(page_title="PDF Question Answering", layout="centered")

st.title("PDF Question Answering")
st.write("Ingest PDFs, then ask questions answered from their content.")

st.sidebar.header("Service")

try:
    response = requests.get(f"{API_BASE}/health", timeout=5)
    if response.status_code == 200:
        health = response.json()
        st.sidebar.metric("Mode", health["mode"])
        st.sidebar.metric("Stored Chunks", health["total_vectors"])
    else:
        st.sidebar.error("Cannot connect to API")
except Exception as e:
    st.sidebar.error(f"API Error: {str(e)}")

st.header("Ingest Documents")

paths_text = st.text_area(
    "PDF paths or URLs, one per line",
    placeholder="Leave empty to ingest every PDF in the server's search directories",
)

if st.button("Ingest", type="primary"):
    paths = [line.strip() for line in paths_text.splitlines() if line.strip()]
    with st.spinner("Extracting, chunking and embedding..."):
        try:
            response = requests.post(f"{API_BASE}/ingest", json={"paths": paths})
            result = response.json()
            if response.status_code == 200:
                st.success(f"Stored {result['total_stored']} chunks")
                for path in result["paths"]:
                    st.write(f"- {path}")
            else:
                st.error(f"Ingest failed: {result.get('error', 'Unknown error')}")
        except Exception as e:
            st.error(f"Error: {str(e)}")

st.divider()

st.header("Ask a Question")

question = st.text_area(
    "Enter your question",
    placeholder="What is the main topic of this document?"
)

top_k = st.slider("Chunks to retrieve", min_value=1, max_value=10, value=3)

if st.button("Ask Question", type="primary"):
    if not question.strip():
        st.warning("Please enter a question")
    else:
        with st.spinner("Thinking..."):
            try:
                response = requests.post(
                    f"{API_BASE}/ask",
                    json={"question": question.strip(), "top_k": top_k},
                )
                result = response.json()

                if response.status_code == 200:
                    if result["degraded"]:
                        st.warning("QA model unavailable, showing the most relevant passage")
                    st.markdown(f"### {result['answer']}")

                    with st.expander("Context"):
                        st.caption(f"Sources used: {result['sources_used']}")
                        st.text(result["context"])
                else:
                    st.error(f"Error: {result.get('error', 'Unknown error')}")

            except Exception as e:
                st.error(f"Error: {str(e)}")
