"""
Centralized prompts and canned answers.

Never hardcode prompts inside the workflow or the model client.
"""


DOCUMENT_QA_SYSTEM_PROMPT = """
You are a helpful assistant that answers questions about documents.

Answer using the given context when it is relevant.
If the context is insufficient to answer, say you don't know.
Do not invent information that is not in the context.
""".strip()


# Returned without calling any model when nothing has been retrieved
NO_CONTEXT_ANSWER = (
    "I don't know. No document content has been ingested "
    "that could answer this question."
)

# Returned when the extractive model finds no span
NO_ANSWER = "(no answer)"
