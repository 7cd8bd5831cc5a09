# pdfqa/memory/retriever.py
from typing import List

from pdfqa.memory.records import QueryMatch

CONTEXT_SEPARATOR = "\n\n"


def retrieve(
    question: str,
    embedder,
    store,
    top_k: int = 3,
) -> List[QueryMatch]:
    """
    Retrieve the top-k most similar chunks for a question.

    Args:
        question: User's question
        embedder: Embedder used for the query vector
        store: VectorStore to search
        top_k: Number of results to return

    Returns:
        Matches ranked by descending similarity
    """
    query_embedding = embedder.embed(question)

    return store.query(query_embedding, top_k)


def build_context(matches: List[QueryMatch]) -> str:
    """Join match texts in ranked order, separated by a blank line."""
    return CONTEXT_SEPARATOR.join(m.text for m in matches if m.text)
