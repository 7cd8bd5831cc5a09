# pdfqa/prompts/prompt_builder.py

from typing import Dict, List

from pdfqa.prompts.system_prompts import DOCUMENT_QA_SYSTEM_PROMPT


def build_user_message(question: str, context: str) -> str:
    return f"Question: {question}\n\nContext:\n{context}"


def build_messages(question: str, context: str) -> List[Dict[str, str]]:
    """Chat messages for the generative answering path."""

    return [
        {"role": "system", "content": DOCUMENT_QA_SYSTEM_PROMPT},
        {"role": "user", "content": build_user_message(question, context)},
    ]
