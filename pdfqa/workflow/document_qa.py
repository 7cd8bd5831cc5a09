# pdfqa/workflow/document_qa.py
"""
Answering engine.

Both variants share retrieval (embed the question, take the top-k
matches, join their texts into one context string) and differ only in
how the answer is produced from that context.
"""

import abc
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from pdfqa.config import FALLBACK_CONTEXT_CHARS, LOCAL_QA_MODEL, TOP_K
from pdfqa.llm.model_handle import ModelHandle, transformers_pipeline_loader
from pdfqa.memory.records import QueryMatch
from pdfqa.memory.retriever import build_context, retrieve
from pdfqa.prompts.system_prompts import NO_ANSWER, NO_CONTEXT_ANSWER

logger = logging.getLogger(__name__)


@dataclass
class Answer:
    answer: str
    context: str
    sources: List[QueryMatch] = field(default_factory=list)
    degraded: bool = False

    @property
    def sources_used(self) -> int:
        return len(self.sources)


class Answerer(abc.ABC):

    def __init__(self, embedder, store):
        self._embedder = embedder
        self._store = store

    def answer(self, question: str, top_k: int = TOP_K) -> Answer:

        if top_k <= 0:
            raise ValueError(f"top_k must be positive, got {top_k}")

        matches = retrieve(
            question=question,
            embedder=self._embedder,
            store=self._store,
            top_k=top_k,
        )

        context = build_context(matches)

        logger.info(
            "Context retrieved",
            extra={
                "top_k": top_k,
                "matches": len(matches),
                "top_score": matches[0].score if matches else None,
                "context_length": len(context),
            },
        )

        if not context:
            return Answer(answer=NO_CONTEXT_ANSWER, context="", sources=matches)

        return self._answer_from_context(question, context, matches)

    @abc.abstractmethod
    def _answer_from_context(
        self,
        question: str,
        context: str,
        matches: List[QueryMatch],
    ) -> Answer:
        ...

    def warm(self) -> None:
        """Load any model the answerer holds."""


class GenerativeAnswerer(Answerer):
    """Cloud path: a chat completion answers from the context."""

    def __init__(self, embedder, store, llm_client):
        super().__init__(embedder, store)
        self._llm = llm_client

    def _answer_from_context(self, question, context, matches):

        text = self._llm.generate(question, context)

        return Answer(answer=text, context=context, sources=matches)


class ExtractiveAnswerer(Answerer):
    """
    Local path: an extractive QA model picks a span out of the context.

    If the QA step fails for any reason the answer degrades to the first
    FALLBACK_CONTEXT_CHARS characters of the context instead of raising.
    """

    def __init__(self, embedder, store, qa_handle: Optional[ModelHandle] = None):

        super().__init__(embedder, store)

        if qa_handle is None:
            qa_handle = ModelHandle(
                transformers_pipeline_loader("question-answering", LOCAL_QA_MODEL),
                name=LOCAL_QA_MODEL,
            )

        self._qa = qa_handle

    @property
    def handle(self) -> ModelHandle:
        return self._qa

    def warm(self) -> None:
        """A failed load is logged; questions degrade until a later load succeeds."""

        try:
            self._qa.warm()
        except Exception as e:
            logger.warning(
                "QA model warm-up failed",
                extra={
                    "model": self._qa.name,
                    "error": str(e),
                    "error_type": type(e).__name__,
                },
            )

    def _answer_from_context(self, question, context, matches):

        try:

            qa = self._qa.get()

            result = qa(question=str(question or ""), context=context)

            if isinstance(result, list):
                result = result[0] if result else {}

            text = (result.get("answer") or "").strip()

        except Exception as e:

            logger.warning(
                "QA pipeline failed, returning context snippet",
                extra={"error": str(e), "error_type": type(e).__name__},
            )

            return Answer(
                answer=context[:FALLBACK_CONTEXT_CHARS],
                context=context,
                sources=matches,
                degraded=True,
            )

        return Answer(answer=text or NO_ANSWER, context=context, sources=matches)
