# pdfqa/workflow/pipeline.py
"""
Backend selection.

The mode in Settings picks the embedder, vector store and answerer once;
everything downstream receives the assembled Pipeline by reference.
"""

import logging
from dataclasses import dataclass
from typing import List

from pdfqa.config import (
    CLOUD_EMBEDDING_DIMENSION,
    LOCAL_EMBEDDING_DIMENSION,
    Mode,
    Settings,
)
from pdfqa.llm.client import LLMClient
from pdfqa.memory.embedder import Embedder, LocalEmbedder, OpenAIEmbedder
from pdfqa.memory.loader import discover_pdfs
from pdfqa.memory.qdrant_client import QdrantVectorStore
from pdfqa.memory.store import LocalVectorStore, VectorStore
from pdfqa.workflow.document_qa import (
    Answerer,
    ExtractiveAnswerer,
    GenerativeAnswerer,
)
from pdfqa.workflow.ingestion import IngestionOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class Pipeline:
    settings: Settings
    embedder: Embedder
    store: VectorStore
    answerer: Answerer
    ingestor: IngestionOrchestrator

    @property
    def mode(self) -> Mode:
        return self.settings.mode

    def warm(self) -> None:
        """Load local models up front so the first request doesn't."""

        handle = getattr(self.embedder, "handle", None)

        if handle is not None:
            handle.warm()

        self.answerer.warm()

    def discover(self) -> List[str]:
        return discover_pdfs(self.settings.pdf_search_dirs)


def build_pipeline(settings: Settings) -> Pipeline:

    if settings.mode is Mode.CLOUD:

        embedder = OpenAIEmbedder(api_key=settings.openai_api_key)

        store = QdrantVectorStore(
            dim=CLOUD_EMBEDDING_DIMENSION,
            collection=settings.qdrant_collection,
            url=settings.qdrant_url,
            api_key=settings.qdrant_api_key,
        )

        answerer = GenerativeAnswerer(
            embedder,
            store,
            LLMClient(api_key=settings.openai_api_key),
        )

    else:

        embedder = LocalEmbedder()

        store = LocalVectorStore(dim=LOCAL_EMBEDDING_DIMENSION)

        answerer = ExtractiveAnswerer(embedder, store)

    logger.info(
        "Pipeline assembled",
        extra={
            "mode": settings.mode.value,
            "embedder": type(embedder).__name__,
            "store": type(store).__name__,
            "answerer": type(answerer).__name__,
        },
    )

    return Pipeline(
        settings=settings,
        embedder=embedder,
        store=store,
        answerer=answerer,
        ingestor=IngestionOrchestrator(embedder, store),
    )
