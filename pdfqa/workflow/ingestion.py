# pdfqa/workflow/ingestion.py

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from pdfqa.config import CHUNK_OVERLAP, CHUNK_SIZE
from pdfqa.memory.chunker import build_chunks, validate_window
from pdfqa.memory.loader import document_name, load_document_text
from pdfqa.memory.records import VectorRecord, make_record_id

logger = logging.getLogger(__name__)


@dataclass
class IngestResult:
    total_stored: int
    paths: List[str] = field(default_factory=list)


class IngestionOrchestrator:
    """
    loader → chunker → embedder → vector_store, one document at a time.

    Chunks are embedded strictly in order. Records are written to the store
    every store.batch_size records when the store declares one, otherwise
    once per document. A failing document aborts the whole call.
    """

    def __init__(
        self,
        embedder,
        store,
        chunk_size: int = CHUNK_SIZE,
        chunk_overlap: int = CHUNK_OVERLAP,
        load_text: Callable[[str], str] = load_document_text,
    ):

        validate_window(chunk_size, chunk_overlap)

        self._embedder = embedder
        self._store = store
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._load_text = load_text

    def ingest_document(self, source: str, namespace: Optional[str] = None) -> int:

        start_time = time.time()

        namespace = namespace or document_name(source)

        text = self._load_text(source)

        chunks = build_chunks(
            text,
            document_id=namespace,
            size=self._chunk_size,
            overlap=self._chunk_overlap,
        )

        batch_size = self._store.batch_size

        pending: List[VectorRecord] = []

        for chunk in chunks:

            pending.append(
                VectorRecord(
                    id=make_record_id(namespace, chunk.index),
                    vector=tuple(self._embedder.embed(chunk.text)),
                    text=chunk.text,
                    document_id=chunk.document_id,
                )
            )

            if batch_size and len(pending) >= batch_size:
                self._store.add(pending)
                pending = []

        if pending:
            self._store.add(pending)

        logger.info(
            "Document ingestion complete",
            extra={
                "source": source,
                "namespace": namespace,
                "chunks_stored": len(chunks),
                "latency_seconds": round(time.time() - start_time, 3),
            },
        )

        return len(chunks)

    def ingest_many(self, sources: Iterable[str]) -> IngestResult:

        sources = list(sources)

        total = 0

        for source in sources:
            total += self.ingest_document(source)

        logger.info(
            "Ingestion batch complete",
            extra={"documents": len(sources), "total_stored": total},
        )

        return IngestResult(total_stored=total, paths=sources)
