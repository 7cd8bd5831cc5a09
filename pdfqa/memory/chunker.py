# pdfqa/memory/chunker.py

import logging
from typing import List

from pdfqa.config import (
    CHUNK_SIZE,
    CHUNK_OVERLAP,
)
from pdfqa.errors import ConfigurationError
from pdfqa.memory.records import Chunk

logger = logging.getLogger(__name__)


def validate_window(size: int, overlap: int) -> None:

    if size <= 0:
        raise ConfigurationError(f"Invalid chunk size: {size}")

    if overlap < 0:
        raise ConfigurationError(f"Invalid chunk overlap: {overlap}")

    if overlap >= size:
        raise ConfigurationError(
            f"Overlap must be smaller than chunk size "
            f"(overlap={overlap}, size={size})"
        )


def chunk_text(
    text: str,
    size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> List[str]:
    """
    Fixed-size character chunker with overlap.

    Window starts are 0, step, 2*step, ... with step = size - overlap,
    until the start reaches the end of the text. Each window is trimmed;
    windows that are empty after trimming are dropped. The input itself
    is not trimmed, so offsets refer to the raw text.
    """

    validate_window(size, overlap)

    if not text:
        logger.warning("Chunking skipped: empty text")
        return []

    step = size - overlap

    chunks = []

    for start in range(0, len(text), step):

        chunk = text[start:start + size].strip()

        if chunk:
            chunks.append(chunk)

    logger.info(
        "Chunking completed",
        extra={
            "total_characters": len(text),
            "chunk_size": size,
            "overlap": overlap,
            "chunks_created": len(chunks),
        },
    )

    return chunks


def build_chunks(
    text: str,
    document_id: str,
    size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> List[Chunk]:

    return [
        Chunk(index=i, text=chunk, document_id=document_id)
        for i, chunk in enumerate(chunk_text(text, size, overlap))
    ]
