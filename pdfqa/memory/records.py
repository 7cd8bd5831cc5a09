# pdfqa/memory/records.py
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Chunk:
    """A trimmed, non-empty window of a document's extracted text."""

    index: int
    text: str
    document_id: str


@dataclass(frozen=True)
class VectorRecord:
    """
    Unit stored in a vector store.

    id is "<namespace>-<chunk index>"; uniqueness is the caller's job.
    """

    id: str
    vector: Tuple[float, ...]
    text: str
    document_id: str = ""

    @property
    def dimension(self) -> int:
        return len(self.vector)


@dataclass(frozen=True)
class QueryMatch:
    record: VectorRecord
    score: float

    @property
    def text(self) -> str:
        return self.record.text


def make_record_id(namespace: str, index: int) -> str:
    return f"{namespace}-{index}"
