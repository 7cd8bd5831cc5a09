import abc
import logging
import threading
from typing import List, Optional, Sequence

import faiss
import numpy as np

from pdfqa.config import TOP_K
from pdfqa.errors import StoreError
from pdfqa.memory.records import QueryMatch, VectorRecord


logger = logging.getLogger(__name__)


class VectorStore(abc.ABC):
    """
    Append-only collection of VectorRecords with top-k similarity query.

    batch_size tells the ingestion orchestrator how many records to hand
    over per add() call; None means a whole document at once.
    """

    batch_size: Optional[int] = None

    @property
    @abc.abstractmethod
    def dimension(self) -> int:
        ...

    @abc.abstractmethod
    def add(self, records: Sequence[VectorRecord]) -> None:
        ...

    @abc.abstractmethod
    def query(self, vector: Sequence[float], top_k: int = TOP_K) -> List[QueryMatch]:
        ...

    @abc.abstractmethod
    def count(self) -> int:
        ...

    def append(self, record: VectorRecord) -> None:
        self.add([record])

    def get_stats(self) -> dict:
        return {
            "backend": type(self).__name__,
            "dimension": self.dimension,
            "total_vectors": self.count(),
        }


def normalize_rows(vectors: np.ndarray) -> np.ndarray:

    norms = np.linalg.norm(
        vectors,
        axis=1,
        keepdims=True,
    )

    return vectors / np.clip(norms, 1e-10, None)


class LocalVectorStore(VectorStore):
    """
    In-memory store over an exact FAISS inner-product index.

    Vectors are normalised on the way in and the query is normalised too,
    so every score is a cosine similarity. Records are never updated or
    deleted; the store lives as long as the process.
    """

    def __init__(self, dim: int):

        if dim <= 0:
            raise ValueError("Embedding dimension must be positive")

        self._dim = dim
        self._records: List[VectorRecord] = []
        self._index = faiss.IndexFlatIP(dim)
        self._lock = threading.Lock()

        logger.info(
            "Local vector store created",
            extra={"dimension": dim},
        )

    @property
    def dimension(self) -> int:
        return self._dim

    def _as_matrix(self, vectors) -> np.ndarray:

        matrix = np.asarray(vectors, dtype="float32")

        if matrix.ndim == 1:
            matrix = matrix.reshape(1, -1)

        if matrix.shape[1] != self._dim:
            raise StoreError(
                f"Vector dimension {matrix.shape[1]} does not match "
                f"store dimension {self._dim}"
            )

        return normalize_rows(matrix)

    def add(self, records: Sequence[VectorRecord]) -> None:

        if not records:
            return

        for record in records:
            if record.dimension != self._dim:
                raise StoreError(
                    f"Record {record.id} has dimension {record.dimension}, "
                    f"expected {self._dim}"
                )

        matrix = self._as_matrix([record.vector for record in records])

        with self._lock:

            self._index.add(matrix)
            self._records.extend(records)

            total = len(self._records)

        logger.info(
            "Vectors stored",
            extra={"added": len(records), "total_vectors": total},
        )

    def query(self, vector: Sequence[float], top_k: int = TOP_K) -> List[QueryMatch]:

        if top_k <= 0:
            return []

        query = self._as_matrix(vector)

        with self._lock:

            total = self._index.ntotal

            if total == 0:
                return []

            # Score everything, then order by (score desc, insertion asc)
            scores, labels = self._index.search(query, total)

            ranked = sorted(
                zip(scores[0].tolist(), labels[0].tolist()),
                key=lambda pair: (-pair[0], pair[1]),
            )

            return [
                QueryMatch(record=self._records[label], score=float(score))
                for score, label in ranked[:top_k]
                if label >= 0
            ]

    def count(self) -> int:
        with self._lock:
            return len(self._records)
