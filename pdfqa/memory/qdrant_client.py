import logging
import uuid
from typing import List, Optional, Sequence

from qdrant_client import QdrantClient

from qdrant_client.http.models import (
    Distance,
    PointStruct,
    VectorParams,
)

from pdfqa.config import (
    QDRANT_TIMEOUT_SECONDS,
    TOP_K,
    UPSERT_BATCH_SIZE,
)
from pdfqa.errors import StoreError
from pdfqa.memory.records import QueryMatch, VectorRecord
from pdfqa.memory.store import VectorStore

logger = logging.getLogger(__name__)

_POINT_NAMESPACE = uuid.UUID("6f1f4f7e-3b0a-4c47-9a57-3f0b8a1d2c5e")


def point_id(record_id: str) -> str:
    """Qdrant only accepts integer or UUID ids, so derive a stable UUID."""
    return str(uuid.uuid5(_POINT_NAMESPACE, record_id))


class QdrantVectorStore(VectorStore):
    """
    Hosted Qdrant collection used as the cloud vector index.

    Upserts go out in batches of at most UPSERT_BATCH_SIZE points.
    Upserting a record id that already exists overwrites the point.
    """

    batch_size = UPSERT_BATCH_SIZE

    def __init__(
        self,
        dim: int,
        collection: str,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[QdrantClient] = None,
    ):

        self._dim = dim
        self._collection = collection

        self._client = client if client is not None else QdrantClient(
            url=url,
            api_key=api_key,
            timeout=QDRANT_TIMEOUT_SECONDS,
        )

        self._ensure_collection()

        logger.info(
            "Qdrant client initialized",
            extra={
                "collection": self._collection,
                "dimension": dim,
            },
        )

    @property
    def dimension(self) -> int:
        return self._dim

    def _ensure_collection(self):

        try:

            if self._client.collection_exists(self._collection):
                return

            self._client.create_collection(
                collection_name=self._collection,
                vectors_config=VectorParams(
                    size=self._dim,
                    distance=Distance.COSINE,
                ),
            )

        except Exception as e:

            logger.error(
                "Qdrant collection setup failed",
                extra={"collection": self._collection, "error": str(e)},
            )

            raise StoreError(
                f"Could not prepare collection {self._collection}: {e}"
            ) from e

        logger.info(
            "Qdrant collection created",
            extra={"collection": self._collection},
        )

    def add(self, records: Sequence[VectorRecord]) -> None:

        records = list(records)

        for start in range(0, len(records), self.batch_size):

            batch = records[start:start + self.batch_size]

            points = [
                PointStruct(
                    id=point_id(record.id),
                    vector=list(record.vector),
                    payload={
                        "record_id": record.id,
                        "text": record.text,
                        "document_id": record.document_id,
                    },
                )
                for record in batch
            ]

            try:

                self._client.upsert(
                    collection_name=self._collection,
                    points=points,
                )

            except Exception as e:

                logger.error(
                    "Qdrant upsert failed",
                    extra={
                        "collection": self._collection,
                        "batch_size": len(points),
                        "error": str(e),
                    },
                )

                raise StoreError(f"Upsert failed: {e}") from e

            logger.info(
                "Upserted batch",
                extra={"collection": self._collection, "points": len(points)},
            )

    def query(self, vector: Sequence[float], top_k: int = TOP_K) -> List[QueryMatch]:

        if top_k <= 0:
            return []

        try:

            response = self._client.query_points(
                collection_name=self._collection,
                query=list(vector),
                limit=top_k,
                with_payload=True,
                with_vectors=True,
            )

        except Exception as e:

            logger.error(
                "Qdrant query failed",
                extra={"collection": self._collection, "error": str(e)},
            )

            raise StoreError(f"Query failed: {e}") from e

        matches = []

        for point in response.points:

            payload = point.payload or {}

            record = VectorRecord(
                id=payload.get("record_id", str(point.id)),
                vector=tuple(point.vector or ()),
                text=payload.get("text", ""),
                document_id=payload.get("document_id", ""),
            )

            matches.append(QueryMatch(record=record, score=float(point.score)))

        return matches

    def count(self) -> int:

        try:
            return self._client.count(
                collection_name=self._collection,
                exact=True,
            ).count
        except Exception as e:
            raise StoreError(f"Count failed: {e}") from e
