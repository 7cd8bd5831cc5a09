# tests/test_ingestion.py
from unittest.mock import MagicMock

import pytest

from conftest import DictLoader, FailingEmbedder, KeywordEmbedder
from pdfqa.errors import ConfigurationError, EmbeddingError, ExtractionError
from pdfqa.memory.qdrant_client import QdrantVectorStore
from pdfqa.memory.store import LocalVectorStore
from pdfqa.workflow.ingestion import IngestionOrchestrator


def all_records(store):
    return [m.record for m in store.query([1.0, 1.0, 1.0], store.count())]


@pytest.fixture
def store():
    return LocalVectorStore(dim=3)


class TestIngestDocument:

    def test_returns_number_of_chunks_stored(self, store):
        loader = DictLoader({"docs/a.pdf": "abcdefghij"})
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=4, chunk_overlap=2, load_text=loader
        )

        assert ingestor.ingest_document("docs/a.pdf") == 5
        assert store.count() == 5

    def test_ids_use_base_name_and_index(self, store):
        loader = DictLoader({"docs/a.pdf": "abcdefghij"})
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=4, chunk_overlap=2, load_text=loader
        )

        ingestor.ingest_document("docs/a.pdf")

        ids = sorted(r.id for r in all_records(store))
        assert ids == ["a.pdf-0", "a.pdf-1", "a.pdf-2", "a.pdf-3", "a.pdf-4"]
        assert {r.document_id for r in all_records(store)} == {"a.pdf"}

    def test_distinct_namespaces_do_not_collide(self, store):
        loader = DictLoader({"a.pdf": "apple pie and apple juice"})
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=10, chunk_overlap=2, load_text=loader
        )

        first = ingestor.ingest_document("a.pdf", namespace="run-1")
        second = ingestor.ingest_document("a.pdf", namespace="run-2")

        ids = [r.id for r in all_records(store)]
        assert len(ids) == first + second
        assert len(set(ids)) == len(ids)

    def test_chunks_embedded_in_order(self, store):
        embedder = KeywordEmbedder()
        loader = DictLoader({"a.pdf": "abcdefghij"})
        ingestor = IngestionOrchestrator(
            embedder, store, chunk_size=4, chunk_overlap=2, load_text=loader
        )

        ingestor.ingest_document("a.pdf")

        assert embedder.calls == ["abcd", "cdef", "efgh", "ghij", "ij"]

    def test_empty_document_stores_nothing(self, store):
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, load_text=DictLoader({"blank.pdf": "   "})
        )

        assert ingestor.ingest_document("blank.pdf") == 0
        assert store.count() == 0

    def test_invalid_window_rejected_at_construction(self, store):
        with pytest.raises(ConfigurationError):
            IngestionOrchestrator(KeywordEmbedder(), store, chunk_size=100, chunk_overlap=100)

    def test_local_store_written_once_per_document(self):
        store = MagicMock()
        store.batch_size = None
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=10, chunk_overlap=0,
            load_text=DictLoader({"a.pdf": "x" * 95}),
        )

        assert ingestor.ingest_document("a.pdf") == 10
        store.add.assert_called_once()
        assert len(store.add.call_args.args[0]) == 10

    def test_cloud_store_receives_batches_of_fifty(self):
        qdrant = MagicMock()
        qdrant.collection_exists.return_value = True
        store = QdrantVectorStore(dim=3, collection="docs", client=qdrant)

        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=10, chunk_overlap=0,
            load_text=DictLoader({"big.pdf": "x" * 1200}),
        )

        assert ingestor.ingest_document("big.pdf") == 120

        sizes = [len(c.kwargs["points"]) for c in qdrant.upsert.call_args_list]
        assert sizes == [50, 50, 20]


class TestIngestMany:

    def test_totals_across_documents(self, store):
        loader = DictLoader({"a.pdf": "abcdefghij", "b.pdf": "abcdef"})
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=4, chunk_overlap=2, load_text=loader
        )

        result = ingestor.ingest_many(["a.pdf", "b.pdf"])

        assert result.total_stored == 5 + 3
        assert result.paths == ["a.pdf", "b.pdf"]
        assert store.count() == 8

    def test_no_documents(self, store):
        ingestor = IngestionOrchestrator(KeywordEmbedder(), store, load_text=DictLoader({}))

        result = ingestor.ingest_many([])

        assert result.total_stored == 0
        assert result.paths == []

    def test_failing_document_aborts_whole_call(self, store):
        loader = DictLoader({"a.pdf": "abcdefghij", "c.pdf": "abcdef"})
        ingestor = IngestionOrchestrator(
            KeywordEmbedder(), store, chunk_size=4, chunk_overlap=2, load_text=loader
        )

        with pytest.raises(ExtractionError):
            ingestor.ingest_many(["a.pdf", "missing.pdf", "c.pdf"])

        # the first document stays stored, the rest is never attempted
        assert store.count() == 5
        assert loader.loaded == ["a.pdf", "missing.pdf"]

    def test_embedding_failure_aborts(self, store):
        ingestor = IngestionOrchestrator(
            FailingEmbedder(), store, load_text=DictLoader({"a.pdf": "apple"})
        )

        with pytest.raises(EmbeddingError):
            ingestor.ingest_many(["a.pdf"])

        assert store.count() == 0
