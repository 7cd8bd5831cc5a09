# tests/conftest.py
import os
import sys
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from pdfqa.config import Mode, Settings
from pdfqa.errors import EmbeddingError, ExtractionError
from pdfqa.llm.model_handle import ModelHandle
from pdfqa.main import create_app
from pdfqa.memory.embedder import Embedder
from pdfqa.memory.store import LocalVectorStore
from pdfqa.observability.metrics import metrics_tracker
from pdfqa.observability.posthog_client import PostHogClient
from pdfqa.workflow.document_qa import ExtractiveAnswerer
from pdfqa.workflow.ingestion import IngestionOrchestrator
from pdfqa.workflow.pipeline import Pipeline


KEYWORDS = ("apple", "banana", "cherry")


class KeywordEmbedder(Embedder):
    """
    Deterministic test embedder: one dimension per keyword, value is the
    number of occurrences. Records every text it embeds.
    """

    def __init__(self, keywords=KEYWORDS):
        self.keywords = keywords
        self.calls: List[str] = []

    @property
    def dimension(self) -> int:
        return len(self.keywords)

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        lowered = text.lower()
        return [float(lowered.count(k)) for k in self.keywords]


class FailingEmbedder(KeywordEmbedder):

    def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        raise EmbeddingError("embedding backend unavailable")


class FakeQA:
    """Stands in for a transformers question-answering pipeline."""

    def __init__(self, answer="fake answer", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    def __call__(self, question, context):
        self.calls.append({"question": question, "context": context})
        if self.error:
            raise self.error
        return {"answer": self.answer, "score": 0.9, "start": 0, "end": 1}


class DictLoader:
    """Text source keyed by path; unknown paths fail like an unreadable PDF."""

    def __init__(self, texts: Dict[str, str], default=None):
        self.texts = texts
        self.default = default
        self.loaded: List[str] = []

    def __call__(self, source: str) -> str:
        self.loaded.append(source)
        if source in self.texts:
            return self.texts[source]
        if self.default is not None:
            return self.default
        raise ExtractionError(f"File not found: {source}")


def make_pipeline(
    texts=None,
    embedder=None,
    qa=None,
    search_dirs=None,
    chunk_size=40,
    chunk_overlap=10,
    default_text=None,
):
    embedder = embedder or KeywordEmbedder()
    store = LocalVectorStore(dim=embedder.dimension)
    qa = qa or FakeQA()
    loader = DictLoader(texts or {}, default=default_text)

    settings = Settings(
        mode=Mode.LOCAL,
        pdf_search_dirs=list(search_dirs or []),
        auto_ingest=False,
    )

    pipeline = Pipeline(
        settings=settings,
        embedder=embedder,
        store=store,
        answerer=ExtractiveAnswerer(
            embedder, store, qa_handle=ModelHandle(lambda: qa, name="fake-qa")
        ),
        ingestor=IngestionOrchestrator(
            embedder,
            store,
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            load_text=loader,
        ),
    )

    return pipeline


SAMPLE_TEXTS = {
    "fruit.pdf": (
        "Apple trees flower in spring and the apple harvest starts in autumn. "
        "Banana plants need a warm climate all year round. "
        "Cherry blossoms are short lived."
    ),
    "more.pdf": "A banana is a berry. Bananas grow in hands on a banana plant.",
}


@pytest.fixture
def embedder():
    return KeywordEmbedder()


@pytest.fixture
def fake_qa():
    return FakeQA(answer="in autumn")


@pytest.fixture
def pipeline(fake_qa):
    return make_pipeline(texts=SAMPLE_TEXTS, qa=fake_qa)


@pytest.fixture
def client(pipeline):
    """
    FastAPI test client over an injected local pipeline.

    Server exceptions are turned into responses so failure payloads can
    be asserted.
    """
    app = create_app(
        pipeline=pipeline,
        posthog=PostHogClient(),
        run_auto_ingest=False,
    )

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics_tracker.reset()
    yield
    metrics_tracker.reset()


@pytest.fixture
def clear_cloud_env(monkeypatch):
    for name in ("OPENAI_API_KEY", "QDRANT_API_KEY", "QDRANT_COLLECTION"):
        monkeypatch.delenv(name, raising=False)
