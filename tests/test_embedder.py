# tests/test_embedder.py
import threading
import time
from unittest.mock import MagicMock

import numpy as np
import pytest

from pdfqa.errors import EmbeddingError
from pdfqa.llm.model_handle import ModelHandle
from pdfqa.memory.embedder import LocalEmbedder, OpenAIEmbedder


def token_matrix(*rows, dim=384):
    """Fake feature-extraction output: [1][tokens][dim] nested lists."""
    tokens = []
    for row in rows:
        vec = [0.0] * dim
        for i, v in row.items():
            vec[i] = v
        tokens.append(vec)
    return [tokens]


class TestModelHandle:

    def test_loads_once(self):
        loader = MagicMock(return_value="model")
        handle = ModelHandle(loader, name="m")

        assert not handle.loaded
        assert handle.get() == "model"
        assert handle.get() == "model"
        handle.warm()

        assert handle.loaded
        loader.assert_called_once()

    def test_loads_once_under_concurrency(self):
        calls = []

        def slow_loader():
            calls.append(1)
            time.sleep(0.05)
            return object()

        handle = ModelHandle(slow_loader)
        results = []

        threads = [threading.Thread(target=lambda: results.append(handle.get())) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len({id(r) for r in results}) == 1

    def test_failed_load_is_retried_on_next_call(self):
        loader = MagicMock(side_effect=[RuntimeError("download failed"), "model"])
        handle = ModelHandle(loader)

        with pytest.raises(RuntimeError):
            handle.get()

        assert handle.get() == "model"
        assert loader.call_count == 2


class TestLocalEmbedder:

    def test_mean_pooled_and_normalised(self):
        extractor = MagicMock(return_value=token_matrix({0: 1.0}, {1: 1.0}))
        embedder = LocalEmbedder(handle=ModelHandle(lambda: extractor))

        vector = embedder.embed("hello")

        assert len(vector) == 384
        assert embedder.dimension == 384
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-6)
        assert vector[0] == pytest.approx(vector[1])
        assert vector[0] == pytest.approx(1 / np.sqrt(2), abs=1e-6)

    def test_model_loaded_once_across_calls(self):
        extractor = MagicMock(return_value=token_matrix({0: 1.0}))
        loader = MagicMock(return_value=extractor)
        embedder = LocalEmbedder(handle=ModelHandle(loader))

        embedder.embed("a")
        embedder.embed("b")
        embedder.embed("c")

        loader.assert_called_once()
        assert extractor.call_count == 3

    def test_deterministic(self):
        extractor = MagicMock(return_value=token_matrix({3: 2.0}, {5: 1.0}))
        embedder = LocalEmbedder(handle=ModelHandle(lambda: extractor))

        assert embedder.embed("same") == embedder.embed("same")

    def test_wrong_dimension_rejected(self):
        extractor = MagicMock(return_value=token_matrix({0: 1.0}, dim=768))
        embedder = LocalEmbedder(handle=ModelHandle(lambda: extractor))

        with pytest.raises(EmbeddingError):
            embedder.embed("hello")

    def test_model_failure_is_embedding_error(self):
        def broken_loader():
            raise OSError("model files missing")

        embedder = LocalEmbedder(handle=ModelHandle(broken_loader))

        with pytest.raises(EmbeddingError) as exc_info:
            embedder.embed("hello")

        assert isinstance(exc_info.value.__cause__, OSError)

    def test_long_input_is_truncated_not_rejected(self):
        max_positions = 512

        def extractor(text, tokenize_kwargs=None):
            words = text.split()
            truncate = (tokenize_kwargs or {}).get("truncation", False)
            if len(words) > max_positions and not truncate:
                raise RuntimeError(
                    f"The size of tensor a ({len(words)}) must match "
                    f"the size of tensor b ({max_positions})"
                )
            kept = words[:max_positions]
            return token_matrix(*({i % 384: 1.0} for i in range(len(kept))))

        embedder = LocalEmbedder(handle=ModelHandle(lambda: extractor))

        vector = embedder.embed("word " * 600)

        assert len(vector) == 384
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-6)

    def test_truncation_requested_from_pipeline(self):
        extractor = MagicMock(return_value=token_matrix({0: 1.0}))
        embedder = LocalEmbedder(handle=ModelHandle(lambda: extractor))

        embedder.embed("hello")

        assert extractor.call_args.kwargs["tokenize_kwargs"] == {"truncation": True}

    def test_default_handle_is_not_loaded_eagerly(self):
        embedder = LocalEmbedder()
        assert not embedder.handle.loaded


class TestOpenAIEmbedder:

    def make_client(self, embedding):
        client = MagicMock()
        item = MagicMock()
        item.embedding = embedding
        client.embeddings.create.return_value.data = [item]
        return client

    def test_returns_normalised_vector(self):
        client = self.make_client([3.0, 4.0])
        embedder = OpenAIEmbedder(client=client, dimension=2)

        assert embedder.embed("hi") == pytest.approx([0.6, 0.8])
        kwargs = client.embeddings.create.call_args.kwargs
        assert kwargs == {"model": "text-embedding-3-small", "input": "hi"}

    def test_default_dimension(self):
        embedder = OpenAIEmbedder(client=self.make_client([1.0]))
        assert embedder.get_dimension() == 1536

    def test_api_failure_is_embedding_error(self):
        client = MagicMock()
        client.embeddings.create.side_effect = RuntimeError("rate limited")
        embedder = OpenAIEmbedder(client=client)

        with pytest.raises(EmbeddingError, match="rate limited"):
            embedder.embed("hi")

        client.embeddings.create.assert_called_once()
