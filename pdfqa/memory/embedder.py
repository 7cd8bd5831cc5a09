# pdfqa/memory/embedder.py

"""
Embedding backends.

Architecture contract:
chunker → embedder → vector_store

Guarantees:
• Deterministic embeddings for identical input
• Fixed dimension per backend
• Always L2 normalised (cosine-ready)
• Failures surface as EmbeddingError, no retries
"""

import abc
import logging
from typing import List, Optional

import numpy as np
from openai import OpenAI

from pdfqa.config import (
    CLOUD_EMBEDDING_MODEL,
    CLOUD_EMBEDDING_DIMENSION,
    LOCAL_EMBEDDING_MODEL,
    LOCAL_EMBEDDING_DIMENSION,
)
from pdfqa.errors import EmbeddingError
from pdfqa.llm.model_handle import ModelHandle, transformers_pipeline_loader

logger = logging.getLogger(__name__)


def l2_normalize(vector: np.ndarray) -> np.ndarray:

    norm = np.linalg.norm(vector)

    return vector / max(norm, 1e-10)


class Embedder(abc.ABC):

    @property
    @abc.abstractmethod
    def dimension(self) -> int:
        ...

    @abc.abstractmethod
    def embed(self, text: str) -> List[float]:
        ...

    def get_dimension(self) -> int:
        return self.dimension


# ============================================================
# CLOUD BACKEND
# ============================================================

class OpenAIEmbedder(Embedder):
    """Embeddings from the OpenAI API, one request per text."""

    def __init__(
        self,
        client: Optional[OpenAI] = None,
        api_key: Optional[str] = None,
        model: str = CLOUD_EMBEDDING_MODEL,
        dimension: int = CLOUD_EMBEDDING_DIMENSION,
    ):

        self._client = client if client is not None else OpenAI(api_key=api_key)
        self._model = model
        self._dimension = dimension

        logger.info(
            "Embedding model initialized",
            extra={"model": model, "dimension": dimension, "provider": "openai"},
        )

    @property
    def dimension(self) -> int:
        return self._dimension

    def embed(self, text: str) -> List[float]:

        try:

            response = self._client.embeddings.create(
                model=self._model,
                input=text,
            )

            vector = np.asarray(response.data[0].embedding, dtype="float32")

        except Exception as e:

            logger.error(
                "Embedding generation failed",
                extra={"provider": "openai", "error": str(e)},
            )

            raise EmbeddingError(f"Embedding generation failed: {e}") from e

        return l2_normalize(vector).tolist()


# ============================================================
# LOCAL BACKEND
# ============================================================

class LocalEmbedder(Embedder):
    """
    Sentence embeddings from a transformers feature-extraction pipeline.

    Token vectors are mean pooled and L2 normalised, which is how
    all-MiniLM-L6-v2 is meant to be used.
    """

    def __init__(
        self,
        handle: Optional[ModelHandle] = None,
        dimension: int = LOCAL_EMBEDDING_DIMENSION,
    ):

        if handle is None:
            handle = ModelHandle(
                transformers_pipeline_loader(
                    "feature-extraction", LOCAL_EMBEDDING_MODEL
                ),
                name=LOCAL_EMBEDDING_MODEL,
            )

        self._handle = handle
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def handle(self) -> ModelHandle:
        return self._handle

    def embed(self, text: str) -> List[float]:

        try:

            extractor = self._handle.get()

            # inputs past the model's 512 position limit are cut, not rejected
            output = extractor(
                str(text or ""),
                tokenize_kwargs={"truncation": True},
            )

            tokens = np.asarray(output, dtype="float32")
            tokens = tokens.reshape(-1, tokens.shape[-1])

        except Exception as e:

            logger.error(
                "Embedding generation failed",
                extra={"provider": "local", "error": str(e)},
            )

            raise EmbeddingError(f"Embedding generation failed: {e}") from e

        if tokens.shape[-1] != self._dimension:
            raise EmbeddingError(
                f"Local embedding has dimension {tokens.shape[-1]}, "
                f"expected {self._dimension}"
            )

        return l2_normalize(tokens.mean(axis=0)).tolist()
