# pdfqa/llm/model_handle.py

import logging
import threading
import time
from typing import Any, Callable, Optional

from transformers import pipeline

logger = logging.getLogger(__name__)


class ModelHandle:
    """
    Holds one expensive model object, loaded at most once.

    The loader runs on the first get() (or an explicit warm() at startup)
    and the result is reused for the lifetime of the handle. A failed load
    is not cached, so the next call tries again.
    """

    def __init__(self, loader: Callable[[], Any], name: str = "model"):

        self._loader = loader
        self._name = name
        self._model: Optional[Any] = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def get(self) -> Any:

        if self._model is not None:
            return self._model

        with self._lock:

            if self._model is None:

                logger.info("Loading model", extra={"model": self._name})

                start = time.time()

                self._model = self._loader()

                logger.info(
                    "Model loaded",
                    extra={
                        "model": self._name,
                        "latency_seconds": round(time.time() - start, 3),
                    },
                )

        return self._model

    def warm(self) -> None:
        self.get()


def transformers_pipeline_loader(task: str, model: str) -> Callable[[], Any]:

    def _load():
        return pipeline(task, model=model, device=-1)

    return _load
