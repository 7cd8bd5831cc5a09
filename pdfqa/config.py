# pdfqa/config.py
"""
Configuration for the PDF question-answering service.

Tunable pipeline constants live at module level. Environment-sourced
settings (credentials, search directories, startup behaviour) are read
once by load_settings() and passed explicitly to the pipeline factory.
"""

import enum
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from pdfqa.errors import ConfigurationError


# ========== DOCUMENT PROCESSING ==========

# Character windows, not tokens
CHUNK_SIZE = 800
CHUNK_OVERLAP = 160

ALLOWED_FILE_EXTENSIONS = [".pdf"]

# Timeout for downloading a PDF by URL
DOWNLOAD_TIMEOUT_SECONDS = 30


# ========== EMBEDDING CONFIGURATION ==========

# Local backend: mean pooled, L2 normalised sentence embeddings
LOCAL_EMBEDDING_MODEL = "sentence-transformers/all-MiniLM-L6-v2"
LOCAL_EMBEDDING_DIMENSION = 384

# Cloud backend
CLOUD_EMBEDDING_MODEL = "text-embedding-3-small"
CLOUD_EMBEDDING_DIMENSION = 1536


# ========== RETRIEVAL CONFIGURATION ==========

TOP_K = 3

# Qdrant accepts larger requests, but 50 keeps a single upsert small
UPSERT_BATCH_SIZE = 50

QDRANT_TIMEOUT_SECONDS = 60.0
DEFAULT_QDRANT_URL = "http://localhost:6333"


# ========== ANSWERING CONFIGURATION ==========

LLM_MODEL = "gpt-4o-mini"
LLM_TEMPERATURE = 0.2

LOCAL_QA_MODEL = "distilbert-base-uncased-distilled-squad"

# Degraded answer length when the local QA model fails
FALLBACK_CONTEXT_CHARS = 600


# ========== ENVIRONMENT ==========

CLOUD_CREDENTIAL_VARS = ("OPENAI_API_KEY", "QDRANT_API_KEY", "QDRANT_COLLECTION")

_TRUTHY = {"1", "true", "yes", "on"}


class Mode(str, enum.Enum):
    CLOUD = "cloud"
    LOCAL = "local"


@dataclass(frozen=True)
class Settings:
    """Process-wide settings, fixed at startup."""

    mode: Mode
    openai_api_key: Optional[str] = None
    qdrant_api_key: Optional[str] = None
    qdrant_collection: Optional[str] = None
    qdrant_url: str = DEFAULT_QDRANT_URL
    pdf_search_dirs: List[str] = field(default_factory=list)
    auto_ingest: bool = True
    pdf_url: Optional[str] = None
    log_level: str = "INFO"

    @property
    def is_cloud(self) -> bool:
        return self.mode is Mode.CLOUD


def resolve_mode(env: Mapping[str, str]) -> Mode:
    """
    Cloud credentials are all-or-nothing.

    All three present selects cloud mode, none present selects local
    mode, anything in between is a configuration error.
    """

    present = [name for name in CLOUD_CREDENTIAL_VARS if env.get(name)]

    if not present:
        return Mode.LOCAL

    missing = [name for name in CLOUD_CREDENTIAL_VARS if not env.get(name)]

    if missing:
        raise ConfigurationError(
            f"Missing required env vars: {', '.join(missing)} "
            f"(cloud mode needs all of {', '.join(CLOUD_CREDENTIAL_VARS)})"
        )

    return Mode.CLOUD


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:

    if env is None:
        env = os.environ

    mode = resolve_mode(env)

    search_dirs = [
        d for d in env.get("PDF_SEARCH_DIRS", "").split(os.pathsep) if d
    ] or [os.getcwd()]

    return Settings(
        mode=mode,
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        qdrant_api_key=env.get("QDRANT_API_KEY") or None,
        qdrant_collection=env.get("QDRANT_COLLECTION") or None,
        qdrant_url=env.get("QDRANT_URL") or DEFAULT_QDRANT_URL,
        pdf_search_dirs=search_dirs,
        auto_ingest=env.get("AUTO_INGEST", "true").strip().lower() in _TRUTHY,
        pdf_url=env.get("PDF_URL") or None,
        log_level=env.get("LOG_LEVEL", "INFO"),
    )
