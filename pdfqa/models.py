# pdfqa/models.py
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator

from pdfqa.config import TOP_K


class IngestRequest(BaseModel):
    """Paths or URLs to ingest; empty means auto-discover PDFs."""
    paths: Optional[List[str]] = None

    @field_validator("paths")
    @classmethod
    def drop_blank_paths(cls, v):
        if v is None:
            return v
        return [p.strip() for p in v if p and p.strip()]


class IngestResponse(BaseModel):
    ok: bool = True
    total_stored: int
    paths: List[str]


class AskRequest(BaseModel):
    """
    question is optional at the schema level so that a missing question
    gets the API's own 400 response instead of a validation error.
    """
    question: Optional[str] = None
    top_k: int = Field(
        TOP_K,
        ge=1,
        le=50,
        validation_alias=AliasChoices("top_k", "topK"),
    )

    @field_validator("top_k", mode="before")
    @classmethod
    def default_top_k(cls, v):
        """Falsy topK (0, null) falls back to the default."""
        return v or TOP_K


class AskResponse(BaseModel):
    ok: bool = True
    answer: str
    context: str
    sources_used: int
    degraded: bool = False


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    error_type: Optional[str] = None
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    mode: str
    total_vectors: int
