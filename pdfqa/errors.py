# pdfqa/errors.py
"""
Error hierarchy.

Every failure in the pipeline surfaces as a PdfQAError subclass so the
HTTP and CLI entry points can turn it into a structured failure. The
original exception is always chained.
"""


class PdfQAError(Exception):
    """Base class for pipeline failures."""


class ConfigurationError(PdfQAError, ValueError):
    """Invalid or partially present configuration."""


class ExtractionError(PdfQAError):
    """Document could not be fetched, read or parsed."""


class EmbeddingError(PdfQAError):
    """Remote or local embedding model failure."""


class StoreError(PdfQAError):
    """Vector index write or query failure."""


class GenerationError(PdfQAError):
    """Completion request failed."""
