# pdfqa/memory/loader.py

"""
Document loading.

Architecture contract:
loader → chunker → embedder → vector_store

Supports:
- local PDF files
- PDF URLs (downloaded to a temporary file first)
- discovery of PDFs in a set of directories
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Union
from urllib.parse import urlparse

import requests
from pypdf import PdfReader

from pdfqa.config import ALLOWED_FILE_EXTENSIONS, DOWNLOAD_TIMEOUT_SECONDS
from pdfqa.errors import ExtractionError

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.startswith("http://") or source.startswith("https://")


def document_name(source: str) -> str:
    """Base file name of a path or URL, used as the record namespace."""

    if is_url(source):
        name = os.path.basename(urlparse(source).path)
        return name or urlparse(source).netloc

    return os.path.basename(source)


# ============================================================
# PDF LOADER
# ============================================================

def extract_text(file_path: Union[str, Path]) -> str:

    path = Path(file_path)

    if not path.is_file():
        raise ExtractionError(f"File not found: {path}")

    try:

        reader = PdfReader(str(path))

        parts = []

        for page in reader.pages:

            text = page.extract_text()

            if text:
                parts.append(text)

    except Exception as e:

        logger.error(
            "PDF extraction failed",
            extra={"path": str(path), "error": str(e)},
        )

        raise ExtractionError(f"Could not read PDF {path}: {e}") from e

    text = "\n".join(parts)

    logger.info(
        "PDF text extracted",
        extra={
            "path": str(path),
            "pages": len(reader.pages),
            "characters": len(text),
        },
    )

    return text


# ============================================================
# DOWNLOAD
# ============================================================

def download_pdf(
    url: str,
    dest: Union[str, Path],
    timeout: float = DOWNLOAD_TIMEOUT_SECONDS,
) -> Path:

    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise ExtractionError(f"Failed to download {url}: {e}") from e

    if resp.status_code != 200:
        raise ExtractionError(
            f"Failed to download {url}: HTTP {resp.status_code}"
        )

    dest = Path(dest)

    dest.write_bytes(resp.content)

    logger.info(
        "PDF downloaded",
        extra={"url": url, "path": str(dest), "bytes": len(resp.content)},
    )

    return dest


# ============================================================
# MAIN ENTRY POINT
# ============================================================

def load_document_text(source: str) -> str:

    if is_url(source):

        with tempfile.TemporaryDirectory() as tmp:

            path = download_pdf(source, Path(tmp) / "document.pdf")

            return extract_text(path)

    return extract_text(source)


def discover_pdfs(search_dirs: Iterable[Union[str, Path]]) -> List[str]:

    found = []

    for directory in search_dirs:

        directory = Path(directory)

        if not directory.is_dir():
            logger.warning(
                "PDF search directory missing",
                extra={"directory": str(directory)},
            )
            continue

        for entry in sorted(directory.iterdir()):

            if entry.is_file() and entry.suffix.lower() in ALLOWED_FILE_EXTENSIONS:
                found.append(str(entry))

    return found
