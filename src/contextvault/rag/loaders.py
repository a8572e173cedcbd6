"""Turn uploaded bytes or files into plain text for ingestion."""

import asyncio
import io
import logging
import mimetypes
import re
from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from contextvault.exceptions import ValidationError

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024
RECOMMENDED_FILE_SIZE = 2 * 1024 * 1024
PDF_TIMEOUT = 60.0
MIN_PDF_TEXT_LENGTH = 50

DEFAULT_NAME = "pasted_text.txt"
DEFAULT_TYPE = "text/plain"
PDF_TYPE = "application/pdf"

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f\ufffd]")
_WHITESPACE = re.compile(r"\s+")


class LoadedDocument(BaseModel):
    """Extracted text plus the name and MIME type it will be registered under."""
    text: str
    name: str = DEFAULT_NAME
    type: str = DEFAULT_TYPE


def is_pdf(content_type: str) -> bool:
    return "pdf" in content_type.lower()


async def load_bytes(
    data: bytes,
    name: Optional[str] = None,
    content_type: Optional[str] = None,
) -> LoadedDocument:
    """Decode an upload.

    Args:
        data: Raw file content
        name: File name (defaults to ``pasted_text.txt``)
        content_type: MIME type (defaults to ``text/plain``)

    Returns:
        LoadedDocument with the extracted text

    Raises:
        ValidationError: Too large, empty, undecodable, or a PDF with no
            usable text
    """
    name = name or DEFAULT_NAME
    content_type = content_type or DEFAULT_TYPE

    size = len(data)
    if size > MAX_FILE_SIZE:
        raise ValidationError(
            f"File too large. Maximum size is {MAX_FILE_SIZE // (1024 * 1024)}MB, "
            f"but {name} is {size / (1024 * 1024):.1f}MB"
        )
    if size > RECOMMENDED_FILE_SIZE:
        logger.warning(f"Large file detected: {name} ({size / (1024 * 1024):.1f}MB). Processing may be slow")

    if is_pdf(content_type):
        text = await extract_pdf_text(data)
        if len(text) < MIN_PDF_TEXT_LENGTH:
            raise ValidationError(
                f"PDF extraction produced very little text from {name}; "
                "it may be image-based or corrupted"
            )
        logger.info(f"Extracted {len(text)} characters from PDF {name}")
        return LoadedDocument(text=text, name=name, type=PDF_TYPE)

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError(f"{name} is not valid UTF-8 text: {e}") from e

    if not text.strip():
        raise ValidationError(f"{name} is empty")

    return LoadedDocument(text=text, name=name, type=content_type)


async def load_path(path: str | Path) -> LoadedDocument:
    """Load a file from disk, guessing its MIME type from the extension."""
    path = Path(path)
    content_type, _ = mimetypes.guess_type(path.name)

    loop = asyncio.get_running_loop()
    data = await loop.run_in_executor(None, path.read_bytes)

    return await load_bytes(data, name=path.name, content_type=content_type)


async def extract_pdf_text(data: bytes, timeout: float = PDF_TIMEOUT) -> str:
    """Extract text from a PDF in the default executor.

    Raises:
        ValidationError: Unreadable PDF or extraction slower than ``timeout``
    """
    loop = asyncio.get_running_loop()
    try:
        return await asyncio.wait_for(
            loop.run_in_executor(None, _extract_pdf_text, data),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise ValidationError("PDF processing timeout - file too complex") from e
    except PdfReadError as e:
        raise ValidationError(f"PDF processing failed: {e}") from e


def _extract_pdf_text(data: bytes) -> str:
    reader = PdfReader(io.BytesIO(data))
    pages = []
    for page in reader.pages:
        text = _WHITESPACE.sub(" ", _CONTROL_CHARS.sub("", page.extract_text() or "")).strip()
        if text:
            pages.append(text)
    return "\n\n".join(pages)
