"""Convert resume attachment bytes into plain text."""

from __future__ import annotations

import io
import logging
import os

import docx
import pdfplumber

from .constants import DEFAULT_MIME_TYPE, MIME_TYPES, OLE_MAGIC, PDF_MAGIC, ZIP_MAGIC
from .errors import ExtractionError, UnsupportedFormatError

logger = logging.getLogger(__name__)

FORMAT_PDF = "pdf"
FORMAT_DOCX = "docx"
FORMAT_DOC = "doc"

_MIME_FORMATS = {
    MIME_TYPES[".pdf"]: FORMAT_PDF,
    MIME_TYPES[".docx"]: FORMAT_DOCX,
    MIME_TYPES[".doc"]: FORMAT_DOC,
}
_EXTENSION_FORMATS = {".pdf": FORMAT_PDF, ".docx": FORMAT_DOCX, ".doc": FORMAT_DOC}


def guess_mime_type(filename: str) -> str:
    return MIME_TYPES.get(os.path.splitext(filename or "")[1].lower(), DEFAULT_MIME_TYPE)


def detect_format(data: bytes, declared_mime_type: str = "", filename: str = "") -> str | None:
    """Pick a decoder: magic bytes first, then declared MIME type, then extension."""
    if data.startswith(PDF_MAGIC):
        return FORMAT_PDF
    if data.startswith(ZIP_MAGIC):
        return FORMAT_DOCX
    if data.startswith(OLE_MAGIC):
        return FORMAT_DOC

    mime = (declared_mime_type or "").split(";")[0].strip().lower()
    if mime in _MIME_FORMATS:
        return _MIME_FORMATS[mime]

    return _EXTENSION_FORMATS.get(os.path.splitext(filename or "")[1].lower())


def _extract_pdf(data: bytes) -> str:
    pages: list[str] = []
    try:
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for page in pdf.pages:
                page_text = page.extract_text()
                if page_text:
                    pages.append(page_text)
    except Exception as exc:  # noqa: BLE001
        raise ExtractionError(f"Failed to parse PDF content: {exc}") from exc
    return "\n".join(pages)


def _extract_docx(data: bytes) -> str:
    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as exc:  # noqa: BLE001
        raise ExtractionError(
            f"File is a ZIP container but not a readable Word document: {exc}"
        ) from exc

    parts = [para.text for para in document.paragraphs if para.text.strip()]
    for table in document.tables:
        for row in table.rows:
            row_text = " | ".join(cell.text.strip() for cell in row.cells if cell.text.strip())
            if row_text:
                parts.append(row_text)
    return "\n".join(parts)


def extract_text(data: bytes, declared_mime_type: str = "", filename: str = "") -> str:
    """Return the plain text of a PDF or DOCX resume.

    Raises UnsupportedFormatError when no decoder applies and ExtractionError
    when the chosen decoder cannot read the document.
    """
    fmt = detect_format(data, declared_mime_type, filename)
    logger.debug("Extracting %s (%d bytes) as %s", filename, len(data), fmt)

    if fmt == FORMAT_PDF:
        return _extract_pdf(data)
    if fmt == FORMAT_DOCX:
        return _extract_docx(data)
    if fmt == FORMAT_DOC:
        raise UnsupportedFormatError(
            f"Legacy Word (.doc) documents are not supported: {filename or 'attachment'}"
        )
    raise UnsupportedFormatError(
        f"Unsupported document format for {filename or 'attachment'} "
        f"(type {declared_mime_type or 'unknown'}): not a PDF or DOCX file"
    )
