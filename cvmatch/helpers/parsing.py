import io
import re
import zipfile
from pathlib import Path
from typing import Optional

from pdfminer.high_level import extract_text as pdf_extract
from pdfminer.psparser import PSException
from docx import Document
from docx.opc.exceptions import PackageNotFoundError

from cvmatch.utils.exceptions import ExtractionError, UnsupportedDocumentType
from cvmatch.utils.logging_config import get_logger
import logging
logging.getLogger("pdfminer").setLevel(logging.ERROR)

logger = get_logger(__name__)

PDF = "application/pdf"
DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_TYPES = {"text/plain", "text/markdown"}

EXTENSION_TYPES = {
    ".pdf": PDF,
    ".docx": DOCX,
    ".txt": "text/plain",
    ".md": "text/markdown",
}
GENERIC_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def resolve_mime_type(mime_type: Optional[str], filename: Optional[str] = None) -> str:
    """Declared MIME type, or one guessed from the extension when it is generic"""
    mime = (mime_type or "").split(";")[0].strip().lower()
    if mime in GENERIC_TYPES and filename:
        mime = EXTENSION_TYPES.get(Path(filename).suffix.lower(), mime)
    return mime


def read_txt(data: bytes) -> str:
    return data.decode("utf-8-sig", errors="ignore")


def read_docx(data: bytes) -> str:
    doc = Document(io.BytesIO(data))
    return "\n".join([p.text for p in doc.paragraphs])


def read_pdf(data: bytes) -> str:
    return pdf_extract(io.BytesIO(data))


def clean_text(x: str) -> str:
    # collapse runs of spaces per line, keep paragraph structure
    lines = [re.sub(r'[ \t\f\v]+', ' ', line).strip() for line in x.splitlines()]
    x = "\n".join(lines)
    x = re.sub(r'\n{3,}', '\n\n', x)
    return x.strip()


def extract_text(data: bytes, mime_type: Optional[str], filename: Optional[str] = None) -> str:
    """Plain text of an uploaded job description document.

    Raises UnsupportedDocumentType for formats we cannot read and
    ExtractionError when the document is unreadable or has no text.
    """
    mime = resolve_mime_type(mime_type, filename)
    if mime in TEXT_TYPES:
        reader = read_txt
    elif mime == PDF:
        reader = read_pdf
    elif mime == DOCX:
        reader = read_docx
    else:
        raise UnsupportedDocumentType(mime or "unknown")

    if not data:
        raise ExtractionError("Uploaded file is empty")

    try:
        text = reader(data)
    except (PSException, PackageNotFoundError, zipfile.BadZipFile, ValueError, KeyError) as e:
        logger.warning(f"Could not read {mime} document {filename or ''}: {e}")
        raise ExtractionError(f"Could not read {mime} document", cause=e) from e

    text = clean_text(text)
    if not text:
        raise ExtractionError("No text could be extracted from the document")

    logger.info(f"Extracted {len(text)} characters from {mime} document")
    return text
