"""
Text extraction for plain text, PDF and HTML documents.
"""

import io
import re
from pathlib import Path
from typing import Optional, Union

import structlog
from bs4 import BeautifulSoup
from pypdf import PdfReader

from ..core.config import settings
from ..core.exceptions import ExtractionError, UnsupportedFormatError
from ..core.models import DocumentPreview

logger = structlog.get_logger(__name__)

TEXT_TYPES = {"text/plain", ".txt", "txt"}
PDF_TYPES = {"application/pdf", ".pdf", "pdf"}
HTML_TYPES = {"text/html", "application/xhtml+xml", ".html", ".htm", "html", "htm"}


def extract(file_bytes: bytes, mimetype_or_extension: str,
            max_bytes: Optional[int] = None) -> str:
    """
    Extract text from an in-memory file.
    
    Args:
        file_bytes: Raw file content
        mimetype_or_extension: MIME type ("application/pdf") or extension (".pdf")
        max_bytes: Size limit; MAX_UPLOAD_MB when omitted
        
    Returns:
        Extracted text
        
    Raises:
        UnsupportedFormatError: Unknown file type
        ExtractionError: The file could not be decoded or parsed
    """
    kind = (mimetype_or_extension or "").split(";")[0].strip().lower()
    limit = settings.max_upload_bytes if max_bytes is None else max_bytes
    if len(file_bytes) > limit:
        raise ExtractionError(f"File too large: {len(file_bytes)} bytes, limit is {limit}")
    
    if kind in TEXT_TYPES:
        extractor = _extract_txt
    elif kind in PDF_TYPES:
        extractor = _extract_pdf
    elif kind in HTML_TYPES:
        extractor = _extract_html
    else:
        raise UnsupportedFormatError(
            f"Unsupported file format: {mimetype_or_extension!r}. "
            "Only TXT, PDF and HTML files are supported."
        )
    
    try:
        text = extractor(file_bytes)
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(f"Error extracting text from file: {e}") from e
    
    logger.info("Extracted text", file_type=kind, bytes=len(file_bytes), chars=len(text))
    return text


def extract_file(path: Union[str, Path]) -> str:
    """Extract text from a file on disk, typed by its suffix."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ExtractionError(f"Error reading {path}: {e}") from e
    return extract(data, path.suffix.lower())


def preview(text: str, limit: Optional[int] = None, source: Optional[str] = None) -> DocumentPreview:
    """Leading excerpt of a document plus its full length."""
    limit = settings.preview_chars if limit is None else limit
    return DocumentPreview(preview=text[:limit], full_length=len(text), source=source)


def _extract_txt(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ExtractionError(f"Error reading TXT file: {e}") from e


def _extract_pdf(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except Exception as e:
        raise ExtractionError(f"Error reading PDF file: {e}") from e
    # Pages become paragraphs for the chunker
    return "\n\n".join(p.strip() for p in pages if p.strip())


def _extract_html(data: bytes) -> str:
    soup = BeautifulSoup(data, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    text = soup.get_text("\n")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n+", "\n\n", text)
    return text.strip()
