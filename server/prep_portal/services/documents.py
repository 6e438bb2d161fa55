"""
Source document handling.

Documents arrive as data URIs (`data:<mime>;base64,<payload>`). PDFs are turned
into plain text with pypdf so the text can be placed in the prompt.
"""
import base64
import binascii
import io
import logging
import re
from typing import Optional, Tuple

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from prep_portal.config import settings

logger = logging.getLogger(__name__)

DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]*)*);base64,(?P<data>.*)$", re.DOTALL)


class DocumentError(ValueError):
    """The document could not be decoded or is not supported."""


def parse_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into (mime type, raw bytes)."""
    match = DATA_URI_RE.match(data_uri.strip())
    if not match:
        raise DocumentError("Document must be a base64 data URI")

    mime = (match.group("mime") or "application/octet-stream").lower()
    try:
        raw = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        raise DocumentError("Document payload is not valid base64")

    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if len(raw) > max_bytes:
        raise DocumentError(f"Document exceeds {settings.max_upload_size_mb} MB")
    return mime, raw


def process_pdf(raw: bytes) -> str:
    """Extract text from PDF bytes"""
    try:
        reader = PdfReader(io.BytesIO(raw))
        text = ""
        for page in reader.pages:
            text += (page.extract_text() or "") + "\n"
    except (PyPdfError, ValueError) as e:
        raise DocumentError(f"Could not read PDF: {e}")
    return text


def extract_text(data_uri: Optional[str]) -> str:
    """
    Turn a document data URI into prompt-ready text.

    Returns an empty string when no document is given. Text is cut to
    `max_document_chars`.
    """
    if not data_uri:
        return ""

    mime, raw = parse_data_uri(data_uri)
    if mime == "application/pdf":
        text = process_pdf(raw)
    elif mime.startswith("text/"):
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError:
            raise DocumentError("Text document is not valid UTF-8")
    else:
        raise DocumentError(f"Unsupported document type: {mime}")

    text = text.strip()
    if len(text) > settings.max_document_chars:
        logger.info("✂️ Document truncated from %d to %d chars", len(text), settings.max_document_chars)
        text = text[:settings.max_document_chars]
    return text
