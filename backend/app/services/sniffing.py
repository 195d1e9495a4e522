"""Document format detection from magic bytes, content type and URL suffix."""

from enum import Enum
from typing import Optional, Tuple
from urllib.parse import urlparse


class DocumentFormat(str, Enum):
    PDF = "pdf"
    IMAGE = "image"
    UNKNOWN = "unknown"


# Checked in order; the first matching prefix wins.
MAGIC_SIGNATURES: Tuple[Tuple[bytes, DocumentFormat], ...] = (
    (b"%PDF", DocumentFormat.PDF),
    (b"\x89PNG\r\n\x1a\n", DocumentFormat.IMAGE),
    (b"\xff\xd8\xff", DocumentFormat.IMAGE),
    (b"GIF87a", DocumentFormat.IMAGE),
    (b"GIF89a", DocumentFormat.IMAGE),
)

SUFFIX_FORMATS = {
    ".pdf": DocumentFormat.PDF,
    ".png": DocumentFormat.IMAGE,
    ".jpg": DocumentFormat.IMAGE,
    ".jpeg": DocumentFormat.IMAGE,
    ".gif": DocumentFormat.IMAGE,
    ".webp": DocumentFormat.IMAGE,
}


def sniff_bytes(data: bytes) -> DocumentFormat:
    """Classify a buffer by its leading magic bytes."""
    if not data:
        return DocumentFormat.UNKNOWN
    for signature, fmt in MAGIC_SIGNATURES:
        if data.startswith(signature):
            return fmt
    # WebP: RIFF....WEBP
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return DocumentFormat.IMAGE
    return DocumentFormat.UNKNOWN


def format_from_content_type(content_type: Optional[str]) -> DocumentFormat:
    if not content_type:
        return DocumentFormat.UNKNOWN
    media_type = content_type.split(";")[0].strip().lower()
    if media_type == "application/pdf":
        return DocumentFormat.PDF
    if media_type.startswith("image/"):
        return DocumentFormat.IMAGE
    return DocumentFormat.UNKNOWN


def format_from_url(url: Optional[str]) -> DocumentFormat:
    if not url:
        return DocumentFormat.UNKNOWN
    path = urlparse(url).path.lower()
    for suffix, fmt in SUFFIX_FORMATS.items():
        if path.endswith(suffix):
            return fmt
    return DocumentFormat.UNKNOWN


def classify_document(
    data: bytes,
    content_type: Optional[str] = None,
    url: Optional[str] = None,
) -> DocumentFormat:
    """Decide how to extract text from a fetched document.

    Magic bytes are authoritative when they match; otherwise the declared
    content type, then the URL suffix, are consulted.
    """
    sniffed = sniff_bytes(data)
    if sniffed is not DocumentFormat.UNKNOWN:
        return sniffed
    declared = format_from_content_type(content_type)
    if declared is not DocumentFormat.UNKNOWN:
        return declared
    return format_from_url(url)
