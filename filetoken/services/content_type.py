"""
Content type detection from file contents.

The file name is never consulted; the first bytes of the file decide.
"""
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

# Bytes read from the head of a file for sniffing
SNIFF_LENGTH = 512

DEFAULT_CONTENT_TYPE = "application/octet-stream"

# Magic bytes at offset 0
MAGIC_BYTES = {
    b"\x89PNG\r\n\x1a\n": "image/png",
    b"\xff\xd8\xff": "image/jpeg",
    b"GIF87a": "image/gif",
    b"GIF89a": "image/gif",
    b"II*\x00": "image/tiff",       # TIFF little-endian
    b"MM\x00*": "image/tiff",       # TIFF big-endian
    b"BM": "image/bmp",
    b"\x00\x00\x01\x00": "image/x-icon",
    b"%PDF-": "application/pdf",
    b"PK\x03\x04": "application/zip",
    b"\x1f\x8b": "application/gzip",
    b"ID3": "audio/mpeg",
    b"\xff\xfb": "audio/mpeg",
    b"\xff\xf3": "audio/mpeg",
    b"fLaC": "audio/flac",
    b"OggS": "audio/ogg",
    b"\x1aE\xdf\xa3": "video/webm",  # EBML (WebM / Matroska)
}

# RIFF containers: b"RIFF" <size> <form type>
RIFF_FORMS = {
    b"WEBP": "image/webp",
    b"WAVE": "audio/wav",
    b"AVI ": "video/x-msvideo",
}

# ISO base media: <size> b"ftyp" <brand>
FTYP_BRANDS = {
    b"qt  ": "video/quicktime",
    b"M4A ": "audio/mp4",
    b"avif": "image/avif",
    b"heic": "image/heic",
}


def sniff_content_type(head: bytes) -> Optional[str]:
    """
    Detect a content type from the leading bytes of a file.

    Returns:
        A MIME type, or None if no signature matched
    """
    if not head:
        return None

    for magic, content_type in MAGIC_BYTES.items():
        if head.startswith(magic):
            return content_type

    if head[:4] == b"RIFF" and len(head) >= 12:
        return RIFF_FORMS.get(head[8:12])

    if head[4:8] == b"ftyp" and len(head) >= 12:
        return FTYP_BRANDS.get(head[8:12], "video/mp4")

    stripped = head.lstrip()
    lowered = stripped[:256].lower()
    if lowered.startswith(b"<svg") or (lowered.startswith(b"<?xml") and b"<svg" in lowered):
        return "image/svg+xml"
    if lowered.startswith((b"<!doctype html", b"<html")):
        return "text/html"
    if lowered.startswith(b"<?xml"):
        return "application/xml"

    if _looks_like_text(head):
        return "text/plain"

    return None


def _looks_like_text(head: bytes) -> bool:
    if b"\x00" in head:
        return False
    try:
        head.decode("utf-8")
    except UnicodeDecodeError as e:
        # A multi-byte character cut off at the end of the sample is fine
        if e.start < len(head) - 3:
            return False
    return True


def detect_content_type(path: Path) -> str:
    """
    Detect the content type of a file on disk.

    Blocking; run it in an executor from async code.
    """
    with path.open("rb") as f:
        head = f.read(SNIFF_LENGTH)

    content_type = sniff_content_type(head)
    if content_type:
        return content_type

    # Try Pillow as fallback for image formats without a fixed signature
    try:
        with Image.open(path) as img:
            mime = Image.MIME.get(img.format or "")
    except (UnidentifiedImageError, OSError):
        mime = None

    return mime or DEFAULT_CONTENT_TYPE
