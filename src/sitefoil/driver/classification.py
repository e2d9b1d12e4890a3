"""
Module: driver.classification

Purpose:
    Content-kind classification for site files. The extension decides when
    it is known; otherwise the leading bytes are sniffed, so an image saved
    as "chart.report" or with no extension at all is still an image.

Key Functions:
    - classify(): Kind from a path and its leading bytes
    - classify_file(): Read the head of a file and classify it
    - sniff_kind(): Content-only classification

Dependencies:
    - PIL: Fallback image identification for formats without a signature entry

Used By:
    - driver.walker.discover()
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from sitefoil.core.models import ContentKind
from sitefoil.engine.errors import UnreadableInput

logger = logging.getLogger(__name__)

# Bytes read for sniffing
HEAD_BYTES = 8192

MARKUP_EXTENSIONS = frozenset({".html", ".htm", ".xhtml", ".shtml"})
TEXT_EXTENSIONS = frozenset({".txt", ".text"})
IMAGE_EXTENSIONS = frozenset({
    ".png", ".gif", ".jpg", ".jpeg", ".webp", ".avif", ".svg",
    ".bmp", ".ico", ".tif", ".tiff",
})
OPAQUE_EXTENSIONS = frozenset({
    ".css", ".js", ".mjs", ".json", ".xml", ".map", ".woff", ".woff2",
    ".ttf", ".otf", ".eot", ".pdf", ".zip", ".gz", ".wasm", ".mp4",
    ".webm", ".mp3", ".ogg",
})

IMAGE_SIGNATURES = (
    b"\x89PNG\r\n\x1a\n",
    b"GIF87a",
    b"GIF89a",
    b"\xff\xd8\xff",        # JPEG
    b"II*\x00",             # TIFF little-endian
    b"MM\x00*",             # TIFF big-endian
)


def _has_image_signature(head: bytes) -> bool:
    if head.startswith(IMAGE_SIGNATURES):
        return True
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return True
    if head[4:8] == b"ftyp" and head[8:12] in (b"avif", b"avis"):
        return True
    return False


def _pillow_identifies(head: bytes) -> bool:
    """Let Pillow identify formats the signature table does not cover (BMP, ICO, ...)."""
    try:
        with Image.open(io.BytesIO(head)) as image:
            return image.format is not None
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return False


def sniff_kind(head: bytes) -> Optional[ContentKind]:
    """
    Classify by content alone.

    Returns:
        IMAGE or MARKUP when recognized, None otherwise

    Example:
        >>> sniff_kind(b"\\x89PNG\\r\\n\\x1a\\n...")
        <ContentKind.IMAGE: 'image'>
    """
    if not head:
        return None
    if _has_image_signature(head):
        return ContentKind.IMAGE

    prologue = head[:1024].lstrip(b"\xef\xbb\xbf \t\r\n").lower()
    if prologue.startswith((b"<!doctype html", b"<html")):
        return ContentKind.MARKUP
    if b"<svg" in prologue and b"<html" not in prologue:
        return ContentKind.IMAGE

    if _pillow_identifies(head):
        return ContentKind.IMAGE
    return None


def classify(path: Path, head: bytes) -> ContentKind:
    """
    Classify a file from its name and leading bytes.

    Args:
        path: File path (only the suffix is used)
        head: First bytes of the file

    Returns:
        ContentKind; anything unrecognized is OPAQUE

    Example:
        >>> classify(Path("chart.report"), png_bytes)
        <ContentKind.IMAGE: 'image'>
    """
    suffix = path.suffix.lower()
    if suffix in MARKUP_EXTENSIONS:
        return ContentKind.MARKUP
    if suffix in TEXT_EXTENSIONS:
        return ContentKind.PLAIN_TEXT
    if suffix in IMAGE_EXTENSIONS:
        return ContentKind.IMAGE
    if suffix in OPAQUE_EXTENSIONS:
        return ContentKind.OPAQUE

    kind = sniff_kind(head)
    if kind is None:
        logger.debug(f"Unrecognized content: {path.name}; treating as opaque")
        return ContentKind.OPAQUE
    logger.debug(f"Classified {path.name} as {kind} by content")
    return kind


def classify_file(path: Path) -> ContentKind:
    """
    Read the head of ``path`` and classify it.

    Raises:
        UnreadableInput: If the file cannot be opened or read
    """
    try:
        with open(path, "rb") as f:
            head = f.read(HEAD_BYTES)
    except OSError as e:
        raise UnreadableInput(path, e.strerror or str(e)) from e
    return classify(path, head)
