#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/mdinbox/utils/images.py
"""Image handling utilities for pasted images.

Pasted image bytes are embedded in the document as base64 ``data:`` URIs so
that drafts stay self-contained.

"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from datetime import datetime, timezone
from typing import Optional

from mdinbox.exceptions import ValidationError

logger = logging.getLogger(__name__)

_MIME_BY_FORMAT = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "bmp": "image/bmp",
    "tiff": "image/tiff",
    "ico": "image/x-icon",
    "svg": "image/svg+xml",
}


def is_data_uri(uri: str) -> bool:
    """Check if a string is a data URI.

    Examples
    --------
        >>> is_data_uri("data:image/png;base64,...")
        True
        >>> is_data_uri("https://example.com/image.png")
        False

    """
    if not uri or not isinstance(uri, str):
        return False
    return uri.startswith("data:")


def detect_image_format_from_bytes(data: bytes) -> Optional[str]:
    r"""Detect image format from file content using magic bytes.

    Parameters
    ----------
    data : bytes
        Image content; the first 32 bytes are enough

    Returns
    -------
    str or None
        Image format (lowercase extension without dot) or None if unrecognized

    Notes
    -----
    Supported signatures: PNG (``\x89PNG``), JPEG (``\xff\xd8\xff``), GIF,
    WebP (``WEBP`` at offset 8), BMP, TIFF, ICO and SVG.

    """
    if not data or len(data) < 4:
        return None

    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8\xff"):
        return "jpg"
    if data.startswith(b"GIF87a") or data.startswith(b"GIF89a"):
        return "gif"
    if len(data) >= 12 and data.startswith(b"RIFF") and data[8:12] == b"WEBP":
        return "webp"
    if data.startswith(b"BM"):
        return "bmp"
    if data.startswith(b"II*\x00") or data.startswith(b"MM\x00*"):
        return "tiff"
    if data.startswith(b"\x00\x00\x01\x00"):
        return "ico"

    stripped = data[:256].lstrip()
    if stripped.startswith(b"<svg") or stripped.startswith(b"<?xml"):
        return "svg"

    return None


def encode_image_data_uri(data: bytes, mime_type: Optional[str] = None) -> str:
    """Encode image bytes as a base64 ``data:`` URI.

    Parameters
    ----------
    data : bytes
        Image content
    mime_type : str, optional
        MIME type reported by the clipboard; detected from the bytes when
        absent or not an image type

    Returns
    -------
    str
        ``data:{mime};base64,{payload}``

    Raises
    ------
    ValidationError
        If the data is empty or no image MIME type can be determined

    """
    if not data:
        raise ValidationError("Image data is empty", parameter_name="data")

    mime = (mime_type or "").strip().lower()
    if not mime.startswith("image/"):
        detected = detect_image_format_from_bytes(data)
        if detected is None:
            raise ValidationError(
                f"Not an image: {mime_type or 'unknown type'}", parameter_name="mime_type", parameter_value=mime_type
            )
        mime = _MIME_BY_FORMAT[detected]
        logger.debug(f"Detected pasted image type {mime}")

    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def decode_image_data_uri(data_uri: str) -> tuple[Optional[bytes], Optional[str]]:
    """Decode a base64 image data URI.

    Returns
    -------
    tuple[bytes or None, str or None]
        Tuple of (image_data, mime_type) or (None, None) if decoding fails

    """
    match = re.match(r"^data:(?P<mime>[^;,]+);base64,(?P<data>.+)$", data_uri or "", re.DOTALL)
    if not match:
        logger.debug(f"Invalid data URI format for URI starting with '{(data_uri or '')[:50]}...'")
        return None, None
    try:
        return base64.b64decode(match.group("data"), validate=True), match.group("mime").lower()
    except (ValueError, binascii.Error) as e:
        logger.debug(f"Invalid base64 encoding: failed to decode ({type(e).__name__}: {e})")
        return None, None


def pasted_image_alt_text(moment: Optional[datetime] = None) -> str:
    """Return the alt text for an image pasted at ``moment``.

    The timestamp is the UTC ISO form with millisecond precision, with ``:``
    and ``.`` replaced by ``-``.

    Examples
    --------
        >>> from datetime import datetime, timezone
        >>> pasted_image_alt_text(datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc))
        'Pasted image 2024-01-02T03-04-05-678Z'

    """
    moment = (moment or datetime.now(timezone.utc)).astimezone(timezone.utc)
    iso = f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{moment.microsecond // 1000:03d}Z"
    return f"Pasted image {re.sub(r'[:.]', '-', iso)}"


__all__ = [
    "decode_image_data_uri",
    "detect_image_format_from_bytes",
    "encode_image_data_uri",
    "is_data_uri",
    "pasted_image_alt_text",
]
