# Path: core/repository/imaging.py
# Purpose: Validate repository image payloads and derive thumbnails and transport encodings.
# Layer: core/repository.
# Details: Uses Pillow to render inline thumbnails; undecodable payloads simply yield no thumbnail.

from __future__ import annotations

import base64
import binascii
import io
import logging
from typing import Iterable, Optional

from PIL import Image, UnidentifiedImageError

from core.errors import ValidationError

logger = logging.getLogger(__name__)


def validate_image_payload(data: bytes, mime_type: str, supported_mime_types: Iterable[str], max_size_bytes: int) -> None:
    """Reject payloads with an unsupported mime type or an excessive size."""

    supported = list(supported_mime_types)
    if mime_type not in supported:
        raise ValidationError(f"Unsupported file type: {mime_type}. Use one of {', '.join(supported)}.")
    if len(data) > max_size_bytes:
        size_mb = len(data) / 1024 / 1024
        limit_mb = max_size_bytes / 1024 / 1024
        raise ValidationError(f"File too large: {size_mb:.1f}MB. Max is {limit_mb:g}MB.")


def make_thumbnail_data_url(data: bytes, size: int = 160) -> Optional[str]:
    """Render a PNG thumbnail fitting within ``size`` pixels and return it as a data URL."""

    try:
        with Image.open(io.BytesIO(data)) as img:
            thumb = img.convert("RGBA")
            thumb.thumbnail((size, size))
            buffer = io.BytesIO()
            thumb.save(buffer, format="PNG")
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        logger.warning("Could not render thumbnail: %s", exc)
        return None
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


def encode_base64(data: bytes) -> str:
    """Encode raw image bytes for transmission to the external catalog."""

    return base64.b64encode(data).decode("ascii")


def decode_base64(payload: str) -> bytes:
    """Decode a base64 image payload, tolerating a leading ``data:...;base64,`` prefix."""

    if not isinstance(payload, str):
        raise ValidationError("base64Image must be a string")
    if payload.startswith("data:") and "," in payload:
        payload = payload.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError(f"Image payload is not valid base64: {exc}") from exc
