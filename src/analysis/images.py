"""Selfie payload validation, run before any call to the vision model."""

import base64
import binascii
import io
import re
from dataclasses import dataclass
from typing import Optional

from PIL import Image, UnidentifiedImageError

from config.constants import DEFAULT_IMAGE_LIMITS
from core.exceptions import MalformedInput

_BASE64 = re.compile(r"^[A-Za-z0-9+/=]+$")
_DATA_URL = re.compile(r"^data:image/[A-Za-z0-9.+-]+;base64,", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ValidatedImage:
    base64_data: str
    image_format: str
    size_bytes: int

    @property
    def data_url(self) -> str:
        mime = "jpeg" if self.image_format in ("JPEG", "MPO") else self.image_format.lower()
        return f"data:image/{mime};base64,{self.base64_data}"

    def preview(self, chars: Optional[int] = None) -> str:
        """Truncated data URL stored with a saved analysis instead of the full image."""
        chars = chars or DEFAULT_IMAGE_LIMITS.STORED_PREVIEW_CHARS
        return f"{DEFAULT_IMAGE_LIMITS.DATA_URL_PREFIX}{self.base64_data[:chars]}..."


def strip_data_url(payload: str) -> str:
    return _DATA_URL.sub("", payload.strip(), count=1)


def validate_image(payload: str, max_mb: float = 20.0) -> ValidatedImage:
    """
    Check that ``payload`` is a base64 image under ``max_mb``.

    A ``data:image/...;base64,`` prefix is accepted and removed.

    Raises:
        MalformedInput: not base64, too large, or not a decodable image
    """
    if not isinstance(payload, str) or not payload.strip():
        raise MalformedInput("No image provided")

    data = _WHITESPACE.sub("", strip_data_url(payload))
    if not data or not _BASE64.match(data):
        raise MalformedInput("Invalid base64 format")

    estimated_bytes = len(data) * 3 / 4
    if estimated_bytes / (1024 * 1024) > max_mb:
        raise MalformedInput(f"Image size exceeds {max_mb:g}MB limit")

    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise MalformedInput("Invalid base64 format") from e

    try:
        with Image.open(io.BytesIO(raw)) as img:
            image_format = img.format or ""
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
        raise MalformedInput("Image could not be decoded") from e

    if image_format not in DEFAULT_IMAGE_LIMITS.ALLOWED_FORMATS:
        raise MalformedInput(f"Unsupported image format: {image_format or 'unknown'}")

    return ValidatedImage(base64_data=data, image_format=image_format, size_bytes=len(raw))
