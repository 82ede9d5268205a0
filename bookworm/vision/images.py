from __future__ import annotations

import base64
import binascii
import io

from PIL import Image, UnidentifiedImageError

from bookworm.errors import InvalidImageError


def decode_image(payload: str) -> Image.Image:
    """Decode a browser canvas capture (data URL or bare base64) to RGB."""
    if not payload or not payload.strip():
        raise InvalidImageError("Image is required")

    encoded = payload.strip()
    if encoded.startswith("data:"):
        try:
            header, encoded = encoded.split(",", 1)
        except ValueError:
            raise InvalidImageError("Malformed data URL")
        if ";base64" not in header:
            raise InvalidImageError("Only base64 data URLs are supported")

    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError(f"Image is not valid base64: {exc}") from exc

    try:
        image = Image.open(io.BytesIO(raw))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError(f"Unreadable image: {exc}") from exc

    # Canvas captures are RGBA; every consumer here wants 3 channels.
    return image.convert("RGB")
