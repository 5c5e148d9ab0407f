"""Utility helpers for moving images between data-URIs, bytes and PIL."""

from __future__ import annotations

import base64
import binascii
import re
from io import BytesIO
from typing import Any, Optional, Tuple

from PIL import Image

_DATA_URI_PATTERN = re.compile(r"^data:([\w.+/-]+);base64,(.+)$", re.DOTALL)


def split_data_uri(uri: Optional[str]) -> Optional[Tuple[str, str]]:
    """Return ``(mime_type, base64_payload)`` or None when ``uri`` is not a base64 data-URI."""
    if not uri:
        return None
    match = _DATA_URI_PATTERN.match(uri.strip())
    if match is None:
        return None
    return match.group(1), match.group(2)


def to_data_uri(data: bytes | str, mime_type: str = "image/png") -> str:
    """Wrap raw bytes (or an already base64 encoded string) as a data-URI."""
    if isinstance(data, bytes):
        payload = base64.b64encode(data).decode("ascii")
    else:
        payload = data
    return f"data:{mime_type};base64,{payload}"


def data_uri_to_bytes(uri: str) -> bytes:
    """Decode the payload of a data-URI.

    Raises:
        ValueError: if ``uri`` is not a valid base64 data-URI.
    """
    parts = split_data_uri(uri)
    if parts is None:
        raise ValueError("not a base64 data-URI")
    try:
        return base64.b64decode(parts[1], validate=True)
    except binascii.Error as exc:
        raise ValueError(f"invalid base64 payload: {exc}") from exc


def image_to_data_uri(image: Image.Image, fmt: str = "PNG") -> str:
    """Encode a PIL image, e.g. an uploaded reference, as a data-URI."""
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return to_data_uri(buffer.getvalue(), f"image/{fmt.lower()}")


def data_uri_to_image(uri: str) -> Image.Image:
    """Decode a data-URI into a loaded PIL image."""
    image = Image.open(BytesIO(data_uri_to_bytes(uri)))
    image.load()
    return image


def normalize_png(data: bytes) -> bytes:
    """Re-encode arbitrary image bytes as PNG, flattening alpha onto white."""
    image = Image.open(BytesIO(data))
    if image.mode == "RGBA":
        flattened = Image.new("RGB", image.size, (255, 255, 255))
        flattened.paste(image, mask=image.split()[3])
        image = flattened
    elif image.mode != "RGB":
        image = image.convert("RGB")
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def generate_thumbnail(image: Any, max_size: Tuple[int, int] = (256, 256)) -> Image.Image:
    """Create a thumbnail suitable for history previews."""
    if isinstance(image, str):
        image = data_uri_to_image(image)
    thumb = image.copy()
    thumb.thumbnail(max_size)
    return thumb
