"""
Purpose:
- Turn the image inputs of /api/embed into RGB PIL images.
    * image_url    : http(s) URLs are downloaded with httpx; data: URLs decode inline.
    * image_base64 : raw base64 (taken as image/jpeg) or a full data URL.
"""

from __future__ import annotations
import base64
import binascii
from io import BytesIO
from typing import Optional
from urllib.parse import unquote_to_bytes

import httpx
from PIL import Image, ImageOps, UnidentifiedImageError

from ..core.settings import settings

DEFAULT_MIME = "image/jpeg"


class ImageDecodeError(ValueError):
    pass


def open_image(raw: bytes) -> Image.Image:
    if not raw:
        raise ImageDecodeError("empty image payload")
    try:
        img = Image.open(BytesIO(raw))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"cannot decode image: {e}") from e
    return ImageOps.exif_transpose(img).convert("RGB")


def _b64decode(payload: str) -> bytes:
    # tolerate whitespace/newlines and missing padding from hand-built clients
    s = "".join(payload.split())
    s += "=" * (-len(s) % 4)
    try:
        return base64.b64decode(s, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodeError(f"invalid base64 image data: {e}") from e


def _decode_data_url(url: str) -> bytes:
    """
    data:<mime>[;base64],<payload>
    """
    header, sep, payload = url[5:].partition(",")
    if not sep:
        raise ImageDecodeError("malformed data URL")
    if header.endswith(";base64"):
        return _b64decode(payload)
    return unquote_to_bytes(payload)


def decode_base64_image(b64: str) -> Image.Image:
    if b64.startswith("data:"):
        return open_image(_decode_data_url(b64))
    return open_image(_decode_data_url(f"data:{DEFAULT_MIME};base64,{b64}"))


def fetch_image(url: str, client: Optional[httpx.Client] = None) -> Image.Image:
    """
    Download (or inline-decode) the image behind url. Network errors and non-2xx
    responses propagate as httpx exceptions.
    """
    if url.startswith("data:"):
        return open_image(_decode_data_url(url))
    scheme = url.split(":", 1)[0].lower() if ":" in url else ""
    if scheme not in ("http", "https"):
        raise ImageDecodeError(f"unsupported image_url scheme: {scheme or url!r}")

    if client is None:
        resp = httpx.get(url, timeout=settings.image_fetch_timeout, follow_redirects=True)
    else:
        resp = client.get(url, timeout=settings.image_fetch_timeout, follow_redirects=True)
    resp.raise_for_status()
    return open_image(resp.content)
