"""
Purpose:
- Caption an uploaded image with a hosted chat-completion model (OpenAI API).
- The image travels inline as a base64 data URL next to a fixed instruction.

Notes:
- One request per caption; no retry. Timeouts are whatever the openai client applies.
- Missing OPENAI_API_KEY is raised per call so the app still boots without it.
"""

from __future__ import annotations
import base64
import logging
from typing import Optional, Tuple

from openai import OpenAI

from ..core.settings import settings

logger = logging.getLogger(__name__)

DEFAULT_MIME = "image/jpeg"


class CaptionError(RuntimeError):
    """The upstream model returned nothing usable."""


class CaptionConfigError(CaptionError):
    """Captioning is not configured (no API credential)."""


def to_base64(raw: bytes, mime_type: Optional[str] = None) -> Tuple[str, str]:
    return base64.b64encode(raw).decode("ascii"), (mime_type or DEFAULT_MIME)


def data_url(b64: str, mime_type: str) -> str:
    return f"data:{mime_type};base64,{b64}"


def get_client() -> OpenAI:
    if not settings.openai_api_key:
        raise CaptionConfigError("OPENAI_API_KEY environment variable is required")
    return OpenAI(api_key=settings.openai_api_key, base_url=settings.openai_base_url)


def build_messages(image_url: str) -> list:
    return [
        {
            "role": "user",
            "content": [
                {"type": "text", "text": settings.caption_prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        }
    ]


def describe_image(raw: bytes, mime_type: Optional[str] = None) -> str:
    """
    Send the image to the chat-completion API and return the first choice's text.
    Raises CaptionError when the response carries no content.
    """
    client = get_client()
    b64, mime = to_base64(raw, mime_type)

    response = client.chat.completions.create(
        model=settings.caption_model,
        messages=build_messages(data_url(b64, mime)),
    )

    choices = getattr(response, "choices", None) or []
    caption = choices[0].message.content if choices else None
    if not caption:
        raise CaptionError("Failed to generate caption")

    logger.debug("caption ok: model=%s mime=%s bytes=%d", settings.caption_model, mime, len(raw))
    return caption
