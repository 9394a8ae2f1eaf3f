"""
Purpose:
- Pydantic models for /api/embed in/out so the API is self-documenting and stable.
- The three inputs are independent; each one that is present adds one vector to the output:
    text         -> text_embedding
    image_url    -> fetch, then image_embedding
    image_base64 -> decode, then image_embedding

Notes:
- Fields are accepted as-is: a non-string text is ignored rather than rejected, so the
  only "bad input" answer stays the single missing-input message.
"""

from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Tuple

class EmbedRequest(BaseModel):
    text: Any = Field(None, description="Text to embed (empty string still counts; non-strings are ignored)")
    image_url: Any = Field(None, description="Public http(s) or data: URL of an image")
    image_base64: Any = Field(None, description="Raw base64 image bytes, no data URL prefix")

    @classmethod
    def from_body(cls, body: Any) -> "EmbedRequest":
        """
        Any JSON value; anything but an object carries no inputs.
        """
        data: Dict[str, Any] = body if isinstance(body, dict) else {}
        return cls.model_validate(data)

    @property
    def wants_text(self) -> bool:
        return isinstance(self.text, str)

    @property
    def wants_image(self) -> bool:
        return bool(self.image_url or self.image_base64)

    def image_source(self) -> Tuple[str, str]:
        """
        ("url", value) or ("base64", value); the URL wins when both are given.
        """
        if self.image_url:
            kind, value = "url", self.image_url
        elif self.image_base64:
            kind, value = "base64", self.image_base64
        else:
            raise ValueError("no image input")
        if not isinstance(value, str):
            raise TypeError(f"image_{kind} must be a string, got {type(value).__name__}")
        return kind, value

class EmbedResponse(BaseModel):
    text_embedding: Optional[List[float]] = None
    image_embedding: Optional[List[float]] = None

    @property
    def empty(self) -> bool:
        return self.text_embedding is None and self.image_embedding is None
