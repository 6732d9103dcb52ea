"""Gemini image generation via the google-genai SDK."""

from __future__ import annotations

import base64
import logging
from typing import Any

from google import genai
from google.genai import types

from empire.services.media_gen import ContentPart, GenerationError, InlineData

logger = logging.getLogger(__name__)


class GenAIClient:
    """Async SDK-backed provider.

    The SDK hands back raw bytes for inline data; they are re-encoded to
    base64 so every provider returns the same part shape.
    """

    def __init__(self, *, api_key: str, model: str, client: Any | None = None) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise GenerationError("Gemini API key is required")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def generate(self, prompt_text: str) -> list[ContentPart]:
        client = self._get_client()
        logger.info("Calling genai model=%s prompt=%.40s", self.model, prompt_text)

        response = await client.aio.models.generate_content(
            model=self.model,
            contents=prompt_text,
            config=types.GenerateContentConfig(response_modalities=["TEXT", "IMAGE"]),
        )

        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            return []
        content = getattr(candidates[0], "content", None)
        return [_convert_part(p) for p in (getattr(content, "parts", None) or [])]


def _convert_part(part: Any) -> ContentPart:
    inline = getattr(part, "inline_data", None)
    inline_data = None
    if inline is not None and inline.data:
        data = inline.data
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(data).decode("ascii")
        inline_data = InlineData(mime_type=inline.mime_type or "", data=data)
    return ContentPart(text=getattr(part, "text", None), inline_data=inline_data)
