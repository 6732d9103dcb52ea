"""Media generation contract: the request/response shape every provider speaks.

A provider takes one prompt string and returns the ordered content parts of
the model's reply. Cells only ever look for the first part carrying inline
image data; text parts are carried along but ignored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, Sequence

if TYPE_CHECKING:
    from empire.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class InlineData:
    """Base64 payload embedded directly in a response part."""
    mime_type: str
    data: str


@dataclass(frozen=True)
class ContentPart:
    """One part of a generation response."""
    text: str | None = None
    inline_data: InlineData | None = None

    @property
    def has_image(self) -> bool:
        return self.inline_data is not None and bool(self.inline_data.data)


class GenerationClient(Protocol):
    """Anything that turns a prompt into response parts.

    Failure is signalled by raising; the caller never retries.
    """

    async def generate(self, prompt_text: str) -> list[ContentPart]:
        ...


class GenerationError(Exception):
    """The generation collaborator failed or returned no usable image."""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


def build_prompt(prompt: str, template: str) -> str:
    """Embed a subject prompt into the fixed photographic style wrapper."""
    return template.format(prompt=prompt)


def first_image_part(parts: Sequence[ContentPart]) -> ContentPart | None:
    for part in parts:
        if part.has_image:
            return part
    return None


def to_data_uri(inline: InlineData) -> str:
    """Build a displayable `data:` URI from an inline payload."""
    mime_type = inline.mime_type or DEFAULT_MIME_TYPE
    return f"data:{mime_type};base64,{inline.data}"


def parse_parts(raw_parts: Sequence[dict]) -> list[ContentPart]:
    """Parse REST-style JSON parts, accepting both snake_case and camelCase keys."""
    parts: list[ContentPart] = []
    for raw in raw_parts:
        if not isinstance(raw, dict):
            raise GenerationError(f"Malformed response part: {type(raw).__name__}")
        inline = raw.get("inline_data") or raw.get("inlineData")
        inline_data = None
        if inline:
            inline_data = InlineData(
                mime_type=inline.get("mime_type") or inline.get("mimeType") or "",
                data=inline.get("data") or "",
            )
        parts.append(ContentPart(text=raw.get("text"), inline_data=inline_data))
    return parts


def build_generation_client(settings: Settings) -> GenerationClient:
    """Pick the configured provider.

    USE_MOCK_API always wins so local runs never hit the network.
    """
    provider = "mock" if settings.USE_MOCK_API else settings.MEDIA_PROVIDER.strip().lower()

    if provider == "gemini":
        from empire.services.providers.gemini_image import GeminiRestClient
        return GeminiRestClient(
            api_key=settings.GEMINI_API_KEY,
            model=settings.IMAGE_MODEL,
            base_url=settings.GEMINI_BASE_URL,
        )
    if provider == "genai":
        from empire.services.providers.genai_image import GenAIClient
        return GenAIClient(api_key=settings.GEMINI_API_KEY, model=settings.IMAGE_MODEL)
    if provider != "mock":
        logger.warning("Unknown media provider: %s, using mock", provider)

    from empire.services.providers.mock_image import MockImageClient
    return MockImageClient()
