"""Gemini image generation provider over the REST generateContent endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from empire.services.media_gen import ContentPart, GenerationError, parse_parts

logger = logging.getLogger(__name__)

_DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"

# Module-level httpx client for connection reuse (lazy init)
_http_client: httpx.AsyncClient | None = None


def _get_http_client(timeout: float = 180.0) -> httpx.AsyncClient:
    """Return a module-level httpx.AsyncClient, creating it on first use."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(timeout=timeout)
    return _http_client


async def close_http_client() -> None:
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None


class GeminiRestClient:
    """Calls `models/{model}:generateContent` and returns the first candidate's parts."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.endpoint = (base_url or _DEFAULT_ENDPOINT).rstrip("/")
        self._http_client = http_client

    async def generate(self, prompt_text: str) -> list[ContentPart]:
        if not self.api_key:
            raise GenerationError("Gemini API key is required")

        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt_text}]}],
            "generationConfig": {"responseModalities": ["TEXT", "IMAGE"]},
        }
        url = f"{self.endpoint}/models/{self.model}:generateContent"
        client = self._http_client or _get_http_client()

        logger.info("Calling Gemini image model=%s prompt=%.40s", self.model, prompt_text)

        try:
            resp = await client.post(url, params={"key": self.api_key}, json=body)
            resp.raise_for_status()
            result = resp.json()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Gemini HTTP error: {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Gemini transport error: {e}") from e
        except ValueError as e:
            raise GenerationError("Gemini returned a non-JSON body") from e

        return _extract_parts(result)


def _extract_parts(response: dict[str, Any]) -> list[ContentPart]:
    """Pull the first candidate's content parts out of a generateContent body."""
    if not isinstance(response, dict):
        raise GenerationError("Gemini: response is not an object")

    if response.get("error"):
        message = response["error"].get("message", "unknown")
        raise GenerationError(f"Gemini API error: {message}")

    candidates = response.get("candidates") or []
    if not candidates:
        # A blocked prompt comes back without candidates; that is an empty reply.
        logger.warning("Gemini: no candidates (promptFeedback=%s)", response.get("promptFeedback"))
        return []

    content = candidates[0].get("content") or {}
    return parse_parts(content.get("parts") or [])
