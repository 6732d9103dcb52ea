from __future__ import annotations
"""On-demand image cell: one generation request per prompt, tracked through
PENDING -> READY | FAILED.

Completions are delivered through `_deliver`, which only accepts a result if
the cell is still alive and the result belongs to the current request token.
Anything else is a stale response and is dropped without touching state.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Callable

from empire.services.media_gen import (
    GenerationClient,
    GenerationError,
    build_prompt,
    first_image_part,
    to_data_uri,
)

logger = logging.getLogger(__name__)

DEFAULT_STYLE_TEMPLATE = "High-end luxury fitness photography, dramatic lighting: {prompt}"


class MediaStatus(str, enum.Enum):
    """Cell lifecycle statuses. READY and FAILED are terminal per prompt."""

    PENDING = "PENDING"
    READY = "READY"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CellSnapshot:
    """Immutable view of a cell's state."""
    prompt: str
    status: MediaStatus
    payload: str | None = None
    error: str | None = None


ChangeCallback = Callable[[CellSnapshot], None]


class MediaFetchCell:
    """Owns the lifecycle of one generated image.

    `start()` must be called from inside a running event loop; the request
    runs as its own task so other cells proceed independently.
    """

    def __init__(
        self,
        prompt: str,
        client: GenerationClient,
        *,
        style_template: str = DEFAULT_STYLE_TEMPLATE,
        timeout: float | None = None,
        on_change: ChangeCallback | None = None,
    ) -> None:
        self._prompt = prompt
        self._client = client
        self._style_template = style_template
        self._timeout = timeout
        self._on_change = on_change

        self._status = MediaStatus.PENDING
        self._payload: str | None = None
        self._error: str | None = None

        self._token = 0
        self._alive = True
        self._started = False
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def create(cls, prompt: str, client: GenerationClient, **kwargs) -> MediaFetchCell:
        """Build a cell and issue its request immediately."""
        cell = cls(prompt, client, **kwargs)
        cell.start()
        return cell

    # ── State ────────────────────────────────────────────────────────────

    @property
    def prompt(self) -> str:
        return self._prompt

    @property
    def status(self) -> MediaStatus:
        return self._status

    @property
    def payload(self) -> str | None:
        return self._payload

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def alive(self) -> bool:
        return self._alive

    def snapshot(self) -> CellSnapshot:
        return CellSnapshot(
            prompt=self._prompt,
            status=self._status,
            payload=self._payload,
            error=self._error,
        )

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        if not self._alive:
            raise RuntimeError("Cannot start a torn-down media cell")
        if self._started:
            return
        self._issue()
        self._started = True

    def set_prompt(self, prompt: str) -> None:
        """Switch to a new prompt; the old request's result will be ignored."""
        if not self._alive:
            raise RuntimeError("Cannot re-prompt a torn-down media cell")
        if prompt == self._prompt:
            return

        self._prompt = prompt
        self._token += 1
        self._status = MediaStatus.PENDING
        self._payload = None
        self._error = None
        self._notify()
        if self._started:
            self._issue()

    def teardown(self) -> None:
        """Stop accepting completions. In-flight requests are left to finish."""
        if self._alive:
            self._alive = False
            logger.debug("media cell torn down (prompt=%.40s, in_flight=%d)", self._prompt, len(self._tasks))

    async def wait_settled(self) -> None:
        """Wait until every request this cell issued has completed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Request plumbing ─────────────────────────────────────────────────

    def _issue(self) -> None:
        self._token += 1
        task = asyncio.get_running_loop().create_task(self._fetch(self._token, self._prompt))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _fetch(self, token: int, prompt: str) -> None:
        prompt_text = build_prompt(prompt, self._style_template)
        try:
            if self._timeout:
                parts = await asyncio.wait_for(self._client.generate(prompt_text), timeout=self._timeout)
            else:
                parts = await self._client.generate(prompt_text)

            part = first_image_part(parts)
            if part is None:
                raise GenerationError("response carried no inline image data")
            payload = to_data_uri(part.inline_data)
        except Exception as e:
            reason = str(e) or type(e).__name__
            logger.warning("Media generation failed for prompt=%.40s: %s", prompt, reason)
            self._deliver(token, MediaStatus.FAILED, error=reason)
            return

        self._deliver(token, MediaStatus.READY, payload=payload)

    def _deliver(
        self,
        token: int,
        status: MediaStatus,
        *,
        payload: str | None = None,
        error: str | None = None,
    ) -> None:
        if not self._alive or token != self._token:
            logger.debug("Discarding stale media response (token=%d, current=%d, alive=%s)",
                         token, self._token, self._alive)
            return

        self._status = status
        self._payload = payload
        self._error = error
        logger.info("media cell %s (prompt=%.40s)", status.value, self._prompt)
        self._notify()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change(self.snapshot())
        except Exception:
            # Best-effort: a broken listener must not corrupt the cell
            logger.warning("media cell change listener failed", exc_info=True)
