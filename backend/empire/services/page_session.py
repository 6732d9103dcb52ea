from __future__ import annotations
"""Page session: everything one loaded page owns.

A session holds the page's single reveal coordinator, its startup machine,
the reveal targets currently in its document, and its mounted media cells.
Tearing the session down is the page unmount.
"""

import asyncio
import logging
import uuid
from typing import Callable

from empire.config import Settings, get_settings
from empire.services.media_cell import CellSnapshot, MediaFetchCell
from empire.services.media_gen import GenerationClient
from empire.services.reveal import RevealTarget, ViewportRevealCoordinator, VisibilityHost
from empire.services.startup import RevealStartup, Sleep

logger = logging.getLogger(__name__)

CellListener = Callable[[str, CellSnapshot], None]


class PageSession:
    """Binds one coordinator, one startup machine and N cells for a page."""

    def __init__(
        self,
        page_id: str,
        client: GenerationClient,
        host: VisibilityHost,
        settings: Settings | None = None,
        *,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.page_id = page_id
        self.settings = settings or get_settings()
        self.host = host
        self._client = client

        self.coordinator = ViewportRevealCoordinator(
            host,
            threshold=self.settings.REVEAL_THRESHOLD,
            stagger_step_ms=self.settings.STAGGER_STEP_MS,
        )
        self._document: dict[str, RevealTarget] = {}
        self.startup = RevealStartup(
            self.coordinator,
            lambda: list(self._document.values()),
            splash_ms=self.settings.SPLASH_DURATION_MS,
            settle_ms=self.settings.SETTLE_DELAY_MS,
            sleep=sleep,
        )

        self._cells: dict[str, MediaFetchCell] = {}
        self._cell_listeners: list[CellListener] = []
        self._startup_task: asyncio.Task | None = None
        self._closed = False

        # key -> (class_name, delay_ms) for the cell's frame
        self.render_options: dict[str, tuple[str, int]] = {}

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def started(self) -> bool:
        return self._startup_task is not None

    @property
    def cells(self) -> dict[str, MediaFetchCell]:
        return dict(self._cells)

    def add_cell_listener(self, listener: CellListener) -> None:
        self._cell_listeners.append(listener)

    # ── Startup ──────────────────────────────────────────────────────────

    def start(self) -> asyncio.Task:
        """Kick off the splash -> observe sequence (once)."""
        self._ensure_open()
        if self._startup_task is None:
            self._startup_task = asyncio.get_running_loop().create_task(self.startup.run())
        return self._startup_task

    # ── Reveal targets ───────────────────────────────────────────────────

    def mount_target(self, target: RevealTarget) -> None:
        self._ensure_open()
        if target.id in self._document:
            return
        self._document[target.id] = target
        self.startup.mount(target)

    # ── Media cells ──────────────────────────────────────────────────────

    def mount_cell(self, key: str, prompt: str) -> MediaFetchCell:
        """Mount a cell under `key`, or re-prompt the one already there."""
        self._ensure_open()
        cell = self._cells.get(key)
        if cell is not None:
            cell.set_prompt(prompt)
            return cell

        cell = MediaFetchCell.create(
            prompt,
            self._client,
            style_template=self.settings.MEDIA_STYLE_TEMPLATE,
            timeout=self.settings.media_timeout,
            on_change=lambda snap, k=key: self._emit_cell(k, snap),
        )
        self._cells[key] = cell
        logger.info("page=%s mounted cell %s", self.page_id[:8], key)
        return cell

    def get_cell(self, key: str) -> MediaFetchCell | None:
        return self._cells.get(key)

    def unmount_cell(self, key: str) -> bool:
        cell = self._cells.pop(key, None)
        self.render_options.pop(key, None)
        if cell is None:
            return False
        cell.teardown()
        return True

    def _emit_cell(self, key: str, snapshot: CellSnapshot) -> None:
        for listener in list(self._cell_listeners):
            listener(key, snapshot)

    # ── Teardown ─────────────────────────────────────────────────────────

    def teardown(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._startup_task is not None and not self._startup_task.done():
            self._startup_task.cancel()
        for cell in self._cells.values():
            cell.teardown()
        self._cells.clear()
        self.render_options.clear()
        self._cell_listeners.clear()
        self.coordinator.teardown()
        self._document.clear()
        logger.info("page=%s torn down", self.page_id[:8])

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Page session {self.page_id} is closed")


class PageSessionRegistry:
    """In-process registry: page_id -> PageSession.

    With a `connect_timeout`, a page whose startup has not begun within that
    many seconds of creation is closed.
    """

    def __init__(self, connect_timeout: float | None = None) -> None:
        self._sessions: dict[str, PageSession] = {}
        self._connect_timeout = connect_timeout
        self._expiries: dict[str, asyncio.TimerHandle] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self,
        client: GenerationClient,
        host: VisibilityHost,
        settings: Settings | None = None,
        **kwargs,
    ) -> PageSession:
        page_id = uuid.uuid4().hex
        session = PageSession(page_id, client, host, settings, **kwargs)
        self._sessions[page_id] = session
        if self._connect_timeout:
            self._expiries[page_id] = asyncio.get_running_loop().call_later(
                self._connect_timeout, self._expire_unstarted, page_id
            )
        logger.info("page=%s created (total=%d)", page_id[:8], len(self._sessions))
        return session

    def get(self, page_id: str) -> PageSession | None:
        return self._sessions.get(page_id)

    def _expire_unstarted(self, page_id: str) -> None:
        self._expiries.pop(page_id, None)
        session = self._sessions.get(page_id)
        if session is None or session.started:
            return
        logger.warning("page=%s never connected within %ss, closing", page_id[:8], self._connect_timeout)
        self.close(page_id)

    def close(self, page_id: str) -> bool:
        expiry = self._expiries.pop(page_id, None)
        if expiry is not None:
            expiry.cancel()
        session = self._sessions.pop(page_id, None)
        if session is None:
            return False
        session.teardown()
        return True

    def close_all(self) -> None:
        for page_id in list(self._sessions):
            self.close(page_id)
