"""Two-phase page startup: show the splash, mount content, then start observing.

LOADING -> READY happens once, on a fixed timer; READY is terminal. After a
short settle delay every target already in the document is registered in
one pass. Targets mounted after that pass are registered as they arrive.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Awaitable, Callable, Iterable

from empire.services.reveal import RevealTarget, ViewportRevealCoordinator

logger = logging.getLogger(__name__)


class StartupPhase(str, enum.Enum):
    LOADING = "LOADING"
    READY = "READY"


Sleep = Callable[[float], Awaitable[None]]
PhaseListener = Callable[[StartupPhase], None]


class RevealStartup:
    """Drives the splash timer and the one-pass registration.

    `sleep` is injectable so tests can run the machine without wall-clock
    delays.
    """

    def __init__(
        self,
        coordinator: ViewportRevealCoordinator,
        document: Callable[[], Iterable[RevealTarget]],
        *,
        splash_ms: int = 800,
        settle_ms: int = 100,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.coordinator = coordinator
        self._document = document
        self.splash_ms = splash_ms
        self.settle_ms = settle_ms
        self._sleep = sleep

        self._phase = StartupPhase.LOADING
        self._observing = False
        self._ran = False
        self._listeners: list[PhaseListener] = []

    @property
    def phase(self) -> StartupPhase:
        return self._phase

    @property
    def observing(self) -> bool:
        return self._observing

    def add_listener(self, listener: PhaseListener) -> None:
        self._listeners.append(listener)

    async def run(self) -> int:
        """Run the startup sequence; returns how many targets the pass registered."""
        if self._ran:
            raise RuntimeError("Reveal startup already ran")
        self._ran = True

        await self._sleep(self.splash_ms / 1000)
        self._set_phase(StartupPhase.READY)

        await self._sleep(self.settle_ms / 1000)
        registered = self.coordinator.register_all(list(self._document()))
        self._observing = True
        logger.info("reveal observation started: %d target(s) registered", registered)
        return registered

    def mount(self, target: RevealTarget) -> bool:
        """Register a target inserted after the initial pass.

        Before that pass the document alone holds it; the pass picks it up.
        """
        if not self._observing:
            return False
        return self.coordinator.register(target)

    def _set_phase(self, phase: StartupPhase) -> None:
        self._phase = phase
        logger.info("page startup phase -> %s", phase.value)
        for listener in list(self._listeners):
            try:
                listener(phase)
            except Exception:
                logger.warning("startup phase listener failed", exc_info=True)
