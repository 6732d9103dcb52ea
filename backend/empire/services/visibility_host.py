"""Visibility host backed by the page's WebSocket.

The browser runs the real intersection observer. This side only queues
observe/unobserve commands (plus any other page events) for the socket
relay to send, and the relay feeds intersection reports back into the
coordinator.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

logger = logging.getLogger(__name__)


class WebSocketVisibilityHost:
    """Outbound message queue implementing the VisibilityHost protocol."""

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=maxsize)
        self._observed: set[str] = set()
        self._closed = False

    @property
    def observed(self) -> frozenset[str]:
        return frozenset(self._observed)

    @property
    def closed(self) -> bool:
        return self._closed

    def observe(self, target_id: str, threshold: float) -> None:
        self._observed.add(target_id)
        self.publish({"type": "observe", "id": target_id, "threshold": threshold})

    def unobserve(self, target_id: str) -> None:
        if target_id in self._observed:
            self._observed.discard(target_id)
            self.publish({"type": "unobserve", "id": target_id})

    def disconnect(self) -> None:
        self._observed.clear()
        self.publish({"type": "disconnect"})
        self._closed = True

    def publish(self, message: dict[str, Any]) -> None:
        """Queue a message for the socket; dropped once the host is closed or full."""
        if self._closed:
            logger.debug("visibility host closed, dropping %s", message.get("type"))
            return
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("visibility host queue full, dropping %s", message.get("type"))

    async def next_message(self) -> dict[str, Any]:
        return await self._queue.get()

    def drain(self) -> list[dict[str, Any]]:
        """Pop everything queued right now without waiting."""
        messages = []
        while not self._queue.empty():
            messages.append(self._queue.get_nowait())
        return messages
