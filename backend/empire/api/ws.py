"""WebSocket endpoint for a page's reveal traffic.

The browser is the visibility host: it reports reveal targets and
intersection batches, and receives observe/unobserve commands, phase
changes, activations and media cell updates. Connecting starts the page's
splash timer; disconnecting is the page unmount.
"""

from __future__ import annotations

import asyncio
import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from empire.schemas.reveal import IntersectionsMessage, MountMessage
from empire.services.page_session import PageSession
from empire.services.visibility_host import WebSocketVisibilityHost

router = APIRouter()
logger = logging.getLogger(__name__)

WS_CLOSE_NOT_FOUND = 4404
WS_CLOSE_CONFLICT = 4409


@router.websocket("/ws/pages/{page_id}")
async def ws_page(ws: WebSocket, page_id: str):
    """Relay one page's reveal traffic.

    1. Claims an open, not-yet-started page and starts its splash -> observe sequence
    2. Accepts the connection
    3. Relays queued host messages to the client
    4. Feeds mount/intersection messages into the page session
    """
    registry = ws.app.state.pages
    session: PageSession | None = registry.get(page_id)
    if session is None or session.closed:
        await ws.close(code=WS_CLOSE_NOT_FOUND)
        return
    if session.started:
        await ws.close(code=WS_CLOSE_CONFLICT)
        return

    # Claim the page before the first await so a concurrent socket sees it started
    session.start()
    host: WebSocketVisibilityHost = session.host
    host.publish({"type": "phase", "phase": session.startup.phase.value})

    relay_task: asyncio.Task | None = None
    try:
        await ws.accept()
        logger.info("WS connected: page=%s", page_id[:8])
        relay_task = asyncio.create_task(_relay_host_to_ws(host, ws, page_id))
        while True:
            data = await ws.receive_text()
            if data == "ping":
                host.publish({"type": "pong"})
                continue
            _handle_message(session, data)
    except WebSocketDisconnect:
        logger.info("WS disconnected: page=%s", page_id[:8])
    except Exception as exc:
        logger.warning("WS error for page=%s: %s", page_id[:8], exc)
    finally:
        if relay_task is not None:
            relay_task.cancel()
        registry.close(page_id)


def _handle_message(session: PageSession, data: str) -> None:
    """Apply one client message. Malformed messages are logged and skipped."""
    try:
        message = json.loads(data)
        kind = message.get("type") if isinstance(message, dict) else None
        if kind == "mount":
            for target in MountMessage.model_validate(message).targets:
                session.mount_target(target.to_target())
        elif kind == "intersections":
            entries = IntersectionsMessage.model_validate(message).entries
            session.coordinator.handle_intersections([e.to_entry() for e in entries])
        else:
            logger.warning("page=%s: unknown WS message type %r", session.page_id[:8], kind)
    except ValueError as exc:
        logger.warning("page=%s: bad WS message: %s", session.page_id[:8], exc)


async def _relay_host_to_ws(host: WebSocketVisibilityHost, ws: WebSocket, page_id: str):
    """Background task: forward queued host messages to the WebSocket client."""
    try:
        while True:
            message = await host.next_message()
            try:
                await ws.send_json(message)
            except Exception:
                break  # WebSocket closed
    except asyncio.CancelledError:
        pass
    except Exception as exc:
        logger.warning("Host relay error for page=%s: %s", page_id[:8], exc)
