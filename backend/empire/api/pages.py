from __future__ import annotations
"""Page session API: open/close a page and mount/unmount its media cells.

Cells render to HTML fragments; live updates also go out over the page's
WebSocket (see ws.py).
"""

from fastapi import APIRouter, Depends, HTTPException, Response

from empire.api.deps import get_media_client, get_registry, require_page
from empire.config import get_settings
from empire.schemas.media import CellMount, CellRead, PageCreated
from empire.schemas.reveal import ActivationOut
from empire.services.media_cell import CellSnapshot
from empire.services.media_gen import GenerationClient
from empire.services.page_session import PageSession, PageSessionRegistry
from empire.services.render import render_cell
from empire.services.visibility_host import WebSocketVisibilityHost

router = APIRouter()


def _cell_read(session: PageSession, key: str, snapshot: CellSnapshot) -> CellRead:
    class_name, delay_ms = session.render_options.get(key, ("", 0))
    html = render_cell(snapshot, class_name=class_name, delay_ms=delay_ms)
    return CellRead.from_snapshot(key, snapshot, html=html)


def _wire_session(session: PageSession, host: WebSocketVisibilityHost) -> None:
    """Forward phase changes, activations and cell updates to the page socket."""
    session.startup.add_listener(
        lambda phase: host.publish({"type": "phase", "phase": phase.value})
    )
    session.coordinator.add_listener(
        lambda activation: host.publish(ActivationOut.from_activation(activation).model_dump())
    )
    session.add_cell_listener(
        lambda key, snap: host.publish(
            {"type": "cell", **_cell_read(session, key, snap).model_dump(mode="json", exclude={"payload"})}
        )
    )


@router.post("", response_model=PageCreated, status_code=201)
async def create_page(
    registry: PageSessionRegistry = Depends(get_registry),
    client: GenerationClient = Depends(get_media_client),
):
    """Open a page session. The splash starts when the page socket connects."""
    settings = get_settings()
    host = WebSocketVisibilityHost(maxsize=settings.HOST_QUEUE_SIZE)
    session = registry.create(client, host, settings)
    _wire_session(session, host)
    return PageCreated(
        page_id=session.page_id,
        splash_ms=settings.SPLASH_DURATION_MS,
        settle_ms=settings.SETTLE_DELAY_MS,
        threshold=settings.REVEAL_THRESHOLD,
    )


@router.delete("/{page_id}", status_code=204)
async def close_page(page_id: str, registry: PageSessionRegistry = Depends(get_registry)):
    if not registry.close(page_id):
        raise HTTPException(status_code=404, detail="Page not found")
    return Response(status_code=204)


@router.get("/{page_id}/reveal")
async def reveal_state(page_id: str, registry: PageSessionRegistry = Depends(get_registry)):
    """Startup phase plus registered/activated targets, for diagnostics."""
    session = require_page(registry, page_id)
    return {
        "phase": session.startup.phase.value,
        "observing": session.startup.observing,
        "registered": session.coordinator.registered_ids,
        "activated": sorted(session.coordinator.activated_ids),
    }


@router.put("/{page_id}/cells/{key}", response_model=CellRead)
async def mount_cell(
    page_id: str,
    key: str,
    req: CellMount,
    wait: bool = False,
    registry: PageSessionRegistry = Depends(get_registry),
):
    """Mount a media cell, or re-prompt an existing one.

    With `wait=true` the response is held until the generation request
    settles; otherwise it returns the PENDING snapshot straight away.
    """
    session = require_page(registry, page_id)
    session.render_options[key] = (req.class_name, req.delay_ms)
    cell = session.mount_cell(key, req.prompt)
    if wait:
        await cell.wait_settled()
    return _cell_read(session, key, cell.snapshot())


@router.get("/{page_id}/cells/{key}", response_model=CellRead)
async def get_cell(page_id: str, key: str, registry: PageSessionRegistry = Depends(get_registry)):
    session = require_page(registry, page_id)
    cell = session.get_cell(key)
    if cell is None:
        raise HTTPException(status_code=404, detail="Cell not found")
    return _cell_read(session, key, cell.snapshot())


@router.delete("/{page_id}/cells/{key}", status_code=204)
async def unmount_cell(page_id: str, key: str, registry: PageSessionRegistry = Depends(get_registry)):
    session = require_page(registry, page_id)
    if not session.unmount_cell(key):
        raise HTTPException(status_code=404, detail="Cell not found")
    return Response(status_code=204)
