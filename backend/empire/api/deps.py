"""Request-scoped accessors for the objects the app lifespan owns."""

from __future__ import annotations

from fastapi import HTTPException, Request

from empire.services.media_gen import GenerationClient
from empire.services.page_session import PageSession, PageSessionRegistry


def get_registry(request: Request) -> PageSessionRegistry:
    return request.app.state.pages


def get_media_client(request: Request) -> GenerationClient:
    return request.app.state.media_client


def require_page(registry: PageSessionRegistry, page_id: str) -> PageSession:
    session = registry.get(page_id)
    if session is None or session.closed:
        raise HTTPException(status_code=404, detail="Page not found")
    return session
