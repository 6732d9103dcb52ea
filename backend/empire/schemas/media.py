from __future__ import annotations
"""Pydantic v2 schemas for pages and media cells."""

from pydantic import BaseModel, Field

from empire.services.media_cell import CellSnapshot, MediaStatus


class PageCreated(BaseModel):
    """Returned when a page session is opened."""

    page_id: str
    splash_ms: int
    settle_ms: int
    threshold: float


class CellMount(BaseModel):
    """Schema for mounting (or re-prompting) a media cell."""

    prompt: str = Field(..., min_length=1, max_length=2000)
    class_name: str = ""
    delay_ms: int = Field(0, ge=0)


class CellRead(BaseModel):
    """Schema for reading a media cell."""

    key: str
    prompt: str
    status: MediaStatus
    payload: str | None = None
    error: str | None = None
    html: str | None = None

    @classmethod
    def from_snapshot(cls, key: str, snapshot: CellSnapshot, html: str | None = None) -> CellRead:
        return cls(
            key=key,
            prompt=snapshot.prompt,
            status=snapshot.status,
            payload=snapshot.payload,
            error=snapshot.error,
            html=html,
        )
