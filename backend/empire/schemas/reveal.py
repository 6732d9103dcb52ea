from __future__ import annotations
"""Pydantic v2 schemas for reveal WebSocket messages."""

from typing import Any, Literal

from pydantic import BaseModel, Field

from empire.services.render import activation_classes
from empire.services.reveal import (
    Activation,
    IntersectionEntry,
    RevealTarget,
    TargetKind,
)


class RevealTargetIn(BaseModel):
    """A reveal target reported by the page when it enters the document."""

    id: str = Field(..., min_length=1)
    kind: TargetKind = TargetKind.SIMPLE
    children: list[str] = []
    variant: str = "reveal"

    def to_target(self) -> RevealTarget:
        return RevealTarget(
            id=self.id,
            kind=self.kind,
            children=tuple(self.children),
            variant=self.variant,
        )


class IntersectionEntryIn(BaseModel):
    id: str
    is_intersecting: bool
    ratio: float | None = Field(None, ge=0.0, le=1.0)

    def to_entry(self) -> IntersectionEntry:
        return IntersectionEntry(target_id=self.id, is_intersecting=self.is_intersecting, ratio=self.ratio)


class MountMessage(BaseModel):
    type: Literal["mount"]
    targets: list[RevealTargetIn]


class IntersectionsMessage(BaseModel):
    type: Literal["intersections"]
    entries: list[IntersectionEntryIn]


class ChildActivationOut(BaseModel):
    id: str
    index: int
    delay_ms: int


class ActivationOut(BaseModel):
    type: Literal["activate"] = "activate"
    target_id: str
    variant: str
    children: list[ChildActivationOut] = []
    elements: dict[str, dict[str, Any]] = {}

    @classmethod
    def from_activation(cls, activation: Activation) -> ActivationOut:
        return cls(
            target_id=activation.target_id,
            variant=activation.variant,
            children=[
                ChildActivationOut(id=c.id, index=c.index, delay_ms=c.delay_ms)
                for c in activation.children
            ],
            elements=activation_classes(activation),
        )
