"""Pydantic v2 schemas package."""

from empire.schemas.media import CellMount, CellRead, PageCreated
from empire.schemas.reveal import (
    ActivationOut,
    IntersectionEntryIn,
    IntersectionsMessage,
    MountMessage,
    RevealTargetIn,
)

__all__ = [
    "ActivationOut",
    "CellMount",
    "CellRead",
    "IntersectionEntryIn",
    "IntersectionsMessage",
    "MountMessage",
    "PageCreated",
    "RevealTargetIn",
]
