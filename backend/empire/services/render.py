"""HTML fragments for media cells and reveal activations.

Pure functions of state; the page swaps these fragments in as cells and
targets change.
"""

from __future__ import annotations

from html import escape

from empire.services.media_cell import CellSnapshot, MediaStatus
from empire.services.reveal import Activation

MEDIA_OFFLINE_TEXT = "Media Offline"
ACTIVE_CLASS = "active"


def render_cell(snapshot: CellSnapshot, *, class_name: str = "", delay_ms: int = 0) -> str:
    """Render a media cell frame for its current status."""
    classes = "media-cell relative overflow-hidden bg-zinc-900"
    if class_name:
        classes = f"{classes} {class_name}"
    style = f' style="transition-delay: {int(delay_ms)}ms"' if delay_ms else ""
    return (
        f'<div class="{escape(classes)}" data-status="{snapshot.status.value}"{style}>'
        f"{_render_body(snapshot)}"
        "</div>"
    )


def _render_body(snapshot: CellSnapshot) -> str:
    if snapshot.status == MediaStatus.PENDING:
        return '<div class="media-busy" role="status" aria-busy="true"><span class="spinner"></span></div>'
    if snapshot.status == MediaStatus.READY and snapshot.payload:
        return (
            f'<img class="media-image" src="{escape(snapshot.payload)}" '
            f'alt="{escape(snapshot.prompt)}" />'
        )
    return f'<div class="media-offline">{MEDIA_OFFLINE_TEXT}</div>'


def activation_classes(activation: Activation) -> dict[str, dict[str, object]]:
    """Class/delay instructions for every element an activation touches."""
    instructions: dict[str, dict[str, object]] = {
        activation.target_id: {"add_class": ACTIVE_CLASS, "delay_ms": 0},
    }
    for child in activation.children:
        instructions[child.id] = {"add_class": ACTIVE_CLASS, "delay_ms": child.delay_ms}
    return instructions
