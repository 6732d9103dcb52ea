"""Viewport reveal coordinator.

Watches registered reveal targets through a host visibility interface and
promotes each target from hidden to active the first time it enters the
viewport. Staggered targets carry an ordered list of children that activate
in the same batch, each with its own transition delay.

Activation is monotonic: nothing here ever clears it short of teardown.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

logger = logging.getLogger(__name__)

REVEAL_VARIANTS = ("reveal", "reveal-left", "reveal-right", "reveal-scale")


class TargetKind(str, enum.Enum):
    SIMPLE = "SIMPLE"
    STAGGERED = "STAGGERED"


@dataclass(frozen=True)
class RevealTarget:
    """A DOM-bound element whose entrance is gated on visibility."""
    id: str
    kind: TargetKind = TargetKind.SIMPLE
    children: tuple[str, ...] = ()
    variant: str = "reveal"

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Reveal target id must be non-empty")
        if self.kind == TargetKind.SIMPLE and self.children:
            raise ValueError(f"Simple reveal target {self.id!r} cannot own children")
        if self.variant not in REVEAL_VARIANTS:
            raise ValueError(f"Unknown reveal variant: {self.variant!r}")


@dataclass(frozen=True)
class IntersectionEntry:
    """One visibility change reported by the host.

    `ratio` is the visible fraction of the element; hosts that only know
    the boolean leave it unset.
    """
    target_id: str
    is_intersecting: bool
    ratio: float | None = None


@dataclass(frozen=True)
class ChildActivation:
    id: str
    index: int
    delay_ms: int


@dataclass(frozen=True)
class Activation:
    target_id: str
    variant: str
    children: tuple[ChildActivation, ...] = ()

    @property
    def ids(self) -> list[str]:
        return [self.target_id, *(c.id for c in self.children)]


class VisibilityHost(Protocol):
    """Host-side visibility engine (the browser's intersection observer)."""

    def observe(self, target_id: str, threshold: float) -> None:
        ...

    def unobserve(self, target_id: str) -> None:
        ...

    def disconnect(self) -> None:
        ...


ActivationListener = Callable[[Activation], None]


class ViewportRevealCoordinator:
    """One instance per loaded page.

    Any number of components may register targets; only this class ever
    writes activation state.
    """

    def __init__(
        self,
        host: VisibilityHost,
        *,
        threshold: float = 0.1,
        stagger_step_ms: int = 100,
    ) -> None:
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"threshold must be within [0, 1], got {threshold}")
        self._host = host
        self.threshold = threshold
        self.stagger_step_ms = stagger_step_ms

        self._targets: dict[str, RevealTarget] = {}
        self._activated: set[str] = set()
        # Targets whose own entry has fired; a child id can be active without it
        self._fired: set[str] = set()
        self._listeners: list[ActivationListener] = []
        self._torn_down = False

    # ── Inspection ───────────────────────────────────────────────────────

    @property
    def registered_ids(self) -> list[str]:
        return list(self._targets)

    @property
    def activated_ids(self) -> frozenset[str]:
        return frozenset(self._activated)

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def is_activated(self, target_id: str) -> bool:
        return target_id in self._activated

    def add_listener(self, listener: ActivationListener) -> None:
        self._listeners.append(listener)

    # ── Registration ─────────────────────────────────────────────────────

    def register(self, target: RevealTarget) -> bool:
        """Start observing `target`. Returns False if it was already registered."""
        if self._torn_down:
            raise RuntimeError("Cannot register reveal targets after teardown")
        if target.id in self._targets:
            return False

        self._targets[target.id] = target
        self._host.observe(target.id, self.threshold)
        logger.debug("reveal target registered: %s (%s, children=%d)",
                     target.id, target.kind.value, len(target.children))
        return True

    def register_all(self, targets: Iterable[RevealTarget]) -> int:
        return sum(1 for t in targets if self.register(t))

    # ── Notifications ────────────────────────────────────────────────────

    def handle_intersections(self, entries: Iterable[IntersectionEntry]) -> list[Activation]:
        """Apply one batch of host notifications in the order given.

        All state changes in the batch land before any listener runs, so a
        staggered parent and its children are never observed half-active.
        """
        if self._torn_down:
            return []

        activations: list[Activation] = []
        for entry in entries:
            target = self._targets.get(entry.target_id)
            if target is None or target.id in self._fired:
                continue
            if not self._entered(entry):
                continue
            activations.append(self._activate(target))

        for activation in activations:
            logger.info("reveal activated: %s (+%d children)",
                        activation.target_id, len(activation.children))
            self._emit(activation)
        return activations

    def _entered(self, entry: IntersectionEntry) -> bool:
        if not entry.is_intersecting:
            return False
        return entry.ratio is None or entry.ratio >= self.threshold

    def _activate(self, target: RevealTarget) -> Activation:
        self._fired.add(target.id)
        self._activated.add(target.id)
        children = []
        for index, child_id in enumerate(target.children):
            self._activated.add(child_id)
            children.append(ChildActivation(
                id=child_id,
                index=index,
                delay_ms=(index + 1) * self.stagger_step_ms,
            ))
        return Activation(target_id=target.id, variant=target.variant, children=tuple(children))

    def _emit(self, activation: Activation) -> None:
        for listener in list(self._listeners):
            try:
                listener(activation)
            except Exception:
                logger.warning("reveal listener failed for %s", activation.target_id, exc_info=True)

    # ── Teardown ─────────────────────────────────────────────────────────

    def teardown(self) -> None:
        """Stop all observation and release every registration."""
        if self._torn_down:
            return
        self._torn_down = True
        for target_id in list(self._targets):
            self._host.unobserve(target_id)
        self._host.disconnect()
        released = len(self._targets)
        self._targets.clear()
        self._fired.clear()
        self._listeners.clear()
        logger.info("reveal coordinator torn down (%d targets released)", released)
