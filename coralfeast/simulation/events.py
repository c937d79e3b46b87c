"""Lifecycle signals published by the pond engine.

Events are informational only.  They are delivered synchronously to
every subscriber, and a failing subscriber never interrupts the
simulation pass that produced the event.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from coralfeast.pond.slot import HazardType, Stage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageChanged:
    """A slot's occupant moved to a new lifecycle stage."""

    slot: int
    previous: Stage
    stage: Stage


@dataclass(frozen=True)
class CreatureDied:
    """A creature died; ``cause`` was fixed at the moment of death."""

    slot: int
    previous: Stage
    cause: str
    creature: str | None = None


@dataclass(frozen=True)
class HazardTriggered:
    """A hazard was raised on the listed slots."""

    hazard: HazardType
    slots: tuple[int, ...]
    day: int


@dataclass(frozen=True)
class PlantEffectStarted:
    """A plant effect attached to a slot."""

    slot: int
    plant: str
    expires_at: float
    healed: float


@dataclass(frozen=True)
class PlantEffectEnded:
    """A plant effect expired or was removed."""

    slot: int
    plant: str
    reason: str


@dataclass(frozen=True)
class PhaseChanged:
    """The pond switched between day and night."""

    phase: str
    day: int


@dataclass(frozen=True)
class HarvestCompleted:
    """A ready creature was harvested."""

    slot: int
    reward: int
    multiplier: float


Event = (
    StageChanged
    | CreatureDied
    | HazardTriggered
    | PlantEffectStarted
    | PlantEffectEnded
    | PhaseChanged
    | HarvestCompleted
)
Listener = Callable[[Event], None]


class EventBus:
    """Fan-out of lifecycle events to subscribed listeners."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def emit(self, event: Event) -> None:
        """Deliver ``event`` to every listener in subscription order."""
        logger.debug("event %s", event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("listener %r failed on %s", listener, event)
