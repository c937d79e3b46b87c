"""Repeating pH, oxygen and temperature hazard timers.

Each timed hazard has its own interval and its own once-per-day latch.
When a timer fires and its latch is open, the hazard is raised on every
exposed slot and the latch closes until the next dawn.  The three
timers are independent, so hazards can overlap.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from coralfeast.pond.slot import TIMED_HAZARDS, HazardType
from coralfeast.simulation.events import HazardTriggered

if TYPE_CHECKING:
    from coralfeast.pond.pond import Pond
    from coralfeast.simulation.events import EventBus

logger = logging.getLogger(__name__)


@dataclass
class HazardTimerConfig:
    """Timer state for one hazard.

    Attributes:
        interval: Seconds between firings.
        elapsed: Seconds accrued since the last firing.
        triggered_today: Latch closed after the hazard fires, reopened
            at dawn.
    """

    interval: float
    elapsed: float = 0.0
    triggered_today: bool = False


class HazardScheduler:
    """Raises timed hazards across the pond.

    Attributes:
        pond: Pond whose exposed slots receive hazards.
        events: Bus receiving ``HazardTriggered`` signals.
        timers: Per-hazard timer state.
        day: Current day number, used to tag emitted events.
    """

    def __init__(
        self,
        pond: Pond,
        events: EventBus,
        intervals: dict[HazardType, int],
    ) -> None:
        self.pond = pond
        self.events = events
        self.timers: dict[HazardType, HazardTimerConfig] = {
            hazard: HazardTimerConfig(interval=float(intervals[hazard]))
            for hazard in TIMED_HAZARDS
        }
        self.day = 1

    def advance(self, seconds: float = 1.0) -> list[HazardType]:
        """Accrue time on every timer and fire those that are due.

        Args:
            seconds: Simulated seconds elapsed.

        Returns:
            Hazards whose timer fired during this call.
        """
        fired: list[HazardType] = []
        for hazard, timer in self.timers.items():
            if timer.interval <= 0:
                continue
            timer.elapsed += seconds
            while timer.elapsed >= timer.interval:
                timer.elapsed -= timer.interval
                fired.append(hazard)
                self.on_hazard_interval(hazard)
        return fired

    def on_hazard_interval(self, hazard: HazardType) -> list[int]:
        """Handle one firing of ``hazard``'s timer.

        Args:
            hazard: The timed hazard that fired.

        Returns:
            Indices of the slots the hazard was raised on (empty when the
            latch was already closed today).
        """
        timer = self.timers[hazard]
        if timer.triggered_today:
            return []

        affected: list[int] = []
        for slot in self.pond.exposed():
            slot.hazards.set(hazard)
            affected.append(slot.index)
        timer.triggered_today = True

        logger.info(
            "Day %d: %s hazard raised on %d slot(s)",
            self.day,
            hazard.value,
            len(affected),
        )
        self.events.emit(
            HazardTriggered(hazard=hazard, slots=tuple(affected), day=self.day),
        )
        return affected

    def triggered_today(self) -> dict[HazardType, bool]:
        """Return the per-hazard daily latches."""
        return {hazard: t.triggered_today for hazard, t in self.timers.items()}

    def reset_daily(self, day: int) -> None:
        """Reopen every latch for a new day."""
        self.day = day
        for timer in self.timers.values():
            timer.triggered_today = False
