"""Day/night cycle, the one-second heartbeat of the pond.

Each tick counts down the current phase and runs the growth simulator
over every slot in index order.  When the phase runs out the pond
switches phase:

- **Dusk** (day -> night): the water gets dirty once per day.
- **Dawn** (night -> day): creatures left in fouled water overnight
  die, then the day counter advances and every daily latch reopens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from coralfeast.pond.slot import HazardType
from coralfeast.simulation.events import HazardTriggered, PhaseChanged

if TYPE_CHECKING:
    from coralfeast.lifecycle.growth import GrowthSimulator
    from coralfeast.lifecycle.hazards import HazardScheduler
    from coralfeast.pond.pond import Pond
    from coralfeast.simulation.events import EventBus

logger = logging.getLogger(__name__)


class Phase(Enum):
    """Half of the day/night cycle."""

    DAY = "day"
    NIGHT = "night"


def _empty_repairs() -> dict[HazardType, int]:
    return {hazard: 0 for hazard in HazardType}


@dataclass
class PondCycleState:
    """Cycle bookkeeping, mutated only by ``DayNightCycle``.

    Attributes:
        phase: Current phase.
        phase_remaining: Seconds left in the current phase.
        current_day: Day counter, starting at 1.
        dirt_applied_today: Whether tonight's dirt has been applied.
        repairs_today: Hazards resolved by the caretaker today.
    """

    phase: Phase = Phase.DAY
    phase_remaining: float = 180.0
    current_day: int = 1
    dirt_applied_today: bool = False
    repairs_today: dict[HazardType, int] = field(default_factory=_empty_repairs)


class DayNightCycle:
    """Drives the phase state machine and the per-second simulation pass.

    Attributes:
        pond: The pond being simulated.
        growth: Per-slot growth and hunger simulator.
        hazards: Hazard scheduler whose latches reset at dawn.
        events: Bus receiving phase and hazard signals.
        day_seconds: Length of the day phase.
        night_seconds: Length of the night phase.
        state: Current cycle state.
    """

    def __init__(
        self,
        pond: Pond,
        growth: GrowthSimulator,
        hazards: HazardScheduler,
        events: EventBus,
        *,
        day_seconds: float,
        night_seconds: float,
    ) -> None:
        self.pond = pond
        self.growth = growth
        self.hazards = hazards
        self.events = events
        self.day_seconds = day_seconds
        self.night_seconds = night_seconds
        self.state = PondCycleState(phase_remaining=day_seconds)

    @property
    def hazards_triggered_today(self) -> dict[HazardType, bool]:
        """Return the timed-hazard latches for the current day."""
        return self.hazards.triggered_today()

    def tick(self, now: float, seconds: float = 1.0) -> None:
        """Run one cycle tick.

        Args:
            now: Current simulated time.
            seconds: Seconds consumed from the current phase.
        """
        self.state.phase_remaining -= seconds
        for slot in self.pond.slots:
            self.growth.update(slot, now)
        if self.state.phase_remaining <= 0:
            self.toggle()

    def toggle(self) -> Phase:
        """Switch to the other phase and apply its entry effects."""
        if self.state.phase == Phase.DAY:
            self.enter_night()
        else:
            self.enter_day()
        return self.state.phase

    def enter_night(self) -> list[int]:
        """Enter night, dirtying the water unless already done today.

        Returns:
            Indices of slots that received the water-quality hazard.
        """
        self.state.phase = Phase.NIGHT
        self.state.phase_remaining = self.night_seconds

        dirtied: list[int] = []
        if not self.state.dirt_applied_today:
            for slot in self.pond.exposed():
                slot.hazards.set(HazardType.WATER_QUALITY)
                dirtied.append(slot.index)
            self.state.dirt_applied_today = True
            logger.info(
                "Day %d: night fell, water dirtied in %d slot(s)",
                self.state.current_day,
                len(dirtied),
            )
            self.events.emit(
                HazardTriggered(
                    hazard=HazardType.WATER_QUALITY,
                    slots=tuple(dirtied),
                    day=self.state.current_day,
                ),
            )

        self.events.emit(PhaseChanged(phase=Phase.NIGHT.value, day=self.state.current_day))
        return dirtied

    def enter_day(self) -> list[int]:
        """Enter day: punish overnight neglect, then start a new day.

        Returns:
            Indices of slots whose creature died of neglect.
        """
        self.state.phase = Phase.DAY
        self.state.phase_remaining = self.day_seconds

        died = self.check_overnight_neglect()

        self.state.current_day += 1
        self.state.dirt_applied_today = False
        self.state.repairs_today = _empty_repairs()
        self.hazards.reset_daily(self.state.current_day)

        logger.info("Day %d begins", self.state.current_day)
        self.events.emit(PhaseChanged(phase=Phase.DAY.value, day=self.state.current_day))
        return died

    def check_overnight_neglect(self) -> list[int]:
        """Kill growing creatures still sitting in fouled water at dawn.

        Water quality, pH and oxygen problems left unsolved overnight are
        fatal.  Plant shields do not count here; only a repair does.
        """
        died: list[int] = []
        for slot in self.pond.exposed():
            hazards = slot.hazards
            if hazards.water_quality or hazards.ph or hazards.oxygen:
                self.growth.kill(slot)
                died.append(slot.index)
        return died

    def record_repair(self, hazard: HazardType) -> None:
        """Count a caretaker repair for today."""
        self.state.repairs_today[hazard] += 1

    def restore(self, *, current_day: int) -> None:
        """Adopt an authoritative day counter from the remote store."""
        self.state.current_day = max(1, current_day)
        self.hazards.day = self.state.current_day
