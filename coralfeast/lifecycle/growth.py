"""Growth and hunger: the per-second update of every occupied slot.

``GrowthSimulator.update`` runs once per simulated second per slot, in
this order (each step may end the update early):

1. Expire the plant effect, whatever the creature's state.
2. Stop unless a living, not-yet-ready creature is present.
3. Classify the slot as *fouled* (any hazard not suppressed by a plant).
4. Apply hazard damage; a fouled, hurt creature with feedings left
   becomes hungry.  Health at or below zero kills.
5. Fouled slots do not grow.
6. Advance stage progress by the growth multiplier.
7. Adults with feedings left grow hungry after ``hunger_interval`` and
   then take ``hunger_damage`` every ``hunger_damage_interval``.
8. Hatch eggs into adults, and mature adults into harvestable fish.

``kill`` is the single death procedure shared with the dawn check.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import TYPE_CHECKING

from coralfeast.pond.slot import GROWING_STAGES, HazardType, Stage
from coralfeast.simulation.events import CreatureDied, StageChanged

if TYPE_CHECKING:
    from coralfeast.lifecycle.plants import PlantEffects
    from coralfeast.pond.slot import Slot
    from coralfeast.simulation.config import PondConfig
    from coralfeast.simulation.events import EventBus

logger = logging.getLogger(__name__)


class DeathCause(Enum):
    """Why a creature died, in the priority order used to pick one."""

    PH = "ph"
    OXYGEN = "oxygen"
    TEMPERATURE = "temperature"
    WATER_QUALITY = "water-quality"
    HUNGER = "hunger"
    HEALTH_EXHAUSTED = "health-exhausted"
    UNKNOWN = "unknown"


_HAZARD_CAUSES = {
    HazardType.PH: DeathCause.PH,
    HazardType.OXYGEN: DeathCause.OXYGEN,
    HazardType.TEMPERATURE: DeathCause.TEMPERATURE,
    HazardType.WATER_QUALITY: DeathCause.WATER_QUALITY,
}


def death_cause(slot: Slot) -> DeathCause:
    """Pick the cause of death from the slot's current state.

    Hazards are checked first in fixed priority (pH, oxygen,
    temperature, water quality), then hunger, then exhausted health.
    """
    active = slot.hazards.active()
    if active:
        return _HAZARD_CAUSES[active[0]]
    if slot.hungry:
        return DeathCause.HUNGER
    if slot.health <= 0:
        return DeathCause.HEALTH_EXHAUSTED
    return DeathCause.UNKNOWN


class GrowthSimulator:
    """Advances growth, hunger and death for individual slots.

    Attributes:
        config: Damage, hunger and stage parameters.
        plants: Plant effect subsystem (expiry and modifiers).
        events: Bus receiving stage and death signals.
    """

    def __init__(
        self,
        config: PondConfig,
        plants: PlantEffects,
        events: EventBus,
    ) -> None:
        self.config = config
        self.plants = plants
        self.events = events

    def is_fouled(self, slot: Slot) -> bool:
        """Return True if any hazard not suppressed by a plant is active."""
        hazards = slot.hazards
        return (
            hazards.ph
            or (hazards.oxygen and not self.plants.oxygen_immune(slot))
            or (hazards.temperature and not self.plants.temperature_immune(slot))
            or hazards.water_quality
        )

    def hazard_damage(self, slot: Slot) -> float:
        """Return the health lost this tick to the slot's active hazards."""
        damage_table = self.config.hazard_damage
        hazards = slot.hazards
        damage = 0.0
        if hazards.water_quality:
            damage += damage_table[HazardType.WATER_QUALITY]
        if hazards.ph:
            damage += damage_table[HazardType.PH]
        if hazards.oxygen and not self.plants.oxygen_immune(slot):
            damage += damage_table[HazardType.OXYGEN]
        if hazards.temperature and not self.plants.temperature_immune(slot):
            damage += damage_table[HazardType.TEMPERATURE]
        return damage

    def update(self, slot: Slot, now: float) -> None:
        """Advance ``slot`` by one simulated second.

        Args:
            slot: Slot to update.
            now: Current simulated time.
        """
        self.plants.expire(slot, now)

        if not slot.has_creature or not slot.alive:
            return
        if slot.stage not in GROWING_STAGES:
            return

        fouled = self.is_fouled(slot)

        damage = self.hazard_damage(slot)
        if damage > 0:
            slot.health -= damage
            if (
                fouled
                and slot.health < slot.max_health * self.config.hunger_health_ratio
                and slot.feed_count < slot.max_feed_count
            ):
                slot.hungry = True
                if slot.hungry_since is None:
                    slot.hungry_since = now
            if slot.health <= 0:
                self.kill(slot)
                return

        if fouled:
            return

        multiplier = self.plants.growth_multiplier(slot)
        slot.stage_elapsed += multiplier

        if slot.stage == Stage.ADULT:
            if not self._apply_hunger(slot, now, multiplier):
                return

        self._advance_stage(slot)

    def _apply_hunger(self, slot: Slot, now: float, multiplier: float) -> bool:
        """Run the starvation sub-step; return False if the creature died."""
        if slot.feed_count >= slot.max_feed_count:
            slot.hungry = False
            slot.hungry_since = None
            return True

        if slot.last_fed_at is not None:
            since_fed = max(0.0, now - slot.last_fed_at)
        else:
            since_fed = slot.stage_elapsed / max(1.0, multiplier)

        if since_fed < self.config.hunger_interval_seconds:
            return True

        if not slot.hungry:
            slot.hungry = True
            slot.hungry_since = now
            logger.debug("Slot %d: hungry", slot.index)

        if self.config.hunger_damage <= 0:
            return True

        if slot.last_hunger_damage_at is None:
            since_damage = math.inf
        else:
            since_damage = max(0.0, now - slot.last_hunger_damage_at)

        if since_damage >= self.config.hunger_damage_interval_seconds:
            slot.health = max(0.0, slot.health - self.config.hunger_damage)
            slot.last_hunger_damage_at = now
            if slot.health <= 0:
                self.kill(slot)
                return False
        return True

    def _advance_stage(self, slot: Slot) -> None:
        if slot.stage == Stage.EGG and slot.stage_elapsed >= slot.egg_stage_duration:
            slot.stage = Stage.ADULT
            slot.stage_elapsed = 0.0
            slot.feed_count = 0
            slot.hungry = False
            slot.hungry_since = None
            logger.info("Slot %d: egg hatched into an adult", slot.index)
            self.events.emit(
                StageChanged(slot=slot.index, previous=Stage.EGG, stage=Stage.ADULT),
            )
        elif (
            slot.stage == Stage.ADULT
            and slot.stage_elapsed >= slot.adult_stage_duration
        ):
            slot.stage = Stage.READY
            slot.stage_elapsed = 0.0
            slot.hazards.clear()
            slot.hungry = False
            slot.hungry_since = None
            logger.info("Slot %d: ready to harvest", slot.index)
            self.events.emit(
                StageChanged(slot=slot.index, previous=Stage.ADULT, stage=Stage.READY),
            )

    def kill(self, slot: Slot) -> DeathCause:
        """Kill the slot's occupant.

        The cause is computed before any state is cleared.  The dead
        occupant keeps the slot until the player removes it.

        Args:
            slot: Slot whose creature dies.

        Returns:
            The recorded cause of death.
        """
        previous = slot.stage
        cause = death_cause(slot)

        self.plants.detach(slot, reason="death")
        slot.stage = Stage.DEAD
        slot.alive = False
        slot.has_creature = True
        slot.death_cause = cause.value
        slot.hazards.clear()
        slot.hungry = False
        slot.hungry_since = None

        logger.info(
            "Slot %d: %s died (%s)",
            slot.index,
            previous.value,
            cause.value,
        )
        self.events.emit(
            CreatureDied(
                slot=slot.index,
                previous=previous,
                cause=cause.value,
                creature=slot.creature,
            ),
        )
        return cause
