"""A single cell of the pond grid.

A slot holds at most one creature (egg, adult, ready-to-harvest, or a
dead occupant waiting for removal), its environmental hazard flags,
hunger bookkeeping, and an optional attached plant effect.  All timing
fields are expressed in simulated seconds (see ``SimClock``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from coralfeast.lifecycle.plants import PlantEffect


class Stage(Enum):
    """Lifecycle position of a slot's occupant."""

    EMPTY = "empty"
    EGG = "egg"
    ADULT = "adult"
    READY = "ready"
    DEAD = "dead"

    @property
    def rank(self) -> int:
        """Ordering used for monotonicity checks (DEAD sorts last)."""
        return _STAGE_RANK[self]


_STAGE_RANK = {
    Stage.EMPTY: 0,
    Stage.EGG: 1,
    Stage.ADULT: 2,
    Stage.READY: 3,
    Stage.DEAD: 4,
}

GROWING_STAGES = frozenset({Stage.EGG, Stage.ADULT})


class HazardType(Enum):
    """Environmental faults that damage health and block growth."""

    PH = "ph"
    OXYGEN = "oxygen"
    TEMPERATURE = "temperature"
    WATER_QUALITY = "water-quality"


# Hazards driven by their own repeating timers (water quality is nightly)
TIMED_HAZARDS = (HazardType.PH, HazardType.OXYGEN, HazardType.TEMPERATURE)


@dataclass
class Hazards:
    """Independent hazard flags for one slot.

    Attributes:
        ph: pH out of range.
        oxygen: Insufficient dissolved oxygen.
        temperature: Water temperature out of range.
        water_quality: Dirty water (applied every night).
    """

    ph: bool = False
    oxygen: bool = False
    temperature: bool = False
    water_quality: bool = False

    def get(self, hazard: HazardType) -> bool:
        """Return the flag for ``hazard``."""
        return bool(getattr(self, _HAZARD_ATTR[hazard]))

    def set(self, hazard: HazardType, value: bool = True) -> None:
        """Set the flag for ``hazard``."""
        setattr(self, _HAZARD_ATTR[hazard], value)

    def any(self) -> bool:
        """Return True if at least one hazard flag is raised."""
        return self.ph or self.oxygen or self.temperature or self.water_quality

    def active(self) -> list[HazardType]:
        """Return the raised hazards in priority order."""
        return [h for h in HazardType if self.get(h)]

    def clear(self) -> None:
        """Lower every hazard flag."""
        self.ph = False
        self.oxygen = False
        self.temperature = False
        self.water_quality = False


_HAZARD_ATTR = {
    HazardType.PH: "ph",
    HazardType.OXYGEN: "oxygen",
    HazardType.TEMPERATURE: "temperature",
    HazardType.WATER_QUALITY: "water_quality",
}


@dataclass
class Slot:
    """State of one pond grid cell.

    Attributes:
        index: Position in the pond, in stable row-major order.
        stage: Lifecycle stage of the occupant.
        alive: False only when ``stage`` is DEAD.
        has_creature: True while any occupant (living or dead) is present.
        health: Current health; reaching 0 kills the occupant.
        max_health: Upper bound for ``health``.
        stage_elapsed: Growth progress accumulated in the current stage.
        egg_stage_duration: Progress needed to hatch into an adult.
        adult_stage_duration: Progress needed to become harvestable.
        hazards: Environmental hazard flags.
        hungry: Whether the creature is currently starving.
        hungry_since: Time hunger started, or None.
        feed_count: Feedings consumed today.
        max_feed_count: Daily feeding budget.
        last_fed_at: Time of the last feeding, or None if never fed.
        last_hunger_damage_at: Time hunger damage was last applied.
        plant_effect: Attached plant modifier bundle, if any.
        harvest_value: Base reward fixed at stocking time.
        creature: Catalog slug of the stocked creature.
        death_cause: Cause recorded at the moment of death.
        remote_id: Identifier of this slot in the remote store.
    """

    index: int
    max_health: float = 100.0
    default_harvest_value: int = 50
    default_max_feed_count: int = 3
    stage: Stage = Stage.EMPTY
    alive: bool = True
    has_creature: bool = False
    health: float = field(init=False)
    stage_elapsed: float = 0.0
    egg_stage_duration: float = 120.0
    adult_stage_duration: float = 180.0
    hazards: Hazards = field(default_factory=Hazards)
    hungry: bool = False
    hungry_since: float | None = None
    feed_count: int = 0
    max_feed_count: int = field(init=False)
    last_fed_at: float | None = None
    last_hunger_damage_at: float | None = None
    plant_effect: PlantEffect | None = None
    harvest_value: int = field(init=False)
    creature: str | None = None
    death_cause: str | None = None
    remote_id: int | str | None = None

    def __post_init__(self) -> None:
        """Start every slot empty with full health."""
        self.health = self.max_health
        self.max_feed_count = self.default_max_feed_count
        self.harvest_value = self.default_harvest_value

    @property
    def is_growing(self) -> bool:
        """Return True for a living egg or adult."""
        return self.alive and self.stage in GROWING_STAGES

    @property
    def is_living(self) -> bool:
        """Return True if a living occupant is present."""
        return self.has_creature and self.alive and self.stage != Stage.DEAD

    def reset(self) -> None:
        """Return the slot to EMPTY, clearing every per-occupant field.

        The remote identifier is kept: it names the cell, not the occupant.
        """
        self.stage = Stage.EMPTY
        self.alive = True
        self.has_creature = False
        self.health = self.max_health
        self.stage_elapsed = 0.0
        self.hazards.clear()
        self.hungry = False
        self.hungry_since = None
        self.feed_count = 0
        self.max_feed_count = self.default_max_feed_count
        self.last_fed_at = None
        self.last_hunger_damage_at = None
        self.plant_effect = None
        self.harvest_value = self.default_harvest_value
        self.creature = None
        self.death_cause = None
