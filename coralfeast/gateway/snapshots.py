"""Typed views of pond state reported by the remote store.

Remote payloads are parsed once into ``PondSnapshot`` / ``SlotSnapshot``
and then applied to local slots.  Applying a snapshot overwrites the
slot completely: the remote store always wins.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

from coralfeast.pond.catalog import PlantEffectDescriptor
from coralfeast.pond.slot import Stage

if TYPE_CHECKING:
    from coralfeast.lifecycle.plants import PlantEffects
    from coralfeast.pond.catalog import Catalog
    from coralfeast.pond.slot import Slot
    from coralfeast.simulation.clock import SimClock

_STATUS_STAGES = {
    "empty": Stage.EMPTY,
    "egg": Stage.EGG,
    "juvenile": Stage.ADULT,
    "adult": Stage.ADULT,
    "ready": Stage.READY,
    "harvestable": Stage.READY,
    "dead": Stage.DEAD,
}


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp, returning None for missing/invalid."""
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def stage_from_status(status: Any) -> Stage:
    """Map a remote status name (or ``{"name": ...}``) to a Stage."""
    if isinstance(status, Mapping):
        status = status.get("name")
    return _STATUS_STAGES.get(str(status or "empty").lower(), Stage.EMPTY)


def _float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class SlotSnapshot:
    """Authoritative state of one slot.

    Attributes:
        remote_id: Slot identifier in the remote store.
        position: Index of the slot in the pond grid, if reported.
        stage: Lifecycle stage.
        health: Current health, or None to use the local maximum.
        feed_count: Feedings consumed today.
        max_feed_count: Daily feeding budget, or None for the default.
        hungry: Hunger flag.
        hungry_since: When hunger started.
        last_fed_at: Last feeding.
        last_hunger_damage_at: Last starvation hit.
        stage_progress: Growth progress in the current stage.
        stage_duration: Duration of the current stage, if reported.
        ph: pH hazard flag.
        oxygen: Oxygen hazard flag.
        temperature: Temperature hazard flag.
        water_quality: Water quality flag, or None when not reported.
        harvest_value: Reward fixed at stocking.
        creature: Creature slug.
        egg_stage_seconds: Species egg duration.
        adult_stage_seconds: Species adult duration.
        plant: Plant effect descriptor, if a plant is attached.
        plant_placed_at: When the plant was placed.
        plant_expires_at: When the remote store says the effect ends.
    """

    remote_id: int | str | None = None
    position: int | None = None
    stage: Stage = Stage.EMPTY
    health: float | None = None
    feed_count: int = 0
    max_feed_count: int | None = None
    hungry: bool = False
    hungry_since: datetime | None = None
    last_fed_at: datetime | None = None
    last_hunger_damage_at: datetime | None = None
    stage_progress: float = 0.0
    stage_duration: float | None = None
    ph: bool = False
    oxygen: bool = False
    temperature: bool = False
    water_quality: bool | None = None
    harvest_value: int | None = None
    creature: str | None = None
    egg_stage_seconds: float | None = None
    adult_stage_seconds: float | None = None
    plant: PlantEffectDescriptor | None = None
    plant_placed_at: datetime | None = None
    plant_expires_at: datetime | None = None

    @classmethod
    def from_payload(
        cls,
        data: Mapping[str, Any],
        catalog: Catalog | None = None,
    ) -> SlotSnapshot:
        """Parse a remote slot payload.

        Plant effects are resolved from the catalog when the plant slug is
        known there, otherwise from the effect state in the payload.

        Args:
            data: Slot object as returned by the store.
            catalog: Local item catalog.

        Returns:
            The parsed snapshot.
        """
        fish = data.get("fish") or {}
        stage = stage_from_status(data.get("status"))
        if not fish and stage != Stage.DEAD:
            stage = Stage.EMPTY

        plant: PlantEffectDescriptor | None = None
        plant_data = data.get("plant")
        effect_data = data.get("plant_effect") or {}
        if plant_data:
            slug = str(plant_data.get("slug") or plant_data.get("name") or "plant")
            if catalog is not None and slug in catalog.plants:
                plant = catalog.plants[slug]
            else:
                metadata = plant_data.get("metadata") or {}
                state = dict(metadata.get("effects") or {})
                state.update(effect_data.get("state") or {})
                plant = PlantEffectDescriptor.from_mapping(
                    slug,
                    {"name": plant_data.get("name", slug), "effects": state},
                )

        price = _float(data.get("harvest_value", fish.get("sell_price", fish.get("price"))))
        water = data.get("has_water_quality_issue")
        position = data.get("position", data.get("index"))
        return cls(
            remote_id=data.get("id"),
            position=int(position) if position is not None else None,
            stage=stage,
            health=_float(data.get("health")),
            feed_count=int(data.get("feeding_count") or 0),
            max_feed_count=(
                int(data["feeding_limit"]) if data.get("feeding_limit") is not None else None
            ),
            hungry=bool(data.get("is_hungry", False)),
            hungry_since=parse_timestamp(data.get("hungry_since")),
            last_fed_at=parse_timestamp(data.get("last_fed_at")),
            last_hunger_damage_at=parse_timestamp(data.get("last_hunger_damage_at")),
            stage_progress=_float(data.get("stage_progress_seconds")) or 0.0,
            stage_duration=_float(data.get("stage_duration_seconds")),
            ph=bool(data.get("has_ph_issue", False)),
            oxygen=bool(data.get("has_oxygen_issue", False)),
            temperature=bool(data.get("has_temperature_issue", False)),
            water_quality=None if water is None else bool(water),
            harvest_value=round(price) if price and price > 0 else None,
            creature=fish.get("slug") or fish.get("name"),
            egg_stage_seconds=_float(fish.get("egg_stage_seconds")),
            adult_stage_seconds=_float(fish.get("adult_stage_seconds")),
            plant=plant,
            plant_placed_at=parse_timestamp((plant_data or {}).get("placed_at")),
            plant_expires_at=parse_timestamp(effect_data.get("expires_at")),
        )


@dataclass(frozen=True)
class PondSnapshot:
    """Authoritative state of a whole pond.

    Attributes:
        pond_id: Pond identifier in the remote store.
        current_day: Day counter, or None when not reported.
        slots: Slot snapshots; positioned ones go to their position,
            the rest fill the grid in order.
    """

    pond_id: int | str | None
    current_day: int | None = None
    slots: tuple[SlotSnapshot, ...] = field(default_factory=tuple)

    @classmethod
    def from_payload(
        cls,
        data: Mapping[str, Any],
        catalog: Catalog | None = None,
    ) -> PondSnapshot:
        """Parse a remote pond payload."""
        day = data.get("current_day")
        return cls(
            pond_id=data.get("id"),
            current_day=int(day) if day is not None else None,
            slots=tuple(
                SlotSnapshot.from_payload(s, catalog) for s in data.get("slots") or []
            ),
        )

    def by_index(self, size: int) -> list[SlotSnapshot | None]:
        """Lay the snapshots out over ``size`` grid positions."""
        layout: list[SlotSnapshot | None] = [None] * size
        unplaced: list[SlotSnapshot] = []
        for snap in self.slots:
            if snap.position is not None and 0 <= snap.position < size:
                layout[snap.position] = snap
            else:
                unplaced.append(snap)
        free = (i for i, s in enumerate(layout) if s is None)
        for snap, index in zip(unplaced, free):
            layout[index] = snap
        return layout


def apply_slot_snapshot(
    slot: Slot,
    snap: SlotSnapshot,
    *,
    clock: SimClock,
    plants: PlantEffects,
) -> None:
    """Overwrite ``slot`` with the authoritative ``snap``.

    Args:
        slot: Local slot to overwrite.
        snap: Remote state.
        clock: Maps remote timestamps onto simulated time.
        plants: Rebuilds the plant effect with the lifetime cap applied.
    """

    def sim(moment: datetime | None) -> float | None:
        return None if moment is None else clock.to_sim(moment)

    slot.reset()
    slot.remote_id = snap.remote_id
    if snap.stage == Stage.EMPTY:
        return

    slot.stage = snap.stage
    slot.has_creature = True
    slot.alive = snap.stage != Stage.DEAD
    slot.creature = snap.creature
    slot.health = slot.max_health if snap.health is None else snap.health
    slot.feed_count = snap.feed_count
    if snap.max_feed_count is not None:
        slot.max_feed_count = snap.max_feed_count
    slot.hungry = snap.hungry
    slot.hungry_since = sim(snap.hungry_since) if snap.hungry else None
    slot.last_fed_at = sim(snap.last_fed_at)
    slot.last_hunger_damage_at = sim(snap.last_hunger_damage_at)
    slot.stage_elapsed = snap.stage_progress
    if snap.harvest_value is not None:
        slot.harvest_value = snap.harvest_value

    if snap.egg_stage_seconds and snap.egg_stage_seconds > 0:
        slot.egg_stage_duration = snap.egg_stage_seconds
    if snap.adult_stage_seconds and snap.adult_stage_seconds > 0:
        slot.adult_stage_duration = snap.adult_stage_seconds
    if snap.stage_duration and snap.stage_duration > 0:
        if snap.stage == Stage.EGG:
            slot.egg_stage_duration = snap.stage_duration
        elif snap.stage == Stage.ADULT:
            slot.adult_stage_duration = snap.stage_duration

    if slot.stage in (Stage.EGG, Stage.ADULT):
        slot.hazards.ph = snap.ph
        slot.hazards.oxygen = snap.oxygen
        slot.hazards.temperature = snap.temperature
        slot.hazards.water_quality = bool(snap.water_quality)

    if slot.alive and snap.plant is not None and slot.stage != Stage.EGG:
        placed = sim(snap.plant_placed_at)
        attached_at = clock.now if placed is None else placed
        plants.restore(slot, snap.plant, attached_at, sim(snap.plant_expires_at))
