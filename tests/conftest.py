"""Shared fixtures for the CoralFeast test suite."""

from __future__ import annotations

import pytest

from coralfeast.pond.catalog import Catalog, CreatureSpec, PlantEffectDescriptor
from coralfeast.pond.slot import Slot, Stage
from coralfeast.simulation.config import PondConfig
from coralfeast.simulation.engine import PondSimulationEngine


def place_creature(
    slot: Slot,
    stage: Stage = Stage.EGG,
    *,
    egg: float = 120.0,
    adult: float = 180.0,
    value: int = 50,
) -> Slot:
    """Put a living creature into ``slot`` without going through the gateway."""
    slot.reset()
    slot.stage = stage
    slot.alive = True
    slot.has_creature = True
    slot.creature = "tilapia"
    slot.egg_stage_duration = egg
    slot.adult_stage_duration = adult
    slot.harvest_value = value
    return slot


@pytest.fixture
def catalog() -> Catalog:
    """A small catalog with one creature and two plants."""
    return Catalog(
        creatures={
            "tilapia": CreatureSpec(
                slug="tilapia",
                name="Tilapia",
                egg_stage_seconds=120,
                adult_stage_seconds=180,
                harvest_value=50,
            ),
        },
        plants={
            "elodea": PlantEffectDescriptor(
                slug="elodea",
                oxygen_immune=True,
                health_regen=10,
                lifetime_seconds=30,
            ),
            "algae": PlantEffectDescriptor(
                slug="algae",
                growth_multiplier=2.0,
                lifetime_seconds=600,
            ),
        },
    )


@pytest.fixture
def default_config() -> PondConfig:
    """Default pond config (no YAML file needed)."""
    return PondConfig()


@pytest.fixture
def quiet_config(catalog: Catalog) -> PondConfig:
    """Config with hazard timers off and very long phases."""
    return PondConfig(
        ph_interval=0,
        oxygen_interval=0,
        temperature_interval=0,
        day_seconds=10_000,
        night_seconds=10_000,
        catalog=catalog,
    )


@pytest.fixture
def engine(quiet_config: PondConfig) -> PondSimulationEngine:
    """An offline engine with no environmental pressure."""
    return PondSimulationEngine(config=quiet_config)


@pytest.fixture
def events(engine: PondSimulationEngine) -> list[object]:
    """Every event the engine emits, in order."""
    received: list[object] = []
    engine.events.subscribe(received.append)
    return received


@pytest.fixture
def place():
    """The ``place_creature`` helper, for tests that build slots by hand."""
    return place_creature
