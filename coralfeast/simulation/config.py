"""Config: load pond parameters from YAML files.

All tunable constants (grid size, phase lengths, hazard intervals,
damage values, hunger timing, item catalog) live in YAML and are parsed
into typed dataclasses here.  Balancing values are data, not code.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from coralfeast.pond.catalog import Catalog
from coralfeast.pond.slot import HazardType


@dataclass
class PondConfig:
    """Top-level pond simulation configuration.

    Attributes:
        rows: Pond grid rows.
        columns: Pond grid columns.
        day_seconds: Length of the day phase in simulated seconds.
        night_seconds: Length of the night phase.
        ph_interval: Seconds between pH hazard timer firings.
        oxygen_interval: Seconds between oxygen hazard timer firings.
        temperature_interval: Seconds between temperature hazard firings.
        max_health: Health ceiling for every creature.
        egg_stage_seconds: Default egg stage duration.
        adult_stage_seconds: Default adult stage duration.
        max_feed_count: Default feedings allowed per day.
        feed_limit_cap: Upper bound for the daily feeding budget after
            supplements.
        feed_heal: Health restored by one feeding.
        hunger_interval_seconds: Seconds without food before hunger.
        hunger_damage_interval_seconds: Seconds between starvation hits.
        hunger_damage: Health lost per starvation hit.
        hunger_health_ratio: Fraction of max health below which a fouled
            creature becomes hungry.
        hazard_damage: Health lost per tick for each active hazard.
        plant_effect_max_seconds: Hard cap on any plant effect lifetime.
        default_harvest_value: Reward for creatures without a price.
        tick_seconds: Real seconds between ticks when running live.
        bonus_poll_seconds: Real seconds between market bonus polls.
        store_url: Base URL of the remote pond store, if any.
        player_id: Player whose pond is synced.
        catalog: Known creatures, plants and supplements.
    """

    rows: int = 4
    columns: int = 6

    # Day/night cycle
    day_seconds: int = 180
    night_seconds: int = 180

    # Hazard timers
    ph_interval: int = 90
    oxygen_interval: int = 150
    temperature_interval: int = 210

    # Creature lifecycle
    max_health: float = 100.0
    egg_stage_seconds: float = 120.0
    adult_stage_seconds: float = 180.0

    # Feeding and hunger
    max_feed_count: int = 3
    feed_limit_cap: int = 10
    feed_heal: float = 10.0
    hunger_interval_seconds: float = 45.0
    hunger_damage_interval_seconds: float = 15.0
    hunger_damage: float = 5.0
    hunger_health_ratio: float = 0.9

    hazard_damage: dict[HazardType, float] = field(
        default_factory=lambda: {
            HazardType.WATER_QUALITY: 1.0,
            HazardType.PH: 2.0,
            HazardType.OXYGEN: 3.0,
            HazardType.TEMPERATURE: 1.0,
        },
    )

    plant_effect_max_seconds: float = 30.0
    default_harvest_value: int = 50

    # Live timers
    tick_seconds: float = 1.0
    bonus_poll_seconds: float = 30.0

    # Remote store
    store_url: str | None = None
    player_id: str | None = None

    catalog: Catalog = field(default_factory=Catalog)

    def hazard_intervals(self) -> dict[HazardType, int]:
        """Return the repeat interval of each timed hazard."""
        return {
            HazardType.PH: self.ph_interval,
            HazardType.OXYGEN: self.oxygen_interval,
            HazardType.TEMPERATURE: self.temperature_interval,
        }

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> PondConfig:
        """Build a config from a plain mapping, defaulting missing keys.

        Args:
            data: Parsed YAML document.

        Returns:
            A populated PondConfig instance.

        Raises:
            ValueError: If ``hazard_damage`` names an unknown hazard.
        """
        scalar_names = {
            f.name for f in fields(cls) if f.name not in ("hazard_damage", "catalog")
        }
        kwargs: dict[str, Any] = {
            name: data[name] for name in scalar_names if name in data
        }

        config = cls(**kwargs)
        for name, damage in (data.get("hazard_damage") or {}).items():
            config.hazard_damage[HazardType(name)] = float(damage)
        config.catalog = Catalog.from_mapping(data.get("catalog"))
        return config

    @classmethod
    def from_yaml(cls, path: str | Path) -> PondConfig:
        """Load configuration from a YAML file.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated PondConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_mapping(data)
