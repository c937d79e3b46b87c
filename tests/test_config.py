"""Tests for coralfeast config loading and the item catalog."""

from pathlib import Path

import pytest

from coralfeast.pond.catalog import Catalog, CreatureSpec, PlantEffectDescriptor
from coralfeast.pond.slot import HazardType
from coralfeast.simulation.config import PondConfig

DEFAULT_YAML = Path(__file__).resolve().parent.parent / "config" / "default.yaml"


class TestPondConfig:
    """Tests for YAML config loading."""

    def test_defaults(self) -> None:
        cfg = PondConfig()
        assert (cfg.rows, cfg.columns) == (4, 6)
        assert cfg.day_seconds == cfg.night_seconds == 180
        assert cfg.hazard_intervals() == {
            HazardType.PH: 90,
            HazardType.OXYGEN: 150,
            HazardType.TEMPERATURE: 210,
        }
        assert cfg.hazard_damage[HazardType.OXYGEN] == 3.0
        assert cfg.plant_effect_max_seconds == 30.0

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "pond.yaml"
        yaml_file.write_text(
            "rows: 2\ncolumns: 2\nday_seconds: 60\n"
            "hazard_damage:\n  ph: 4\n"
            "catalog:\n  creatures:\n    koi:\n      harvest_value: 90\n",
        )
        cfg = PondConfig.from_yaml(yaml_file)
        assert cfg.rows == 2
        assert cfg.day_seconds == 60
        assert cfg.night_seconds == 180
        assert cfg.hazard_damage[HazardType.PH] == 4.0
        assert cfg.hazard_damage[HazardType.WATER_QUALITY] == 1.0
        assert cfg.catalog.creature("koi").harvest_value == 90

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert PondConfig.from_yaml(yaml_file) == PondConfig()

    def test_unknown_hazard_rejected(self) -> None:
        with pytest.raises(ValueError):
            PondConfig.from_mapping({"hazard_damage": {"acid-rain": 9}})

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            PondConfig.from_yaml(tmp_path / "nope.yaml")

    def test_shipped_default(self) -> None:
        cfg = PondConfig.from_yaml(DEFAULT_YAML)
        assert cfg.hunger_interval_seconds == 45
        assert set(cfg.catalog.creatures) == {"tilapia", "koi", "guppy"}
        elodea = cfg.catalog.plant("elodea")
        assert elodea.oxygen_immune
        assert elodea.health_regen == 10
        lettuce = cfg.catalog.plant("water-lettuce")
        assert lettuce.temperature_immune
        assert lettuce.growth_multiplier == 1.25
        assert cfg.catalog.supplement("vitamin-drops").feeding_limit_bonus == 2


class TestCatalog:
    """Tests for resolving loose item payloads into typed descriptors."""

    def test_multiplier_aliases(self) -> None:
        plant = PlantEffectDescriptor.from_mapping("reed", {"growthMultiplier": 2})
        assert plant.growth_multiplier == 2.0
        plant = PlantEffectDescriptor.from_mapping(
            "reed",
            {"effects": {"growth_speed_multiplier": 0.5}},
        )
        assert plant.growth_multiplier == 0.5

    def test_non_positive_multiplier_means_normal_speed(self) -> None:
        plant = PlantEffectDescriptor.from_mapping("reed", {"growth_multiplier": 0})
        assert plant.growth_multiplier == 1.0
        plant = PlantEffectDescriptor.from_mapping("reed", {"growth_bonus_percent": -100})
        assert plant.growth_multiplier == 1.0
        plant = PlantEffectDescriptor.from_mapping("reed", {"growth_bonus_percent": -50})
        assert plant.growth_multiplier == 0.5

    def test_shields_and_lifetime(self) -> None:
        plant = PlantEffectDescriptor.from_mapping(
            "lotus",
            {"oxygen_shield": True, "duration_seconds": 12, "health_regen": -3},
        )
        assert plant.oxygen_immune
        assert not plant.temperature_immune
        assert plant.lifetime_seconds == 12
        assert plant.health_regen == 0.0

    def test_creature_price_fallback(self) -> None:
        spec = CreatureSpec.from_mapping("carp", {"sell_price": 33.6})
        assert spec.harvest_value == 34
        assert spec.egg_stage_seconds is None
        assert spec.name == "carp"

    def test_unknown_slug(self) -> None:
        with pytest.raises(KeyError):
            Catalog().plant("missing")

    def test_empty_mapping(self) -> None:
        assert Catalog.from_mapping(None) == Catalog()
