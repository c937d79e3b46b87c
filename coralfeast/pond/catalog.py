"""Typed descriptors for every item that can enter the pond.

Loose item payloads (YAML sections or remote JSON) are resolved into
typed specs exactly once, when the catalog is built.  Nothing at apply
time inspects item names or sniffs alternate keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

_GROWTH_MULTIPLIER_KEYS = (
    "growth_multiplier",
    "growthMultiplier",
    "growth_rate_multiplier",
    "growth_speed_multiplier",
)
_GROWTH_PERCENT_KEYS = (
    "growth_bonus_percent",
    "growthBonusPercent",
    "growth_rate_bonus",
    "growth_speed_bonus",
)


def _number(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number


def _positive(value: Any) -> float | None:
    number = _number(value)
    return number if number is not None and number > 0 else None


@dataclass(frozen=True)
class CreatureSpec:
    """A stockable creature species.

    Attributes:
        slug: Catalog identifier.
        name: Display name.
        egg_stage_seconds: Growth needed for the egg to hatch, or None
            to use the pond default.
        adult_stage_seconds: Growth needed to become harvestable, or
            None to use the pond default.
        harvest_value: Base reward paid on harvest, or None for default.
    """

    slug: str
    name: str = ""
    egg_stage_seconds: float | None = None
    adult_stage_seconds: float | None = None
    harvest_value: int | None = None

    @classmethod
    def from_mapping(cls, slug: str, data: Mapping[str, Any]) -> CreatureSpec:
        """Build a spec from a catalog entry."""
        price = _positive(
            data.get("harvest_value", data.get("sell_price", data.get("price"))),
        )
        return cls(
            slug=slug,
            name=str(data.get("name", slug)),
            egg_stage_seconds=_positive(data.get("egg_stage_seconds")),
            adult_stage_seconds=_positive(data.get("adult_stage_seconds")),
            harvest_value=round(price) if price is not None else None,
        )


@dataclass(frozen=True)
class PlantEffectDescriptor:
    """Typed modifier bundle carried by a plant item.

    Attributes:
        slug: Catalog identifier.
        name: Display name.
        growth_multiplier: Growth progress per simulated second (> 0).
        oxygen_immune: Suppresses oxygen hazard damage while attached.
        temperature_immune: Suppresses temperature hazard damage.
        health_regen: Health restored once when the effect attaches.
        lifetime_seconds: Requested lifetime; None means the maximum.
    """

    slug: str
    name: str = ""
    growth_multiplier: float = 1.0
    oxygen_immune: bool = False
    temperature_immune: bool = False
    health_regen: float = 0.0
    lifetime_seconds: float | None = None

    @classmethod
    def from_mapping(
        cls,
        slug: str,
        data: Mapping[str, Any],
    ) -> PlantEffectDescriptor:
        """Resolve a plant entry into a descriptor.

        Effect keys may live at the top level or under ``effects``.  The
        growth multiplier accepts a direct factor or a percentage bonus;
        non-positive factors resolve to 1.

        Args:
            slug: Catalog identifier.
            data: Raw catalog entry.

        Returns:
            The resolved descriptor.
        """
        effects: dict[str, Any] = dict(data)
        nested = data.get("effects")
        if isinstance(nested, Mapping):
            effects.update(nested)

        multiplier = 1.0
        direct = [_positive(effects.get(k)) for k in _GROWTH_MULTIPLIER_KEYS]
        direct = [m for m in direct if m is not None]
        if direct:
            multiplier = direct[0]
        else:
            for key in _GROWTH_PERCENT_KEYS:
                percent = _number(effects.get(key))
                if percent is not None:
                    multiplier = max(0.0, 1.0 + percent / 100.0) or 1.0
                    break

        lifetime = _positive(
            effects.get("lifetime_seconds", effects.get("duration_seconds")),
        )
        return cls(
            slug=slug,
            name=str(data.get("name", slug)),
            growth_multiplier=multiplier,
            oxygen_immune=bool(
                effects.get("oxygen_immune")
                or effects.get("oxygen_protection")
                or effects.get("oxygen_shield"),
            ),
            temperature_immune=bool(
                effects.get("temperature_immune")
                or effects.get("temperature_protection")
                or effects.get("temperature_shield"),
            ),
            health_regen=_positive(
                effects.get("health_regen", effects.get("health_regeneration")),
            )
            or 0.0,
            lifetime_seconds=lifetime,
        )


@dataclass(frozen=True)
class SupplementSpec:
    """A one-shot supplement applied to a living adult.

    Attributes:
        slug: Catalog identifier.
        name: Display name.
        health_boost: Health restored (clamped to max).
        hunger_reset: Clears hunger and today's feed count.
        feeding_limit_bonus: Extra daily feedings granted.
    """

    slug: str
    name: str = ""
    health_boost: float = 0.0
    hunger_reset: bool = False
    feeding_limit_bonus: int = 0

    @classmethod
    def from_mapping(cls, slug: str, data: Mapping[str, Any]) -> SupplementSpec:
        """Build a spec from a catalog entry."""
        effects: dict[str, Any] = dict(data)
        nested = data.get("effects")
        if isinstance(nested, Mapping):
            effects.update(nested)
        bonus = _positive(effects.get("feeding_limit_bonus"))
        return cls(
            slug=slug,
            name=str(data.get("name", slug)),
            health_boost=_positive(effects.get("health_boost")) or 0.0,
            hunger_reset=bool(effects.get("hunger_reset", False)),
            feeding_limit_bonus=int(bonus) if bonus is not None else 0,
        )


@dataclass
class Catalog:
    """All known items, indexed by slug.

    Attributes:
        creatures: Stockable species.
        plants: Plant effect descriptors.
        supplements: Supplements.
    """

    creatures: dict[str, CreatureSpec] = field(default_factory=dict)
    plants: dict[str, PlantEffectDescriptor] = field(default_factory=dict)
    supplements: dict[str, SupplementSpec] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> Catalog:
        """Build a catalog from a ``{creatures, plants, supplements}`` mapping."""
        data = data or {}
        return cls(
            creatures={
                slug: CreatureSpec.from_mapping(slug, entry or {})
                for slug, entry in (data.get("creatures") or {}).items()
            },
            plants={
                slug: PlantEffectDescriptor.from_mapping(slug, entry or {})
                for slug, entry in (data.get("plants") or {}).items()
            },
            supplements={
                slug: SupplementSpec.from_mapping(slug, entry or {})
                for slug, entry in (data.get("supplements") or {}).items()
            },
        )

    def creature(self, slug: str) -> CreatureSpec:
        """Return the creature spec for ``slug``.

        Raises:
            KeyError: If the slug is unknown.
        """
        return self.creatures[slug]

    def plant(self, slug: str) -> PlantEffectDescriptor:
        """Return the plant descriptor for ``slug``.

        Raises:
            KeyError: If the slug is unknown.
        """
        return self.plants[slug]

    def supplement(self, slug: str) -> SupplementSpec:
        """Return the supplement spec for ``slug``.

        Raises:
            KeyError: If the slug is unknown.
        """
        return self.supplements[slug]
