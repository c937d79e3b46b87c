"""Plant effects: time-bounded modifier bundles attached to slots.

A plant placed on a slot holding a living, hatched creature attaches a
``PlantEffect`` built from the plant's catalog descriptor.  The effect
heals once on attach, may speed up or slow down growth, and may shield
the creature from oxygen and temperature hazards.  pH and water-quality
damage can never be suppressed.  Every effect expires no later than
``max_lifetime`` seconds after it attached.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from coralfeast.pond.slot import Stage
from coralfeast.simulation.events import PlantEffectEnded, PlantEffectStarted

if TYPE_CHECKING:
    from coralfeast.pond.catalog import PlantEffectDescriptor
    from coralfeast.pond.slot import Slot
    from coralfeast.simulation.events import EventBus

logger = logging.getLogger(__name__)


@dataclass
class PlantEffect:
    """Modifiers currently attached to one slot.

    Attributes:
        plant: Catalog slug of the plant that produced the effect.
        growth_multiplier: Growth progress per simulated second.
        oxygen_immune: Oxygen hazard is ignored while attached.
        temperature_immune: Temperature hazard is ignored while attached.
        health_regen: Health restored when the effect attached.
        attached_at: Simulated time of attachment.
        expires_at: Simulated time after which the effect detaches.
        ended_notified: Set once the expiry signal has been emitted.
    """

    plant: str
    growth_multiplier: float
    oxygen_immune: bool
    temperature_immune: bool
    health_regen: float
    attached_at: float
    expires_at: float
    ended_notified: bool = False


class PlantRejection(Exception):
    """A plant cannot be attached to the target slot."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message


class PlantEffects:
    """Attaches, expires and queries plant effects.

    Attributes:
        max_lifetime: Hard cap on any effect's lifetime in seconds.
        events: Bus receiving start/end signals.
    """

    def __init__(self, max_lifetime: float, events: EventBus) -> None:
        self.max_lifetime = max_lifetime
        self.events = events

    def clamp_lifetime(self, requested: float | None) -> float:
        """Return the effective lifetime for a requested value.

        Missing or non-positive requests get the maximum lifetime.
        """
        if requested is None or requested <= 0:
            return self.max_lifetime
        return min(requested, self.max_lifetime)

    def attach(
        self,
        slot: Slot,
        descriptor: PlantEffectDescriptor,
        now: float,
    ) -> PlantEffect:
        """Attach a new effect to ``slot``, replacing any existing one.

        Args:
            slot: Target slot.
            descriptor: Typed plant effect resolved from the catalog.
            now: Current simulated time.

        Returns:
            The attached effect.

        Raises:
            PlantRejection: If the slot holds no living hatched creature.
        """
        if not slot.has_creature:
            raise PlantRejection("no-creature", "A living creature is needed here first.")
        if slot.stage == Stage.EGG:
            raise PlantRejection("egg", "Plants cannot be placed on an egg.")
        if not slot.alive or slot.stage == Stage.DEAD:
            raise PlantRejection("dead", "Plants cannot be placed on a dead creature.")

        lifetime = self.clamp_lifetime(descriptor.lifetime_seconds)
        effect = PlantEffect(
            plant=descriptor.slug,
            growth_multiplier=descriptor.growth_multiplier,
            oxygen_immune=descriptor.oxygen_immune,
            temperature_immune=descriptor.temperature_immune,
            health_regen=descriptor.health_regen,
            attached_at=now,
            expires_at=now + lifetime,
        )
        slot.plant_effect = effect

        healed = 0.0
        if descriptor.health_regen > 0 and slot.health > 0:
            before = slot.health
            slot.health = min(slot.max_health, slot.health + descriptor.health_regen)
            healed = slot.health - before

        logger.info(
            "Slot %d: %s attached until t=%.0f (healed %.0f)",
            slot.index,
            descriptor.slug,
            effect.expires_at,
            healed,
        )
        self.events.emit(
            PlantEffectStarted(
                slot=slot.index,
                plant=descriptor.slug,
                expires_at=effect.expires_at,
                healed=healed,
            ),
        )
        return effect

    def restore(
        self,
        slot: Slot,
        descriptor: PlantEffectDescriptor,
        attached_at: float,
        expires_at: float | None,
    ) -> PlantEffect:
        """Rebuild an effect reported by the remote store.

        The remote expiry is trusted only up to ``attached_at`` plus the
        maximum lifetime.  No healing is applied.
        """
        limit = attached_at + self.clamp_lifetime(descriptor.lifetime_seconds)
        if expires_at is None or expires_at > limit:
            expires_at = limit
        effect = PlantEffect(
            plant=descriptor.slug,
            growth_multiplier=descriptor.growth_multiplier,
            oxygen_immune=descriptor.oxygen_immune,
            temperature_immune=descriptor.temperature_immune,
            health_regen=descriptor.health_regen,
            attached_at=attached_at,
            expires_at=expires_at,
        )
        slot.plant_effect = effect
        return effect

    def expire(self, slot: Slot, now: float) -> bool:
        """Detach the slot's effect once its lifetime has elapsed.

        Args:
            slot: Slot to check.
            now: Current simulated time.

        Returns:
            True if an effect was detached on this call.
        """
        effect = slot.plant_effect
        if effect is None or now < effect.expires_at:
            return False
        slot.plant_effect = None
        if not effect.ended_notified:
            effect.ended_notified = True
            logger.info("Slot %d: %s effect ended", slot.index, effect.plant)
            self.events.emit(
                PlantEffectEnded(slot=slot.index, plant=effect.plant, reason="expired"),
            )
        return True

    def detach(self, slot: Slot, reason: str = "removed") -> None:
        """Remove any effect immediately (e.g. when the creature dies)."""
        effect = slot.plant_effect
        if effect is None:
            return
        slot.plant_effect = None
        if not effect.ended_notified:
            effect.ended_notified = True
            self.events.emit(
                PlantEffectEnded(slot=slot.index, plant=effect.plant, reason=reason),
            )

    @staticmethod
    def growth_multiplier(slot: Slot) -> float:
        """Return the slot's growth rate, 1 without a positive effect."""
        effect = slot.plant_effect
        if effect is None or effect.growth_multiplier <= 0:
            return 1.0
        return effect.growth_multiplier

    @staticmethod
    def oxygen_immune(slot: Slot) -> bool:
        """Return True if oxygen hazards are suppressed on ``slot``."""
        return slot.plant_effect is not None and slot.plant_effect.oxygen_immune

    @staticmethod
    def temperature_immune(slot: Slot) -> bool:
        """Return True if temperature hazards are suppressed on ``slot``."""
        return slot.plant_effect is not None and slot.plant_effect.temperature_immune
