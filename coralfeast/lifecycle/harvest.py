"""Pays out a ready creature and empties its slot."""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING

from coralfeast.pond.slot import Stage
from coralfeast.simulation.events import HarvestCompleted

if TYPE_CHECKING:
    from coralfeast.economy.market import MarketBonus
    from coralfeast.economy.wallet import Wallet
    from coralfeast.pond.slot import Slot
    from coralfeast.simulation.events import EventBus

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class HarvestCalculator:
    """Computes harvest rewards and resets harvested slots.

    Attributes:
        wallet: Receives harvest rewards.
        bonus: Market bonus read at harvest time.
        events: Bus receiving ``HarvestCompleted`` signals.
    """

    def __init__(self, wallet: Wallet, bonus: MarketBonus, events: EventBus) -> None:
        self.wallet = wallet
        self.bonus = bonus
        self.events = events

    def multiplier(self) -> float:
        """Return the active market multiplier, or 1 without a bonus."""
        if not self.bonus.is_active():
            return 1.0
        return max(1.0, self.bonus.current_multiplier())

    def reward(self, slot: Slot) -> int:
        """Return the coins a harvest of ``slot`` would pay right now."""
        return _round_half_up(slot.harvest_value * self.multiplier())

    def harvest(self, slot: Slot) -> int | None:
        """Harvest a ready slot.

        Nothing happens unless the slot is READY.  Otherwise the reward
        is computed and credited, and the slot is emptied in the same
        step.  Callers syncing with a store call this only once the
        store has confirmed.

        Returns:
            The reward, or None if the slot was not ready.
        """
        if slot.stage != Stage.READY:
            return None

        multiplier = self.multiplier()
        reward = _round_half_up(slot.harvest_value * multiplier)
        self.wallet.credit(reward)

        index = slot.index
        slot.reset()

        logger.info("Slot %d: harvested for %d coins (x%g)", index, reward, multiplier)
        self.events.emit(HarvestCompleted(slot=index, reward=reward, multiplier=multiplier))
        return reward
