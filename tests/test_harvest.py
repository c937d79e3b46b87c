"""Tests for harvest rewards, the wallet and the market bonus."""

import pytest

from coralfeast.economy.market import MarketBonus
from coralfeast.economy.wallet import InsufficientFunds, LocalWallet
from coralfeast.lifecycle.harvest import HarvestCalculator
from coralfeast.pond.slot import Slot, Stage
from coralfeast.simulation.events import EventBus, HarvestCompleted


def _calculator(multiplier: float = 1.0, remaining: float = 0.0):
    wallet = LocalWallet()
    events = EventBus()
    received: list[object] = []
    events.subscribe(received.append)
    bonus = MarketBonus(multiplier=multiplier, remaining=remaining)
    return HarvestCalculator(wallet, bonus, events), wallet, received


class TestHarvest:
    """Tests for HarvestCalculator."""

    def test_not_ready_is_noop(self, place) -> None:
        calc, wallet, received = _calculator()
        slot = place(Slot(index=0), Stage.ADULT)
        assert calc.harvest(slot) is None
        assert slot.stage == Stage.ADULT
        assert wallet.balance == 0
        assert received == []

    def test_bonus_doubles_reward_and_slot_resets(self, place) -> None:
        calc, wallet, received = _calculator(multiplier=2.0, remaining=10.0)
        slot = place(Slot(index=4), Stage.READY, value=50)
        slot.health = 40.0
        slot.hazards.ph = True

        assert calc.harvest(slot) == 100

        assert wallet.balance == 100
        assert slot.stage == Stage.EMPTY
        assert not slot.has_creature
        assert slot.health == slot.max_health
        assert not slot.hazards.any()
        assert slot.plant_effect is None
        assert received == [HarvestCompleted(slot=4, reward=100, multiplier=2.0)]

    def test_expired_bonus_pays_base_value(self, place) -> None:
        calc, wallet, _ = _calculator(multiplier=3.0, remaining=0.0)
        slot = place(Slot(index=0), Stage.READY, value=50)
        assert calc.harvest(slot) == 50
        assert wallet.balance == 50

    def test_reward_rounds_half_up(self, place) -> None:
        calc, _, _ = _calculator(multiplier=1.5, remaining=5.0)
        slot = place(Slot(index=0), Stage.READY, value=25)
        assert calc.reward(slot) == 38

    def test_reward_does_not_touch_slot(self, place) -> None:
        calc, wallet, received = _calculator()
        slot = place(Slot(index=0), Stage.READY, value=50)
        assert calc.reward(slot) == 50
        assert wallet.balance == 0
        assert slot.stage == Stage.READY
        assert received == []

    def test_second_harvest_is_noop(self, place) -> None:
        calc, wallet, _ = _calculator()
        slot = place(Slot(index=0), Stage.READY)
        calc.harvest(slot)
        assert calc.harvest(slot) is None
        assert wallet.balance == 50


class TestMarketBonus:
    """Tests for MarketBonus."""

    def test_counts_down_and_expires(self) -> None:
        bonus = MarketBonus(multiplier=2.0, remaining=2.0)
        assert bonus.current_multiplier() == 2.0
        bonus.tick(1.0)
        assert bonus.is_active()
        bonus.tick(5.0)
        assert bonus.remaining == 0.0
        assert bonus.current_multiplier() == 1.0

    def test_update_clamps(self) -> None:
        bonus = MarketBonus()
        bonus.update(0.5, -3.0)
        assert bonus.multiplier == 1.0
        assert bonus.remaining == 0.0
        assert not bonus.is_active()


class TestLocalWallet:
    """Tests for LocalWallet."""

    def test_credit_and_debit(self) -> None:
        wallet = LocalWallet(balance=10)
        assert wallet.credit(5, "harvest") == 15
        assert wallet.debit(15, "seed") == 0
        assert wallet.history == [(5, "harvest"), (-15, "seed")]

    def test_overdraw_raises(self) -> None:
        wallet = LocalWallet(balance=3)
        with pytest.raises(InsufficientFunds):
            wallet.debit(4)
        assert wallet.balance == 3

    def test_negative_amounts_rejected(self) -> None:
        wallet = LocalWallet()
        with pytest.raises(ValueError):
            wallet.credit(-1)
        with pytest.raises(ValueError):
            wallet.debit(-1)
