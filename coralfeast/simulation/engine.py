"""PondSimulationEngine owns the pond, its timers and its subsystems.

``tick()`` advances the pond by one simulated second in a fixed order:

1. Advance the clock and count the market bonus down.
2. Fire due hazard timers (pH, oxygen, temperature).
3. Run the day/night cycle tick, which updates every slot in index
   order and then switches phase when the current one runs out.

``start()`` drives ``tick()`` from an asyncio task once per
``tick_seconds`` and polls the market bonus; ``stop()`` cancels every
timer and in-flight remote update as a group.  Tests call ``tick()`` or
``run()`` directly and never depend on wall-clock time.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from coralfeast.economy.market import MarketBonus
from coralfeast.economy.wallet import LocalWallet, Wallet
from coralfeast.gateway.actions import SlotActionGateway
from coralfeast.gateway.snapshots import apply_slot_snapshot
from coralfeast.gateway.store import PondStoreError
from coralfeast.lifecycle.cycle import DayNightCycle
from coralfeast.lifecycle.growth import GrowthSimulator
from coralfeast.lifecycle.harvest import HarvestCalculator
from coralfeast.lifecycle.hazards import HazardScheduler
from coralfeast.lifecycle.plants import PlantEffects
from coralfeast.pond.pond import Pond
from coralfeast.simulation.clock import SimClock
from coralfeast.simulation.events import EventBus

if TYPE_CHECKING:
    from coralfeast.gateway.snapshots import PondSnapshot, SlotSnapshot
    from coralfeast.gateway.store import PondStateStore
    from coralfeast.simulation.config import PondConfig

logger = logging.getLogger(__name__)


@dataclass
class PondSimulationEngine:
    """Drives one player's pond forward second by second.

    Attributes:
        config: Loaded pond configuration.
        store: Remote pond store, or None to play offline.
        wallet: Receives harvest rewards.
        market_bonus: Time-limited harvest multiplier.
        player_id: Player whose pond is synced with ``store``.
        pond: The slot grid.
        clock: Simulated time.
        events: Lifecycle signal bus.
        plants: Plant effect subsystem.
        growth: Growth and hunger simulator.
        hazards: Hazard timers.
        cycle: Day/night controller.
        harvester: Harvest reward calculator.
        gateway: Caretaker intent gateway.
    """

    config: PondConfig
    store: PondStateStore | None = None
    wallet: Wallet = field(default_factory=LocalWallet)
    market_bonus: MarketBonus = field(default_factory=MarketBonus)
    player_id: str | None = None
    pond: Pond = field(init=False)
    clock: SimClock = field(init=False)
    events: EventBus = field(init=False)
    plants: PlantEffects = field(init=False)
    growth: GrowthSimulator = field(init=False)
    hazards: HazardScheduler = field(init=False)
    cycle: DayNightCycle = field(init=False)
    harvester: HarvestCalculator = field(init=False)
    gateway: SlotActionGateway = field(init=False)
    _tasks: list[asyncio.Task[Any]] = field(init=False, default_factory=list, repr=False)
    _running: bool = field(init=False, default=False, repr=False)

    def __post_init__(self) -> None:
        """Build the pond and wire every subsystem to it."""
        cfg = self.config
        self.pond = Pond(
            rows=cfg.rows,
            columns=cfg.columns,
            max_health=cfg.max_health,
            default_harvest_value=cfg.default_harvest_value,
            max_feed_count=cfg.max_feed_count,
        )
        self.clock = SimClock()
        self.events = EventBus()
        self.plants = PlantEffects(cfg.plant_effect_max_seconds, self.events)
        self.growth = GrowthSimulator(cfg, self.plants, self.events)
        self.hazards = HazardScheduler(self.pond, self.events, cfg.hazard_intervals())
        self.cycle = DayNightCycle(
            self.pond,
            self.growth,
            self.hazards,
            self.events,
            day_seconds=cfg.day_seconds,
            night_seconds=cfg.night_seconds,
        )
        self.harvester = HarvestCalculator(self.wallet, self.market_bonus, self.events)
        self.gateway = SlotActionGateway(self, self.store, self.player_id)
        if self.store is not None:
            self.events.subscribe(self.gateway.forward)

    @property
    def running(self) -> bool:
        """Return True between ``start()`` and ``stop()``."""
        return self._running

    def tick(self) -> None:
        """Advance the pond by one simulated second."""
        seconds = 1.0
        now = self.clock.advance(seconds)
        self.market_bonus.tick(seconds)
        self.hazards.advance(seconds)
        self.cycle.tick(now, seconds)

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of simulated seconds to advance.
        """
        for _ in range(ticks):
            self.tick()

    def reconcile(self, snapshot: PondSnapshot | None) -> None:
        """Replace local pond state with the remote snapshot.

        The remote store always wins.  ``None`` means the player has no
        pond yet: every slot is emptied and the day counter restarts.

        Args:
            snapshot: Authoritative pond state, or None.
        """
        if snapshot is None:
            self.pond.reset()
            self.cycle.restore(current_day=1)
            logger.info("No remote pond; starting empty on day 1")
            return

        self.pond.pond_id = snapshot.pond_id
        for slot, snap in zip(self.pond.slots, snapshot.by_index(len(self.pond))):
            if snap is None:
                slot.reset()
                slot.remote_id = None
            else:
                apply_slot_snapshot(slot, snap, clock=self.clock, plants=self.plants)
        if snapshot.current_day is not None:
            self.cycle.restore(current_day=snapshot.current_day)
        logger.info("Pond %s reconciled from store", snapshot.pond_id)

    def apply_slot_snapshot(self, index: int, snapshot: SlotSnapshot) -> None:
        """Overwrite a single slot with the state returned by the store."""
        apply_slot_snapshot(
            self.pond.slot(index),
            snapshot,
            clock=self.clock,
            plants=self.plants,
        )

    async def load(self) -> bool:
        """Fetch the player's pond from the store, if one is configured."""
        return await self.gateway.resync()

    async def start(self) -> None:
        """Start the live tick loop (and bonus poll when a store exists)."""
        if self._running:
            return
        self._running = True
        self._tasks.append(asyncio.create_task(self._tick_loop()))
        if self.store is not None:
            self._tasks.append(asyncio.create_task(self._bonus_poll_loop()))
        logger.info("Pond engine started")

    async def stop(self) -> None:
        """Cancel every timer and in-flight remote update."""
        self._running = False
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await self.gateway.cancel_pending()
        logger.info("Pond engine stopped")

    async def _tick_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self.config.tick_seconds)
            if not self._running:
                break
            self.tick()

    async def _bonus_poll_loop(self) -> None:
        while self._running:
            await self.poll_market_bonus()
            await asyncio.sleep(self.config.bonus_poll_seconds)

    async def poll_market_bonus(self) -> None:
        """Refresh the market bonus from the store."""
        if self.store is None:
            return
        try:
            bonus = await self.store.fetch_market_bonus()
        except PondStoreError as exc:
            logger.warning("Market bonus poll failed: %s", exc)
            return
        if bonus is not None:
            self.market_bonus.update(*bonus)
