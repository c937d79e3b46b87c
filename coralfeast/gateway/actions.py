"""Slot action gateway. Caretaker intents in, slot mutations out.

Every intent validates its preconditions first and, on failure, returns
a rejection without touching the pond.  When a store is configured and
the slot has no remote identity yet, the pond is fetched once before
validation.  Accepted intents mutate the local pond immediately (the
simulation stays authoritative locally) and then push the action to the
store.  A failed push never rolls back local state; instead the whole
pond is re-fetched and reconciled, remote winning.  A fetch that finds
no remote pond leaves the local pond alone.

Harvests are the exception: with a store, the slot is only paid out and
emptied once the store confirms.

The gateway is also the only path by which the simulation's own
lifecycle events (raised hazards, deaths, stage advances) reach the
store; those pushes are fire-and-forget.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from dataclasses import dataclass, replace
from enum import Enum
from typing import TYPE_CHECKING, Any

from coralfeast.gateway.store import PondStoreError, SlotAction
from coralfeast.lifecycle.plants import PlantRejection
from coralfeast.pond.slot import HazardType, Stage
from coralfeast.simulation.events import CreatureDied, HazardTriggered, StageChanged

if TYPE_CHECKING:
    from coralfeast.gateway.snapshots import SlotSnapshot
    from coralfeast.gateway.store import PondStateStore
    from coralfeast.pond.catalog import CreatureSpec, PlantEffectDescriptor, SupplementSpec
    from coralfeast.pond.slot import Slot
    from coralfeast.simulation.engine import PondSimulationEngine
    from coralfeast.simulation.events import Event

logger = logging.getLogger(__name__)

RemoteCall = Callable[[Any, Any], Awaitable["SlotSnapshot | None"]]


class Rejection(Enum):
    """Why an intent was refused."""

    MISSING_SLOT = "missing-slot"
    OCCUPIED = "occupied"
    NO_CREATURE = "no-creature"
    EGG = "egg"
    DEAD = "dead"
    NOT_HUNGRY = "not-hungry"
    FEED_LIMIT = "limit"
    NO_HAZARD = "no-hazard"
    NOT_READY = "not-ready"
    NOT_DEAD = "not-dead"
    REMOTE_FAILED = "remote-failed"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of a caretaker intent.

    Attributes:
        ok: True if the intent was applied locally.
        reason: Rejection reason when ``ok`` is False.
        message: Caretaker-facing explanation.
        reward: Coins credited by a harvest.
        synced: True if the remote store confirmed the action.
    """

    ok: bool
    reason: Rejection | None = None
    message: str = ""
    reward: int | None = None
    synced: bool = False


def _reject(reason: Rejection, message: str) -> ActionResult:
    logger.info("Action rejected (%s): %s", reason.value, message)
    return ActionResult(ok=False, reason=reason, message=message)


class SlotActionGateway:
    """Translates caretaker intents into slot mutations and remote calls.

    Attributes:
        engine: Engine owning the pond and its subsystems.
        store: Remote pond store, or None for local-only play.
        player_id: Player whose pond is synced.
        online: False after a remote failure until a resync succeeds.
    """

    def __init__(
        self,
        engine: PondSimulationEngine,
        store: PondStateStore | None = None,
        player_id: str | None = None,
    ) -> None:
        self.engine = engine
        self.store = store
        self.player_id = player_id
        self.online = store is not None
        self._pending: set[asyncio.Task[Any]] = set()

    # -- Validation ----------------------------------------------------------

    async def _slot(self, index: int) -> Slot | None:
        try:
            slot = self.engine.pond.slot(index)
        except IndexError:
            return None
        if self.store is not None and self._remote_key(index) is None:
            await self.resync(adopt_empty=False)
        return slot

    @staticmethod
    def _living_hatched(slot: Slot, action: str) -> ActionResult | None:
        if not slot.has_creature:
            return _reject(Rejection.NO_CREATURE, f"There is no creature here to {action}.")
        if not slot.alive or slot.stage == Stage.DEAD:
            return _reject(Rejection.DEAD, f"A dead creature cannot {action}.")
        if slot.stage == Stage.EGG:
            return _reject(Rejection.EGG, "Wait for the egg to hatch first.")
        return None

    # -- Intents -------------------------------------------------------------

    async def stock(self, index: int, creature: CreatureSpec) -> ActionResult:
        """Place a new egg of ``creature`` into an empty slot."""
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        if slot.has_creature or slot.stage != Stage.EMPTY:
            return _reject(Rejection.OCCUPIED, "This slot is already occupied.")

        config = self.engine.config
        slot.reset()
        slot.stage = Stage.EGG
        slot.alive = True
        slot.has_creature = True
        slot.creature = creature.slug
        slot.egg_stage_duration = creature.egg_stage_seconds or config.egg_stage_seconds
        slot.adult_stage_duration = (
            creature.adult_stage_seconds or config.adult_stage_seconds
        )
        slot.harvest_value = creature.harvest_value or config.default_harvest_value
        logger.info("Slot %d: stocked %s egg", index, creature.slug)

        return await self._push(
            index,
            ActionResult(ok=True),
            self._action_call(SlotAction.STOCK, {"creature": creature.slug}),
        )

    async def feed(self, index: int) -> ActionResult:
        """Feed a hungry creature, restoring some health."""
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        rejected = self._living_hatched(slot, "eat")
        if rejected is not None:
            return rejected
        if not slot.hungry:
            return _reject(Rejection.NOT_HUNGRY, "This creature is not hungry right now.")
        if slot.feed_count >= slot.max_feed_count:
            return _reject(Rejection.FEED_LIMIT, "This creature has eaten enough today.")

        now = self.engine.clock.now
        slot.health = min(slot.max_health, slot.health + self.engine.config.feed_heal)
        slot.last_fed_at = now
        slot.hungry = False
        slot.hungry_since = None
        slot.last_hunger_damage_at = None
        slot.feed_count = min(slot.max_feed_count, slot.feed_count + 1)
        logger.info("Slot %d: fed (%d/%d)", index, slot.feed_count, slot.max_feed_count)

        return await self._push(index, ActionResult(ok=True), self._action_call(SlotAction.FEED))

    async def apply_plant(self, index: int, plant: PlantEffectDescriptor) -> ActionResult:
        """Attach a plant effect to a living, hatched creature."""
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        try:
            self.engine.plants.attach(slot, plant, self.engine.clock.now)
        except PlantRejection as exc:
            return _reject(Rejection(exc.reason), exc.message)

        return await self._push(
            index,
            ActionResult(ok=True),
            self._action_call(SlotAction.PLANT, {"plant": plant.slug}),
        )

    async def apply_supplement(self, index: int, supplement: SupplementSpec) -> ActionResult:
        """Apply a supplement's boosts to a living, hatched creature."""
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        rejected = self._living_hatched(slot, "take a supplement")
        if rejected is not None:
            return rejected

        config = self.engine.config
        if supplement.health_boost > 0:
            slot.health = min(slot.max_health, slot.health + supplement.health_boost)
        if supplement.hunger_reset:
            slot.feed_count = 0
            slot.hungry = False
            slot.hungry_since = None
            slot.last_hunger_damage_at = None
        if supplement.feeding_limit_bonus > 0:
            slot.max_feed_count = min(
                config.feed_limit_cap,
                slot.max_feed_count + supplement.feeding_limit_bonus,
            )
        slot.last_fed_at = self.engine.clock.now
        logger.info("Slot %d: supplement %s applied", index, supplement.slug)

        return await self._push(
            index,
            ActionResult(ok=True),
            self._action_call(SlotAction.SUPPLEMENT, {"supplement": supplement.slug}),
        )

    async def resolve_hazard(self, index: int, hazard: HazardType) -> ActionResult:
        """Clear one hazard from a slot (cleaning clears water quality)."""
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        if not slot.hazards.get(hazard):
            return _reject(Rejection.NO_HAZARD, f"There is no {hazard.value} problem here.")

        slot.hazards.set(hazard, False)
        self.engine.cycle.record_repair(hazard)
        logger.info("Slot %d: %s problem solved", index, hazard.value)

        async def call(pond_id: Any, slot_id: Any) -> SlotSnapshot | None:
            assert self.store is not None
            return await self.store.resolve_issue(pond_id, slot_id, hazard)

        return await self._push(index, ActionResult(ok=True), call)

    async def harvest(self, index: int) -> ActionResult:
        """Harvest a ready creature.

        Without a store, or for a slot the store does not know, the
        reward is credited at once.  Otherwise the slot stays READY until
        the store confirms; a refusal triggers a resync, nothing is
        credited and the creature is left for the store's state to decide.
        """
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        if slot.stage != Stage.READY:
            return _reject(Rejection.NOT_READY, "This creature is not ready to harvest.")

        harvester = self.engine.harvester
        key = self._remote_key(index)
        if self.store is None or key is None:
            if self.store is not None:
                logger.warning("Slot %d has no remote id; harvest kept local", index)
            return ActionResult(ok=True, reward=harvester.harvest(slot))

        try:
            snapshot = await self._action_call(SlotAction.HARVEST)(*key)
        except PondStoreError as exc:
            logger.warning("Slot %d: harvest refused by store: %s", index, exc)
            await self.resync(adopt_empty=False)
            return ActionResult(
                ok=False,
                reason=Rejection.REMOTE_FAILED,
                message="The harvest could not be confirmed.",
            )
        self.online = True

        reward = harvester.harvest(slot)
        if snapshot is not None:
            self.engine.apply_slot_snapshot(index, snapshot)
        return ActionResult(ok=True, reward=reward, synced=True)

    async def remove_dead(self, index: int) -> ActionResult:
        """Remove a dead occupant, returning the slot to empty."""
        slot = await self._slot(index)
        if slot is None:
            return _reject(Rejection.MISSING_SLOT, f"Slot {index} does not exist.")
        if slot.stage != Stage.DEAD:
            return _reject(Rejection.NOT_DEAD, "There is no dead creature to remove.")

        slot.reset()
        logger.info("Slot %d: dead creature removed", index)
        return await self._push(
            index,
            ActionResult(ok=True),
            self._action_call(SlotAction.ADVANCE, {"target_status": Stage.EMPTY.value}),
        )

    # -- Remote reconciliation -------------------------------------------------

    def _action_call(
        self,
        action: SlotAction,
        payload: dict[str, Any] | None = None,
    ) -> RemoteCall:
        async def call(pond_id: Any, slot_id: Any) -> SlotSnapshot | None:
            assert self.store is not None
            return await self.store.post_slot_action(pond_id, slot_id, action, payload)

        return call

    def _remote_key(self, index: int) -> tuple[Any, Any] | None:
        """Return ``(pond_id, slot_id)`` for a slot, or None if unknown."""
        pond = self.engine.pond
        slot = pond.slot(index)
        if pond.pond_id is None or slot.remote_id is None:
            return None
        return pond.pond_id, slot.remote_id

    async def _push(self, index: int, result: ActionResult, call: RemoteCall) -> ActionResult:
        """Send an accepted intent to the store, resyncing on failure.

        The slot's remote identity was fetched (if needed) before the
        intent mutated anything; a slot still unknown to the store keeps
        the action local.
        """
        if self.store is None:
            return result
        key = self._remote_key(index)
        if key is None:
            logger.warning("Slot %d has no remote id; action kept local", index)
            return result
        try:
            snapshot = await call(*key)
        except PondStoreError as exc:
            logger.warning("Slot %d: remote action failed: %s", index, exc)
            await self.resync(adopt_empty=False)
            return result
        self.online = True
        if snapshot is not None:
            self.engine.apply_slot_snapshot(index, snapshot)
        return replace(result, synced=True)

    async def resync(self, *, adopt_empty: bool = True) -> bool:
        """Replace the whole pond with the store's state.

        Args:
            adopt_empty: Whether a store with no pond for the player
                empties the local pond.  Fetches made on behalf of an
                intent pass False so a live pond is never wiped.

        Returns:
            True if the fetch succeeded; on failure the engine keeps
            simulating locally.
        """
        if self.store is None or self.player_id is None:
            return False
        try:
            snapshot = await self.store.fetch_pond(self.player_id)
        except PondStoreError as exc:
            self.online = False
            logger.warning("Resync failed, continuing offline: %s", exc)
            return False
        self.online = True
        if snapshot is None and not adopt_empty:
            logger.info("Store has no pond for %s; keeping local state", self.player_id)
            return True
        self.engine.reconcile(snapshot)
        return True

    # -- Lifecycle forwarding ---------------------------------------------------

    def forward(self, event: Event) -> None:
        """Forward simulation events to the store without waiting."""
        if self.store is None:
            return
        if isinstance(event, HazardTriggered):
            for index in event.slots:
                self._spawn(self._forward_issue(index, event.hazard))
        elif isinstance(event, CreatureDied):
            self._spawn(self._forward_action(event.slot, SlotAction.MARK_DEAD, None))
        elif isinstance(event, StageChanged):
            self._spawn(
                self._forward_action(
                    event.slot,
                    SlotAction.ADVANCE,
                    {"target_status": event.stage.value},
                ),
            )

    async def _forward_issue(self, index: int, hazard: HazardType) -> None:
        async def call(pond_id: Any, slot_id: Any) -> SlotSnapshot | None:
            assert self.store is not None
            return await self.store.raise_issue(pond_id, slot_id, hazard)

        await self._forward(index, call)

    async def _forward_action(
        self,
        index: int,
        action: SlotAction,
        payload: dict[str, Any] | None,
    ) -> None:
        await self._forward(index, self._action_call(action, payload))

    async def _forward(self, index: int, call: RemoteCall) -> None:
        key = self._remote_key(index)
        if key is None:
            return
        try:
            snapshot = await call(*key)
        except PondStoreError as exc:
            self.online = False
            logger.warning("Slot %d: could not forward to store: %s", index, exc)
            return
        if snapshot is not None:
            self.engine.apply_slot_snapshot(index, snapshot)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.debug("No running event loop; remote update skipped")
            return
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @property
    def pending(self) -> int:
        """Number of forwarded updates still in flight."""
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for every forwarded update to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def cancel_pending(self) -> None:
        """Cancel every forwarded update still in flight."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._pending.clear()
