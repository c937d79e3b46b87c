"""Tests for coralfeast.lifecycle.hazards."""

from coralfeast.lifecycle.hazards import HazardScheduler
from coralfeast.pond.pond import Pond
from coralfeast.pond.slot import HazardType, Stage
from coralfeast.simulation.events import EventBus, HazardTriggered


def _scheduler(ph: int = 90, oxygen: int = 150, temperature: int = 210):
    pond = Pond(rows=2, columns=3)
    events = EventBus()
    received: list[object] = []
    events.subscribe(received.append)
    intervals = {
        HazardType.PH: ph,
        HazardType.OXYGEN: oxygen,
        HazardType.TEMPERATURE: temperature,
    }
    return HazardScheduler(pond, events, intervals), received


class TestHazardInterval:
    """Tests for a single timer firing."""

    def test_raises_on_exposed_slots_only(self, place) -> None:
        scheduler, received = _scheduler()
        pond = scheduler.pond
        place(pond.slot(0), Stage.EGG)
        place(pond.slot(1), Stage.ADULT)
        place(pond.slot(2), Stage.READY)
        dead = place(pond.slot(3), Stage.ADULT)
        dead.stage = Stage.DEAD
        dead.alive = False

        affected = scheduler.on_hazard_interval(HazardType.PH)

        assert affected == [0, 1]
        assert pond.slot(0).hazards.ph
        assert pond.slot(1).hazards.ph
        assert not pond.slot(2).hazards.ph
        assert not pond.slot(3).hazards.ph
        assert not pond.slot(4).hazards.ph
        assert received == [HazardTriggered(hazard=HazardType.PH, slots=(0, 1), day=1)]

    def test_latched_once_per_day(self, place) -> None:
        scheduler, received = _scheduler()
        slot = place(scheduler.pond.slot(0), Stage.ADULT)
        scheduler.on_hazard_interval(HazardType.OXYGEN)
        slot.hazards.oxygen = False

        assert scheduler.on_hazard_interval(HazardType.OXYGEN) == []
        assert not slot.hazards.oxygen
        assert len(received) == 1
        assert scheduler.triggered_today()[HazardType.OXYGEN]

    def test_hazards_are_independent(self, place) -> None:
        scheduler, _ = _scheduler()
        slot = place(scheduler.pond.slot(0), Stage.ADULT)
        scheduler.on_hazard_interval(HazardType.PH)
        scheduler.on_hazard_interval(HazardType.TEMPERATURE)
        assert slot.hazards.ph
        assert slot.hazards.temperature
        assert not slot.hazards.oxygen
        latches = scheduler.triggered_today()
        assert latches[HazardType.PH]
        assert latches[HazardType.TEMPERATURE]
        assert not latches[HazardType.OXYGEN]

    def test_reset_daily_reopens_latch(self, place) -> None:
        scheduler, received = _scheduler()
        slot = place(scheduler.pond.slot(0), Stage.ADULT)
        scheduler.on_hazard_interval(HazardType.PH)
        slot.hazards.ph = False

        scheduler.reset_daily(2)
        assert scheduler.on_hazard_interval(HazardType.PH) == [0]
        assert slot.hazards.ph
        assert received[-1].day == 2


class TestHazardTimers:
    """Tests for timer accrual."""

    def test_fires_on_interval(self, place) -> None:
        scheduler, _ = _scheduler(ph=90)
        slot = place(scheduler.pond.slot(0), Stage.ADULT)
        for _ in range(89):
            scheduler.advance(1.0)
        assert not slot.hazards.ph
        assert scheduler.advance(1.0) == [HazardType.PH]
        assert slot.hazards.ph

    def test_large_step_fires_each_due_timer(self) -> None:
        scheduler, _ = _scheduler(ph=10, oxygen=20, temperature=30)
        fired = scheduler.advance(20.0)
        assert fired.count(HazardType.PH) == 2
        assert fired.count(HazardType.OXYGEN) == 1
        assert HazardType.TEMPERATURE not in fired

    def test_zero_interval_disables_timer(self) -> None:
        scheduler, received = _scheduler(ph=0, oxygen=0, temperature=0)
        for _ in range(1000):
            scheduler.advance(1.0)
        assert received == []
