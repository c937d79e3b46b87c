"""Simulated time for the pond engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone


@dataclass
class SimClock:
    """Counts simulated seconds since ``started_at``.

    Every timestamp stored on a slot is a simulated second from this
    clock.  Remote timestamps are wall-clock; ``to_sim`` maps them onto
    the simulated axis using ``started_at`` as the anchor.

    Attributes:
        now: Simulated seconds elapsed.
        started_at: Wall-clock instant matching ``now == 0``.
    """

    now: float = 0.0
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def advance(self, seconds: float = 1.0) -> float:
        """Move the clock forward and return the new time."""
        self.now += seconds
        return self.now

    def to_sim(self, moment: datetime) -> float:
        """Convert a wall-clock instant into simulated seconds."""
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return (moment - self.started_at).total_seconds()

    def to_wall(self, seconds: float) -> datetime:
        """Convert simulated seconds into a wall-clock instant."""
        return self.started_at + timedelta(seconds=seconds)
