"""Time-limited harvest multiplier offered by the market.

The bonus is owned by an external economy service.  The engine only
reads it, counts its remaining time down between polls, and replaces
it with whatever the latest poll reports.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class MarketBonus:
    """Current market bonus state.

    Attributes:
        multiplier: Harvest multiplier while the bonus is active.
        remaining: Seconds until the bonus ends.
    """

    multiplier: float = 1.0
    remaining: float = 0.0

    def is_active(self) -> bool:
        """Return True while a bonus above 1x has time left."""
        return self.remaining > 0 and self.multiplier > 1

    def current_multiplier(self) -> float:
        """Return the harvest multiplier to apply right now (>= 1)."""
        return self.multiplier if self.is_active() else 1.0

    def tick(self, seconds: float = 1.0) -> None:
        """Count the remaining bonus time down."""
        if self.remaining > 0:
            self.remaining = max(0.0, self.remaining - seconds)

    def update(self, multiplier: float, remaining: float) -> None:
        """Replace the bonus with a freshly polled state."""
        self.multiplier = max(1.0, multiplier)
        self.remaining = max(0.0, remaining)
