"""Pond: the aggregate owning every slot of one player's pond.

The Pond is the unit reconciled against the remote store.  Slots are
kept in stable row-major index order; the simulation always walks them
``0..N-1`` and no slot ever references another.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

from coralfeast.pond.slot import Slot, Stage


@dataclass
class Pond:
    """A grid of slots belonging to a single player.

    Attributes:
        rows: Number of grid rows.
        columns: Number of grid columns.
        max_health: Health ceiling given to every slot.
        default_harvest_value: Reward used when a creature has no price.
        max_feed_count: Default daily feeding budget per slot.
        pond_id: Identifier of this pond in the remote store, if synced.
        slots: All slots, indexed ``row * columns + column``.
    """

    rows: int = 4
    columns: int = 6
    max_health: float = 100.0
    default_harvest_value: int = 50
    max_feed_count: int = 3
    pond_id: int | str | None = None
    slots: list[Slot] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        """Create ``rows * columns`` empty slots."""
        self.slots = [
            Slot(
                index=i,
                max_health=self.max_health,
                default_harvest_value=self.default_harvest_value,
                default_max_feed_count=self.max_feed_count,
            )
            for i in range(self.rows * self.columns)
        ]

    def __len__(self) -> int:
        return len(self.slots)

    def slot(self, index: int) -> Slot:
        """Return the slot at ``index``.

        Args:
            index: Row-major slot index.

        Raises:
            IndexError: If ``index`` is out of range.
        """
        if not 0 <= index < len(self.slots):
            msg = f"slot {index} out of range for {self.rows}x{self.columns} pond"
            raise IndexError(msg)
        return self.slots[index]

    def occupied(self) -> list[Slot]:
        """Return slots holding any occupant, living or dead."""
        return [s for s in self.slots if s.has_creature]

    def exposed(self) -> list[Slot]:
        """Return slots whose occupant can receive environmental hazards."""
        return [s for s in self.slots if s.has_creature and s.is_growing]

    def reset(self) -> None:
        """Empty every slot and forget the remote identity."""
        self.pond_id = None
        for slot in self.slots:
            slot.reset()
            slot.remote_id = None

    def health_grid(self) -> NDArray[np.float64]:
        """Return slot health as a ``(rows, columns)`` array.

        Empty slots report NaN so collaborators can tell them apart from
        a dying occupant.
        """
        values = np.array(
            [s.health if s.has_creature else np.nan for s in self.slots],
            dtype=np.float64,
        )
        return values.reshape(self.rows, self.columns)

    def stage_grid(self) -> NDArray[np.int_]:
        """Return each slot's stage rank as a ``(rows, columns)`` array."""
        ranks = np.array([s.stage.rank for s in self.slots], dtype=np.int_)
        return ranks.reshape(self.rows, self.columns)

    def stage_counts(self) -> dict[Stage, int]:
        """Return how many slots are in each stage."""
        ranks = self.stage_grid().ravel()
        return {stage: int(np.count_nonzero(ranks == stage.rank)) for stage in Stage}
