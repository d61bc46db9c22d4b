"""
Lattice point records and the arena that owns aggregated point identity.

Aggregated points live in flat numpy arrays indexed by attachment order, so a
point's identity is its arena index. Parent links are indices into the same
arena; lattice rebuilds only shift coordinates and never touch the links.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

NO_PARENT = -1


@dataclass
class LatticePoint:
    """Snapshot of a single lattice cell."""

    x: int
    y: int
    height: int = 0
    is_aggregated: bool = False
    parent: Optional[int] = None
    index: Optional[int] = None


class AggregateArena:
    """Contiguous storage for aggregated points (coordinates, heights, parents)."""

    def __init__(self, capacity: int = 64) -> None:
        capacity = max(1, int(capacity))
        self._xs = np.zeros(capacity, dtype=np.int64)
        self._ys = np.zeros(capacity, dtype=np.int64)
        self._heights = np.zeros(capacity, dtype=np.int64)
        self._parents = np.full(capacity, NO_PARENT, dtype=np.int64)
        self.count = 0

    def __len__(self) -> int:
        return self.count

    def _grow(self) -> None:
        capacity = 2 * self._xs.shape[0]
        for name, fill in (("_xs", 0), ("_ys", 0), ("_heights", 0), ("_parents", NO_PARENT)):
            old = getattr(self, name)
            new = np.full(capacity, fill, dtype=np.int64)
            new[: old.shape[0]] = old
            setattr(self, name, new)

    def append(self, x: int, y: int, parent: int = NO_PARENT) -> int:
        """Store a newly attached point and return its index."""
        if parent != NO_PARENT and not 0 <= parent < self.count:
            raise IndexError(f"parent index {parent} is not in the aggregate")
        if self.count == self._xs.shape[0]:
            self._grow()
        idx = self.count
        self._xs[idx] = x
        self._ys[idx] = y
        self._heights[idx] = 0
        self._parents[idx] = parent
        self.count += 1
        return idx

    def translate(self, offset: int) -> None:
        """Shift every point by the same offset on both axes."""
        self._xs[: self.count] += offset
        self._ys[: self.count] += offset

    # Views over the live part of the arena. Writes through them are visible.
    @property
    def xs(self) -> np.ndarray:
        return self._xs[: self.count]

    @property
    def ys(self) -> np.ndarray:
        return self._ys[: self.count]

    @property
    def heights(self) -> np.ndarray:
        return self._heights[: self.count]

    @property
    def parents(self) -> np.ndarray:
        return self._parents[: self.count]

    def point(self, index: int) -> LatticePoint:
        if not 0 <= index < self.count:
            raise IndexError(f"point index {index} out of range")
        parent = int(self._parents[index])
        return LatticePoint(
            x=int(self._xs[index]),
            y=int(self._ys[index]),
            height=int(self._heights[index]),
            is_aggregated=True,
            parent=None if parent == NO_PARENT else parent,
            index=index,
        )
