from __future__ import annotations

from typing import List, Optional

import numpy as np

from .heightmap import HeightFieldGenerator
from .points import NO_PARENT, AggregateArena, LatticePoint
from .utils import InvalidArgument

EMPTY = -1
DEFAULT_INCREMENT = 10


def make_grid(size: int) -> np.ndarray:
    """Create an empty owner grid (-1 everywhere)."""
    return np.full((size, size), EMPTY, dtype=np.int64)


class GrowableLattice:
    """
    Square lattice that grows toward `target_size` around a seeded aggregate.

    The owner grid maps each cell to the arena index of the aggregated point
    occupying it (or -1). On expansion the arena is translated uniformly and
    the grid is rebuilt from it, so indices and parent links stay valid.
    """

    def __init__(
        self,
        target_size: int,
        initial_size: int = 2,
        heightmap: Optional[HeightFieldGenerator] = None,
        *,
        update_frequency: int = 1,
        verbose: bool = False,
    ) -> None:
        if target_size <= 0 or initial_size < 0:
            raise InvalidArgument("Size must be a positive integer.")
        if update_frequency <= 0:
            raise InvalidArgument("Height map update frequency must be a positive integer.")

        self.target_size = int(target_size)
        # A seed needs at least one cell; never start above the target
        self.size = min(max(int(initial_size), 2), self.target_size)
        self.center = max(self.size // 2 - 1, 0)
        self.heightmap = heightmap if heightmap is not None else HeightFieldGenerator()
        self.update_frequency = int(update_frequency)
        self.verbose = verbose
        self.expansions = 0

        self.arena = AggregateArena()
        self.grid = make_grid(self.size)
        seed = self.arena.append(self.center, self.center, NO_PARENT)
        self.grid[self.center, self.center] = seed

    # ------------------------------------------------------------------ queries
    def __len__(self) -> int:
        return len(self.arena)

    @property
    def can_grow(self) -> bool:
        return self.size < self.target_size

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    def is_aggregated(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and self.grid[x, y] != EMPTY

    def near_edge(self, x: int, y: int, margin: int = 2) -> bool:
        """True when (x, y) lies within `margin` cells of any border."""
        return (
            x < margin
            or y < margin
            or x >= self.size - margin
            or y >= self.size - margin
        )

    def point_at(self, x: int, y: int) -> LatticePoint:
        if not self.in_bounds(x, y):
            raise IndexError(f"({x}, {y}) is outside a {self.size}x{self.size} lattice")
        idx = int(self.grid[x, y])
        if idx == EMPTY:
            return LatticePoint(x=x, y=y)
        return self.arena.point(idx)

    @property
    def aggregated_points(self) -> List[LatticePoint]:
        """Aggregated points in attachment order (seed first)."""
        return [self.arena.point(i) for i in range(len(self.arena))]

    def aggregate_mask(self) -> np.ndarray:
        return self.grid != EMPTY

    def height_grid(self) -> np.ndarray:
        """Per-point tree heights painted on the current lattice."""
        out = np.zeros((self.size, self.size), dtype=np.int64)
        out[self.arena.xs, self.arena.ys] = self.arena.heights
        return out

    # ------------------------------------------------------------------ mutation
    def attach(self, x: int, y: int, parent: int) -> int:
        """Aggregate the cell (x, y) under `parent` and return its index."""
        if self.grid[x, y] != EMPTY:
            raise ValueError(f"cell ({x}, {y}) is already aggregated")
        idx = self.arena.append(x, y, parent)
        self.grid[x, y] = idx
        return idx

    def expand(self, increment: int = DEFAULT_INCREMENT) -> None:
        """
        Rebuild the lattice `increment` cells larger (capped at the target),
        re-centering the aggregate, then feed the height field.
        """
        if self.verbose:
            print(f"Expanding lattice from {self.size}x{self.size}")

        new_size = min(self.size + increment, self.target_size)
        new_center = new_size // 2
        xs, ys = self.arena.xs, self.arena.ys
        lo = int(min(xs.min(), ys.min()))
        hi = int(max(xs.max(), ys.max()))
        # Re-centre, but never push the aggregate past the new border
        offset = min(max(new_center - self.center, -lo), new_size - 1 - hi)

        grid = make_grid(new_size)
        grid[xs + offset, ys + offset] = np.arange(len(self.arena), dtype=np.int64)
        self.arena.translate(offset)

        self.grid = grid
        self.size = new_size
        self.center = new_center

        if self.expansions % self.update_frequency == 0:
            self.heightmap.update(self.arena, self.size)
        self.expansions += 1

    def update_heightmap(self) -> np.ndarray:
        return self.heightmap.update(self.arena, self.size)


__all__ = ["EMPTY", "GrowableLattice", "make_grid"]
