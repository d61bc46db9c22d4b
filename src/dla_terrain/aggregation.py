"""
Walk-and-attach engine for the growable lattice.

A walker starts on a random lattice cell and performs a 4-neighbour random
walk, clamped to the lattice, until it stands on an empty cell touching the
aggregate. Left/right/up/down map to x-1/x+1/y-1/y+1. With a small
probability the drawn direction is replaced by one pointing back toward the
lattice centre, which keeps far-out walkers from drifting along the border.

The walk loop is compiled with `@numba.njit` and draws from an injected
`numpy.random.Generator`, so seeded runs are reproducible.
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numba import njit

from .lattice import DEFAULT_INCREMENT, EMPTY, GrowableLattice
from .utils import InvalidArgument, make_rng

###############################################################################
# Constants
###############################################################################

LEFT = 0
RIGHT = 1
UP = 2
DOWN = 3

BIAS_PROBABILITY = 0.03
EDGE_MARGIN = 2

SPAWN_UNIFORM = "uniform"
SPAWN_EDGE = "edge"
SPAWN_MODES = (SPAWN_UNIFORM, SPAWN_EDGE)

###############################################################################
# Numba kernels
###############################################################################


@njit(cache=True)
def find_parent(owner: np.ndarray, x: int, y: int) -> int:
    """
    Contact test. Returns the index of the first aggregated 4-neighbour
    (scan order left, right, up, down) of an empty cell, else -1.
    """
    n = owner.shape[0]
    if owner[x, y] != EMPTY:
        return EMPTY
    if x > 0 and owner[x - 1, y] != EMPTY:
        return owner[x - 1, y]
    if x < n - 1 and owner[x + 1, y] != EMPTY:
        return owner[x + 1, y]
    if y > 0 and owner[x, y - 1] != EMPTY:
        return owner[x, y - 1]
    if y < n - 1 and owner[x, y + 1] != EMPTY:
        return owner[x, y + 1]
    return EMPTY


@njit(cache=True)
def centering_direction(direction: int, x: int, y: int, center: int, axis_draw: float) -> int:
    """
    Flip a step that leads away from the centre.

    Only the axis of the drawn direction can be flipped; `axis_draw < 0.5`
    picks the x-axis alternative, otherwise the y-axis one. When the chosen
    axis has no alternative the drawn direction is kept.
    """
    x_alt = -1
    y_alt = -1
    if x < center and direction == LEFT:
        x_alt = RIGHT
    elif x > center and direction == RIGHT:
        x_alt = LEFT
    if y < center and direction == UP:
        y_alt = DOWN
    elif y > center and direction == DOWN:
        y_alt = UP

    if axis_draw < 0.5:
        if x_alt != -1:
            return x_alt
    elif y_alt != -1:
        return y_alt
    return direction


@njit
def _walk_to_contact(
    owner: np.ndarray,
    center: int,
    x: int,
    y: int,
    bias_probability: float,
    rng: np.random.Generator,
) -> Tuple[int, int, int]:
    """Walk from (x, y) until contact; returns the cell and its parent index."""
    n = owner.shape[0]
    while True:
        parent = find_parent(owner, x, y)
        if parent != EMPTY:
            return x, y, parent

        direction = rng.integers(0, 4)
        if rng.random() < bias_probability:
            direction = centering_direction(direction, x, y, center, rng.random())

        # Moves past the border are dropped for this step
        if direction == LEFT:
            if x > 0:
                x -= 1
        elif direction == RIGHT:
            if x < n - 1:
                x += 1
        elif direction == UP:
            if y > 0:
                y -= 1
        else:
            if y < n - 1:
                y += 1


###############################################################################
# Engine
###############################################################################


class AggregationEngine:
    """Drives particles onto a `GrowableLattice`, one attachment per call."""

    def __init__(
        self,
        lattice: GrowableLattice,
        rng: Optional[np.random.Generator] = None,
        *,
        bias_probability: float = BIAS_PROBABILITY,
        increment: int = DEFAULT_INCREMENT,
        edge_margin: int = EDGE_MARGIN,
        spawn: str = SPAWN_UNIFORM,
    ) -> None:
        if not 0.0 <= bias_probability <= 1.0:
            raise InvalidArgument("bias_probability must lie in [0, 1]")
        if increment <= 0:
            raise InvalidArgument("Expansion increment must be a positive integer.")
        if edge_margin < 0:
            raise InvalidArgument("Edge margin must be non-negative.")
        if spawn not in SPAWN_MODES:
            raise InvalidArgument(f"Unknown spawn mode: {spawn!r} (expected one of {SPAWN_MODES})")

        self.lattice = lattice
        self.rng = rng if rng is not None else make_rng()
        self.bias_probability = float(bias_probability)
        self.increment = int(increment)
        self.edge_margin = int(edge_margin)
        self.spawn = spawn

    def spawn_position(self) -> Tuple[int, int]:
        size = self.lattice.size
        if self.spawn == SPAWN_EDGE:
            edge = int(self.rng.integers(0, 4))
            along = int(self.rng.integers(0, size))
            if edge == 0:
                return 0, along
            if edge == 1:
                return size - 1, along
            if edge == 2:
                return along, 0
            return along, size - 1
        x = int(self.rng.integers(0, size))
        y = int(self.rng.integers(0, size))
        return x, y

    def attach_one_particle(self) -> int:
        """Release one walker, attach it, and grow the lattice if it landed near the border."""
        lat = self.lattice
        # A walk only ends on an empty cell
        if len(lat) >= lat.size * lat.size:
            if not lat.can_grow:
                raise InvalidArgument(
                    f"Lattice is full: {len(lat)} points on {lat.size}x{lat.size}"
                )
            lat.expand(self.increment)

        x0, y0 = self.spawn_position()
        x, y, parent = _walk_to_contact(
            self.lattice.grid,
            self.lattice.center,
            x0,
            y0,
            self.bias_probability,
            self.rng,
        )
        x, y = int(x), int(y)
        idx = self.lattice.attach(x, y, int(parent))
        if self.lattice.can_grow and self.lattice.near_edge(x, y, self.edge_margin):
            self.lattice.expand(self.increment)
        return idx


__all__ = [
    "AggregationEngine",
    "BIAS_PROBABILITY",
    "DOWN",
    "LEFT",
    "RIGHT",
    "SPAWN_MODES",
    "UP",
    "centering_direction",
    "find_parent",
]
