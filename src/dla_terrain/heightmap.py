"""
Height field generation from a DLA aggregate.

The generator keeps a persistent integer elevation matrix. Every update:

1.  **Tree heights:** relaxes per-point depth-to-leaf heights up the parent links.
2.  **Point matrix:** rasterizes those heights at the requested size.
3.  **Resample:** bilinearly rescales the previous field to the requested size.
4.  **Merge:** adds the point matrix on top of the resampled field.
5.  **Smooth:** runs the fixed 5x5 kernel over the interior.

The field therefore accumulates relief across lattice sizes instead of being
rebuilt from scratch. Inner loops are compiled with `@numba.njit`.
"""

from __future__ import annotations

import numpy as np
from numba import njit

from .points import AggregateArena
from .utils import InvalidArgument

###############################################################################
# Constants
###############################################################################

KERNEL = np.array(
    [
        [3, 13, 22, 13, 3],
        [13, 60, 98, 60, 13],
        [22, 98, 162, 98, 22],
        [13, 60, 98, 60, 13],
        [3, 13, 22, 13, 3],
    ],
    dtype=np.int64,
)
KERNEL_SUM = int(KERNEL.sum())  # 998; a uniform field stays uniform

RENDER_PASSES = 10

###############################################################################
# Numba kernels
###############################################################################


@njit(cache=True)
def _relax_heights(heights: np.ndarray, parents: np.ndarray) -> None:
    """
    Push depth-to-leaf heights up the tree, newest point first.

    A climb continues while the parent is not already strictly taller than
    child + 1, so equal heights are re-propagated.
    """
    for i in range(heights.shape[0] - 1, -1, -1):
        node = i
        parent = parents[node]
        while parent >= 0 and heights[parent] <= heights[node] + 1:
            heights[parent] = heights[node] + 1
            node = parent
            parent = parents[node]


@njit(cache=True)
def _bilinear_resample(old: np.ndarray, old_size: int, new_size: int) -> np.ndarray:
    out = np.zeros((new_size, new_size), dtype=np.int64)
    scale = new_size / old_size
    hi = old_size - 1
    for y in range(new_size):
        for x in range(new_size):
            gx = x / scale
            gy = y / scale
            # Clamp so the 2x2 stencil stays inside the source grid
            gxi = min(int(gx), old_size - 2)
            gyi = min(int(gy), old_size - 2)
            if gxi < 0:
                gxi = 0
            if gyi < 0:
                gyi = 0
            gx1 = min(gxi + 1, hi)
            gy1 = min(gyi + 1, hi)

            c00 = old[gxi, gyi]
            c10 = old[gx1, gyi]
            c01 = old[gxi, gy1]
            c11 = old[gx1, gy1]

            tx = gx - gxi
            ty = gy - gyi
            top = c00 + (c10 - c00) * tx
            bottom = c01 + (c11 - c01) * tx
            value = int(top + (bottom - top) * ty)
            # Edge cells extrapolate (tx, ty may exceed 1); the field stays >= 0
            out[x, y] = value if value > 0 else 0
    return out


@njit(cache=True)
def _convolve_interior(
    matrix: np.ndarray, kernel: np.ndarray, kernel_sum: int
) -> np.ndarray:
    out = matrix.copy()
    r = kernel.shape[0] // 2
    nx, ny = matrix.shape
    for x in range(r, nx - r):
        for y in range(r, ny - r):
            acc = 0
            for kx in range(-r, r + 1):
                for ky in range(-r, r + 1):
                    acc += matrix[x + kx, y + ky] * kernel[kx + r, ky + r]
            out[x, y] = acc // kernel_sum
    return out


###############################################################################
# Field operations
###############################################################################


def compute_heights(heights: np.ndarray, parents: np.ndarray) -> np.ndarray:
    """
    Compute depth-to-leaf heights in place (single reverse-attachment pass).

    Parents always precede children in attachment order, and a climb only
    stops below an ancestor that is already taller, so one pass converges.
    """
    _relax_heights(heights, parents)
    return heights


def build_point_matrix(xs, ys, heights, size: int) -> np.ndarray:
    """Rasterize point heights onto a zeroed size x size grid; out-of-bounds points are dropped."""
    xs = np.asarray(xs, dtype=np.int64)
    ys = np.asarray(ys, dtype=np.int64)
    heights = np.asarray(heights, dtype=np.int64)
    matrix = np.zeros((size, size), dtype=np.int64)
    inside = (xs >= 0) & (xs < size) & (ys >= 0) & (ys < size)
    matrix[xs[inside], ys[inside]] = heights[inside]
    return matrix


def resample(matrix: np.ndarray, old_size: int, new_size: int) -> np.ndarray:
    """Bilinear rescale of a square field; identity when the size is unchanged."""
    if new_size == old_size:
        return matrix
    return _bilinear_resample(np.asarray(matrix, dtype=np.int64), int(old_size), int(new_size))


def merge(base: np.ndarray, detail: np.ndarray, size: int) -> np.ndarray:
    """Elementwise sum of the resampled field and the new point matrix."""
    if base.shape != (size, size) or detail.shape != (size, size):
        raise ValueError(
            f"cannot merge {base.shape} and {detail.shape} into a {size}x{size} field"
        )
    return base + detail


def smooth(matrix: np.ndarray) -> np.ndarray:
    """One pass of the 5x5 kernel; the outer two-cell border is copied unchanged."""
    return _convolve_interior(np.asarray(matrix, dtype=np.int64), KERNEL, KERNEL_SUM)


###############################################################################
# Generator
###############################################################################


class HeightFieldGenerator:
    """Persistent, accumulating elevation field fed by the aggregate."""

    def __init__(self, initial_size: int = 2) -> None:
        if initial_size <= 0:
            raise InvalidArgument("Height field size must be a positive integer.")
        self.size = int(initial_size)
        self.matrix = np.zeros((self.size, self.size), dtype=np.int64)
        self.update_count = 0

    def update(self, arena: AggregateArena, new_size: int) -> np.ndarray:
        """Recompute heights, then resample, merge and smooth into the stored field."""
        compute_heights(arena.heights, arena.parents)
        point_matrix = build_point_matrix(arena.xs, arena.ys, arena.heights, new_size)
        scaled = resample(self.matrix, self.size, new_size)
        merged = merge(scaled, point_matrix, new_size)
        self.matrix = smooth(merged)
        self.size = int(new_size)
        self.update_count += 1
        return self.matrix

    def render(self, passes: int = RENDER_PASSES) -> np.ndarray:
        """Return an extra-smoothed copy of the field for display."""
        if passes < 0:
            raise InvalidArgument("Smoothing passes must be a non-negative integer.")
        field = self.matrix.copy()
        for _ in range(passes):
            field = smooth(field)
        return field


__all__ = [
    "KERNEL",
    "KERNEL_SUM",
    "HeightFieldGenerator",
    "build_point_matrix",
    "compute_heights",
    "merge",
    "resample",
    "smooth",
]
