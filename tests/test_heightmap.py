"""
Tests for tree heights, resampling, merging and smoothing of the height field.
"""

import numpy as np
import pytest

from dla_terrain import AggregateArena, HeightFieldGenerator, InvalidArgument
from dla_terrain.heightmap import (
    KERNEL,
    KERNEL_SUM,
    build_point_matrix,
    compute_heights,
    merge,
    resample,
    smooth,
)
from dla_terrain.points import NO_PARENT


def _chain_arena(length):
    arena = AggregateArena()
    arena.append(0, 0)
    for i in range(1, length):
        arena.append(i, 0, i - 1)
    return arena


def _reference_heights(parents):
    """Longest downward path to a leaf, by explicit recursion over children."""
    n = len(parents)
    children = [[] for _ in range(n)]
    for i, p in enumerate(parents):
        if p != NO_PARENT:
            children[p].append(i)
    heights = [0] * n
    for i in range(n - 1, -1, -1):
        heights[i] = max((heights[c] + 1 for c in children[i]), default=0)
    return heights


def test_chain_heights():
    arena = _chain_arena(3)
    compute_heights(arena.heights, arena.parents)
    assert list(arena.heights) == [2, 1, 0]


def test_deep_chain_converges_in_one_pass():
    arena = _chain_arena(500)
    compute_heights(arena.heights, arena.parents)
    np.testing.assert_array_equal(arena.heights, np.arange(499, -1, -1))


def test_branching_tree_heights():
    parents = [NO_PARENT, 0, 0, 1, 3, 2]
    heights = np.zeros(len(parents), dtype=np.int64)
    compute_heights(heights, np.array(parents, dtype=np.int64))
    assert list(heights) == [3, 2, 1, 1, 0, 0]


def test_random_trees_match_reference():
    rng = np.random.default_rng(11)
    for n in (2, 10, 200, 1000):
        parents = np.full(n, NO_PARENT, dtype=np.int64)
        for i in range(1, n):
            # Skew toward recent points to get deep, branching trees
            parents[i] = rng.integers(max(0, i - 5), i)
        heights = np.zeros(n, dtype=np.int64)
        compute_heights(heights, parents)
        assert list(heights) == _reference_heights(list(parents))


def test_incremental_heights_match_fresh_computation():
    rng = np.random.default_rng(5)
    n = 300
    parents = np.full(n, NO_PARENT, dtype=np.int64)
    for i in range(1, n):
        parents[i] = rng.integers(0, i)

    grown = np.zeros(n, dtype=np.int64)
    for stop in (10, 50, 120, n):
        compute_heights(grown[:stop], parents[:stop])

    fresh = np.zeros(n, dtype=np.int64)
    compute_heights(fresh, parents)
    np.testing.assert_array_equal(grown, fresh)

    # Idempotent
    compute_heights(fresh, parents)
    np.testing.assert_array_equal(grown, fresh)


def test_build_point_matrix_drops_out_of_bounds():
    matrix = build_point_matrix([0, 2, 3, 1], [1, 2, 0, 5], [4, 5, 6, 7], 3)
    expected = np.zeros((3, 3), dtype=np.int64)
    expected[0, 1] = 4
    expected[2, 2] = 5
    np.testing.assert_array_equal(matrix, expected)


def test_resample_identity():
    m = np.arange(25, dtype=np.int64).reshape(5, 5)
    out = resample(m, 5, 5)
    np.testing.assert_array_equal(out, m)


def test_resample_bilinear_upscale():
    old = np.array([[0, 0], [0, 4]], dtype=np.int64)
    out = resample(old, 2, 4)
    idx = np.arange(4)
    np.testing.assert_array_equal(out, np.outer(idx, idx))


def test_resample_uniform_field():
    old = np.full((6, 6), 9, dtype=np.int64)
    out = resample(old, 6, 16)
    assert out.shape == (16, 16)
    assert np.all(out == 9)

    down = resample(old, 6, 3)
    assert down.shape == (3, 3)
    assert np.all(down == 9)


def test_resample_never_negative():
    old = np.zeros((4, 4), dtype=np.int64)
    old[2, 2] = 100  # extrapolation at the far edge overshoots below zero
    out = resample(old, 4, 10)
    assert out.min() >= 0


def test_merge_adds_elementwise():
    a = np.ones((3, 3), dtype=np.int64)
    b = np.arange(9, dtype=np.int64).reshape(3, 3)
    np.testing.assert_array_equal(merge(a, b, 3), b + 1)
    with pytest.raises(ValueError):
        merge(a, np.zeros((4, 4), dtype=np.int64), 3)


def test_kernel_sum():
    assert KERNEL_SUM == KERNEL.sum() == 998
    np.testing.assert_array_equal(KERNEL, KERNEL.T)


def test_smooth_uniform_field_with_large_values():
    m = np.full((12, 12), 123_457, dtype=np.int64)
    np.testing.assert_array_equal(smooth(m), m)


def test_smooth_preserves_border():
    rng = np.random.default_rng(0)
    m = rng.integers(0, 1000, size=(12, 12))
    out = smooth(m)
    np.testing.assert_array_equal(out[:2, :], m[:2, :])
    np.testing.assert_array_equal(out[-2:, :], m[-2:, :])
    np.testing.assert_array_equal(out[:, :2], m[:, :2])
    np.testing.assert_array_equal(out[:, -2:], m[:, -2:])


def test_smooth_uniform_field():
    m = np.full((9, 9), 37, dtype=np.int64)
    np.testing.assert_array_equal(smooth(m), m)


def test_smooth_spike_spreads_kernel():
    m = np.zeros((9, 9), dtype=np.int64)
    m[4, 4] = KERNEL_SUM
    out = smooth(m)
    np.testing.assert_array_equal(out[2:7, 2:7], KERNEL)


def test_smooth_small_matrix_unchanged():
    m = np.arange(16, dtype=np.int64).reshape(4, 4)
    np.testing.assert_array_equal(smooth(m), m)


def test_generator_rejects_bad_size():
    with pytest.raises(InvalidArgument):
        HeightFieldGenerator(0)


def test_update_resamples_then_adds():
    field = HeightFieldGenerator()
    arena = AggregateArena()
    arena.append(4, 4)
    arena.append(5, 4, 0)
    arena.append(5, 5, 1)
    arena.append(3, 4, 0)

    first = field.update(arena, 10).copy()
    assert field.size == 10
    assert first.shape == (10, 10)

    points = build_point_matrix(arena.xs, arena.ys, arena.heights, 16)
    expected = smooth(merge(resample(first, 10, 16), points, 16))

    second = field.update(arena, 16)
    assert field.size == 16
    np.testing.assert_array_equal(second, expected)
    assert field.update_count == 2


def test_update_accumulates_at_same_size():
    field = HeightFieldGenerator()
    arena = _chain_arena(6)
    once = field.update(arena, 8).copy()
    twice = field.update(arena, 8)
    assert np.all(twice >= 0)
    # border cells are never smoothed, so the root cell adds up exactly
    assert twice[0, 0] == 2 * once[0, 0] == 10


def test_render_leaves_field_untouched():
    field = HeightFieldGenerator()
    arena = _chain_arena(6)
    field.update(arena, 8)
    before = field.matrix.copy()
    rendered = field.render(10)
    np.testing.assert_array_equal(field.matrix, before)
    assert rendered.shape == before.shape


def test_render_always_returns_a_copy():
    field = HeightFieldGenerator()
    field.update(_chain_arena(6), 8)

    plain = field.render(0)
    assert plain is not field.matrix
    np.testing.assert_array_equal(plain, field.matrix)
    plain[0, 0] += 1
    assert field.matrix[0, 0] != plain[0, 0]

    with pytest.raises(InvalidArgument):
        field.render(-1)
