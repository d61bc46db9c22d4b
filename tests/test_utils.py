"""
Tests for normalization, the image writer and parameter loading.
"""

import json

import numpy as np
import pytest
from PIL import Image

from dla_terrain import utils


def test_normalize_sqrt():
    values = np.array([[0, 4], [1, 0]])
    out = utils.normalize_sqrt(values)
    assert out.dtype == np.uint8
    np.testing.assert_array_equal(out, [[0, 255], [127, 0]])


def test_normalize_sqrt_all_zero():
    out = utils.normalize_sqrt(np.zeros((5, 5)))
    assert out.shape == (5, 5)
    assert not out.any()


def test_save_grayscale_orientation(tmp_path):
    grid = np.arange(15, dtype=np.uint8).reshape(3, 5) * 10
    path = tmp_path / "nested" / "grid.png"
    utils.save_grayscale(path, grid)

    with Image.open(path) as img:
        assert img.mode == "L"
        assert img.size == (3, 5)
        assert img.getpixel((2, 4)) == grid[2, 4]
        assert img.getpixel((1, 0)) == grid[1, 0]


def test_load_params_json(tmp_path):
    path = tmp_path / "params.json"
    path.write_text(json.dumps({"target_size": 64, "seed": 1}))
    assert utils.load_params(path) == {"target_size": 64, "seed": 1}


def test_load_params_toml(tmp_path):
    if utils.tomllib is None:
        pytest.skip("tomllib unavailable")
    path = tmp_path / "params.toml"
    path.write_text('target_size = 64\nspawn = "edge"\n')
    assert utils.load_params(path) == {"target_size": 64, "spawn": "edge"}


def test_load_params_unsupported(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("target_size: 64\n")
    with pytest.raises(ValueError):
        utils.load_params(path)


def test_make_rng_is_seeded():
    a = utils.make_rng(3).integers(0, 1000, size=10)
    b = utils.make_rng(3).integers(0, 1000, size=10)
    np.testing.assert_array_equal(a, b)
