# src/dla_terrain/utils.py
from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
from PIL import Image

try:  # Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover
    tomllib = None  # type: ignore


class InvalidArgument(ValueError):
    """Raised when a size or count precondition is violated."""


@dataclass
class TerrainResult:
    """Common container for terrain simulation outputs."""

    heightmap: Optional[np.ndarray] = None
    point_heights: Optional[np.ndarray] = None
    aggregate: Optional[np.ndarray] = None
    meta: Optional[Dict[str, Any]] = None

    def ensure_meta(self) -> Dict[str, Any]:
        if self.meta is None:
            self.meta = {}
        return self.meta


def make_rng(seed: int | None = None) -> np.random.Generator:
    """Create the PCG64 generator injected into the walk kernels."""
    return np.random.default_rng(seed)


def now_str() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


def normalize_sqrt(values) -> np.ndarray:
    """
    Square-root normalization to 0-255 grayscale.

    Each cell is divided by the grid maximum, square-rooted and scaled to 255.
    A grid whose maximum is not positive maps to all zeros.
    """
    values = np.asarray(values, dtype=np.float64)
    peak = values.max() if values.size else 0.0
    if peak <= 0.0:
        return np.zeros(values.shape, dtype=np.uint8)
    scaled = np.sqrt(np.clip(values, 0.0, None) / peak) * 255.0
    return np.clip(scaled.astype(np.int64), 0, 255).astype(np.uint8)


def save_grayscale(path: str | os.PathLike[str], image) -> None:
    """
    Write a 2D intensity grid (0-255) as a single-channel PNG.

    The grid is indexed [x, y]; it is transposed so x runs along image columns.
    """
    out_dir = Path(path).parent
    out_dir.mkdir(parents=True, exist_ok=True)
    pixels = np.clip(np.asarray(image), 0, 255).astype(np.uint8)
    img = Image.fromarray(np.ascontiguousarray(pixels.T))  # uint8 2D -> "L"
    img.save(path)


def load_params(path: str | os.PathLike[str]) -> Dict[str, Any]:
    """
    Load simulation parameters from JSON or TOML.
    """
    path = str(path)
    with open(path, "rb") as fh:
        data = fh.read()
    suffix = Path(path).suffix.lower()
    if suffix in {".json", ""}:
        return json.loads(data.decode("utf-8"))
    if suffix in {".toml", ".tml"}:
        if tomllib is None:
            raise RuntimeError("tomllib is unavailable; cannot parse TOML files")
        return tomllib.loads(data.decode("utf-8"))
    raise ValueError(f"Unsupported parameter file format: {suffix}")
