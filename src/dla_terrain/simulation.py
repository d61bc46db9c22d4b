"""
DLA terrain simulator.

Grows an aggregate on a `GrowableLattice`, feeding a `HeightFieldGenerator`
on every lattice expansion, and hands normalized grids to the image writer.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import numpy as np

from . import utils
from .aggregation import BIAS_PROBABILITY, EDGE_MARGIN, SPAWN_UNIFORM, AggregationEngine
from .heightmap import RENDER_PASSES, HeightFieldGenerator
from .lattice import DEFAULT_INCREMENT, GrowableLattice
from .utils import InvalidArgument


@dataclass
class SimulationConfig:
    """Lattice, walk and height field settings for one simulation."""

    target_size: int = 256
    initial_size: int = 2
    expansion_increment: int = DEFAULT_INCREMENT
    edge_margin: int = EDGE_MARGIN
    bias_probability: float = BIAS_PROBABILITY
    heightmap_update_frequency: int = 1
    smoothing_passes: int = RENDER_PASSES
    spawn: str = SPAWN_UNIFORM
    seed: Optional[int] = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.smoothing_passes < 0:
            raise InvalidArgument("smoothing_passes must be a non-negative integer")

    @classmethod
    def from_dict(cls, params: Mapping[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(params) - known)
        if unknown:
            raise InvalidArgument(f"Unknown simulation parameters: {', '.join(unknown)}")
        return cls(**params)


class DLATerrainSimulator:
    """
    Owns the lattice, the walk engine and the height field of one run.

    Responsibilities:
    1. Validate sizes before any state is built.
    2. Attach particles and force the final catch-up expansion.
    3. Produce normalized 0-255 grids for the image writer.
    """

    def __init__(self, config: SimulationConfig | None = None) -> None:
        self.config = config or SimulationConfig()
        cfg = self.config
        self.rng = utils.make_rng(cfg.seed)
        self.heightmap = HeightFieldGenerator()
        self.lattice = GrowableLattice(
            cfg.target_size,
            cfg.initial_size,
            self.heightmap,
            update_frequency=cfg.heightmap_update_frequency,
            verbose=cfg.verbose,
        )
        self.engine = AggregationEngine(
            self.lattice,
            self.rng,
            bias_probability=cfg.bias_probability,
            increment=cfg.expansion_increment,
            edge_margin=cfg.edge_margin,
            spawn=cfg.spawn,
        )
        self.particles_run = 0
        self.elapsed = 0.0

    # ------------------------------------------------------------------ public
    @property
    def size(self) -> int:
        return self.lattice.size

    @property
    def aggregated_points(self):
        return self.lattice.aggregated_points

    def run(self, particle_count: int) -> None:
        """Attach `particle_count` particles, grow to the target, refresh the field."""
        if particle_count < 0:
            raise InvalidArgument("Particle count must be a non-negative integer.")
        capacity = self.lattice.target_size ** 2 - len(self.lattice)
        if particle_count > capacity:
            raise InvalidArgument(
                f"Cannot attach {particle_count} particles: a "
                f"{self.lattice.target_size}x{self.lattice.target_size} lattice "
                f"has room for {capacity} more"
            )

        if self.config.verbose:
            print(f"Running DLA terrain: N={particle_count}, "
                  f"lattice {self.lattice.size}x{self.lattice.size} -> "
                  f"{self.lattice.target_size}x{self.lattice.target_size}")

        start = time.time()
        for _ in range(particle_count):
            self.engine.attach_one_particle()
        self.particles_run += particle_count

        if self.lattice.can_grow:
            self.lattice.expand(self.lattice.target_size)
        self.lattice.update_heightmap()
        self.elapsed += time.time() - start

        if self.config.verbose:
            rate = particle_count / self.elapsed if self.elapsed > 0 else 0.0
            print(f"Simulation completed: {len(self.lattice)} points in "
                  f"{self.elapsed:.2f}s ({rate:.0f} particles/s)")

    # ------------------------------------------------------------------ outputs
    def heightmap_image(self) -> np.ndarray:
        """Smoothed height field, extra-softened and sqrt-normalized to 0-255."""
        return utils.normalize_sqrt(self.heightmap.render(self.config.smoothing_passes))

    def point_height_image(self) -> np.ndarray:
        """Raw per-point tree heights, sqrt-normalized to 0-255."""
        return utils.normalize_sqrt(self.lattice.height_grid())

    def aggregate_image(self) -> np.ndarray:
        """Aggregate drawn black (0) on white (255)."""
        return np.where(self.lattice.aggregate_mask(), 0, 255).astype(np.uint8)

    def result(self) -> utils.TerrainResult:
        meta: Dict[str, Any] = asdict(self.config)
        meta.update(
            model="dla_terrain",
            size=self.lattice.size,
            num_points=len(self.lattice),
            particles_run=self.particles_run,
            expansions=self.lattice.expansions,
            heightmap_updates=self.heightmap.update_count,
            elapsed=self.elapsed,
        )
        return utils.TerrainResult(
            heightmap=self.heightmap_image(),
            point_heights=self.point_height_image(),
            aggregate=self.aggregate_image(),
            meta=meta,
        )

    def save_images(self, out_dir: str | Path, prefix: str = "dla") -> Dict[str, Path]:
        """Write the three output grids as grayscale PNGs and return their paths."""
        out_dir = Path(out_dir)
        result = self.result()
        paths = {
            "heightmap": out_dir / f"{prefix}_heightmap.png",
            "point_heights": out_dir / f"{prefix}_point_heights.png",
            "aggregate": out_dir / f"{prefix}_aggregate.png",
        }
        utils.save_grayscale(paths["heightmap"], result.heightmap)
        utils.save_grayscale(paths["point_heights"], result.point_heights)
        utils.save_grayscale(paths["aggregate"], result.aggregate)
        return paths


def new_simulation(target_size: int, initial_size: int = 2, **kwargs: Any) -> DLATerrainSimulator:
    """Build a simulator; raises InvalidArgument for a bad size pair."""
    config = SimulationConfig(target_size=target_size, initial_size=initial_size, **kwargs)
    return DLATerrainSimulator(config)


__all__ = ["DLATerrainSimulator", "SimulationConfig", "new_simulation"]
