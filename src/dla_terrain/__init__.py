"""
DLA Terrain - diffusion-limited aggregation height maps

This package grows a DLA tree on a lattice that expands as the aggregate
reaches its border, and turns that tree into a smooth elevation field:
- GrowableLattice: seeded lattice with identity-preserving expansion
- AggregationEngine: biased random walk and attachment
- HeightFieldGenerator: accumulating, resampled and smoothed height field
- DLATerrainSimulator: driver producing normalized grayscale grids
"""

from .points import AggregateArena, LatticePoint
from .heightmap import HeightFieldGenerator
from .lattice import GrowableLattice
from .aggregation import AggregationEngine
from .simulation import DLATerrainSimulator, SimulationConfig, new_simulation
from .utils import InvalidArgument, TerrainResult
from . import utils

__all__ = [
    # Simulation
    "DLATerrainSimulator",
    "SimulationConfig",
    "new_simulation",
    # Core models
    "GrowableLattice",
    "AggregationEngine",
    "HeightFieldGenerator",
    "AggregateArena",
    "LatticePoint",
    # Results and errors
    "TerrainResult",
    "InvalidArgument",
    # Utilities
    "utils",
]
