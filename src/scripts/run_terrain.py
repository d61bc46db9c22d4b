#!/usr/bin/env python3
"""
DLA Terrain Runner

Grows a single aggregate and writes its height map, per-point height map and
aggregate picture as grayscale PNGs. Parameters may come from a JSON/TOML
file; command-line flags override file values.
"""

import argparse
import sys
import time
from pathlib import Path

from dla_terrain import DLATerrainSimulator, SimulationConfig, utils


def build_config(args, file_params) -> SimulationConfig:
    params = dict(file_params)
    params.pop("particles", None)
    overrides = {
        "target_size": args.size,
        "initial_size": args.initial_size,
        "seed": args.seed,
        "spawn": args.spawn,
    }
    params.update({k: v for k, v in overrides.items() if v is not None})
    params["verbose"] = args.verbose or params.get("verbose", False)
    return SimulationConfig.from_dict(params)


def main():
    parser = argparse.ArgumentParser(
        description="Generate a DLA height map",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--params", type=str, default=None,
                        help="JSON or TOML parameter file")
    parser.add_argument("--size", type=int, default=None,
                        help="Target lattice size (default: 256)")
    parser.add_argument("--initial-size", type=int, default=None,
                        help="Initial lattice size (default: 2)")
    parser.add_argument("--N", type=int, default=None,
                        help="Number of particles to simulate (default: 5000)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for reproducibility")
    parser.add_argument("--spawn", choices=["uniform", "edge"], default=None,
                        help="Walker start positions (default: uniform)")
    parser.add_argument("--out", type=str, default=None,
                        help="Output directory (default: results/)")
    parser.add_argument("--verbose", action="store_true",
                        help="Print lattice expansions and timing")
    args = parser.parse_args()

    file_params = utils.load_params(args.params) if args.params else {}
    particles = args.N if args.N is not None else int(file_params.get("particles", 5000))

    try:
        config = build_config(args, file_params)
        simulator = DLATerrainSimulator(config)
    except utils.InvalidArgument as e:
        print(f"Error: {e}")
        return 2

    print(f"Running DLA terrain: N={particles}, size={config.target_size}, seed={config.seed}")
    start_time = time.time()
    simulator.run(particles)
    elapsed_time = time.time() - start_time

    out_dir = Path(args.out) if args.out else Path("results")
    prefix = f"dla_N{particles}_S{config.target_size}_{utils.now_str()}"
    paths = simulator.save_images(out_dir, prefix)

    print(f"\nSimulation completed successfully!")
    print(f"   Time elapsed: {elapsed_time:.2f} seconds")
    print(f"   Aggregated points: {len(simulator.lattice):,}")
    for name, path in paths.items():
        print(f"   {name}: {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
