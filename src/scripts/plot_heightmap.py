# src/scripts/plot_heightmap.py
import argparse
import os

import matplotlib.pyplot as plt
import numpy as np

from dla_terrain import DLATerrainSimulator, SimulationConfig


def format_title(meta):
    """Title string with the main run statistics."""
    if not meta:
        return None
    seed = meta.get("seed")
    parts = [
        f"N={meta.get('particles_run', '?')}",
        f"size={meta.get('size', '?')}",
        f"seed={seed if seed is not None else '?'}",
        f"updates={meta.get('heightmap_updates', '?')}",
    ]
    return " | ".join(parts)


def render(result, output=None, cmap="terrain", dpi=200, show=False):
    """
    Side-by-side preview of the aggregate, raw point heights and height field.

    Grids are indexed [x, y] and drawn transposed so x runs left to right.
    """
    panels = [
        ("Aggregate", result.aggregate, "gray"),
        ("Point heights", result.point_heights, "gray"),
        ("Height field", result.heightmap, cmap),
    ]
    fig, axes = plt.subplots(1, 3, figsize=(15, 5))
    for ax, (label, grid, panel_cmap) in zip(axes, panels):
        ax.imshow(np.asarray(grid).T, interpolation="nearest", cmap=panel_cmap, vmin=0, vmax=255)
        ax.set_title(label)
        ax.set_aspect("equal")
        ax.axis("off")

    title = format_title(result.meta)
    if title:
        fig.suptitle(title)

    if output:
        os.makedirs(os.path.dirname(output) if os.path.dirname(output) else '.', exist_ok=True)
        plt.savefig(output, dpi=dpi, bbox_inches="tight", pad_inches=0.1)
        print(f"Saved figure to {output}")
    if show:
        plt.show()
    plt.close(fig)


def main():
    parser = argparse.ArgumentParser(description="Preview a DLA height map with matplotlib")
    parser.add_argument("--size", type=int, default=128, help="Target lattice size (default: 128)")
    parser.add_argument("--N", type=int, default=2000, help="Number of particles (default: 2000)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    parser.add_argument("--cmap", default="terrain", help="Colormap for the height field (default: terrain)")
    parser.add_argument("--out", default="results/heightmap_preview.png", help="Output figure path")
    parser.add_argument("--show", action="store_true", help="Show plot interactively")
    args = parser.parse_args()

    simulator = DLATerrainSimulator(SimulationConfig(target_size=args.size, seed=args.seed))
    simulator.run(args.N)
    render(simulator.result(), output=args.out, cmap=args.cmap, show=args.show)


if __name__ == "__main__":
    main()
