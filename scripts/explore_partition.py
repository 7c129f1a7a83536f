#!/usr/bin/env python3
"""
Print the clusters of a saved clustering-service response.

Reads the JSON the clustering service returned (``{dendrogram, steps,
finalClusters}``) and prints the partition for a cut height or a replay step.
With a points file (the ``dataPoints`` list sent to the service) it also prints
the cluster circles for a viewport.

Usage:
    python scripts/explore_partition.py response.json --cut 2.5
    python scripts/explore_partition.py response.json --step 4
    python scripts/explore_partition.py response.json --cut 2.5 --points points.json --width 800 --height 600
"""

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from src.explorer.builder import build_explorer_view  # noqa: E402
from src.explorer.payloads import parse_clustering_response, parse_points  # noqa: E402
from src.explorer.partition import clusters_at_cut  # noqa: E402
from src.explorer.replay import animation_step_count, clusters_at_step  # noqa: E402
from src.explorer.transform import Viewport  # noqa: E402
from src.explorer.tree import max_height  # noqa: E402
from src.logging_utils import setup_explorer_logging  # noqa: E402


def load_json(path: Path):
    with path.open() as handle:
        return json.load(handle)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("response", type=Path, help="Saved clustering response JSON")
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--cut", type=float, help="Cut height")
    mode.add_argument("--step", type=int, help="Replay step")
    parser.add_argument("--points", type=Path, help="Points JSON (list of {x, y, data})")
    parser.add_argument("--n-points", type=int, help="Point count when no points file is given")
    parser.add_argument("--width", type=float, default=800.0)
    parser.add_argument("--height", type=float, default=600.0)
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)

    setup_explorer_logging(console_level=logging.DEBUG if args.verbose else logging.WARNING)

    result = parse_clustering_response(load_json(args.response))
    points = parse_points(load_json(args.points)) if args.points else []
    n_points = len(points) if points else args.n_points
    if n_points is None:
        n_points = len(result.tree.member_indices) if result.tree is not None else 0

    print(f"Points: {n_points}  root height: {max_height(result.tree):.3f}  "
          f"steps: {animation_step_count(result.steps)}")

    if args.cut is not None:
        partition = clusters_at_cut(result.tree, args.cut, n_points)
        print(f"Cut at {args.cut}: {len(partition)} clusters")
    else:
        partition = clusters_at_step(result.steps, args.step, n_points)
        if not partition:
            print(f"Step {args.step}: no merges yet")
        else:
            print(f"Step {args.step}: {len(partition)} clusters")
    for i, members in enumerate(partition):
        print(f"  [{i:>3}] size={len(members):<4} {members}")

    if points:
        view = build_explorer_view(
            result,
            points,
            Viewport(width=args.width, height=args.height),
            cut_height=args.cut,
            step=args.step or 0,
        )
        print(f"\nLayout ({args.width:.0f}x{args.height:.0f}):")
        for c in view.clusters:
            print(
                f"  [{c.cluster_index:>3}] center=({c.center[0]:.1f}, {c.center[1]:.1f}) "
                f"r={c.radius:.1f} (min {c.enclosing_radius:.1f}) {c.color}"
            )
    return 0


if __name__ == "__main__":
    sys.exit(main())
