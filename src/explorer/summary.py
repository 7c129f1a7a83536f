"""Per-cluster attribute summaries for the tooltip layer."""
from __future__ import annotations

import numbers
from typing import Dict, List, Sequence

import pandas as pd

from src.explorer.colors import generate_color
from src.explorer.models import ClusterPartition, PointRecord


def _numeric_or_none(value):
    # bool is an Integral; it is a flag, not a measurement
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return None
    return float(value)


def cluster_stats(
    points: Sequence[PointRecord],
    indices: Sequence[int],
    fields: Sequence[str],
) -> Dict[str, float]:
    """Mean of each requested numeric attribute over the cluster's members.

    Non-numeric values are ignored; a field without any numeric value is left out.
    """
    members = [points[i] for i in indices if 0 <= i < len(points)]
    if not members or not fields:
        return {}

    frame = pd.DataFrame(
        [{f: _numeric_or_none(p.attributes.get(f)) for f in fields} for p in members],
        columns=list(fields),
        dtype="float64",
    )
    means = frame.mean(axis=0, skipna=True)
    return {f: float(means[f]) for f in fields if pd.notna(means[f])}


def partition_stats(
    points: Sequence[PointRecord],
    partition: ClusterPartition,
    fields: Sequence[str],
) -> List[Dict[str, float]]:
    return [cluster_stats(points, indices, fields) for indices in partition]


def point_color(index: int, total: int) -> str:
    """Color of a point that is not (yet) in any cluster."""
    return generate_color(index, total)
