"""Assemble everything the scatter plot needs for one render."""
from __future__ import annotations

import logging
import time
from typing import Dict, List, Optional, Sequence, Tuple

from src.config import LayoutSettings
from src.explorer.colors import ColorPolicy
from src.explorer.layout import ClusterLayoutSolver
from src.explorer.models import (
    ClusteringResult,
    ClusterPartition,
    ExplorerViewData,
    PointRecord,
)
from src.explorer.partition import clusters_at_cut
from src.explorer.replay import (
    animation_step_count,
    clusters_at_step,
    height_at_step,
    merge_connections,
)
from src.explorer.summary import partition_stats, point_color
from src.explorer.transform import CoordinateTransform, Viewport

logger = logging.getLogger(__name__)


def _point_colors(partition: ClusterPartition, cluster_colors: Dict[int, str], n_points: int) -> List[str]:
    colors = [point_color(i, n_points) for i in range(n_points)]
    for cluster_index, indices in enumerate(partition):
        color = cluster_colors.get(cluster_index)
        if color is None:
            continue
        for i in indices:
            if 0 <= i < n_points:
                colors[i] = color
    return colors


def build_explorer_view(
    result: ClusteringResult,
    points: Sequence[PointRecord],
    viewport: Viewport,
    cut_height: Optional[float] = None,
    step: int = 0,
    x_range: Optional[Tuple[float, float]] = None,
    y_range: Optional[Tuple[float, float]] = None,
    color_policy: Optional[ColorPolicy] = None,
    settings: Optional[LayoutSettings] = None,
    stat_fields: Sequence[str] = (),
) -> ExplorerViewData:
    """Build the scatter-plot view for either a cut height or a replay step.

    Args:
        result: Merge tree and step log from the clustering service
        points: Points in the same order as the indices used by ``result``
        viewport: Scatter plot canvas size and padding
        cut_height: When set, the partition comes from this cut instead of the replay
        step: Replay position (clamped to the playable range); in cut mode it only
            decides how much of the dendrogram is drawn
        x_range, y_range: Explicit domain ranges; otherwise fitted to the data
        color_policy: Palette plus fallback generator for cluster colors
        settings: Layout constants
        stat_fields: Numeric point attributes to average per cluster
    """
    t_start = time.time()
    n_points = len(points)
    transform = CoordinateTransform.fit(points, viewport, x_range, y_range)
    pixels = transform.points_to_pixels(points)
    total_steps = animation_step_count(result.steps)

    # The step survives in cut mode: the dendrogram keeps drawing merges up to it.
    step = max(0, min(step, total_steps))
    if cut_height is not None:
        mode = "cut"
        partition = clusters_at_cut(result.tree, cut_height, n_points)
        connections: List[Tuple[int, int]] = []
        current_height = float(cut_height)
    else:
        mode = "step"
        partition = clusters_at_step(result.steps, step, n_points)
        connections = merge_connections(result.steps, step)
        current_height = height_at_step(result.steps, step)

    solver = ClusterLayoutSolver(settings=settings, color_policy=color_policy)
    visuals = solver.solve(partition, pixels)
    cluster_colors = {v.cluster_index: v.color for v in visuals}
    stats = partition_stats(points, partition, stat_fields) if stat_fields else []

    logger.info(
        "Explorer view: mode=%s step=%d/%d cut=%s clusters=%d points=%d (%.3fs)",
        mode, step, total_steps, cut_height, len(partition), n_points, time.time() - t_start,
    )
    return ExplorerViewData(
        mode=mode,
        partition=partition,
        point_pixels=[(float(x), float(y)) for x, y in pixels],
        point_colors=_point_colors(partition, cluster_colors, n_points),
        clusters=visuals,
        connections=connections,
        current_height=current_height,
        cut_height=cut_height,
        step=step,
        total_steps=total_steps,
        cluster_stats=stats,
    )
