"""Cluster circle layout: centroid, buffered radius and one overlap-relaxation sweep."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from src.config import LayoutSettings
from src.explorer.colors import ColorPolicy
from src.explorer.models import ClusterPartition, ClusterVisual

logger = logging.getLogger(__name__)


@dataclass
class _Circle:
    cluster_index: int
    members: tuple
    cx: float
    cy: float
    radius: float
    enclosing_radius: float
    initial_radius: float


class ClusterLayoutSolver:
    """Turns a partition plus point pixels into renderable cluster circles.

    Overlap relaxation visits each unordered pair once in ascending index order
    and shrinks both circles of a conflicting pair by ``shrink_factor``. It is a
    single sweep: with three or more mutually close clusters some overlap can
    remain.
    """

    def __init__(
        self,
        settings: Optional[LayoutSettings] = None,
        color_policy: Optional[ColorPolicy] = None,
    ) -> None:
        self.settings = settings or LayoutSettings()
        self.color_policy = color_policy or ColorPolicy()

    def initial_circles(self, partition: ClusterPartition, pixels: np.ndarray) -> List[_Circle]:
        circles: List[_Circle] = []
        n_points = len(pixels)
        for cluster_index, indices in enumerate(partition):
            members = tuple(i for i in indices if 0 <= i < n_points)
            if not members:
                continue
            coords = pixels[list(members)]
            center = coords.mean(axis=0)
            max_dist = float(np.linalg.norm(coords - center, axis=1).max())
            enclosing = max_dist + self.settings.buffer_margin
            initial = enclosing + self.settings.size_bonus(len(members))
            circles.append(_Circle(
                cluster_index=cluster_index,
                members=members,
                cx=float(center[0]),
                cy=float(center[1]),
                radius=initial,
                enclosing_radius=enclosing,
                initial_radius=initial,
            ))
        return circles

    def relax(self, circles: List[_Circle]) -> int:
        """Single pairwise shrink sweep in place. Returns the number of conflicting pairs."""
        s = self.settings
        conflicts = 0
        for i in range(len(circles)):
            for j in range(i + 1, len(circles)):
                a, b = circles[i], circles[j]
                distance = math.hypot(a.cx - b.cx, a.cy - b.cy)
                if distance >= a.radius + b.radius + s.min_separation:
                    continue
                conflicts += 1
                a.radius = max(a.radius * s.shrink_factor, a.enclosing_radius, s.min_radius)
                b.radius = max(b.radius * s.shrink_factor, b.enclosing_radius, s.min_radius)
        return conflicts

    def solve(self, partition: ClusterPartition, pixels: Sequence) -> List[ClusterVisual]:
        """Cluster circles for ``partition``; clusters with no valid member are omitted."""
        pixels = np.asarray(pixels, dtype=np.float64).reshape(-1, 2)
        circles = self.initial_circles(partition, pixels)
        conflicts = self.relax(circles)
        logger.debug(
            "Layout: %d clusters, %d conflicting pairs relaxed", len(circles), conflicts
        )
        total = len(partition)
        return [
            ClusterVisual(
                cluster_index=c.cluster_index,
                member_indices=c.members,
                center=(c.cx, c.cy),
                radius=c.radius,
                color=self.color_policy.color_for(c.cluster_index, total),
                enclosing_radius=c.enclosing_radius,
                initial_radius=c.initial_radius,
            )
            for c in circles
        ]
