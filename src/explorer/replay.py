"""Rebuild the cluster partition after replaying the first steps of a merge log."""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from src.explorer.models import UNCLUSTERED, ClusterPartition, MergeStep

logger = logging.getLogger(__name__)


class DisjointSet:
    """Array-backed union-find with path compression and union by size."""

    def __init__(self, n_items: int) -> None:
        self._parent: List[int] = list(range(n_items))
        self._size: List[int] = [1] * n_items

    def __len__(self) -> int:
        return len(self._parent)

    def __contains__(self, item: int) -> bool:
        return 0 <= item < len(self._parent)

    def find(self, item: int) -> Optional[int]:
        """Representative of ``item``'s set, or None if ``item`` is unknown."""
        if item not in self:
            return None
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while item != root:
            next_item = self._parent[item]
            self._parent[item] = root
            item = next_item
        return root

    def union(self, a: int, b: int) -> bool:
        """Merge the sets holding ``a`` and ``b``. Returns False if nothing changed."""
        root_a = self.find(a)
        root_b = self.find(b)
        if root_a is None or root_b is None or root_a == root_b:
            return False
        if self._size[root_a] < self._size[root_b]:
            root_a, root_b = root_b, root_a
        self._parent[root_b] = root_a
        self._size[root_a] += self._size[root_b]
        return True

    def set_size(self, item: int) -> int:
        root = self.find(item)
        return self._size[root] if root is not None else 0

    def groups(self) -> ClusterPartition:
        """Every surviving set, members ascending, ordered by smallest member."""
        by_root: Dict[int, List[int]] = {}
        for item in range(len(self._parent)):
            by_root.setdefault(self.find(item), []).append(item)
        return list(by_root.values())


def animation_step_count(steps: Sequence[MergeStep]) -> int:
    """Number of playable steps; the trailing completion marker is not one."""
    return max(0, len(steps) - 1)


def clusters_at_step(steps: Sequence[MergeStep], step: int, n_points: int) -> ClusterPartition:
    """Partition after replaying the log up to ``step``.

    ``step <= 1`` means nothing has merged yet and returns ``UNCLUSTERED``.
    Otherwise the first ``min(step, len(steps)) - 1`` entries are replayed,
    completion markers excluded. A step whose first index on either side cannot
    be resolved is skipped.
    """
    if step <= 1:
        return list(UNCLUSTERED)

    forest = DisjointSet(n_points)
    replay_count = min(step, len(steps)) - 1
    skipped = 0
    for position in range(replay_count):
        merge = steps[position]
        if not merge.is_merge:
            continue
        if not merge.side_a or not merge.side_b:
            skipped += 1
            continue
        first_a, first_b = merge.side_a[0], merge.side_b[0]
        if forest.find(first_a) is None or forest.find(first_b) is None:
            logger.warning(
                "Skipping merge step %d: unresolved indices %s / %s (n_points=%d)",
                position, first_a, first_b, n_points,
            )
            skipped += 1
            continue
        forest.union(first_a, first_b)

    partition = forest.groups()
    logger.debug(
        "Replayed %d steps (%d skipped) -> %d clusters", replay_count, skipped, len(partition)
    )
    return partition


def merge_connections(steps: Sequence[MergeStep], step: int) -> List[Tuple[int, int]]:
    """Links to draw for the first ``step`` merges: first point of each side."""
    connections: List[Tuple[int, int]] = []
    for merge in steps[:max(0, step)]:
        if merge.is_merge and merge.side_a and merge.side_b:
            connections.append((merge.side_a[0], merge.side_b[0]))
    return connections


def height_at_step(steps: Sequence[MergeStep], step: int) -> float:
    """Merge distance reached at ``step``; 0 before the first step."""
    if step <= 0 or not steps:
        return 0.0
    return float(steps[min(step - 1, len(steps) - 1)].distance)


class StepReconstructor:
    """Merge log bound to a point count, queried by replay step."""

    def __init__(self, steps: Sequence[MergeStep], n_points: int) -> None:
        self.steps = list(steps)
        self.n_points = n_points

    @property
    def total_steps(self) -> int:
        return animation_step_count(self.steps)

    def partition_at(self, step: int) -> ClusterPartition:
        return clusters_at_step(self.steps, step, self.n_points)

    def connections_at(self, step: int) -> List[Tuple[int, int]]:
        return merge_connections(self.steps, step)

    def height_at(self, step: int) -> float:
        return height_at_step(self.steps, step)
