"""Partition of point indices obtained by cutting the merge tree at a height."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from src.explorer.models import UNCLUSTERED, ClusterPartition, Internal, MergeNode

logger = logging.getLogger(__name__)


def collect_subtree_clusters(tree: MergeNode, cut_height: float) -> List[List[int]]:
    """Maximal subtrees whose merge height does not exceed ``cut_height``.

    A node merged above the cut splits into its children; anything at or below
    the cut is taken whole. Leaves always come out as singletons. Walks
    left-to-right with an explicit stack so chain-shaped trees of any depth work.
    """
    clusters: List[List[int]] = []
    stack: List[MergeNode] = [tree]
    while stack:
        node = stack.pop()
        if isinstance(node, Internal) and node.height > cut_height:
            stack.append(node.right)
            stack.append(node.left)
            continue
        clusters.append(list(node.member_indices))
    return clusters


def normalize_partition(raw_clusters: Iterable[Iterable[int]], n_points: int) -> ClusterPartition:
    """Make a list of index groups disjoint and exhaustive over ``0..n_points-1``.

    Out-of-range and repeated indices are dropped (first occurrence wins), empty
    groups vanish, and every index nobody claimed becomes its own singleton.
    """
    seen: Set[int] = set()
    partition: ClusterPartition = []
    dropped = 0
    for group in raw_clusters:
        cleaned: List[int] = []
        for idx in group:
            idx = int(idx)
            if idx < 0 or idx >= n_points or idx in seen:
                dropped += 1
                continue
            seen.add(idx)
            cleaned.append(idx)
        if cleaned:
            partition.append(cleaned)

    missing = [i for i in range(n_points) if i not in seen]
    if missing:
        logger.warning(
            "Merge tree does not cover %d of %d points; adding them as singletons: %s",
            len(missing), n_points, missing[:20],
        )
        partition.extend([i] for i in missing)
    if dropped:
        logger.warning("Dropped %d out-of-range or duplicate indices from merge tree", dropped)
    return partition


def clusters_at_cut(tree: Optional[MergeNode], cut_height: float, n_points: int) -> ClusterPartition:
    """Cluster partition for a horizontal cut through the dendrogram.

    ``cut_height >= root height`` yields a single cluster; a cut below every
    internal merge height yields ``n_points`` singletons. Malformed trees are
    repaired rather than rejected, so the result is always a full partition.
    Without a tree there is nothing to cut and the result is ``UNCLUSTERED``.
    """
    if tree is None:
        return list(UNCLUSTERED)
    partition = normalize_partition(collect_subtree_clusters(tree, cut_height), n_points)
    logger.debug("Cut at %.4f -> %d clusters over %d points", cut_height, len(partition), n_points)
    return partition
