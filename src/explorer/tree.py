"""Merge tree utilities: construction, traversal and SciPy linkage conversion."""
from __future__ import annotations

from typing import Iterator, List, Optional, Sequence

import numpy as np
from scipy.cluster.hierarchy import is_valid_linkage

from src.explorer.models import Internal, Leaf, MergeNode, MergeStep, StepAction


def make_internal(left: MergeNode, right: MergeNode, height: float) -> Internal:
    """Join two subtrees; members are the union of both sides (left first)."""
    return Internal(
        height=float(height),
        left=left,
        right=right,
        member_indices=tuple(left.member_indices) + tuple(right.member_indices),
    )


def iter_nodes(tree: Optional[MergeNode]) -> Iterator[MergeNode]:
    """Pre-order, left-to-right walk without recursion."""
    if tree is None:
        return
    stack: List[MergeNode] = [tree]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Internal):
            stack.append(node.right)
            stack.append(node.left)


def iter_internal_nodes(tree: Optional[MergeNode]) -> Iterator[Internal]:
    for node in iter_nodes(tree):
        if isinstance(node, Internal):
            yield node


def leaf_labels_in_order(tree: Optional[MergeNode]) -> List[str]:
    """Leaf labels in left-to-right dendrogram order."""
    return [node.label for node in iter_nodes(tree) if isinstance(node, Leaf)]


def max_height(tree: Optional[MergeNode]) -> float:
    """Largest merge height in the tree; a bare leaf (or no tree) is 0."""
    heights = [node.height for node in iter_internal_nodes(tree)]
    return max(heights) if heights else 0.0


def min_internal_height(tree: Optional[MergeNode]) -> Optional[float]:
    heights = [node.height for node in iter_internal_nodes(tree)]
    return min(heights) if heights else None


def tree_from_linkage(
    linkage_matrix: np.ndarray,
    labels: Optional[Sequence[str]] = None,
) -> MergeNode:
    """Build a merge tree from a SciPy linkage matrix.

    Row ``i`` of the matrix creates node ``n + i`` from the two nodes it names,
    so every child is built before its parent.
    """
    linkage_matrix = np.asarray(linkage_matrix, dtype=np.float64)
    is_valid_linkage(linkage_matrix, throw=True, name="linkage_matrix")
    n_leaves = linkage_matrix.shape[0] + 1
    if labels is not None and len(labels) != n_leaves:
        raise ValueError(
            "labels length mismatch: linkage implies %d leaves, got %d labels"
            % (n_leaves, len(labels))
        )

    nodes: List[MergeNode] = [
        Leaf(index=i, label=str(labels[i]) if labels is not None else f"P{i}")
        for i in range(n_leaves)
    ]
    for row in linkage_matrix:
        left = nodes[int(row[0])]
        right = nodes[int(row[1])]
        nodes.append(make_internal(left, right, float(row[2])))
    return nodes[-1]


def steps_from_linkage(linkage_matrix: np.ndarray) -> List[MergeStep]:
    """Ordered merge log for a linkage matrix, ending with a completion marker."""
    linkage_matrix = np.asarray(linkage_matrix, dtype=np.float64)
    is_valid_linkage(linkage_matrix, throw=True, name="linkage_matrix")
    n_leaves = linkage_matrix.shape[0] + 1

    members: List[tuple] = [(i,) for i in range(n_leaves)]
    steps: List[MergeStep] = []
    for row in linkage_matrix:
        side_a = members[int(row[0])]
        side_b = members[int(row[1])]
        merged = side_a + side_b
        members.append(merged)
        steps.append(MergeStep(
            side_a=side_a,
            side_b=side_b,
            merged_indices=merged,
            distance=float(row[2]),
        ))

    final_distance = steps[-1].distance if steps else 0.0
    steps.append(MergeStep(
        side_a=(),
        side_b=(),
        merged_indices=members[-1],
        distance=final_distance,
        action=StepAction.COMPLETE,
    ))
    return steps
