"""Parsing of clustering-service payloads into typed records."""
from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Optional, Sequence

from src.explorer.models import (
    ClusteringResult,
    Internal,
    Leaf,
    MergeNode,
    MergeStep,
    PointRecord,
    StepAction,
)
from src.explorer.tree import make_internal

logger = logging.getLogger(__name__)

_ACTION_ALIASES = {
    "merge": StepAction.MERGE,
    "connect": StepAction.MERGE,
    "complete": StepAction.COMPLETE,
}


def _as_float(value: Any, what: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{what} must be a number; received {value!r}") from exc


def _as_indices(values: Any, what: str) -> tuple:
    if values is None:
        return ()
    if not isinstance(values, (list, tuple)):
        raise ValueError(f"{what} must be a list of point indices; received {values!r}")
    try:
        return tuple(int(v) for v in values)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{what} contains a non-integer index: {values!r}") from exc


def _is_leaf(node: Dict[str, Any]) -> bool:
    return node.get("left") is None and node.get("right") is None


def _parse_leaf(node: Dict[str, Any]) -> Optional[Leaf]:
    """Leaf for ``node``, or None when it names no point."""
    index = node.get("index")
    if index is None:
        indices = _as_indices(node.get("indices"), "leaf indices")
        index = indices[0] if indices else None
    if index is None:
        logger.warning("Dropping leaf %r: it carries no point index", node.get("label"))
        return None
    label = node.get("label")
    return Leaf(index=int(index), label=str(label) if label is not None else f"P{index}")


def parse_tree(payload: Optional[Dict[str, Any]]) -> Optional[MergeNode]:
    """Build a merge tree from the service's nested ``{left, right, height, indices, label}`` dicts.

    Internal nodes without ``indices`` get the union of their children's members.
    Leaves without a point index are dropped and a merge left with a single
    child collapses into that child, keeping any indices it claims beyond it.
    Points lost entirely come back as singletons when the tree is cut.
    Returns None when nothing usable is left.
    """
    if payload is None:
        return None

    built: Dict[int, Optional[MergeNode]] = {}
    stack = [(payload, False)]
    while stack:
        node, children_done = stack.pop()
        if not isinstance(node, dict):
            raise ValueError(f"tree node must be an object; received {type(node).__name__}")
        if _is_leaf(node):
            built[id(node)] = _parse_leaf(node)
            continue

        children = [child for child in (node.get("left"), node.get("right")) if child is not None]
        if not children_done:
            stack.append((node, True))
            for child in reversed(children):
                stack.append((child, False))
            continue

        present = [built[id(child)] for child in children if built[id(child)] is not None]
        height = _as_float(node.get("height"), "node height")
        claimed = _as_indices(node.get("indices"), "node indices")
        if len(present) < 2:
            logger.warning(
                "Collapsing merge at height %s: only %d usable child(ren)", height, len(present),
            )
            built[id(node)] = _collapse(present[0] if present else None, claimed, height)
            continue

        left_node, right_node = present
        built[id(node)] = Internal(
            height=height,
            left=left_node,
            right=right_node,
            member_indices=claimed if node.get("indices") is not None
            else left_node.member_indices + right_node.member_indices,
        )
    return built[id(payload)]


def _collapse(child: Optional[MergeNode], claimed: tuple, height: float) -> Optional[MergeNode]:
    """Stand-in for a merge that lost children.

    Indices the merge claims but ``child`` does not cover become leaves joined
    at the merge's own height, so a cut at or above it still keeps them
    together and a cut below it leaves them as singletons.
    """
    covered = set(child.member_indices) if child is not None else set()
    rebuilt = child
    for index in claimed:
        if index in covered:
            continue
        covered.add(index)
        leaf = Leaf(index=index, label=f"P{index}")
        rebuilt = leaf if rebuilt is None else make_internal(rebuilt, leaf, height)
    return rebuilt


def parse_step(payload: Dict[str, Any]) -> MergeStep:
    if not isinstance(payload, dict):
        raise ValueError(f"merge step must be an object; received {type(payload).__name__}")
    raw_action = str(payload.get("action", "merge")).lower()
    action = _ACTION_ALIASES.get(raw_action)
    if action is None:
        raise ValueError(f"unknown merge step action {raw_action!r}")
    side_a = _as_indices(payload.get("cluster1"), "cluster1")
    side_b = _as_indices(payload.get("cluster2"), "cluster2")
    merged = payload.get("mergedCluster")
    return MergeStep(
        side_a=side_a,
        side_b=side_b,
        merged_indices=_as_indices(merged, "mergedCluster") if merged is not None else side_a + side_b,
        distance=_as_float(payload.get("distance", 0.0), "step distance"),
        action=action,
    )


def parse_steps(payload: Optional[Sequence[Dict[str, Any]]]) -> List[MergeStep]:
    return [parse_step(item) for item in payload or []]


def parse_points(payload: Optional[Sequence[Dict[str, Any]]]) -> List[PointRecord]:
    """Points as sent to the service: ``{id?, x, y, data}``; coordinates must be finite."""
    points: List[PointRecord] = []
    for position, item in enumerate(payload or []):
        if not isinstance(item, dict):
            raise ValueError(f"point {position} must be an object")
        x = _as_float(item.get("x"), f"point {position} x")
        y = _as_float(item.get("y"), f"point {position} y")
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"point {position} has non-finite coordinates ({x}, {y})")
        attributes = item.get("data") or {}
        if not isinstance(attributes, dict):
            raise ValueError(f"point {position} data must be an object")
        points.append(PointRecord(
            id=str(item.get("id", position)),
            x=x,
            y=y,
            attributes=dict(attributes),
        ))
    return points


def parse_clustering_response(payload: Dict[str, Any]) -> ClusteringResult:
    """``{dendrogram, steps, finalClusters}`` -> ``ClusteringResult``."""
    if not isinstance(payload, dict):
        raise ValueError("clustering response must be an object")
    final_clusters = [
        list(_as_indices(group, "finalClusters entry"))
        for group in payload.get("finalClusters") or []
    ]
    return ClusteringResult(
        tree=parse_tree(payload.get("dendrogram")),
        steps=parse_steps(payload.get("steps")),
        final_clusters=final_clusters,
    )
