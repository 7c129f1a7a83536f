"""Geometry for drawing the dendrogram panel: leaf rows, merge segments, cut line."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

from src.explorer.interaction import DendrogramPadding, HeightAxis
from src.explorer.models import Internal, Leaf, MergeNode, MergeStep
from src.explorer.tree import iter_nodes, leaf_labels_in_order, max_height

MIN_LEAF_SPACING = 50.0
LEAF_EDGE_INSET = 10.0
DEFAULT_CUT_FRACTION = 0.6  # Cut shown at this share of the root height until the user drags


@dataclass(frozen=True)
class MergeSegment:
    """One drawn merge: vertical join at ``x`` plus horizontal arms to each child."""

    height: float
    step_index: int
    x: float
    y_left: float
    y_right: float
    x_left_child: float
    x_right_child: float

    @property
    def y_mid(self) -> float:
        return (self.y_left + self.y_right) / 2


@dataclass
class DendrogramGeometry:
    ordered_labels: List[str]
    leaf_rows: Dict[str, float]
    segments: List[MergeSegment]
    max_height: float
    cut_height: float
    cut_x: float
    axis: HeightAxis = field(repr=False)


def ordered_leaf_labels(tree: Optional[MergeNode], labels: Sequence[str] = ()) -> List[str]:
    """Tree order first, then any supplied labels the tree lacks, sorted."""
    ordered = leaf_labels_in_order(tree)
    present = set(ordered)
    missing = sorted({label for label in labels if label not in present})
    return ordered + missing


def leaf_rows(
    ordered_labels: Sequence[str],
    canvas_height: float,
    padding: DendrogramPadding = DendrogramPadding(),
    min_spacing: float = MIN_LEAF_SPACING,
) -> Dict[str, float]:
    """Vertical pixel position of every leaf label."""
    available = canvas_height - padding.top - padding.bottom
    count = len(ordered_labels)
    if count == 0:
        return {}
    if count == 1:
        return {ordered_labels[0]: padding.top + available / 2}

    if (count - 1) * min_spacing <= available:
        spacing = max(min_spacing, available / (count - 1))
    else:
        spacing = min_spacing
    start = padding.top + (available - (count - 1) * spacing) / 2
    low = padding.top + LEAF_EDGE_INSET
    high = canvas_height - padding.bottom - LEAF_EDGE_INSET

    rows: Dict[str, float] = {}
    for position, label in enumerate(ordered_labels):
        rows[label] = max(low, min(high, start + position * spacing))
    return rows


def node_rows(tree: Optional[MergeNode], rows: Dict[str, float], default: float) -> Dict[int, float]:
    """y of every node keyed by ``id(node)``: leaves from ``rows``, merges at their children's midpoint."""
    positions: Dict[int, float] = {}
    # Reversed pre-order visits children before parents.
    for node in reversed(list(iter_nodes(tree))):
        if isinstance(node, Leaf):
            positions[id(node)] = rows.get(node.label, default)
        else:
            positions[id(node)] = (positions[id(node.left)] + positions[id(node.right)]) / 2
    return positions


def _merge_step_index(steps: Sequence[MergeStep]) -> Dict[FrozenSet[int], int]:
    index: Dict[FrozenSet[int], int] = {}
    for position, merge in enumerate(steps):
        if merge.is_merge:
            index.setdefault(frozenset(merge.merged_indices), position)
    return index


def step_for_merge(node: MergeNode, steps: Sequence[MergeStep]) -> Optional[int]:
    """Index of the first merge step producing exactly this node's members."""
    if not isinstance(node, Internal):
        return None
    return _merge_step_index(steps).get(frozenset(node.member_indices))


def progressive_segments(
    tree: Optional[MergeNode],
    rows: Dict[str, float],
    axis: HeightAxis,
    steps: Sequence[MergeStep],
    current_step: int,
) -> List[MergeSegment]:
    """Segments for every merge that has happened before ``current_step``."""
    step_index = _merge_step_index(steps)
    ys = node_rows(tree, rows, default=axis.padding.top)
    segments: List[MergeSegment] = []
    for node in reversed(list(iter_nodes(tree))):
        if not isinstance(node, Internal):
            continue
        position = step_index.get(frozenset(node.member_indices))
        if position is None or position >= current_step:
            continue
        segments.append(MergeSegment(
            height=node.height,
            step_index=position,
            x=axis.to_pixel(node.height),
            y_left=ys[id(node.left)],
            y_right=ys[id(node.right)],
            x_left_child=axis.to_pixel(node.left.height),
            x_right_child=axis.to_pixel(node.right.height),
        ))
    return segments


def cut_line(
    axis: HeightAxis,
    cut_height: Optional[float],
    root_height: float,
) -> Tuple[float, float]:
    """(effective cut height, pixel x) with x kept inside the padded canvas."""
    effective = cut_height if cut_height is not None else root_height * DEFAULT_CUT_FRACTION
    x = axis.to_pixel(effective)
    x = min(max(axis.padding.left, x), axis.width - axis.padding.right)
    return effective, x


def build_dendrogram_geometry(
    tree: Optional[MergeNode],
    labels: Sequence[str],
    width: float,
    height: float,
    steps: Sequence[MergeStep] = (),
    current_step: int = 0,
    cut_height: Optional[float] = None,
    padding: DendrogramPadding = DendrogramPadding(),
) -> DendrogramGeometry:
    tallest = max_height(tree)
    axis = HeightAxis(width=width, height=height, max_height=tallest, padding=padding)
    ordered = ordered_leaf_labels(tree, labels)
    rows = leaf_rows(ordered, height, padding)
    segments = progressive_segments(tree, rows, axis, steps, current_step) if steps else []
    root_height = tree.height if tree is not None else 0.0
    effective_cut, cut_x = cut_line(axis, cut_height, root_height)
    return DendrogramGeometry(
        ordered_labels=ordered,
        leaf_rows=rows,
        segments=segments,
        max_height=tallest,
        cut_height=effective_cut,
        cut_x=cut_x,
        axis=axis,
    )
