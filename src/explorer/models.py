"""Data models for dendrogram exploration."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


@dataclass(frozen=True)
class Leaf:
    """A single point at the bottom of the merge tree."""

    index: int
    label: str

    @property
    def height(self) -> float:
        return 0.0

    @property
    def member_indices(self) -> Tuple[int, ...]:
        return (self.index,)


@dataclass(frozen=True)
class Internal:
    """A merge of two subtrees at a given distance."""

    height: float
    left: "MergeNode"
    right: "MergeNode"
    member_indices: Tuple[int, ...]  # Union of both children's members


MergeNode = Union[Leaf, Internal]

# List of index lists; pairwise disjoint and covering 0..N-1 exactly once.
ClusterPartition = List[List[int]]

# Signal returned by step replay before any merge has been applied.
UNCLUSTERED: ClusterPartition = []


class StepAction(str, Enum):
    MERGE = "merge"
    COMPLETE = "complete"


@dataclass(frozen=True)
class MergeStep:
    """One entry of the ordered merge log produced by the clustering service."""

    side_a: Tuple[int, ...]
    side_b: Tuple[int, ...]
    merged_indices: Tuple[int, ...]
    distance: float
    action: StepAction = StepAction.MERGE

    @property
    def is_merge(self) -> bool:
        return self.action is StepAction.MERGE


@dataclass(frozen=True)
class PointRecord:
    """A data point in domain coordinates. Coordinates are validated upstream."""

    id: str
    x: float
    y: float
    attributes: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ClusterVisual:
    """Renderable circle for one cluster, in pixel space."""

    cluster_index: int  # Position of the cluster in the partition
    member_indices: Tuple[int, ...]
    center: Tuple[float, float]
    radius: float
    color: str
    enclosing_radius: float  # Max member distance + buffer; radius never drops below it
    initial_radius: float  # enclosing_radius + size bonus, before overlap relaxation


@dataclass(frozen=True)
class ClusteringResult:
    """What the clustering service returns for one dataset/algorithm selection."""

    tree: Optional[MergeNode]
    steps: List[MergeStep]
    final_clusters: ClusterPartition = field(default_factory=list)


@dataclass(frozen=True)
class DragState:
    """Sole mutable state of the explorer, replaced on every pointer transition."""

    is_dragging: bool = False
    cut_height: Optional[float] = None


@dataclass(frozen=True)
class HitResult:
    """What sits under the pointer: a point, a cluster, or nothing."""

    kind: Optional[str] = None  # "point", "cluster" or None
    index: Optional[int] = None

    @property
    def is_point(self) -> bool:
        return self.kind == "point"

    @property
    def is_cluster(self) -> bool:
        return self.kind == "cluster"


@dataclass
class ExplorerViewData:
    """Complete data for one render of the scatter plot."""

    mode: str  # "cut" or "step"
    partition: ClusterPartition
    point_pixels: List[Tuple[float, float]]
    point_colors: List[str]
    clusters: List[ClusterVisual]
    connections: List[Tuple[int, int]]
    current_height: float
    cut_height: Optional[float]
    step: int
    total_steps: int
    cluster_stats: List[Dict[str, float]] = field(default_factory=list)
