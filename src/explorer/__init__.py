"""Dendrogram reconstruction and cluster layout for the hierarchical clustering explorer."""
from src.explorer.models import (
    UNCLUSTERED,
    ClusteringResult,
    ClusterPartition,
    ClusterVisual,
    DragState,
    ExplorerViewData,
    HitResult,
    Internal,
    Leaf,
    MergeNode,
    MergeStep,
    PointRecord,
    StepAction,
)
from src.explorer.partition import clusters_at_cut
from src.explorer.replay import (
    DisjointSet,
    StepReconstructor,
    clusters_at_step,
    height_at_step,
    merge_connections,
)
from src.explorer.transform import CoordinateTransform, DomainBounds, Padding, Viewport
from src.explorer.layout import ClusterLayoutSolver
from src.explorer.colors import ColorPolicy, generate_color
from src.explorer.hit_test import HitTester
from src.explorer.interaction import HeightAxis, InteractionController
from src.explorer.builder import build_explorer_view
