"""Shared pytest configuration and fixtures for the test suite.

This module centralizes:
- Path setup (eliminates sys.path hacks in individual test files)
- Pytest markers for test categorization (unit, property, integration)
- The four-point reference dataset used across explorer tests
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest


# ==============================================================================
# Path Setup - Ensures src/ is importable
# ==============================================================================

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.explorer.models import (  # noqa: E402
    ClusteringResult,
    Leaf,
    MergeStep,
    PointRecord,
    StepAction,
)
from src.explorer.tree import make_internal  # noqa: E402


# ==============================================================================
# Pytest Configuration
# ==============================================================================

def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "unit: Fast tests with no I/O (mocked dependencies)",
    )
    config.addinivalue_line(
        "markers",
        "property: Hypothesis property-based tests",
    )
    config.addinivalue_line(
        "markers",
        "integration: Tests hitting the Flask app, file system, or network",
    )


# ==============================================================================
# Four-point reference dataset
#
#   points (0,0) (1,0) (0,1) (10,10)
#   0+1 @ 1, then {0,1}+2 @ 2, then {0,1,2}+3 @ 20
# ==============================================================================

@pytest.fixture
def four_point_tree():
    leaves = [Leaf(index=i, label=f"P{i}") for i in range(4)]
    pair = make_internal(leaves[0], leaves[1], 1.0)
    triple = make_internal(pair, leaves[2], 2.0)
    return make_internal(triple, leaves[3], 20.0)


@pytest.fixture
def four_point_steps():
    return [
        MergeStep(side_a=(0,), side_b=(1,), merged_indices=(0, 1), distance=1.0),
        MergeStep(side_a=(0, 1), side_b=(2,), merged_indices=(0, 1, 2), distance=2.0),
        MergeStep(side_a=(0, 1, 2), side_b=(3,), merged_indices=(0, 1, 2, 3), distance=20.0),
        MergeStep(
            side_a=(),
            side_b=(),
            merged_indices=(0, 1, 2, 3),
            distance=20.0,
            action=StepAction.COMPLETE,
        ),
    ]


@pytest.fixture
def four_points():
    coords = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (10.0, 10.0)]
    return [
        PointRecord(id=f"P{i}", x=x, y=y, attributes={"score": float(i), "kind": "a"})
        for i, (x, y) in enumerate(coords)
    ]


@pytest.fixture
def four_point_result(four_point_tree, four_point_steps):
    return ClusteringResult(tree=four_point_tree, steps=four_point_steps)


@pytest.fixture
def four_point_payload():
    """Same dataset as the clustering service would send it."""
    def leaf(i):
        return {"label": f"P{i}", "indices": [i], "height": 0}

    return {
        "dendrogram": {
            "height": 20,
            "indices": [0, 1, 2, 3],
            "left": {
                "height": 2,
                "indices": [0, 1, 2],
                "left": {"height": 1, "indices": [0, 1], "left": leaf(0), "right": leaf(1)},
                "right": leaf(2),
            },
            "right": leaf(3),
        },
        "steps": [
            {"cluster1": [0], "cluster2": [1], "mergedCluster": [0, 1], "distance": 1, "action": "merge"},
            {"cluster1": [0, 1], "cluster2": [2], "mergedCluster": [0, 1, 2], "distance": 2, "action": "merge"},
            {"cluster1": [0, 1, 2], "cluster2": [3], "mergedCluster": [0, 1, 2, 3], "distance": 20, "action": "merge"},
            {"mergedCluster": [0, 1, 2, 3], "distance": 20, "action": "complete"},
        ],
        "finalClusters": [[0, 1, 2], [3]],
    }


@pytest.fixture
def four_point_points_payload():
    return [
        {"id": "P0", "x": 0, "y": 0, "data": {"score": 0}},
        {"id": "P1", "x": 1, "y": 0, "data": {"score": 1}},
        {"id": "P2", "x": 0, "y": 1, "data": {"score": 2}},
        {"id": "P3", "x": 10, "y": 10, "data": {"score": 3}},
    ]
