"""Tests for src/explorer/partition.py - cutting the merge tree at a height.

Covers the reference four-point scenario, repair of malformed trees, and
agreement with SciPy's own flat clustering for random linkages.
"""
from __future__ import annotations

import logging

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st
from scipy.cluster.hierarchy import fcluster, linkage

from src.explorer.models import Leaf
from src.explorer.partition import (
    clusters_at_cut,
    collect_subtree_clusters,
    normalize_partition,
)
from src.explorer.tree import make_internal, min_internal_height, tree_from_linkage


def _as_sets(partition):
    return {frozenset(c) for c in partition}


def _assert_full_partition(partition, n_points):
    flat = [i for cluster in partition for i in cluster]
    assert sorted(flat) == list(range(n_points))


# ==============================================================================
# Reference scenario
# ==============================================================================

@pytest.mark.unit
class TestFourPointScenario:
    def test_cut_between_merges(self, four_point_tree):
        assert clusters_at_cut(four_point_tree, 1.5, 4) == [[0, 1], [2], [3]]

    def test_cut_above_root(self, four_point_tree):
        assert clusters_at_cut(four_point_tree, 25.0, 4) == [[0, 1, 2, 3]]

    def test_cut_exactly_at_merge_height_keeps_it_fused(self, four_point_tree):
        assert clusters_at_cut(four_point_tree, 2.0, 4) == [[0, 1, 2], [3]]
        assert clusters_at_cut(four_point_tree, 20.0, 4) == [[0, 1, 2, 3]]

    def test_cut_below_everything(self, four_point_tree):
        assert clusters_at_cut(four_point_tree, 0.5, 4) == [[0], [1], [2], [3]]

    def test_no_tree_is_unclustered(self):
        assert clusters_at_cut(None, 3.0, 3) == []

    def test_collect_preserves_left_to_right_order(self, four_point_tree):
        assert collect_subtree_clusters(four_point_tree, 0.0) == [[0], [1], [2], [3]]


# ==============================================================================
# Malformed trees
# ==============================================================================

@pytest.mark.unit
class TestMalformedTrees:
    def test_missing_leaf_becomes_singleton(self, caplog):
        tree = make_internal(Leaf(0, "P0"), Leaf(1, "P1"), 1.0)
        with caplog.at_level(logging.WARNING, logger="src.explorer.partition"):
            partition = clusters_at_cut(tree, 5.0, 3)
        assert partition == [[0, 1], [2]]
        assert "does not cover" in caplog.text

    def test_out_of_range_and_duplicate_indices_dropped(self):
        tree = make_internal(
            make_internal(Leaf(0, "P0"), Leaf(7, "P7"), 1.0),
            make_internal(Leaf(0, "dup"), Leaf(1, "P1"), 1.0),
            2.0,
        )
        partition = clusters_at_cut(tree, 1.5, 2)
        assert partition == [[0], [1]]

    def test_normalize_drops_empty_groups(self):
        assert normalize_partition([[], [5], [1, 0]], 2) == [[1, 0]]

    def test_zero_points(self, four_point_tree):
        assert clusters_at_cut(four_point_tree, 5.0, 0) == []


# ==============================================================================
# Properties
# ==============================================================================

coordinates = st.lists(
    st.tuples(
        st.floats(min_value=-100, max_value=100, allow_nan=False),
        st.floats(min_value=-100, max_value=100, allow_nan=False),
    ),
    min_size=2,
    max_size=25,
)
methods = st.sampled_from(["single", "complete"])


@pytest.mark.property
@given(coords=coordinates, method=methods, fraction=st.floats(min_value=0.0, max_value=1.2))
@settings(max_examples=60, deadline=None)
def test_cut_is_disjoint_exhaustive_and_matches_scipy(coords, method, fraction):
    """Property: a cut matches fcluster(criterion='distance') at the same threshold."""
    data = np.array(coords, dtype=np.float64)
    Z = linkage(data, method=method)
    tree = tree_from_linkage(Z)
    n_points = len(coords)
    cut = float(Z[-1, 2]) * fraction

    partition = clusters_at_cut(tree, cut, n_points)

    _assert_full_partition(partition, n_points)
    labels = fcluster(Z, t=cut, criterion="distance")
    expected = {}
    for point, label in enumerate(labels):
        expected.setdefault(label, set()).add(point)
    assert _as_sets(partition) == {frozenset(s) for s in expected.values()}


@pytest.mark.property
@given(coords=coordinates)
@settings(max_examples=40, deadline=None)
def test_extreme_cuts(coords):
    """Property: root height or more is one cluster; below every merge is all singletons."""
    Z = linkage(np.array(coords, dtype=np.float64), method="complete")
    tree = tree_from_linkage(Z)
    n_points = len(coords)

    assert _as_sets(clusters_at_cut(tree, tree.height, n_points)) == {frozenset(range(n_points))}

    lowest = min_internal_height(tree)
    if lowest > 0:
        assert len(clusters_at_cut(tree, lowest / 2, n_points)) == n_points
    assert len(clusters_at_cut(tree, -1.0, n_points)) == n_points


@pytest.mark.property
@given(
    coords=coordinates,
    n_points=st.integers(min_value=0, max_value=30),
    cut=st.floats(min_value=-1, max_value=500, allow_nan=False),
)
@settings(max_examples=60, deadline=None)
def test_mismatched_point_count_still_partitions(coords, n_points, cut):
    """Property: even when the tree and N disagree the result covers 0..N-1 once."""
    tree = tree_from_linkage(linkage(np.array(coords, dtype=np.float64), method="single"))
    _assert_full_partition(clusters_at_cut(tree, cut, n_points), n_points)
