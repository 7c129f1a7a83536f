"""Tests for src/explorer/dendrogram_view.py - leaf rows, merge segments and cut line."""
from __future__ import annotations

import pytest

from src.explorer.dendrogram_view import (
    build_dendrogram_geometry,
    cut_line,
    leaf_rows,
    node_rows,
    ordered_leaf_labels,
    progressive_segments,
    step_for_merge,
)
from src.explorer.interaction import DendrogramPadding, HeightAxis


@pytest.fixture
def axis():
    return HeightAxis(width=800, height=400, max_height=20.0)


@pytest.mark.unit
class TestLeafRows:
    def test_spread_and_clamped_to_inset(self):
        rows = leaf_rows(["P0", "P1", "P2", "P3"], 400)
        assert rows["P0"] == 45.0
        assert rows["P1"] == pytest.approx(35 + 320 / 3)
        assert rows["P2"] == pytest.approx(35 + 640 / 3)
        assert rows["P3"] == 345.0

    def test_single_leaf_centered(self):
        assert leaf_rows(["only"], 400) == {"only": 195.0}

    def test_empty(self):
        assert leaf_rows([], 400) == {}

    def test_crowded_leaves_use_minimum_spacing(self):
        labels = [f"L{i}" for i in range(10)]
        rows = leaf_rows(labels, 300)
        ys = [rows[label] for label in labels]
        assert ys == sorted(ys)
        assert all(45 <= y <= 245 for y in ys)
        assert ys[5] - ys[4] == pytest.approx(50.0)

    def test_ordered_labels_append_missing_sorted(self, four_point_tree):
        assert ordered_leaf_labels(four_point_tree, ["P3", "X", "A"]) == [
            "P0", "P1", "P2", "P3", "A", "X",
        ]
        assert ordered_leaf_labels(None, ["b", "a"]) == ["a", "b"]


@pytest.mark.unit
class TestSegments:
    def test_step_for_merge(self, four_point_tree, four_point_steps):
        assert step_for_merge(four_point_tree, four_point_steps) == 2
        assert step_for_merge(four_point_tree.left.left, four_point_steps) == 0
        assert step_for_merge(four_point_tree.right, four_point_steps) is None

    def test_only_past_merges_are_drawn(self, four_point_tree, four_point_steps, axis):
        rows = leaf_rows(["P0", "P1", "P2", "P3"], 400)
        segments = progressive_segments(four_point_tree, rows, axis, four_point_steps, 2)

        assert [s.step_index for s in segments] == [0, 1]
        pair = segments[0]
        assert pair.x == pytest.approx(120 + 331.5 / 20)
        assert pair.x_left_child == 120
        assert (pair.y_left, pair.y_right) == pytest.approx((45.0, 35 + 320 / 3))
        assert pair.y_mid == pytest.approx((45.0 + 35 + 320 / 3) / 2)

    def test_all_merges_at_final_step(self, four_point_tree, four_point_steps, axis):
        rows = leaf_rows(["P0", "P1", "P2", "P3"], 400)
        segments = progressive_segments(four_point_tree, rows, axis, four_point_steps, 4)
        assert len(segments) == 3
        assert segments[-1].x == pytest.approx(120 + 331.5)

    def test_internal_rows_are_child_midpoints(self, four_point_tree):
        rows = {"P0": 0.0, "P1": 10.0, "P2": 30.0, "P3": 100.0}
        ys = node_rows(four_point_tree, rows, default=0.0)
        assert ys[id(four_point_tree.left.left)] == 5.0
        assert ys[id(four_point_tree.left)] == 17.5
        assert ys[id(four_point_tree)] == 58.75


@pytest.mark.unit
class TestCutLine:
    def test_default_cut_is_fraction_of_root(self, axis):
        effective, x = cut_line(axis, None, 20.0)
        assert effective == pytest.approx(12.0)
        assert x == pytest.approx(120 + 0.6 * 331.5)

    def test_cut_line_stays_on_canvas(self, axis):
        assert cut_line(axis, 1000.0, 20.0)[1] == pytest.approx(510.0)
        assert cut_line(axis, -4.0, 20.0)[1] == 120.0


@pytest.mark.unit
def test_build_geometry(four_point_tree, four_point_steps):
    geometry = build_dendrogram_geometry(
        four_point_tree,
        ["P0", "P1", "P2", "P3"],
        width=800,
        height=400,
        steps=four_point_steps,
        current_step=1,
        cut_height=2.0,
    )
    assert geometry.ordered_labels == ["P0", "P1", "P2", "P3"]
    assert geometry.max_height == 20.0
    assert geometry.cut_height == 2.0
    assert geometry.cut_x == pytest.approx(120 + 331.5 / 10)
    assert [s.step_index for s in geometry.segments] == [0]


@pytest.mark.unit
def test_build_geometry_without_tree():
    geometry = build_dendrogram_geometry(
        None, ["b", "a"], width=600, height=300,
        padding=DendrogramPadding(top=10, right=10, bottom=10, left=10),
    )
    assert geometry.ordered_labels == ["a", "b"]
    assert geometry.segments == []
    assert geometry.cut_height == 0.0
    assert geometry.cut_x == 10.0
