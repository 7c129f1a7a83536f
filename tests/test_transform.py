"""Tests for src/explorer/transform.py - domain <-> pixel mapping."""
from __future__ import annotations

import numpy as np
import pytest
from hypothesis import assume, given, settings, strategies as st

from src.explorer.models import PointRecord
from src.explorer.transform import (
    CoordinateTransform,
    DomainBounds,
    Padding,
    Viewport,
    compute_bounds,
)


def _points(coords):
    return [PointRecord(id=str(i), x=x, y=y) for i, (x, y) in enumerate(coords)]


@pytest.fixture
def transform():
    bounds = DomainBounds(x_min=0.0, x_max=10.0, y_min=0.0, y_max=10.0)
    return CoordinateTransform(bounds, Viewport(width=810, height=600))


@pytest.mark.unit
class TestViewport:
    def test_plot_area(self):
        viewport = Viewport(width=800, height=600)
        assert viewport.plot_width == 800 - 70 - 40
        assert viewport.plot_height == 600 - 40 - 60

    def test_no_plot_area_rejected(self):
        with pytest.raises(ValueError, match="no plot area"):
            Viewport(width=100, height=600)
        with pytest.raises(ValueError):
            Viewport(width=800, height=100)


@pytest.mark.unit
class TestBounds:
    def test_data_range_gets_ten_percent_margin(self):
        bounds = compute_bounds(_points([(0, 0), (10, 20)]))
        assert (bounds.x_min, bounds.x_max) == pytest.approx((-1.0, 11.0))
        assert (bounds.y_min, bounds.y_max) == pytest.approx((-2.0, 22.0))

    def test_zero_span_treated_as_one(self):
        bounds = compute_bounds(_points([(5, 5), (5, 5)]))
        assert (bounds.x_min, bounds.x_max) == pytest.approx((4.9, 5.1))

    def test_explicit_range_wins(self):
        bounds = compute_bounds(_points([(0, 0), (100, 100)]), x_range=(-5, 5), y_range=(0, 1))
        assert (bounds.x_min, bounds.x_max, bounds.y_min, bounds.y_max) == (-5, 5, 0, 1)

    def test_degenerate_explicit_range_widened(self):
        bounds = compute_bounds([], x_range=(3, 3))
        assert (bounds.x_min, bounds.x_max) == (2.5, 3.5)

    def test_no_points(self):
        bounds = compute_bounds([])
        assert bounds.x_span > 0 and bounds.y_span > 0


@pytest.mark.unit
class TestMapping:
    def test_corners(self, transform):
        assert transform.to_pixel((0, 0)) == pytest.approx((70, 540))
        assert transform.to_pixel((10, 10)) == pytest.approx((770, 40))

    def test_y_axis_points_up(self, transform):
        _, low = transform.to_pixel((5, 1))
        _, high = transform.to_pixel((5, 9))
        assert high < low

    def test_vectorized_matches_scalar(self, transform):
        points = _points([(1, 2), (3, 4), (9.5, 0.5)])
        pixels = transform.points_to_pixels(points)
        assert pixels.shape == (3, 2)
        for point, row in zip(points, pixels):
            assert tuple(row) == pytest.approx(transform.to_pixel((point.x, point.y)))

    def test_empty_points_to_pixels(self, transform):
        assert transform.points_to_pixels([]).shape == (0, 2)

    def test_plot_area_contains(self, transform):
        assert transform.plot_area_contains((70, 40))
        assert transform.plot_area_contains((770, 540))
        assert not transform.plot_area_contains((69.9, 100))
        assert not transform.plot_area_contains((100, 541))

    def test_fit_uses_points(self):
        viewport = Viewport(width=800, height=600, padding=Padding(0, 0, 0, 0))
        fitted = CoordinateTransform.fit(_points([(0, 0), (10, 10)]), viewport)
        assert fitted.to_pixel((-1, 11)) == pytest.approx((0, 0))


# ==============================================================================
# Round-trip properties
# ==============================================================================

finite = st.floats(min_value=-1e4, max_value=1e4, allow_nan=False, allow_infinity=False)
sizes = st.floats(min_value=200, max_value=4000)


@pytest.mark.property
@given(low=finite, span=st.floats(min_value=1e-2, max_value=1e4), t=st.floats(0, 1),
       width=sizes, height=sizes)
@settings(max_examples=100, deadline=None)
def test_domain_round_trip(low, span, t, width, height):
    """Property: to_domain(to_pixel(p)) == p for p inside the domain."""
    bounds = DomainBounds(low, low + span, low, low + span)
    transform = CoordinateTransform(bounds, Viewport(width=width, height=height))
    point = (low + t * span, low + (1 - t) * span)

    back = transform.to_domain(transform.to_pixel(point))

    assert back == pytest.approx(point, rel=1e-9, abs=1e-9 * max(1.0, span, abs(low)))


@pytest.mark.property
@given(tx=st.floats(0, 1), ty=st.floats(0, 1), width=sizes, height=sizes)
@settings(max_examples=100, deadline=None)
def test_pixel_round_trip(tx, ty, width, height):
    """Property: to_pixel(to_domain(q)) == q for q inside the plot area."""
    viewport = Viewport(width=width, height=height)
    assume(viewport.plot_width > 1 and viewport.plot_height > 1)
    transform = CoordinateTransform(DomainBounds(-3.0, 7.0, 2.0, 2.5), viewport)
    pixel = (
        viewport.padding.left + tx * viewport.plot_width,
        viewport.padding.top + ty * viewport.plot_height,
    )

    back = transform.to_pixel(transform.to_domain(pixel))

    assert np.allclose(back, pixel, atol=1e-7)
