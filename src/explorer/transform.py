"""Linear mapping between domain coordinates and scatter-plot pixels."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import numpy as np

from src.explorer.models import PointRecord

DOMAIN_MARGIN = 0.1  # Fraction of the data span added on each side


@dataclass(frozen=True)
class Padding:
    top: float = 40.0
    right: float = 40.0
    bottom: float = 60.0
    left: float = 70.0


@dataclass(frozen=True)
class Viewport:
    """Rendering surface size; the plot area is what is left inside the padding."""

    width: float
    height: float
    padding: Padding = field(default_factory=Padding)

    def __post_init__(self) -> None:
        if self.plot_width <= 0 or self.plot_height <= 0:
            raise ValueError(
                "viewport %sx%s leaves no plot area inside padding %s"
                % (self.width, self.height, self.padding)
            )

    @property
    def plot_width(self) -> float:
        return self.width - self.padding.left - self.padding.right

    @property
    def plot_height(self) -> float:
        return self.height - self.padding.top - self.padding.bottom


@dataclass(frozen=True)
class DomainBounds:
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @property
    def x_span(self) -> float:
        return self.x_max - self.x_min

    @property
    def y_span(self) -> float:
        return self.y_max - self.y_min


def _explicit_range(value_range: Tuple[float, float]) -> Tuple[float, float]:
    low, high = float(value_range[0]), float(value_range[1])
    if high == low:
        # Unit range centred on the degenerate value
        return low - 0.5, high + 0.5
    return low, high


def _data_range(values: np.ndarray) -> Tuple[float, float]:
    if values.size == 0:
        low, high = 0.0, 1.0
    else:
        low, high = float(values.min()), float(values.max())
    span = (high - low) or 1.0
    return low - span * DOMAIN_MARGIN, high + span * DOMAIN_MARGIN


def compute_bounds(
    points: Sequence[PointRecord],
    x_range: Optional[Tuple[float, float]] = None,
    y_range: Optional[Tuple[float, float]] = None,
) -> DomainBounds:
    """Domain box: explicit ranges win, otherwise data min/max plus a 10% margin."""
    xs = np.array([p.x for p in points], dtype=np.float64)
    ys = np.array([p.y for p in points], dtype=np.float64)
    x_min, x_max = _explicit_range(x_range) if x_range is not None else _data_range(xs)
    y_min, y_max = _explicit_range(y_range) if y_range is not None else _data_range(ys)
    return DomainBounds(x_min=x_min, x_max=x_max, y_min=y_min, y_max=y_max)


class CoordinateTransform:
    """Bidirectional domain <-> pixel scale with the y axis pointing up."""

    def __init__(self, bounds: DomainBounds, viewport: Viewport) -> None:
        self.bounds = bounds
        self.viewport = viewport

    @classmethod
    def fit(
        cls,
        points: Sequence[PointRecord],
        viewport: Viewport,
        x_range: Optional[Tuple[float, float]] = None,
        y_range: Optional[Tuple[float, float]] = None,
    ) -> "CoordinateTransform":
        return cls(compute_bounds(points, x_range, y_range), viewport)

    def to_pixel(self, point: Tuple[float, float]) -> Tuple[float, float]:
        x, y = point
        b, v = self.bounds, self.viewport
        px = v.padding.left + (x - b.x_min) / b.x_span * v.plot_width
        py = v.padding.top + (b.y_max - y) / b.y_span * v.plot_height
        return px, py

    def to_domain(self, pixel: Tuple[float, float]) -> Tuple[float, float]:
        px, py = pixel
        b, v = self.bounds, self.viewport
        x = b.x_min + (px - v.padding.left) / v.plot_width * b.x_span
        y = b.y_max - (py - v.padding.top) / v.plot_height * b.y_span
        return x, y

    def points_to_pixels(self, points: Sequence[PointRecord]) -> np.ndarray:
        """(N, 2) array of pixel positions, row i for point i."""
        if not points:
            return np.zeros((0, 2), dtype=np.float64)
        domain = np.array([[p.x, p.y] for p in points], dtype=np.float64)
        b, v = self.bounds, self.viewport
        pixels = np.empty_like(domain)
        pixels[:, 0] = v.padding.left + (domain[:, 0] - b.x_min) / b.x_span * v.plot_width
        pixels[:, 1] = v.padding.top + (b.y_max - domain[:, 1]) / b.y_span * v.plot_height
        return pixels

    def plot_area_contains(self, pixel: Tuple[float, float]) -> bool:
        """True when a pixel lies inside the padded plot rectangle (edges included)."""
        px, py = pixel
        v = self.viewport
        return (
            v.padding.left <= px <= v.width - v.padding.right
            and v.padding.top <= py <= v.height - v.padding.bottom
        )
