"""Drag handling for the dendrogram cut line.

The dendrogram's horizontal axis is merge height. ``HeightAxis`` maps heights
into a compressed band of the canvas (the rest is left for the cut control
overlay) and back. The drag state machine is a set of pure transitions over
``DragState``; ``InteractionController`` owns the current state.

    Idle --down--> Dragging --move--> Dragging --up/leave--> Idle
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from src.explorer.models import DragState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DendrogramPadding:
    top: float = 35.0
    right: float = 30.0
    bottom: float = 45.0
    left: float = 120.0


@dataclass(frozen=True)
class HeightAxis:
    """1-D scale from ``[0, max_height]`` to pixel x on the dendrogram canvas."""

    width: float
    height: float
    max_height: float
    padding: DendrogramPadding = field(default_factory=DendrogramPadding)
    width_ratio: float = 0.6  # Share of the plot width the dendrogram may use
    compression: float = 0.85  # Share of that width the highest merge reaches

    @property
    def available_width(self) -> float:
        return self.width - self.padding.left - self.padding.right

    @property
    def effective_width(self) -> float:
        return self.available_width * self.width_ratio

    @property
    def band_width(self) -> float:
        return self.effective_width * self.compression

    def to_pixel(self, merge_height: float) -> float:
        left = self.padding.left
        if self.max_height == 0 or self.available_width <= 0:
            return left
        x = left + (merge_height / self.max_height) * self.band_width
        return max(left, min(left + self.effective_width, x))

    def to_height(self, x: float) -> float:
        """Inverse of ``to_pixel``, clamped to ``[0, max_height]``."""
        if self.max_height <= 0 or self.band_width <= 0:
            return 0.0
        relative = x - self.padding.left
        if relative < 0:
            return 0.0
        if relative > self.band_width:
            return self.max_height
        merge_height = relative / self.band_width * self.max_height
        return max(0.0, min(self.max_height, merge_height))

    def contains(self, x: float, y: float) -> bool:
        return 0 <= x <= self.width and 0 <= y <= self.height


def pointer_down(state: DragState, axis: HeightAxis, x: float, y: float) -> DragState:
    """Start dragging; the cut jumps to the press position immediately."""
    if axis.max_height <= 0 or not axis.contains(x, y):
        return state
    return DragState(is_dragging=True, cut_height=axis.to_height(x))


def pointer_move(state: DragState, axis: HeightAxis, x: float) -> DragState:
    if not state.is_dragging or axis.max_height <= 0:
        return state
    return DragState(is_dragging=True, cut_height=axis.to_height(x))


def pointer_up(state: DragState) -> DragState:
    if not state.is_dragging:
        return state
    return DragState(is_dragging=False, cut_height=state.cut_height)


pointer_leave = pointer_up


class InteractionController:
    """Holds the drag state for one dendrogram canvas."""

    def __init__(self, axis: HeightAxis, state: Optional[DragState] = None) -> None:
        self.axis = axis
        self.state = state or DragState()

    @property
    def cut_height(self) -> Optional[float]:
        return self.state.cut_height

    @property
    def is_dragging(self) -> bool:
        return self.state.is_dragging

    def set_axis(self, axis: HeightAxis) -> None:
        """Swap the scale after a resize or a new tree; the drag is abandoned."""
        self.axis = axis
        self.state = pointer_up(self.state)

    def reset(self) -> None:
        self.state = DragState()

    def on_pointer_down(self, x: float, y: float) -> Optional[float]:
        self.state = pointer_down(self.state, self.axis, x, y)
        logger.debug("pointer down at x=%.1f -> cut=%s", x, self.state.cut_height)
        return self.state.cut_height

    def on_pointer_move(self, x: float) -> Optional[float]:
        self.state = pointer_move(self.state, self.axis, x)
        return self.state.cut_height

    def on_pointer_up(self) -> Optional[float]:
        self.state = pointer_up(self.state)
        return self.state.cut_height

    def on_pointer_leave(self) -> Optional[float]:
        self.state = pointer_leave(self.state)
        return self.state.cut_height
