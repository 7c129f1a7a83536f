"""Deterministic cluster and point colors.

Clusters inside the palette take the palette entry at their index; the rest
get a generated HSL color whose hue is spread evenly over the wheel by
``index / total``, with saturation and lightness nudged by index parity so
neighbouring hues stay distinguishable.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

DEFAULT_PALETTE: Tuple[str, ...] = (
    "hsl(355, 85%, 50%)",
    "hsl(30, 85%, 55%)",
    "hsl(55, 75%, 60%)",
    "hsl(210, 85%, 55%)",
)


def _format_number(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def generate_color(index: int, total: int) -> str:
    """Pure function of ``(index, total)``."""
    hue = (index * 360) / max(total, 1)
    saturation = 65 + (index % 3) * 5
    lightness = 50 + (index % 2) * 5
    return f"hsl({_format_number(hue)}, {saturation}%, {lightness}%)"


@dataclass(frozen=True)
class ColorPolicy:
    """Ordered palette first, generated colors after it runs out."""

    palette: Tuple[str, ...] = DEFAULT_PALETTE

    @classmethod
    def from_palette(cls, palette: Sequence[str]) -> "ColorPolicy":
        return cls(palette=tuple(palette))

    def color_for(self, index: int, total: int) -> str:
        if 0 <= index < len(self.palette):
            return self.palette[index]
        return generate_color(index, total)
