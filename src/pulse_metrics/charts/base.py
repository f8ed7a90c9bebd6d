"""
Shared chart configuration.

PURPOSE: Canvas geometry, color palette and small helpers every chart
renderer uses.
AI CONTEXT: Renderers receive these as constructor arguments; there is no
renderer base class holding state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..config import Config
from ..drawing import Color, DrawingCommand

__all__ = [
    "ChartDimensions",
    "ChartRenderer",
    "ColorPalette",
    "format_value",
    "hue_sweep",
]

HUE_SPAN = 0.8
SWEEP_SATURATION = 0.7
SWEEP_BRIGHTNESS = 0.8


@dataclass(frozen=True)
class ChartDimensions:
    """
    Canvas size and the margin framing the plot area.

    Example:
        >>> dims = ChartDimensions(1200, 600, 80)
        >>> dims.graph_width, dims.graph_height
        (1040, 440)
    """

    width: int = Config.CANVAS_WIDTH
    height: int = Config.CANVAS_HEIGHT
    margin: int = Config.CANVAS_MARGIN

    @property
    def graph_width(self) -> int:
        return self.width - 2 * self.margin

    @property
    def graph_height(self) -> int:
        return self.height - 2 * self.margin

    @property
    def baseline(self) -> int:
        """y coordinate of the plot area's bottom edge."""
        return self.margin + self.graph_height


@dataclass(frozen=True)
class ColorPalette:
    """Fixed colors shared by all charts."""

    primary: Color
    secondary: Color
    text: Color
    grid: Color
    enabled: Color
    disabled: Color

    @classmethod
    def default(cls) -> ColorPalette:
        return cls(
            primary=Color(100, 210, 255),
            secondary=Color(120, 255, 105),
            text=Color(240, 240, 245),
            grid=Color(70, 70, 80, 150),
            enabled=Color(120, 255, 105),
            disabled=Color(255, 150, 100),
        )


class ChartRenderer(Protocol):
    """
    Contract shared by every chart kind.

    A renderer is a pure function of its constructor configuration and the
    data passed to render(). It returns drawing commands in paint order and
    an empty list for empty data.
    """

    dimensions: ChartDimensions

    def render(self, *data: Any) -> list[DrawingCommand]: ...


def hue_sweep(index: int, total: int) -> Color:
    """
    Deterministic color for the index-th of `total` categories.

    Sweeps 80% of the hue wheel so the first and last colors stay distinct.

    Example:
        >>> hue_sweep(0, 3)
        Color(red=204, green=61, blue=61, alpha=255)
    """
    hue = HUE_SPAN * index / total if total > 0 else 0.0
    return Color.from_hsb(hue, SWEEP_SATURATION, SWEEP_BRIGHTNESS)


def format_value(value: int) -> str:
    """
    Compact axis label: 1500 -> "1K", 2500000 -> "2M".

    Integer division, so labels round down.
    """
    if value >= 1_000_000:
        return f"{value // 1_000_000}M"
    if value >= 1000:
        return f"{value // 1000}K"
    return str(value)
