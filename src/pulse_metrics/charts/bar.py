"""Vertical bar distribution chart."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ..drawing import DrawingCommand, Rect, Text
from .base import ChartDimensions, ColorPalette, hue_sweep

__all__ = ["BarDistributionChart"]

CORNER_RADIUS = 5
MIN_BAR_WIDTH = 30
MAX_BAR_WIDTH = 80
BAR_SPACING = 15
BOTTOM_MARGIN = 40
VALUE_FONT_SIZE = 15
LABEL_FONT_SIZE = 12


@dataclass(frozen=True)
class BarDistributionChart:
    """
    One rounded bar per category, in the mapping's order.

    Bar height is value / max_value of the plot height minus a bottom strip
    reserved for labels. Bars share one width, clamped to [30, 80], and the
    whole group is centered on the canvas. Each bar gets its own color from
    hue_sweep(), so the palette is a function of position.

    Args:
        dimensions: Canvas geometry.
        palette: Text color source.
        value_suffix: Appended to every category label, e.g. " GB".
    """

    dimensions: ChartDimensions = field(default_factory=ChartDimensions)
    palette: ColorPalette = field(default_factory=ColorPalette.default)
    value_suffix: str = ""

    def bar_width(self, bar_count: int) -> int:
        """Widest bar width that fits all bars, clamped to [30, 80]."""
        available = self.dimensions.graph_width - (bar_count - 1) * BAR_SPACING
        return min(MAX_BAR_WIDTH, max(MIN_BAR_WIDTH, available // bar_count))

    def bar_height(self, value: int, max_value: int) -> int:
        """Height in pixels; a non-positive maximum is treated as 1."""
        denominator = max_value if max_value > 0 else 1
        return int(value / denominator * (self.dimensions.graph_height - BOTTOM_MARGIN))

    def render(self, distribution: Mapping[str, int]) -> list[DrawingCommand]:
        if not distribution:
            return []

        dims = self.dimensions
        count = len(distribution)
        width = self.bar_width(count)
        total_width = count * width + (count - 1) * BAR_SPACING
        x = (dims.width - total_width) // 2
        max_value = max(distribution.values())
        bar_bottom = dims.height - dims.margin - BOTTOM_MARGIN
        label_y = dims.height - dims.margin - 15

        commands: list[DrawingCommand] = []
        for index, (label, value) in enumerate(distribution.items()):
            height = self.bar_height(value, max_value)
            top = bar_bottom - height
            center = x + width / 2
            commands.append(
                Rect(
                    x,
                    top,
                    width,
                    height,
                    fill=hue_sweep(index, count),
                    corner_radius=CORNER_RADIUS,
                )
            )
            commands.append(
                Text(
                    center,
                    top - 5,
                    str(value),
                    size=VALUE_FONT_SIZE,
                    color=self.palette.text,
                    weight="bold",
                    anchor="middle",
                )
            )
            commands.append(
                Text(
                    center,
                    label_y,
                    f"{label}{self.value_suffix}",
                    size=LABEL_FONT_SIZE,
                    color=self.palette.text,
                    weight="bold",
                    anchor="middle",
                )
            )
            x += width + BAR_SPACING

        return commands
