"""
Dual-bar comparison chart.

PURPOSE: Compare two metrics per category (players and servers per server
core) side by side.
AI CONTEXT: Each metric has its own y-scale: the left axis belongs to the
first metric, the right axis to the second.

LAYOUT:
    group = [first bar][gap][second bar]   groups separated by group_gap
When all groups are wider than the canvas minus side margins, bar width,
gap and group gap shrink by one common factor.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ..drawing import Color, DrawingCommand, Path, Rect, Text
from .base import ChartDimensions, ColorPalette, format_value

__all__ = ["ComparisonChart", "order_by_total"]

BAR_WIDTH = 30
BAR_GAP = 15
GROUP_GAP = 40
MIN_BAR_HEIGHT = 1
LEGEND_SIZE = 15
CORNER_RADIUS = 4
SIDE_MARGIN = 50
Y_STEPS = 6
MAX_LABEL_CHARS = 12

Pair = tuple[int, int]


def order_by_total(data: Mapping[str, Pair]) -> dict[str, Pair]:
    """
    Sort categories by the sum of both values, largest first.

    Stable, so categories with equal totals keep their input order.

    Example:
        >>> list(order_by_total({"a": (3, 8), "b": (10, 5)}))
        ['b', 'a']
    """
    return dict(sorted(data.items(), key=lambda item: item[1][0] + item[1][1], reverse=True))


def _short_label(label: str) -> str:
    return label[:9] + "..." if len(label) > MAX_LABEL_CHARS else label


@dataclass(frozen=True)
class ComparisonChart:
    """
    Renderer for the dual-bar comparison chart.

    Args:
        first_label: Legend text for the first metric (left axis).
        second_label: Legend text for the second metric (right axis).
    """

    first_label: str = "Players"
    second_label: str = "Servers"
    dimensions: ChartDimensions = field(default_factory=ChartDimensions)
    palette: ColorPalette = field(default_factory=ColorPalette.default)

    @staticmethod
    def natural_width(group_count: int) -> int:
        """Unscaled width of all groups."""
        return group_count * (2 * BAR_WIDTH + BAR_GAP + GROUP_GAP) - GROUP_GAP

    def scale_factor(self, group_count: int) -> float:
        """
        Uniform shrink factor so every group fits, 1.0 when they already do.
        """
        required = self.natural_width(group_count)
        available = self.dimensions.width - 2 * SIDE_MARGIN
        if required > available:
            return available / required
        return 1.0

    def bar_height(self, value: int, max_value: int) -> int:
        """Height for one bar; never below MIN_BAR_HEIGHT."""
        denominator = max_value if max_value > 0 else 1
        return max(int(value / denominator * self.dimensions.graph_height), MIN_BAR_HEIGHT)

    def render(self, data: Mapping[str, Pair]) -> list[DrawingCommand]:
        if not data:
            return []

        ordered = order_by_total(data)
        max_first = max(first for first, _second in ordered.values())
        max_second = max(second for _first, second in ordered.values())
        scale = self.scale_factor(len(ordered))

        commands: list[DrawingCommand] = []
        commands.extend(self._x_axis())
        commands.extend(self._y_axis(left=True, max_value=max_first, color=self.palette.primary))
        commands.extend(self._y_axis(left=False, max_value=max_second, color=self.palette.secondary))
        commands.extend(self._bars(ordered, max_first, max_second, scale))
        commands.extend(self._legend())
        return commands

    def _x_axis(self) -> list[DrawingCommand]:
        dims = self.dimensions
        return [
            Path.line(
                SIDE_MARGIN,
                dims.baseline,
                dims.width - SIDE_MARGIN - 30,
                dims.baseline,
                stroke=self.palette.grid,
                stroke_width=1.5,
            )
        ]

    def _y_axis(self, left: bool, max_value: int, color: Color) -> list[DrawingCommand]:
        dims = self.dimensions
        x = SIDE_MARGIN - 25 if left else dims.width - SIDE_MARGIN
        commands: list[DrawingCommand] = [
            Path.line(x, dims.margin, x, dims.baseline, stroke=color, stroke_width=2)
        ]
        for step in range(Y_STEPS + 1):
            value = max_value * step // Y_STEPS
            y = dims.baseline - dims.graph_height * step // Y_STEPS
            commands.append(
                Text(
                    x - 5 if left else x + 5,
                    y + 5,
                    format_value(value),
                    size=15,
                    color=self.palette.text,
                    weight="bold",
                    anchor="end" if left else "start",
                )
            )
            commands.append(
                Path.line(
                    SIDE_MARGIN,
                    y,
                    dims.width - SIDE_MARGIN - 30,
                    y,
                    stroke=self.palette.grid,
                    stroke_width=0.5,
                )
            )
        return commands

    def _bars(
        self, ordered: Mapping[str, Pair], max_first: int, max_second: int, scale: float
    ) -> list[DrawingCommand]:
        dims = self.dimensions
        bar_width = int(BAR_WIDTH * scale)
        bar_gap = int(BAR_GAP * scale)
        group_gap = int(GROUP_GAP * scale)
        chart_width = int(self.natural_width(len(ordered)) * scale)
        x = (dims.width - chart_width) // 2

        commands: list[DrawingCommand] = []
        for label, (first, second) in ordered.items():
            commands.append(self._bar(x, self.bar_height(first, max_first), bar_width, self.palette.primary))
            commands.append(
                self._bar(
                    x + bar_width + bar_gap,
                    self.bar_height(second, max_second),
                    bar_width,
                    self.palette.secondary,
                )
            )
            commands.append(
                Text(
                    x + bar_width + bar_gap / 2,
                    dims.height - dims.margin + 20,
                    _short_label(label),
                    color=self.palette.text,
                    anchor="middle",
                )
            )
            x += 2 * bar_width + bar_gap + group_gap
        return commands

    def _bar(self, x: int, height: int, width: int, color: Color) -> Rect:
        return Rect(
            x,
            self.dimensions.baseline - height,
            width,
            height,
            fill=color,
            stroke=color.darker(),
            stroke_width=1,
            corner_radius=CORNER_RADIUS,
        )

    def _legend(self) -> list[DrawingCommand]:
        dims = self.dimensions
        y = dims.baseline + 40
        center = dims.width // 2
        commands: list[DrawingCommand] = []
        for x, color, label in (
            (center - 100, self.palette.primary, self.first_label),
            (center + 30, self.palette.secondary, self.second_label),
        ):
            commands.append(Rect(x, y, LEGEND_SIZE, LEGEND_SIZE, fill=color))
            commands.append(
                Text(x + LEGEND_SIZE + 5, y + LEGEND_SIZE - 3, label, color=self.palette.text)
            )
        return commands
