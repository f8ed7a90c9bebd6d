"""
Circle-packing distribution chart.

PURPOSE: Show category shares as non-overlapping circles sized by value.
AI CONTEXT: Layout is delegated to packing.CirclePacker; this module only
turns placed circles into drawing commands.

PAINT ORDER:
1. Every circle (gradient fill, then a brightened border)
2. Every label, so text is never covered by a neighbouring circle
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..drawing import Color, DrawingCommand, Oval, RadialGradient, Text
from ..packing import CirclePacker, PackedCircle, wrap_label
from .base import ChartDimensions, ColorPalette, hue_sweep

__all__ = ["CircleDistributionChart"]

BORDER_WIDTH = 2.5
BORDER_BRIGHTEN = 40
GRADIENT_BRIGHTEN = 30
MIN_FONT_SIZE = 10
MAX_FONT_SIZE = 20
MIN_LABEL_CHARS = 6

SHADOW_COLOR = Color(0, 0, 0, 120)
LABEL_COLOR = Color(255, 255, 255)


@dataclass
class CircleDistributionChart:
    """
    Renderer for the circle distribution chart.

    Args:
        dimensions: Canvas geometry; the packer uses the full canvas.
        palette: Kept for a uniform renderer signature.
        label_suffix: Appended to every category label.
        value_suffix: Appended to the raw value on the value line.
        show_percentage: Add the category's share of the total, one decimal.
        rng: Random source for the packer's fallback phase.
    """

    dimensions: ChartDimensions = field(default_factory=ChartDimensions)
    palette: ColorPalette = field(default_factory=ColorPalette.default)
    label_suffix: str = ""
    value_suffix: str = ""
    show_percentage: bool = False
    rng: random.Random | None = None

    def packer(self) -> CirclePacker:
        return CirclePacker(self.dimensions.width, self.dimensions.height, rng=self.rng)

    @staticmethod
    def font_size(radius: int) -> int:
        return max(MIN_FONT_SIZE, min(MAX_FONT_SIZE, radius // 3))

    @staticmethod
    def label_chars(radius: int) -> int:
        """Characters per label line that fit inside a circle of this radius."""
        return max(MIN_LABEL_CHARS, radius // 5)

    def value_text(self, circle: PackedCircle) -> str:
        """
        Build the value line for one circle.

        The raw value is shown when a suffix is configured or when no
        percentage is requested, so the line is never empty.

        Example:
            >>> chart = CircleDistributionChart(show_percentage=True)
            >>> chart.value_text(PackedCircle("Linux", 3, 0.75, 90))
            '75.0%'
        """
        parts = []
        if self.value_suffix or not self.show_percentage:
            parts.append(f"{circle.value}{self.value_suffix}")
        if self.show_percentage:
            parts.append(f"{circle.ratio * 100:.1f}%")
        return " ".join(parts)

    def render(self, distribution: Mapping[str, int]) -> list[DrawingCommand]:
        if not distribution:
            return []

        count = len(distribution)
        colors = {label: hue_sweep(index, count) for index, label in enumerate(distribution)}
        circles = self.packer().pack(distribution)

        commands: list[DrawingCommand] = []
        for circle in circles:
            commands.extend(self._circle(circle, colors[circle.label]))
        for circle in circles:
            commands.extend(self._label(circle))
        return commands

    def _circle(self, circle: PackedCircle, fill: Color) -> list[DrawingCommand]:
        box = (
            circle.x - circle.radius,
            circle.y - circle.radius,
            circle.radius * 2,
            circle.radius * 2,
        )
        return [
            Oval(*box, fill=RadialGradient(fill, fill.brighten(GRADIENT_BRIGHTEN))),
            Oval(*box, stroke=fill.brighten(BORDER_BRIGHTEN), stroke_width=BORDER_WIDTH),
        ]

    def _label(self, circle: PackedCircle) -> list[DrawingCommand]:
        size = self.font_size(circle.radius)
        lines = wrap_label(circle.label, self.label_chars(circle.radius))
        lines[-1] = lines[-1] + self.label_suffix

        # label block ends just above the center, value line sits below it
        first_y = circle.y - 8 - (len(lines) - 1) * (size + 2)
        commands: list[DrawingCommand] = []
        for offset, line in enumerate(lines):
            commands.extend(self._shadowed(line, circle.x, first_y + offset * (size + 2), size))
        commands.extend(self._shadowed(self.value_text(circle), circle.x, circle.y + 10, size))
        return commands

    @staticmethod
    def _shadowed(content: str, x: float, y: float, size: int) -> list[Text]:
        return [
            Text(x + 1, y + 1, content, size=size, color=SHADOW_COLOR, weight="bold", anchor="middle"),
            Text(x, y, content, size=size, color=LABEL_COLOR, weight="bold", anchor="middle"),
        ]
