"""Status grid chart: one card per module showing how often it is enabled."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from ..config import Config
from ..drawing import Color, DrawingCommand, Oval, Rect, Text
from .base import ChartDimensions, ColorPalette

__all__ = ["StatusGridChart"]

CARD_WIDTH = 220
CARD_HEIGHT = 60
CARD_SPACING = 20
CORNER_RADIUS = 6
CARD_ALPHA = 30
DOT_SIZE = 20
LEGEND_DOT_SIZE = 14
LEGEND_ITEM_OFFSET = 120


def _status_dimensions() -> ChartDimensions:
    return ChartDimensions(
        Config.STATUS_CANVAS_WIDTH, Config.STATUS_CANVAS_HEIGHT, Config.CANVAS_MARGIN
    )


@dataclass(frozen=True)
class StatusGridChart:
    """
    Grid of module cards, alphabetical, wrapping left-to-right.

    Each card is tinted by blending the palette's enabled and disabled
    colors by the module's enabled ratio, so a fully enabled module is
    pure "enabled" color and a never-enabled one pure "disabled".

    Args:
        dimensions: Canvas geometry, 2400x1500 by default.
        palette: Enabled/disabled/text colors.
        enabled_label: Legend text for the enabled color.
        disabled_label: Legend text for the disabled color.
    """

    dimensions: ChartDimensions = field(default_factory=_status_dimensions)
    palette: ColorPalette = field(default_factory=ColorPalette.default)
    enabled_label: str = "Enabled"
    disabled_label: str = "Disabled"

    @staticmethod
    def status_text(enabled: int, total: int) -> str:
        """
        Card status line.

        Example:
            >>> StatusGridChart.status_text(3, 4)
            '3/4 (75%)'
        """
        ratio = enabled / total if total > 0 else 0.0
        return f"{enabled}/{total} ({ratio * 100:.0f}%)"

    def card_color(self, enabled: int, total: int) -> Color:
        ratio = enabled / total if total > 0 else 0.0
        return self.palette.enabled.blend(self.palette.disabled, ratio)

    def card_positions(self, count: int) -> list[tuple[int, int]]:
        """
        Top-left corners of `count` cards.

        Cards advance left to right and wrap to a new row as soon as the
        next card would cross the right margin.
        """
        dims = self.dimensions
        x, y = dims.margin, dims.margin + 40
        positions = []
        for _index in range(count):
            positions.append((x, y))
            x += CARD_WIDTH + CARD_SPACING
            if x + CARD_WIDTH > dims.width - dims.margin:
                x = dims.margin
                y += CARD_HEIGHT + CARD_SPACING
        return positions

    def render(self, enabled_counts: Mapping[str, int], total: int) -> list[DrawingCommand]:
        if not enabled_counts:
            return []

        names = sorted(enabled_counts)
        positions = self.card_positions(len(names))
        text = self.palette.text

        commands: list[DrawingCommand] = []
        for name, (x, y) in zip(names, positions):
            enabled = enabled_counts[name]
            color = self.card_color(enabled, total)
            commands.append(
                Rect(
                    x,
                    y,
                    CARD_WIDTH,
                    CARD_HEIGHT,
                    fill=color.with_alpha(CARD_ALPHA),
                    stroke=color,
                    stroke_width=1.5,
                    corner_radius=CORNER_RADIUS,
                )
            )
            commands.append(
                Oval(x + 15, y + CARD_HEIGHT // 2 - DOT_SIZE // 2, DOT_SIZE, DOT_SIZE, fill=color)
            )
            commands.append(Text(x + 45, y + 25, name.upper(), size=12, color=text, weight="bold"))
            commands.append(
                Text(x + 45, y + 40, self.status_text(enabled, total), size=15, color=text, weight="bold")
            )

        last_row_y = positions[-1][1]
        commands.extend(self._legend(last_row_y + CARD_HEIGHT))
        return commands

    def _legend(self, start_y: int) -> list[DrawingCommand]:
        dims = self.dimensions
        x = dims.width // 2 - 100
        y = min(start_y + 30, dims.height - dims.margin - 30)
        half = LEGEND_DOT_SIZE // 2
        commands: list[DrawingCommand] = []
        items = ((self.palette.enabled, self.enabled_label), (self.palette.disabled, self.disabled_label))
        for offset, (color, label) in enumerate(items):
            item_x = x + offset * LEGEND_ITEM_OFFSET
            commands.append(Oval(item_x, y - half, LEGEND_DOT_SIZE, LEGEND_DOT_SIZE, fill=color))
            commands.append(
                Text(item_x + LEGEND_DOT_SIZE + 10, y + 5, label, color=self.palette.text)
            )
        return commands
