"""
Multi-day time-series chart.

PURPOSE: Draw two hourly metrics (players, servers) as smoothed filled
areas over several UTC days.
AI CONTEXT: Input is already split per day ({day: {hour_of_day: value}});
see Aggregator.split_by_day().

X AXIS:
Hours are laid out back to back across days. Every day but the last has 24
hours; the last day may be in progress, so its hour count is passed in and
the hour width is recomputed from the real total:
    hour_width = graph_width / ((days - 1) * 24 + last_day_hours)

CURVES:
Consecutive points are joined by cubic segments whose control points sit
a third of the way along, at the previous and the next point's height.
That keeps the curve flat at every data point, so it never overshoots
below zero or above the peak.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

from ..drawing import Color, DrawingCommand, Oval, Path, PathBuilder, Text
from .base import ChartDimensions, ColorPalette

__all__ = ["TimeAxis", "TimeSeriesChart", "format_day_label"]

HOURS_PER_DAY = 24
Y_TICKS = 6
LINE_WIDTH = 2.5
FILL_ALPHA = 180
DOT_SIZE = 14
LEGEND_OFFSET = 100
LEGEND_ITEM_SPACING = 120

_WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
_MONTHS = ("JAN", "FEB", "MAR", "APR", "MAY", "JUN", "JUL", "AUG", "SEP", "OCT", "NOV", "DEC")

DayHours = Mapping[datetime, Mapping[int, int]]


def format_day_label(day: datetime) -> str:
    """
    Uppercase 'weekday, day month' label, independent of the process locale.

    Example:
        >>> format_day_label(datetime(2026, 3, 2))
        'MON, 02 MAR'
    """
    return f"{_WEEKDAYS[day.weekday()]}, {day.day:02d} {_MONTHS[day.month - 1]}"


@dataclass(frozen=True)
class TimeAxis:
    """
    Hour-proportional x axis.

    Args:
        margin: Left edge of the plot area.
        graph_width: Plot area width.
        day_count: Number of days shown, at least 1.
        last_day_hours: Hours present in the final day, 1-24.
    """

    margin: int
    graph_width: int
    day_count: int
    last_day_hours: int = HOURS_PER_DAY

    @property
    def total_hours(self) -> int:
        return max(1, (self.day_count - 1) * HOURS_PER_DAY + self.last_day_hours)

    @property
    def hour_width(self) -> float:
        return self.graph_width / self.total_hours

    def hours_in_day(self, day_index: int) -> int:
        return self.last_day_hours if day_index == self.day_count - 1 else HOURS_PER_DAY

    def x_position(self, total_hour: float) -> float:
        """
        x coordinate of an hour counted from the first day's midnight.

        Clamped to the right edge of the plot area.
        """
        return min(self.margin + self.hour_width * total_hour, self.margin + self.graph_width)

    def day_center(self, day_index: int) -> float:
        """x coordinate of the middle of a day's actual hours."""
        return self.x_position(day_index * HOURS_PER_DAY + self.hours_in_day(day_index) / 2)


@dataclass(frozen=True)
class TimeSeriesChart:
    """
    Renderer for the two-metric activity chart.

    Args:
        first_label: Legend suffix for the first metric, e.g. " players".
        second_label: Legend suffix for the second metric.
    """

    first_label: str = " players"
    second_label: str = " servers"
    dimensions: ChartDimensions = field(default_factory=ChartDimensions)
    palette: ColorPalette = field(default_factory=ColorPalette.default)

    def axis(self, day_count: int, last_day_hours: int) -> TimeAxis:
        return TimeAxis(
            margin=self.dimensions.margin,
            graph_width=self.dimensions.graph_width,
            day_count=day_count,
            last_day_hours=min(HOURS_PER_DAY, max(1, last_day_hours)),
        )

    def render(
        self, first: DayHours, second: DayHours, last_day_hours: int = HOURS_PER_DAY
    ) -> list[DrawingCommand]:
        """
        Render both series.

        Args:
            first: Day -> hour of day -> value for the first metric.
            second: Same shape for the second metric.
            last_day_hours: Hours to plot for the final day.

        Returns:
            Grid, filled areas, outlines, date labels and legend, in that
            paint order. Empty list when both series are empty.
        """
        days = sorted(set(first) | set(second))
        if not days:
            return []

        axis = self.axis(len(days), last_day_hours)
        first_points = self._series(first, days, axis)
        second_points = self._series(second, days, axis)
        y_max = max(max(first_points, default=0), max(second_points, default=0))
        if y_max <= 0:
            y_max = 1

        first_path = self._area(first_points, axis, y_max)
        second_path = self._area(second_points, axis, y_max)
        primary, secondary = self.palette.primary, self.palette.secondary

        commands: list[DrawingCommand] = []
        commands.extend(self._grid(y_max))
        commands.append(first_path.build(fill=primary.with_alpha(FILL_ALPHA)))
        commands.append(second_path.build(fill=secondary.with_alpha(FILL_ALPHA)))
        commands.append(first_path.build(stroke=primary, stroke_width=LINE_WIDTH))
        commands.append(second_path.build(stroke=secondary, stroke_width=LINE_WIDTH))
        commands.extend(self._date_labels(days, axis))
        commands.extend(
            self._legend(
                f"{first_points[-1]}{self.first_label}",
                f"{second_points[-1]}{self.second_label}",
            )
        )
        return commands

    @staticmethod
    def _series(data: DayHours, days: list[datetime], axis: TimeAxis) -> list[int]:
        values = []
        for day_index, day in enumerate(days):
            hours = data.get(day, {})
            for hour in range(axis.hours_in_day(day_index)):
                values.append(int(hours.get(hour, 0)))
        return values

    def y_position(self, value: int, y_max: int) -> int:
        dims = self.dimensions
        return dims.baseline - int(value / y_max * dims.graph_height)

    def _area(self, values: list[int], axis: TimeAxis, y_max: int) -> PathBuilder:
        baseline = self.dimensions.baseline
        builder = PathBuilder().move_to(axis.margin, baseline)

        last_x = float(axis.margin)
        for total_hour, value in enumerate(values):
            x = axis.x_position(total_hour)
            y = self.y_position(value, y_max)
            if total_hour == 0:
                builder.line_to(x, y)
            else:
                prev_x, prev_y = builder.current_point
                dx = (x - prev_x) / 3
                builder.curve_to(prev_x + dx, prev_y, x - dx, y, x, y)
            last_x = x

        return builder.line_to(last_x, baseline).line_to(axis.margin, baseline).close()

    def _grid(self, y_max: int) -> list[DrawingCommand]:
        dims = self.dimensions
        commands: list[DrawingCommand] = []
        for tick in range(Y_TICKS + 1):
            y = dims.baseline - tick * dims.graph_height // Y_TICKS
            commands.append(
                Path.line(
                    dims.margin - 30,
                    y,
                    dims.margin + dims.graph_width - 10,
                    y,
                    stroke=self.palette.grid,
                    stroke_width=0.5,
                )
            )
            commands.append(
                Text(
                    dims.margin - 30,
                    y + 4,
                    str(tick * y_max // Y_TICKS),
                    size=15,
                    color=self.palette.text,
                    weight="bold",
                    anchor="end",
                )
            )
        return commands

    def _date_labels(self, days: list[datetime], axis: TimeAxis) -> list[DrawingCommand]:
        y = self.dimensions.baseline + 28
        return [
            Text(
                axis.day_center(index),
                y,
                format_day_label(day),
                size=15,
                color=self.palette.text,
                weight="bold",
                anchor="middle",
            )
            for index, day in enumerate(days)
        ]

    def _legend(self, first_text: str, second_text: str) -> list[DrawingCommand]:
        dims = self.dimensions
        y = dims.baseline + 60
        x = dims.margin + dims.graph_width // 2 - LEGEND_OFFSET
        commands: list[DrawingCommand] = []
        items: tuple[tuple[Color, str], ...] = (
            (self.palette.primary, first_text),
            (self.palette.secondary, second_text),
        )
        for offset, (color, text) in enumerate(items):
            item_x = x + offset * LEGEND_ITEM_SPACING
            commands.append(Oval(item_x, y - DOT_SIZE // 2, DOT_SIZE, DOT_SIZE, fill=color))
            commands.append(Text(item_x + DOT_SIZE + 10, y + 5, text, color=self.palette.text))
        return commands
