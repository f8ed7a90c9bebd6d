"""
Chart renderers for Pulse Metrics.

Each renderer turns grouped statistics into an ordered list of drawing
commands. Renderers are immutable configuration plus a pure render().

KINDS:
- BarDistributionChart: one rounded bar per category
- CircleDistributionChart: packed circles sized by share
- StatusGridChart: enabled-ratio card per module
- ComparisonChart: two bars per category on independent scales
- TimeSeriesChart: two smoothed hourly areas over several days
"""

from .bar import BarDistributionChart
from .base import ChartDimensions, ChartRenderer, ColorPalette, format_value, hue_sweep
from .circle import CircleDistributionChart
from .comparison import ComparisonChart, order_by_total
from .status import StatusGridChart
from .time_series import TimeAxis, TimeSeriesChart, format_day_label

__all__ = [
    "BarDistributionChart",
    "ChartDimensions",
    "ChartRenderer",
    "CircleDistributionChart",
    "ColorPalette",
    "ComparisonChart",
    "StatusGridChart",
    "TimeAxis",
    "TimeSeriesChart",
    "format_day_label",
    "format_value",
    "hue_sweep",
    "order_by_total",
]
