"""
Drawing commands for Pulse Metrics charts.

PURPOSE: Format-independent vector drawing instructions.
AI CONTEXT: Renderers emit these; a DrawingSink serialises them. Nothing
here knows about SVG, PNG or any graphics library.

COORDINATES:
Canvas pixels, origin top-left, y grows downwards. Later commands paint
over earlier ones.

COMMANDS:
- Rect: axis-aligned rectangle, optional corner rounding
- Oval: ellipse inscribed in a bounding box
- Path: MoveTo / LineTo / CurveTo / ClosePath segments
- Text: single run of text anchored at a baseline point

Each command may be filled, stroked or both; a None fill or stroke
means "don't paint that part".
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass, field
from typing import Literal, Protocol, Union

__all__ = [
    "Color",
    "RadialGradient",
    "Rect",
    "Oval",
    "MoveTo",
    "LineTo",
    "CurveTo",
    "ClosePath",
    "Path",
    "PathBuilder",
    "Text",
    "DrawingCommand",
    "DrawingSink",
]


def _channel(value: float) -> int:
    return max(0, min(255, int(value)))


@dataclass(frozen=True)
class Color:
    """RGBA color with 0-255 channels."""

    red: int
    green: int
    blue: int
    alpha: int = 255

    @classmethod
    def from_hsb(cls, hue: float, saturation: float, brightness: float) -> Color:
        """
        Create an opaque color from hue/saturation/brightness.

        Hue wraps around, so 0.0 and 1.0 are both red. Channels are
        rounded half-up, matching the usual HSB color pickers.

        Example:
            >>> Color.from_hsb(0.0, 1.0, 1.0)
            Color(red=255, green=0, blue=0, alpha=255)
        """
        r, g, b = colorsys.hsv_to_rgb(hue % 1.0, saturation, brightness)
        return cls(int(r * 255 + 0.5), int(g * 255 + 0.5), int(b * 255 + 0.5))

    def brighten(self, amount: int) -> Color:
        """Add `amount` to each RGB channel, capped at 255."""
        return Color(
            _channel(self.red + amount),
            _channel(self.green + amount),
            _channel(self.blue + amount),
            self.alpha,
        )

    def darker(self, factor: float = 0.7) -> Color:
        """Scale each RGB channel down by `factor`."""
        return Color(
            _channel(self.red * factor),
            _channel(self.green * factor),
            _channel(self.blue * factor),
            self.alpha,
        )

    def with_alpha(self, alpha: int) -> Color:
        """Return the same color with a different alpha."""
        return Color(self.red, self.green, self.blue, _channel(alpha))

    def blend(self, other: Color, ratio: float) -> Color:
        """
        Linear blend weighted towards self by `ratio`.

        ratio=1.0 gives self, ratio=0.0 gives other. The result is opaque.
        """
        return Color(
            _channel(self.red * ratio + other.red * (1 - ratio)),
            _channel(self.green * ratio + other.green * (1 - ratio)),
            _channel(self.blue * ratio + other.blue * (1 - ratio)),
        )

    def to_rgba(self) -> tuple[float, float, float, float]:
        """Channels as 0.0-1.0 floats."""
        return (self.red / 255, self.green / 255, self.blue / 255, self.alpha / 255)

    def to_hex(self) -> str:
        """Opaque '#rrggbb' form."""
        return f"#{self.red:02x}{self.green:02x}{self.blue:02x}"


@dataclass(frozen=True)
class RadialGradient:
    """Fill fading from `inner` at the center to `outer` at the edge."""

    inner: Color
    outer: Color


Fill = Union[Color, RadialGradient]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float
    fill: Color | None = None
    stroke: Color | None = None
    stroke_width: float = 1.0
    corner_radius: float = 0.0


@dataclass(frozen=True)
class Oval:
    """Ellipse inscribed in the box (x, y, width, height)."""

    x: float
    y: float
    width: float
    height: float
    fill: Fill | None = None
    stroke: Color | None = None
    stroke_width: float = 1.0

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float


@dataclass(frozen=True)
class CurveTo:
    """Cubic Bezier segment with two control points."""

    x1: float
    y1: float
    x2: float
    y2: float
    x: float
    y: float


@dataclass(frozen=True)
class ClosePath:
    pass


PathSegment = Union[MoveTo, LineTo, CurveTo, ClosePath]


@dataclass(frozen=True)
class Path:
    segments: tuple[PathSegment, ...]
    fill: Color | None = None
    stroke: Color | None = None
    stroke_width: float = 1.0

    @classmethod
    def line(
        cls, x1: float, y1: float, x2: float, y2: float, stroke: Color, stroke_width: float = 1.0
    ) -> Path:
        """Single stroked straight line."""
        return cls((MoveTo(x1, y1), LineTo(x2, y2)), stroke=stroke, stroke_width=stroke_width)


@dataclass(frozen=True)
class Text:
    """
    Text run anchored at (x, y) on its baseline.

    `anchor` picks which end of the run sits on x, so renderers can center
    labels without measuring fonts.
    """

    x: float
    y: float
    content: str
    size: float = 12.0
    color: Color = field(default_factory=lambda: Color(0, 0, 0))
    weight: Literal["normal", "bold"] = "normal"
    anchor: Literal["start", "middle", "end"] = "start"


DrawingCommand = Union[Rect, Oval, Path, Text]


class PathBuilder:
    """
    Incremental Path construction that tracks the current point.

    Example:
        >>> builder = PathBuilder().move_to(0, 10).line_to(5, 5)
        >>> builder.current_point
        (5, 5)
        >>> path = builder.close().build(fill=Color(255, 0, 0))
    """

    def __init__(self) -> None:
        self._segments: list[PathSegment] = []
        self._current: tuple[float, float] | None = None
        self._start: tuple[float, float] | None = None

    @property
    def current_point(self) -> tuple[float, float] | None:
        return self._current

    def move_to(self, x: float, y: float) -> PathBuilder:
        self._segments.append(MoveTo(x, y))
        self._current = self._start = (x, y)
        return self

    def line_to(self, x: float, y: float) -> PathBuilder:
        self._segments.append(LineTo(x, y))
        self._current = (x, y)
        return self

    def curve_to(
        self, x1: float, y1: float, x2: float, y2: float, x: float, y: float
    ) -> PathBuilder:
        self._segments.append(CurveTo(x1, y1, x2, y2, x, y))
        self._current = (x, y)
        return self

    def close(self) -> PathBuilder:
        self._segments.append(ClosePath())
        self._current = self._start
        return self

    def build(
        self,
        fill: Color | None = None,
        stroke: Color | None = None,
        stroke_width: float = 1.0,
    ) -> Path:
        return Path(tuple(self._segments), fill=fill, stroke=stroke, stroke_width=stroke_width)


class DrawingSink(Protocol):
    """
    Backend that serialises a command sequence into an image.

    Implementations must be deterministic: identical input yields
    identical output.
    """

    def render(self, commands: list[DrawingCommand], width: int, height: int) -> bytes:
        """
        Render commands onto a width x height canvas.

        Raises:
            RenderError: If serialisation fails.
        """
        ...
