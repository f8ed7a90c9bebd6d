"""
Circle packing for distribution charts.

PURPOSE: Place one circle per category on a fixed canvas without overlaps,
with the largest category at the center.
AI CONTEXT: Pure geometry. The only randomness is the fallback phase, and
its random source is injectable.

ALGORITHM:
1. Radius from share of total:
   radius = min_radius + int((max_radius - min_radius) * value / total)
   min/max are scaled by 0.7 for more than 15 circles and by 1.3 for
   fewer than 5.
2. Sort descending by value (stable, ties keep insertion order).
3. Largest circle goes to the canvas center.
4. Every other circle walks an outward spiral from the center: angle
   starts at 0 and grows by pi/6, distance starts at the first circle's
   radius + padding and grows by 1.2, for up to 100 attempts. The first
   candidate clear of every placed circle (center distance >= r1 + r2 +
   padding) and fully inside the canvas wins.
5. If the spiral fails, 50 uniformly random candidates inside the padded
   canvas are scored (overlap depth against placed circles, +1000 when
   out of bounds) and the lowest score wins, earliest on ties.

USAGE:
    packer = CirclePacker(width=1200, height=600)
    for circle in packer.pack({"Linux": 40, "Windows": 12}):
        print(circle.label, circle.x, circle.y, circle.radius)
"""

from __future__ import annotations

import math
import random
from collections.abc import Mapping
from dataclasses import dataclass

__all__ = ["CirclePacker", "PackedCircle", "wrap_label"]

CIRCLE_PADDING = 20
BASE_MIN_RADIUS = 60
BASE_MAX_RADIUS = 100
MIN_CIRCLES_FOR_SCALING = 5
MAX_CIRCLES_FOR_SCALING = 15
MAX_PLACEMENT_ATTEMPTS = 100
FALLBACK_CANDIDATES = 50
OUT_OF_BOUNDS_PENALTY = 1000.0
SPIRAL_ANGLE_STEP = math.pi / 6
SPIRAL_RADIUS_STEP = 1.2

_KEPT_BREAK_CHARS = "-,"


@dataclass
class PackedCircle:
    """A category circle with its final position."""

    label: str
    value: int
    ratio: float
    radius: int
    x: int = 0
    y: int = 0
    fallback: bool = False
    """True when the spiral failed and the random fallback chose the spot."""

    def distance_to(self, other: PackedCircle) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)


def wrap_label(label: str, max_chars: int) -> list[str]:
    """
    Split a label into at most two lines.

    Labels up to max_chars stay on one line. Longer labels break after the
    right-most space, hyphen or comma that keeps the first line within
    max_chars (the space is dropped, hyphens and commas stay on the first
    line). Without such a
    character the label is hard-split at max_chars. A second line that is
    still too long is shortened with "...".

    Args:
        label: Category label.
        max_chars: Characters per line, at least 4.

    Returns:
        One or two lines.

    Example:
        >>> wrap_label("United Kingdom", 8)
        ['United', 'Kingdom']
        >>> wrap_label("Bosnia-Herzegovina", 10)
        ['Bosnia-', 'Herzego...']
    """
    max_chars = max(4, max_chars)
    if len(label) <= max_chars:
        return [label]

    # Spaces are dropped at the break, so one may sit at max_chars; kept
    # hyphens and commas must fit inside the line.
    cut = max(
        label.rfind(" ", 0, max_chars + 1),
        *(label.rfind(char, 0, max_chars) for char in _KEPT_BREAK_CHARS),
    )
    if cut > 0:
        first = label[: cut + 1].rstrip()
        rest = label[cut + 1 :].lstrip()
    else:
        first, rest = label[:max_chars], label[max_chars:]

    if len(rest) > max_chars:
        rest = rest[: max_chars - 3] + "..."
    return [first, rest] if rest else [first]


class CirclePacker:
    """
    Non-overlapping circle layout on a fixed canvas.

    Stateless between calls: every pack() works on its own circle list, so
    one packer can serve concurrent requests. Pass a seeded random.Random
    for reproducible fallback placements.
    """

    def __init__(
        self,
        width: int,
        height: int,
        padding: int = CIRCLE_PADDING,
        base_min_radius: int = BASE_MIN_RADIUS,
        base_max_radius: int = BASE_MAX_RADIUS,
        rng: random.Random | None = None,
    ) -> None:
        self.width = width
        self.height = height
        self.padding = padding
        self.base_min_radius = base_min_radius
        self.base_max_radius = base_max_radius
        self._rng = rng or random.Random()

    @staticmethod
    def scale_radius(base_radius: int, circle_count: int) -> int:
        """
        Scale a base radius for the number of circles on the canvas.

        Dense distributions shrink so they fit; sparse ones grow so they
        don't look trivially small.

        Example:
            >>> CirclePacker.scale_radius(100, 20)
            70
            >>> CirclePacker.scale_radius(100, 3)
            130
        """
        if circle_count > MAX_CIRCLES_FOR_SCALING:
            return int(base_radius * 0.7)
        if circle_count < MIN_CIRCLES_FOR_SCALING:
            return int(base_radius * 1.3)
        return base_radius

    def radius_bounds(self, circle_count: int) -> tuple[int, int]:
        """Scaled (min_radius, max_radius) for a circle count."""
        return (
            self.scale_radius(self.base_min_radius, circle_count),
            self.scale_radius(self.base_max_radius, circle_count),
        )

    def build_circles(self, values: Mapping[str, int]) -> list[PackedCircle]:
        """
        Size one circle per entry and sort them largest first.

        A zero total gives every circle ratio 0 and the minimum radius.
        The ratio is clamped to [0, 1] so radii stay within bounds.
        """
        min_radius, max_radius = self.radius_bounds(len(values))
        total = sum(values.values())

        circles = []
        for label, value in values.items():
            ratio = value / total if total > 0 else 0.0
            clamped = min(1.0, max(0.0, ratio))
            radius = min_radius + int((max_radius - min_radius) * clamped)
            circles.append(PackedCircle(label=label, value=value, ratio=ratio, radius=radius))

        circles.sort(key=lambda c: c.value, reverse=True)
        return circles

    def pack(self, values: Mapping[str, int]) -> list[PackedCircle]:
        """
        Size and position one circle per entry.

        Args:
            values: Category -> value. Order breaks ties between equal values.

        Returns:
            Placed circles, largest first. Empty list for empty input.
        """
        circles = self.build_circles(values)
        if not circles:
            return circles

        center_x = self.width // 2
        center_y = self.height // 2
        first = circles[0]
        first.x, first.y = center_x, center_y

        for index in range(1, len(circles)):
            circle = circles[index]
            placed = circles[:index]
            position = self._spiral_position(circle, placed, center_x, center_y, first.radius)
            if position is None:
                position = self._fallback_position(circle, placed, center_x, center_y)
                circle.fallback = True
            circle.x, circle.y = position

        return circles

    def _overlaps(self, x: int, y: int, radius: int, placed: list[PackedCircle]) -> bool:
        return any(
            math.hypot(x - other.x, y - other.y) < radius + other.radius + self.padding
            for other in placed
        )

    def is_within_bounds(self, x: float, y: float, radius: float) -> bool:
        """Check that the whole circle lies on the canvas."""
        return (
            x - radius >= 0
            and x + radius <= self.width
            and y - radius >= 0
            and y + radius <= self.height
        )

    def _spiral_position(
        self,
        circle: PackedCircle,
        placed: list[PackedCircle],
        center_x: int,
        center_y: int,
        first_radius: int,
    ) -> tuple[int, int] | None:
        angle = 0.0
        distance = float(first_radius + self.padding)

        for _attempt in range(MAX_PLACEMENT_ATTEMPTS):
            x = center_x + int(distance * math.cos(angle))
            y = center_y + int(distance * math.sin(angle))
            if not self._overlaps(x, y, circle.radius, placed) and self.is_within_bounds(
                x, y, circle.radius
            ):
                return (x, y)
            angle += SPIRAL_ANGLE_STEP
            distance += SPIRAL_RADIUS_STEP

        return None

    def position_score(self, x: int, y: int, radius: int, placed: list[PackedCircle]) -> float:
        """
        Score a candidate spot; lower is better, 0 means a clean fit.

        Sums how far the candidate intrudes into each placed circle's
        required separation, plus a fixed penalty when it leaves the canvas.
        """
        score = 0.0
        for other in placed:
            required = radius + other.radius + self.padding
            score += max(0.0, required - math.hypot(x - other.x, y - other.y))
        if not self.is_within_bounds(x, y, radius):
            score += OUT_OF_BOUNDS_PENALTY
        return score

    def _fallback_position(
        self,
        circle: PackedCircle,
        placed: list[PackedCircle],
        center_x: int,
        center_y: int,
    ) -> tuple[int, int]:
        best = (center_x, center_y)
        best_score = math.inf
        span_x = self.width - 2 * self.padding
        span_y = self.height - 2 * self.padding

        for _candidate in range(FALLBACK_CANDIDATES):
            x = self.padding + int(self._rng.random() * span_x)
            y = self.padding + int(self._rng.random() * span_y)
            score = self.position_score(x, y, circle.radius, placed)
            if score < best_score:
                best_score = score
                best = (x, y)

        return best
