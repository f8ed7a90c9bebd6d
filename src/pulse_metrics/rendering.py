"""
Matplotlib drawing sink.

PURPOSE: Serialise drawing command lists to SVG or PNG bytes.
AI CONTEXT: The only module that knows about a graphics library. Swap it
for another DrawingSink without touching the chart renderers.

COORDINATE MAPPING:
One off-screen Figure per render with a single axes spanning the whole
figure. Axis limits are (0, width) and (height, 0), so data coordinates
are canvas pixels with y growing downwards, exactly like the commands.
Font sizes and line widths are pixels and get converted to points
(px * 72 / dpi).

PAINT ORDER:
Each command's artist gets zorder = its index, so matplotlib's per-type
default z-orders never reorder the chart.

DETERMINISM:
SVG output drops the creation date and uses a fixed hash salt for element
ids, so identical commands give byte-identical files. Those settings live
in the process-global rcParams, so encoding is serialised by a module lock.
"""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Sequence

import matplotlib
import numpy as np
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import Ellipse, FancyBboxPatch, PathPatch, Rectangle
from matplotlib.path import Path as MplPath

from .drawing import (
    ClosePath,
    Color,
    CurveTo,
    DrawingCommand,
    LineTo,
    MoveTo,
    Oval,
    Path,
    RadialGradient,
    Rect,
    Text,
)
from .errors import RenderError

__all__ = ["MatplotlibSink"]

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = {"svg": "image/svg+xml", "png": "image/png"}
GRADIENT_RESOLUTION = 64
SVG_HASH_SALT = "pulse-metrics"

# rcParams are process-global; rc_context and savefig must not interleave.
_SAVE_LOCK = threading.Lock()

_ANCHORS = {"start": "left", "middle": "center", "end": "right"}


def _rgba(color: Color | None) -> tuple[float, float, float, float] | str:
    return "none" if color is None else color.to_rgba()


def radial_gradient_image(gradient: RadialGradient, size: int = GRADIENT_RESOLUTION) -> np.ndarray:
    """
    Build a size x size RGBA image fading from inner (center) to outer (edge).

    Pixels beyond the inscribed circle keep the outer color; the caller
    clips the image to the oval anyway.
    """
    axis = np.linspace(-1.0, 1.0, size)
    xx, yy = np.meshgrid(axis, axis)
    distance = np.clip(np.hypot(xx, yy), 0.0, 1.0)[..., np.newaxis]
    inner = np.array(gradient.inner.to_rgba())
    outer = np.array(gradient.outer.to_rgba())
    return inner * (1.0 - distance) + outer * distance


class MatplotlibSink:
    """
    DrawingSink backed by matplotlib.

    Args:
        image_format: "svg" or "png".
        dpi: Resolution used for the pixel/point conversion and PNG output.

    Raises:
        ValueError: If image_format is not supported.

    Example:
        >>> sink = MatplotlibSink("svg")
        >>> svg = sink.render([Rect(10, 10, 50, 20, fill=Color(255, 0, 0))], 100, 50)
        >>> svg.startswith(b"<?xml")
        True
    """

    def __init__(self, image_format: str = "svg", dpi: int = 100) -> None:
        if image_format not in SUPPORTED_FORMATS:
            raise ValueError(
                f"Unsupported image format {image_format!r}; "
                f"expected one of {sorted(SUPPORTED_FORMATS)}"
            )
        self.image_format = image_format
        self.dpi = dpi

    @property
    def media_type(self) -> str:
        return SUPPORTED_FORMATS[self.image_format]

    def _points(self, pixels: float) -> float:
        return pixels * 72 / self.dpi

    def render(self, commands: Sequence[DrawingCommand], width: int, height: int) -> bytes:
        """
        Render commands onto a width x height canvas.

        Args:
            commands: Drawing commands in paint order.
            width: Canvas width in pixels.
            height: Canvas height in pixels.

        Returns:
            Encoded image bytes in the configured format.

        Raises:
            RenderError: If matplotlib fails to draw or encode the image.
        """
        try:
            figure = Figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi)
            figure.patch.set_alpha(0.0)
            ax = figure.add_axes((0.0, 0.0, 1.0, 1.0))
            ax.set_axis_off()
            ax.set_autoscale_on(False)

            for zorder, command in enumerate(commands):
                self._draw(ax, command, zorder)

            ax.set_xlim(0, width)
            ax.set_ylim(height, 0)

            buffer = io.BytesIO()
            with _SAVE_LOCK, matplotlib.rc_context(
                {"svg.hashsalt": SVG_HASH_SALT, "svg.fonttype": "none"}
            ):
                figure.savefig(
                    buffer,
                    format=self.image_format,
                    dpi=self.dpi,
                    transparent=True,
                    metadata={"Date": None} if self.image_format == "svg" else None,
                )
        except (OSError, ValueError, TypeError, RuntimeError) as e:
            logger.error(f"Chart rendering failed: {e}")
            raise RenderError(f"Failed to render {len(commands)} commands: {e}") from e

        return buffer.getvalue()

    # =========================================================================
    # COMMAND DRAWING
    # =========================================================================

    def _draw(self, ax: Axes, command: DrawingCommand, zorder: int) -> None:
        if isinstance(command, Rect):
            self._draw_rect(ax, command, zorder)
        elif isinstance(command, Oval):
            self._draw_oval(ax, command, zorder)
        elif isinstance(command, Path):
            self._draw_path(ax, command, zorder)
        elif isinstance(command, Text):
            self._draw_text(ax, command, zorder)
        else:
            raise TypeError(f"Unknown drawing command: {command!r}")

    def _stroke_kwargs(self, stroke: Color | None, stroke_width: float) -> dict:
        if stroke is None:
            return {"edgecolor": "none", "linewidth": 0}
        return {"edgecolor": stroke.to_rgba(), "linewidth": self._points(stroke_width)}

    def _draw_rect(self, ax: Axes, rect: Rect, zorder: int) -> None:
        x, y, width, height = rect.x, rect.y, rect.width, rect.height
        if height < 0:
            y, height = y + height, -height
        if width < 0:
            x, width = x + width, -width

        radius = min(rect.corner_radius, width / 2, height / 2)
        style = {
            "facecolor": _rgba(rect.fill),
            "zorder": zorder,
            **self._stroke_kwargs(rect.stroke, rect.stroke_width),
        }
        if radius > 0:
            patch = FancyBboxPatch(
                (x, y), width, height, boxstyle=f"round,pad=0,rounding_size={radius}", **style
            )
        else:
            patch = Rectangle((x, y), width, height, **style)
        ax.add_patch(patch)

    def _draw_oval(self, ax: Axes, oval: Oval, zorder: int) -> None:
        stroke = self._stroke_kwargs(oval.stroke, oval.stroke_width)
        if isinstance(oval.fill, RadialGradient):
            clip = Ellipse(
                oval.center, oval.width, oval.height, facecolor="none", zorder=zorder, **stroke
            )
            ax.add_patch(clip)
            image = ax.imshow(
                radial_gradient_image(oval.fill),
                extent=(oval.x, oval.x + oval.width, oval.y + oval.height, oval.y),
                interpolation="bilinear",
                aspect="auto",
                zorder=zorder,
            )
            image.set_clip_path(clip)
            return

        ax.add_patch(
            Ellipse(
                oval.center,
                oval.width,
                oval.height,
                facecolor=_rgba(oval.fill),
                zorder=zorder,
                **stroke,
            )
        )

    def _draw_path(self, ax: Axes, path: Path, zorder: int) -> None:
        vertices: list[tuple[float, float]] = []
        codes: list[int] = []
        start = (0.0, 0.0)
        for segment in path.segments:
            if isinstance(segment, MoveTo):
                start = (segment.x, segment.y)
                vertices.append(start)
                codes.append(MplPath.MOVETO)
            elif isinstance(segment, LineTo):
                vertices.append((segment.x, segment.y))
                codes.append(MplPath.LINETO)
            elif isinstance(segment, CurveTo):
                vertices.extend(
                    [(segment.x1, segment.y1), (segment.x2, segment.y2), (segment.x, segment.y)]
                )
                codes.extend([MplPath.CURVE4] * 3)
            elif isinstance(segment, ClosePath):
                vertices.append(start)
                codes.append(MplPath.CLOSEPOLY)
        if not vertices:
            return

        ax.add_patch(
            PathPatch(
                MplPath(vertices, codes),
                facecolor=_rgba(path.fill),
                zorder=zorder,
                joinstyle="round",
                capstyle="round",
                **self._stroke_kwargs(path.stroke, path.stroke_width),
            )
        )

    def _draw_text(self, ax: Axes, text: Text, zorder: int) -> None:
        ax.text(
            text.x,
            text.y,
            text.content,
            fontsize=self._points(text.size),
            fontweight=text.weight,
            color=text.color.to_rgba(),
            ha=_ANCHORS[text.anchor],
            va="baseline",
            zorder=zorder,
        )
