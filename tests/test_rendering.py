"""Tests for rendering module."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

import matplotlib
import numpy as np
import pytest

from pulse_metrics.charts import BarDistributionChart, CircleDistributionChart
from pulse_metrics.drawing import Color, Oval, Path, PathBuilder, RadialGradient, Rect, Text
from pulse_metrics.errors import RenderError
from pulse_metrics.rendering import MatplotlibSink, radial_gradient_image

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


@pytest.fixture
def sink() -> MatplotlibSink:
    """SVG sink at the default 100 dpi."""
    return MatplotlibSink("svg")


class TestSinkConfiguration:
    """Tests for MatplotlibSink construction."""

    def test_rejects_unknown_format(self) -> None:
        with pytest.raises(ValueError, match="Unsupported image format"):
            MatplotlibSink("gif")

    def test_media_types(self) -> None:
        assert MatplotlibSink("svg").media_type == "image/svg+xml"
        assert MatplotlibSink("png").media_type == "image/png"


class TestSvgOutput:
    """Test suite for SVG serialisation.

    Categories:
    1. Every command kind renders (1 test)
    2. Text stays text (1 test)
    3. Determinism (1 test)
    4. Empty canvas (1 test)
    """

    def test_all_command_kinds(self, sink: MatplotlibSink) -> None:
        """Verifies every drawing command type serialises without error.

        Business context:
        Charts mix rectangles, gradient circles, curves and text; one
        unsupported type would break every chart using it.

        Arrangement:
        One command of each kind, including a rounded rect, a radial
        gradient oval and a closed curved path.

        Action:
        Render to SVG.

        Assertion Strategy:
        Output is an SVG document.
        """
        red = Color(255, 0, 0)
        path = (
            PathBuilder()
            .move_to(10, 90)
            .line_to(10, 50)
            .curve_to(30, 50, 40, 20, 60, 20)
            .line_to(60, 90)
            .close()
            .build(fill=red.with_alpha(180), stroke=red, stroke_width=2.5)
        )
        commands = [
            Rect(5, 5, 50, 20, fill=red, stroke=red.darker(), corner_radius=5),
            Rect(60, 5, 20, 20, fill=red),
            Oval(100, 10, 60, 60, fill=RadialGradient(red, red.brighten(30))),
            Oval(100, 10, 60, 60, stroke=red.brighten(40), stroke_width=2.5),
            path,
            Path.line(0, 95, 200, 95, stroke=Color(70, 70, 80, 150)),
            Text(100, 50, "Linux", size=15, color=Color(255, 255, 255), weight="bold", anchor="middle"),
        ]

        output = sink.render(commands, 200, 100)
        assert b"<svg" in output

    def test_text_is_selectable(self, sink: MatplotlibSink) -> None:
        """Text stays a <text> element rather than outlined glyphs."""
        output = sink.render([Text(10, 20, "Germany")], 200, 100)
        assert b"Germany" in output

    def test_deterministic(self, sink: MatplotlibSink) -> None:
        """Identical commands give byte-identical SVG, so caches and diffs stay stable."""
        commands = BarDistributionChart().render({"Linux": 4, "Windows": 2})
        assert sink.render(commands, 1200, 600) == sink.render(commands, 1200, 600)

    def test_empty_canvas(self, sink: MatplotlibSink) -> None:
        assert b"<svg" in sink.render([], 1200, 600)


class TestConcurrentRendering:
    """Tests for rendering from several threads at once."""

    def test_parallel_renders_match_serial_output(self, sink: MatplotlibSink) -> None:
        """Verifies overlapping renders give the same bytes as a lone render.

        Business context:
        Chart routes run on the server's threadpool, so several charts
        are encoded at the same time. The SVG settings live in
        matplotlib's process-wide rcParams and must hold for every
        render, or text turns into glyph outlines and element ids change.

        Arrangement:
        One gradient oval plus forty text labels, rendered once as the
        reference. rcParams values noted before any render.

        Action:
        Render the same commands 64 times on 16 worker threads.

        Assertion Strategy:
        Every output equals the reference, and the global SVG rcParams
        are back to their original values afterwards.
        """
        commands = [
            Oval(20, 20, 160, 160, fill=RadialGradient(Color(40, 90, 200), Color(120, 180, 255))),
            *[Text(10 + (i % 8) * 140, 220 + (i // 8) * 60, f"label {i}") for i in range(40)],
        ]
        before = (matplotlib.rcParams["svg.fonttype"], matplotlib.rcParams["svg.hashsalt"])
        reference = sink.render(commands, 1200, 600)

        with ThreadPoolExecutor(max_workers=16) as pool:
            outputs = list(pool.map(lambda _: sink.render(commands, 1200, 600), range(64)))

        assert all(output == reference for output in outputs)
        assert b"label 0" in reference
        assert (matplotlib.rcParams["svg.fonttype"], matplotlib.rcParams["svg.hashsalt"]) == before


class TestPngOutput:
    """Tests for PNG serialisation."""

    def test_png_signature(self) -> None:
        commands = CircleDistributionChart().render({"Linux": 3, "Windows": 1})
        output = MatplotlibSink("png").render(commands, 1200, 600)
        assert output.startswith(PNG_SIGNATURE)


class TestRenderErrors:
    """Tests for error wrapping."""

    def test_savefig_failure_wrapped(self, sink: MatplotlibSink) -> None:
        """Verifies backend failures surface as RenderError.

        Business context:
        The web layer maps RenderError to a 500 response; raw matplotlib
        exceptions would escape that handler.

        Arrangement:
        Figure.savefig patched to raise OSError.

        Action:
        Render a single rectangle.

        Assertion Strategy:
        RenderError raised with the original error chained.
        """
        with (
            patch("pulse_metrics.rendering.Figure.savefig", side_effect=OSError("disk full")),
            pytest.raises(RenderError, match="disk full") as exc_info,
        ):
            sink.render([Rect(0, 0, 10, 10, fill=Color(0, 0, 0))], 100, 100)

        assert isinstance(exc_info.value.__cause__, OSError)

    def test_unknown_command_wrapped(self, sink: MatplotlibSink) -> None:
        with pytest.raises(RenderError, match="Unknown drawing command"):
            sink.render(["not a command"], 100, 100)  # type: ignore[list-item]


class TestRadialGradientImage:
    """Tests for the gradient bitmap."""

    def test_center_and_corner(self) -> None:
        """Center pixel is close to the inner color, corners are the outer color."""
        gradient = RadialGradient(Color(0, 0, 0), Color(255, 255, 255))
        image = radial_gradient_image(gradient, size=65)
        assert image.shape == (65, 65, 4)
        assert np.allclose(image[32, 32], (0, 0, 0, 1))
        assert np.allclose(image[0, 0], (1, 1, 1, 1))
