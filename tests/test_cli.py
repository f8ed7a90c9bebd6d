"""Tests for CLI module."""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import datetime, timedelta
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

# Add tests directory to path for conftest imports
sys.path.insert(0, str(Path(__file__).parent))

from conftest import FIXED_NOW, MockFileSystem, make_snapshot
from pulse_metrics.config import Config
from pulse_metrics.metrics_service import MetricsService
from pulse_metrics.storage import SnapshotStore


@pytest.fixture
def service(mock_fs: MockFileSystem, fixed_clock: Callable[[], datetime]) -> MetricsService:
    """MetricsService over MockFileSystem with the default SVG sink."""
    store = SnapshotStore(storage_dir="/test/storage", filesystem=mock_fs)
    return MetricsService(store=store, clock=fixed_clock)


class TestCLIParsing:
    """Tests for CLI argument parsing and command routing."""

    def test_no_command_runs_server(self) -> None:
        """Verifies main() without a subcommand starts the HTTP service.

        Business context:
        `pulse-metrics` alone should do the common thing, like the
        container entry point expects.

        Arrangement:
        Mock run_serve to prevent actual execution.

        Action:
        Call main() with no arguments.

        Assertion Strategy:
        Returns 0 and run_serve was called with defaults.
        """
        from pulse_metrics.cli import main

        with patch("pulse_metrics.cli.run_serve") as mock_run:
            assert main([]) == 0
            mock_run.assert_called_once_with()

    def test_version_flag(self) -> None:
        """--version prints version info and exits 0."""
        from pulse_metrics.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0

    def test_serve_with_host_port(self) -> None:
        from pulse_metrics.cli import main

        with patch("pulse_metrics.cli.run_serve") as mock_run:
            main(["serve", "--host", "0.0.0.0", "--port", "9000"])
            mock_run.assert_called_once_with(host="0.0.0.0", port=9000, reload=False)

    def test_purge_requires_days(self) -> None:
        from pulse_metrics.cli import main

        with pytest.raises(SystemExit) as exc_info:
            main(["purge"])
        assert exc_info.value.code == 2

    def test_render_rejects_unknown_chart(self) -> None:
        """argparse restricts chart names to the catalogue."""
        from pulse_metrics.cli import main

        with pytest.raises(SystemExit):
            main(["render", "pie"])

    def test_seed_routes_arguments(self) -> None:
        from pulse_metrics.cli import main

        with patch("pulse_metrics.cli.run_seed", return_value=0) as mock_run:
            assert main(["seed", "--servers", "2", "--days", "3", "--seed", "7"]) == 0
            mock_run.assert_called_once_with(servers=2, days=3, seed=7)


class TestRunServe:
    """Tests for run_serve."""

    def test_delegates_to_web(self) -> None:
        from pulse_metrics.cli import run_serve

        with patch("pulse_metrics.web.run_server") as mock_server:
            run_serve(host="0.0.0.0", port=9000)
            mock_server.assert_called_once_with(host="0.0.0.0", port=9000, reload=False)


class TestRunSeed:
    """Tests for run_seed."""

    def test_writes_snapshots(self, service: MetricsService) -> None:
        from pulse_metrics.cli import run_seed

        assert run_seed(servers=1, days=1, seed=3, service=service) == 0
        assert service.store.count() == 24

    def test_failure_exit_code(self, service: MetricsService, mock_fs: MockFileSystem) -> None:
        """Unwritable storage gives exit code 1 for scripts to detect."""
        from pulse_metrics.cli import run_seed

        mock_fs.set_read_only("/test/storage/snapshots.jsonl")
        assert run_seed(servers=1, days=1, service=service) == 1


class TestRunPurge:
    """Tests for run_purge."""

    def test_non_positive_days(self) -> None:
        """Verifies a zero retention period is refused before touching data.

        Business context:
        `purge --days 0` would wipe the whole store; it is almost
        certainly a mistake.

        Arrangement:
        MagicMock service to detect any call.

        Action:
        Run purge with days=0 through main().

        Assertion Strategy:
        Exit code 2 and the service was never asked to purge.
        """
        from pulse_metrics.cli import main

        with patch("pulse_metrics.metrics_service.MetricsService") as mock_service:
            assert main(["purge", "--days", "0"]) == 2
            mock_service.assert_not_called()

    def test_removes_old_snapshots(self, service: MetricsService) -> None:
        from pulse_metrics.cli import run_purge

        service.store.append(make_snapshot(FIXED_NOW - timedelta(days=40)))
        service.store.append(make_snapshot(FIXED_NOW))
        assert run_purge(30, service=service) == 0
        assert service.store.count() == 1


class TestRunRender:
    """Tests for run_render."""

    def test_writes_file(self, service: MetricsService, tmp_path: Path) -> None:
        from pulse_metrics.cli import run_render

        service.store.append(make_snapshot(FIXED_NOW - timedelta(minutes=5)))
        output = tmp_path / "os.svg"

        assert run_render("operation-systems", output=str(output), service=service) == 0
        assert b"<svg" in output.read_bytes()

    def test_writes_stdout(self, capsysbinary: pytest.CaptureFixture[bytes]) -> None:
        from pulse_metrics.cli import run_render

        service = MagicMock()
        service.chart_names = ("activity",)
        service.render_chart.return_value = b"<svg/>"

        assert run_render("activity", service=service) == 0
        assert capsysbinary.readouterr().out == b"<svg/>"

    def test_unknown_chart(self, service: MetricsService) -> None:
        from pulse_metrics.cli import run_render

        assert run_render("pie", service=service) == 2

    def test_main_png_from_store_dir(self, tmp_path: Path) -> None:
        """Verifies the render command reads the configured store.

        Business context:
        Operators render charts for reports straight from the server's
        snapshot log without running the HTTP service.

        Arrangement:
        Storage directory overridden to an empty temp directory.

        Action:
        main() with render, --format png and --output.

        Assertion Strategy:
        Exit code 0 and a PNG file was written.
        """
        from pulse_metrics.cli import main

        Config.set_test_overrides(storage_dir=str(tmp_path / "store"))
        output = tmp_path / "activity.png"

        assert main(["render", "activity", "--format", "png", "-o", str(output)]) == 0
        assert output.read_bytes().startswith(b"\x89PNG")
