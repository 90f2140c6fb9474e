"""
Tests for the command-line interface.
"""

import json

import pytest
from typer.testing import CliRunner

from trigsync import __version__
from trigsync.cli.main import app

runner = CliRunner()


@pytest.fixture
def stream_files(tmp_path, dropped_trigger_streams):
    times1, times2 = dropped_trigger_streams
    path1 = tmp_path / "device1.txt"
    path2 = tmp_path / "device2.txt"
    path1.write_text("\n".join(str(t) for t in times1) + "\n")
    path2.write_text("\n".join(str(t) for t in times2) + "\n")
    return path1, path2


class TestCli:
    """Tests for the trigsync commands."""

    def test_version(self):
        """Test version output."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_calibrate(self, stream_files):
        """Test calibration summary."""
        path1, path2 = stream_files

        result = runner.invoke(app, ["calibrate", str(path1), str(path2)])

        assert result.exit_code == 0
        assert "Ratio" in result.output
        assert "row 40" in result.output

    def test_calibrate_insufficient(self, stream_files):
        """Test calibration failure exits with an error."""
        path1, path2 = stream_files

        result = runner.invoke(
            app, ["calibrate", str(path1), str(path2), "--min-stats", "100"],
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_sync(self, stream_files, tmp_path):
        """Test full run writes kept rows and a report."""
        path1, path2 = stream_files
        out1 = tmp_path / "out1.txt"
        out2 = tmp_path / "out2.txt"
        report = tmp_path / "report.json"

        result = runner.invoke(
            app,
            [
                "sync", str(path1), str(path2),
                "--out1", str(out1),
                "--out2", str(out2),
                "--report", str(report),
            ],
        )

        assert result.exit_code == 0
        kept1 = [int(line) for line in out1.read_text().split()]
        kept2 = [int(line) for line in out2.read_text().split()]
        assert len(kept1) == len(kept2) == 73

        data = json.loads(report.read_text())
        assert data["rows_read"] == 80
        assert data["rows_written1"] == 73
        assert data["calibration"]["desynchronized_at"] == 40
        assert data["config"]["confirmation_window"] == 3

    def test_sync_invalid_window(self, stream_files, tmp_path):
        """Test invalid options exit with an error."""
        path1, path2 = stream_files

        result = runner.invoke(
            app,
            [
                "sync", str(path1), str(path2),
                "--out1", str(tmp_path / "out1.txt"),
                "--out2", str(tmp_path / "out2.txt"),
                "--window", "0",
            ],
        )

        assert result.exit_code == 1

    def test_failed_sync_keeps_outputs(self, tmp_path):
        """Test a failed calibration leaves existing outputs untouched."""
        path1 = tmp_path / "device1.txt"
        path2 = tmp_path / "device2.txt"
        path1.write_text("0\n100\n200\n")
        path2.write_text("0\n200\n400\n")
        out1 = tmp_path / "out1.txt"
        out2 = tmp_path / "out2.txt"
        out1.write_text("previous results\n")
        out2.write_text("previous results\n")

        result = runner.invoke(
            app,
            ["sync", str(path1), str(path2), "--out1", str(out1), "--out2", str(out2)],
        )

        assert result.exit_code == 1
        assert "Error" in result.output
        assert out1.read_text() == "previous results\n"
        assert out2.read_text() == "previous results\n"
