"""
Tests for the synchronization engine and timestamp ingestion.
"""

import pytest

from trigsync.config import SyncConfig
from trigsync.engine import SynchronizationEngine
from trigsync.errors import (
    ConfigurationError,
    InconsistentLengths,
    InsufficientSamples,
    SynchronizationError,
)
from trigsync.ingestion.sources import FileSink, ListSink, SequenceSource, load_timestamps
from trigsync.models.decision import KeepDecision


class TestSequenceSource:
    """Tests for in-memory and file timestamp sources."""

    def test_sequence_source(self):
        """Test positional access."""
        source = SequenceSource([5, 7, 9])

        assert len(source) == 3
        assert source.timestamp(1) == 7
        assert list(source) == [5, 7, 9]

    def test_load_text(self, tmp_path):
        """Test one timestamp per line with comments."""
        path = tmp_path / "device1.txt"
        path.write_text("# device 1\n100\n\n200  # second\n300\n")

        source = load_timestamps(path)

        assert source.to_list() == [100, 200, 300]
        assert source.name == "device1.txt"

    def test_load_csv(self, tmp_path):
        """Test CSV column selection."""
        path = tmp_path / "device.csv"
        path.write_text("row,ticks\n0,1000\n1,1100\n")

        assert load_timestamps(path, column="ticks").to_list() == [1000, 1100]
        assert load_timestamps(path).to_list() == [0, 1]

    def test_load_csv_missing_column(self, tmp_path):
        """Test unknown CSV column."""
        path = tmp_path / "device.csv"
        path.write_text("ticks\n1000\n")

        with pytest.raises(SynchronizationError):
            load_timestamps(path, column="time")

    def test_load_invalid(self, tmp_path):
        """Test non-integer timestamps are reported with their line."""
        path = tmp_path / "device.txt"
        path.write_text("100\nabc\n")

        with pytest.raises(SynchronizationError) as excinfo:
            load_timestamps(path)

        assert excinfo.value.details["line"] == 2


class TestSinks:
    """Tests for row sinks."""

    def test_list_sink(self):
        """Test rows are collected in order."""
        sink = ListSink()
        sink.write_row(0, 10)
        sink.write_row(3, 40)

        assert sink.rows == [0, 3]
        assert sink.timestamps == [10, 40]

    def test_file_sink(self, tmp_path):
        """Test one timestamp per line."""
        path = tmp_path / "out" / "device1.txt"
        with FileSink(path) as sink:
            sink.write_row(0, 10)
            sink.write_row(1, 20)

        assert path.read_text() == "10\n20\n"

    def test_file_sink_empty(self, tmp_path):
        """Test an empty output file is still created."""
        path = tmp_path / "device1.txt"
        with FileSink(path):
            pass

        assert path.read_text() == ""


class TestSynchronizationEngine:
    """Tests for SynchronizationEngine class."""

    def test_engine_creation(self):
        """Test default configuration."""
        engine = SynchronizationEngine()
        assert engine.config.confirmation_window == 3

    def test_invalid_config(self):
        """Test configuration is validated."""
        with pytest.raises(ConfigurationError):
            SynchronizationEngine(SyncConfig(min_stats=1))

    def test_calibrate(self, dropped_trigger_streams):
        """Test calibration stops at the missed trigger."""
        times1, times2 = dropped_trigger_streams
        engine = SynchronizationEngine()

        calibration = engine.calibrate(SequenceSource(times1), SequenceSource(times2))

        assert calibration.desynchronized
        assert calibration.desynchronized_at == 40
        assert calibration.accepted_count == 39
        assert abs(calibration.ratio - 2.0) < 1e-3
        assert 0 < calibration.scale < 2

    def test_run(self, dropped_trigger_streams):
        """Test kept rows stay aligned across the missed trigger."""
        times1, times2 = dropped_trigger_streams
        engine = SynchronizationEngine()
        sink1, sink2 = ListSink(), ListSink()

        report = engine.run(SequenceSource(times1), SequenceSource(times2), sink1, sink2)

        assert report.rows_read == 80
        assert report.rows_written1 == report.rows_written2
        assert 0 < report.rows_written1 < 80
        assert sink1.rows == sorted(sink1.rows)
        assert sink2.rows == sorted(sink2.rows)
        # Kept pairs differ only by the one-tick jitter
        for t1, t2 in zip(sink1.timestamps, sink2.timestamps):
            assert 0 <= t2 - 2 * t1 <= 1
        # Rows around the missed trigger are dropped
        assert 39 not in sink1.rows
        assert 40 not in sink1.rows
        assert 41 in sink1.rows

    def test_run_insufficient(self):
        """Test short runs cannot be calibrated."""
        engine = SynchronizationEngine()
        source = SequenceSource([100 * i for i in range(5)])

        with pytest.raises(InsufficientSamples):
            engine.run(source, source, ListSink(), ListSink())

    def test_inconsistent_sources(self):
        """Test sources of different lengths."""
        engine = SynchronizationEngine()

        with pytest.raises(InconsistentLengths):
            engine.calibrate(SequenceSource([0, 1, 2]), SequenceSource([0, 2]))

    def test_replay_decision_length(self, dropped_trigger_streams):
        """Test replay rejects a decision of the wrong length."""
        times1, times2 = dropped_trigger_streams
        engine = SynchronizationEngine()
        source1, source2 = SequenceSource(times1), SequenceSource(times2)
        calibration = engine.calibrate(source1, source2)
        decision = KeepDecision(keep1=(True,), keep2=(True,))

        with pytest.raises(InconsistentLengths):
            engine.replay(source1, source2, decision, ListSink(), ListSink(), calibration)

    def test_override_scale(self):
        """Test noiseless clocks synchronize with an explicit scale."""
        times1 = [100 * i for i in range(30)]
        times2 = [300 * i for i in range(30)]
        engine = SynchronizationEngine(SyncConfig(override_scale=0.1))
        sink1, sink2 = ListSink(), ListSink()

        report = engine.run(SequenceSource(times1), SequenceSource(times2), sink1, sink2)

        assert report.calibration.ratio == 3.0
        assert report.rows_written1 == 30 - 3
