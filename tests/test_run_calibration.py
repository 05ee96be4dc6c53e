"""
Tests for the calibration runner script with a stubbed frameset source.
"""

import sys
from functools import partial

import pytest

import run_calibration
from markrig.calibration import CalibrationSession
from tests.conftest import (
    RecordingSingleSolver,
    RecordingStereoSolver,
    StubPattern,
    board_frameset,
)


class FakeSource:
    """Context-managed source yielding a fixed number of board framesets."""

    def __init__(self, arity: int, count: int):
        self.arity = arity
        self.count = count
        self.frame_count = 0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        pass

    def __iter__(self):
        for _ in range(self.count):
            self.frame_count += 1
            yield board_frameset(self.arity)


@pytest.fixture
def stubbed_runner(monkeypatch, tmp_path):
    """Run main() on two stub cameras; returns a callable taking extra CLI args."""
    monkeypatch.setattr(
        run_calibration, "VideoFramesetSource", lambda sources: FakeSource(len(sources), 12)
    )
    monkeypatch.setattr(run_calibration, "create_pattern", lambda config: StubPattern())
    monkeypatch.setattr(
        run_calibration,
        "CalibrationSession",
        partial(
            CalibrationSession,
            single_solver=RecordingSingleSolver(),
            stereo_solver=RecordingStereoSolver(),
        ),
    )

    def run(*args):
        argv = ["run_calibration.py", "a.mp4", "b.mp4",
                "--config", str(tmp_path / "missing.yaml"), *args]
        monkeypatch.setattr(sys, "argv", argv)
        return run_calibration.main()

    return run


class TestProgressDue:

    @pytest.mark.parametrize("frame_count", [1, 2, 3, 10])
    def test_every_frameset_without_skip(self, frame_count):
        assert run_calibration.progress_due(frame_count, 0)

    def test_only_measured_framesets_with_skip(self):
        due = [n for n in range(1, 10) if run_calibration.progress_due(n, 2)]
        assert due == [1, 4, 7]


class TestMain:

    def test_progress_reported_without_skip(self, stubbed_runner, capsys):
        assert stubbed_runner("--frames", "3", "--skip", "0") == 0

        out = capsys.readouterr().out
        assert "Calibration complete!" in out
        # The pair starts sampling on the frameset that readies both cameras
        assert out.count("cameras [") == 5

    def test_progress_reported_with_skip(self, stubbed_runner, capsys):
        assert stubbed_runner("--frames", "3", "--skip", "1") == 0

        out = capsys.readouterr().out
        assert "Calibration complete!" in out
        assert out.count("cameras [") == 5

    def test_incomplete_when_source_runs_out(self, stubbed_runner, capsys):
        assert stubbed_runner("--frames", "20", "--skip", "0") == 1
        assert "Calibration incomplete" in capsys.readouterr().out
