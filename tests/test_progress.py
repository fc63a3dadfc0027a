"""Tests for progress aggregation and status reporting."""

import pytest


class RecordingSink:
    def __init__(self):
        self.updates = []

    def update_status(self, percent, status, message=None):
        self.updates.append((percent, status))


class TestOverallPercent:
    def test_pass_two_of_four(self):
        from shotencode.progress import overall_percent

        assert overall_percent(2, 4, 50) == 37

    def test_single_pass_is_identity(self):
        from shotencode.progress import overall_percent

        assert overall_percent(1, 1, 0) == 0
        assert overall_percent(1, 1, 42.9) == 42
        assert overall_percent(1, 1, 100) == 100

    def test_two_pass_boundaries(self):
        from shotencode.progress import overall_percent

        assert overall_percent(1, 2, 100) == 50
        assert overall_percent(2, 2, 0) == 50
        assert overall_percent(2, 2, 100) == 100

    def test_non_divisor_total_undershoots(self):
        from shotencode.progress import overall_percent

        # 100 // 3 = 33 per pass, so a finished third pass reports 99.
        assert overall_percent(3, 3, 100) == 99

    def test_fractional_pass_percent_truncates(self):
        from shotencode.progress import overall_percent

        assert overall_percent(1, 2, 99.9) == 49

    @pytest.mark.parametrize("current,total", [(0, 1), (1, 0), (-1, 2)])
    def test_invalid_passes_raise(self, current, total):
        from shotencode.progress import overall_percent

        with pytest.raises(ValueError):
            overall_percent(current, total, 10)


class TestProgressReporter:
    def test_forwards_running_status(self):
        from shotencode.progress import EncodeProgress, JobStatus, ProgressReporter

        sink = RecordingSink()
        reporter = ProgressReporter(sink)
        assert reporter(EncodeProgress(2, 4, 50.0, "out.mp4")) == 37
        assert sink.updates == [(37, JobStatus.RUNNING)]

    def test_does_not_enforce_monotonicity(self):
        from shotencode.progress import EncodeProgress, ProgressReporter

        sink = RecordingSink()
        reporter = ProgressReporter(sink)
        reporter(EncodeProgress(1, 1, 80.0, "a.mp4"))
        reporter(EncodeProgress(1, 1, 10.0, "b.mp4"))
        assert [p for p, _ in sink.updates] == [80, 10]


class TestLoggingStatusSink:
    def test_remembers_last_update(self):
        from shotencode.progress import JobStatus, LoggingStatusSink

        sink = LoggingStatusSink()
        sink.update_status(10, JobStatus.RUNNING)
        sink.update_status(100, JobStatus.FINISHED, "done")
        assert sink.percent == 100
        assert sink.status is JobStatus.FINISHED
