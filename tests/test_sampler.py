"""
Integration tests for the sampling loop, driven against a fake /proc tree.
"""

import io

import pytest
from unittest.mock import Mock

from pypidstat.collectors import ProcfsSnapshotCollector
from pypidstat.collectors.base import AbstractSnapshotCollector
from pypidstat.formatting import PLAIN_PALETTE
from pypidstat.models import MetricSelection
from pypidstat.report import ReportRenderer
from pypidstat.sampling import Sampler
from pypidstat.validation import InternalInconsistencyError, NoSuchTargetError


@pytest.fixture
def collector(proc_tree, fake_clock):
    return ProcfsSnapshotCollector(
        proc_root=proc_tree.root,
        ticks_per_second=100,
        page_size=4096,
        clock=fake_clock,
    )


def _sampler(collector, **kwargs):
    selection = kwargs.pop("selection", MetricSelection(cpu=True))
    return Sampler(collector, selection, ReportRenderer(PLAIN_PALETTE), **kwargs)


@pytest.mark.integration
class TestSampleCycle:
    """Test cases for single sampling cycles."""

    def test_first_cycle_only_records_baselines(self, proc_tree, collector):
        proc_tree.write_task(100)
        sampler = _sampler(collector)

        report = sampler.sample_cycle([100])

        assert report.baselined == [100]
        assert report.reported == []
        assert report.text == ""
        assert sampler.tracked_pids == [100]

    def test_second_cycle_reports_rates(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100, utime=100, stime=20)
        sampler = _sampler(collector)
        sampler.sample_cycle([100])

        proc_tree.write_task(100, utime=150, stime=30)
        fake_clock.advance(1.0)
        report = sampler.sample_cycle([100])

        assert report.reported == [100]
        assert report.text.splitlines() == [
            "   UID       PID    %usr %system  %guest   %wait    %CPU   CPU  Command",
            "  1000       100   50.00   10.00    0.00    0.00   60.00     3  worker",
        ]

    def test_vanished_target_is_dropped_and_others_continue(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        proc_tree.write_task(200)
        sampler = _sampler(collector)
        sampler.sample_cycle([200, 100])

        proc_tree.remove_task(200)
        fake_clock.advance(1.0)
        report = sampler.sample_cycle([100, 200])

        assert report.dropped == [200]
        assert report.reported == [100]
        assert sampler.tracked_pids == [100]
        assert "       200" not in report.text

    def test_targets_reported_in_ascending_order(self, proc_tree, collector, fake_clock):
        for pid in (300, 100, 200):
            proc_tree.write_task(pid)
        sampler = _sampler(collector)
        sampler.sample_cycle([300, 100, 200])
        fake_clock.advance(1.0)

        report = sampler.sample_cycle([300, 100, 200])

        assert report.reported == [100, 200, 300]
        rows = [line for line in report.text.splitlines() if line.startswith("  1000")]
        assert [int(row.split()[1]) for row in rows] == [100, 200, 300]

    def test_concurrent_collection_keeps_order(self, proc_tree, collector, fake_clock):
        for pid in range(100, 110):
            proc_tree.write_task(pid)
        with _sampler(collector, max_workers=4) as sampler:
            sampler.sample_cycle(range(109, 99, -1))
            fake_clock.advance(1.0)
            report = sampler.sample_cycle(range(100, 110))

        assert report.reported == list(range(100, 110))

    def test_task_groups_are_separated_by_blank_line(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        proc_tree.write_task(200)
        sampler = _sampler(collector)
        sampler.sample_cycle([100, 200])
        fake_clock.advance(1.0)

        lines = sampler.sample_cycle([100, 200]).text.split("\n")

        assert lines[2] == ""
        assert lines[3].startswith("   UID")

    def test_threads_are_reported_from_their_second_sighting(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        proc_tree.write_task(100, tid=100)
        sampler = _sampler(collector, include_threads=True)
        sampler.sample_cycle([100])

        proc_tree.write_task(100, tid=101, comm="helper")
        fake_clock.advance(1.0)
        second = sampler.sample_cycle([100]).text
        fake_clock.advance(1.0)
        third = sampler.sample_cycle([100]).text

        assert "|__helper" not in second
        assert "|__helper" in third
        assert second.splitlines()[0].startswith("   UID      TGID       TID")

    def test_inconsistent_target_fails_alone(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        directory = proc_tree.write_task(200)
        sampler = _sampler(collector)
        sampler.sample_cycle([100, 200])

        (directory / "stat").write_text("garbage\n")
        fake_clock.advance(1.0)
        report = sampler.sample_cycle([100, 200])

        assert report.reported == [100]
        assert list(report.failed) == [200]
        assert isinstance(report.failed[200], InternalInconsistencyError)
        assert sampler.tracked_pids == [100]
        assert "       100" in report.text

    def test_inconsistent_target_keeps_earlier_baselines(self, proc_tree, collector, fake_clock):
        directory = proc_tree.write_task(100)
        proc_tree.write_task(200)
        sampler = _sampler(collector)
        sampler.sample_cycle([100, 200])

        (directory / "stat").write_text("garbage\n")
        fake_clock.advance(1.0)
        report = sampler.sample_cycle([100, 200])

        assert list(report.failed) == [100]
        assert report.reported == [200]
        assert sampler.tracked_pids == [200]

    def test_zero_elapsed_is_an_internal_error(self, proc_tree, collector):
        proc_tree.write_task(100)
        sampler = _sampler(collector)
        sampler.sample_cycle([100])

        report = sampler.sample_cycle([100])

        assert list(report.failed) == [100]
        assert report.text == ""
        assert sampler.tracked_pids == []


@pytest.mark.integration
class TestRetry:
    """Test cases for re-reading a target before dropping it."""

    def _collector(self, side_effect):
        collector = Mock(spec=AbstractSnapshotCollector)
        collector.collect_task_group.side_effect = side_effect
        return collector

    def test_transient_failure_is_retried(self, test_utils):
        group = test_utils.task_group(test_utils.snapshot(100, 1.0, {}))
        collector = self._collector([NoSuchTargetError(100), group])
        sampler = _sampler(collector, retry_attempts=2)

        report = sampler.sample_cycle([100])

        assert report.baselined == [100]
        assert collector.collect_task_group.call_count == 2

    def test_default_drops_immediately(self, test_utils):
        group = test_utils.task_group(test_utils.snapshot(100, 1.0, {}))
        collector = self._collector([NoSuchTargetError(100), group])
        sampler = _sampler(collector)

        report = sampler.sample_cycle([100])

        assert report.dropped == [100]
        assert collector.collect_task_group.call_count == 1


@pytest.mark.integration
class TestRun:
    """Test cases for the interval loop."""

    def test_run_prints_count_reports(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        stream = io.StringIO()
        sleep = Mock(side_effect=fake_clock.advance)

        remaining = _sampler(collector).run([100], interval=2.0, count=3, stream=stream, sleep=sleep)

        assert remaining == [100]
        assert sleep.call_count == 3
        sleep.assert_called_with(2.0)
        assert stream.getvalue().count("%usr") == 3

    def test_run_stops_when_every_target_is_gone(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        stream = io.StringIO()

        def sleep(seconds):
            fake_clock.advance(seconds)
            proc_tree.remove_task(100)

        remaining = _sampler(collector).run([100], interval=1.0, count=None, stream=stream, sleep=sleep)

        assert remaining == []
        assert stream.getvalue() == ""

    def test_run_with_no_live_target(self, collector):
        sleep = Mock()
        remaining = _sampler(collector).run([99999], interval=1.0, count=5, stream=io.StringIO(), sleep=sleep)

        assert remaining == []
        sleep.assert_not_called()

    def test_empty_selection_is_rejected(self, collector):
        with pytest.raises(ValueError):
            _sampler(collector, selection=MetricSelection())

    def test_run_continues_past_an_inconsistent_target(self, proc_tree, collector, fake_clock):
        proc_tree.write_task(100)
        directory = proc_tree.write_task(200)
        (directory / "stat").write_text("garbage\n")
        stream = io.StringIO()
        sleep = Mock(side_effect=fake_clock.advance)

        remaining = _sampler(collector).run([100, 200], interval=1.0, count=2, stream=stream, sleep=sleep)

        assert remaining == [100]
        assert stream.getvalue().count("%usr") == 2

    def test_run_raises_when_the_last_target_is_inconsistent(self, proc_tree, collector, fake_clock):
        directory = proc_tree.write_task(100)
        (directory / "stat").write_text("garbage\n")
        sleep = Mock(side_effect=fake_clock.advance)

        with pytest.raises(InternalInconsistencyError):
            _sampler(collector).run([100], interval=1.0, count=3, stream=io.StringIO(), sleep=sleep)
        sleep.assert_not_called()
