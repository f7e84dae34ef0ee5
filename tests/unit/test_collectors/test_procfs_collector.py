"""
Unit tests for the procfs snapshot collector, run against a fake /proc tree.
"""

import pytest

from pypidstat.collectors import (
    ProcfsSnapshotCollector,
    UnsupportedSnapshotCollector,
    create_collector,
)
from pypidstat.models import MetricGroup, MetricSelection, TargetId
from pypidstat.validation import (
    InternalInconsistencyError,
    NoSuchTargetError,
    UnimplementedError,
)

ALL_GROUPS = MetricSelection(cpu=True, mem=True, io=True, ctx_switch=True, stack=True)


@pytest.fixture
def collector(proc_tree, fake_clock):
    return ProcfsSnapshotCollector(
        proc_root=proc_tree.root,
        ticks_per_second=100,
        page_size=4096,
        clock=fake_clock,
    )


@pytest.mark.unit
class TestProcfsSnapshotCollector:
    """Test cases for ProcfsSnapshotCollector."""

    def test_collect_all_groups(self, proc_tree, collector):
        proc_tree.write_task(
            4242,
            comm="make",
            uid=1000,
            utime=250,
            stime=40,
            guest_time=50,
            minflt=900,
            majflt=3,
            vsize=8388608,
            rss=256,
            processor=5,
            delayacct_blkio_ticks=7,
            wait_ns=2_500_000_000,
            read_bytes=4096,
            write_bytes=8192,
            cancelled_write_bytes=512,
            voluntary=150,
            involuntary=7,
            stack_kb=136,
            stack_referenced_kb=20,
        )

        snapshot = collector.collect(TargetId(4242), ALL_GROUPS)

        assert snapshot.identity.uid == 1000
        assert snapshot.identity.command == "make"
        assert snapshot.taken_at == 100.0
        assert snapshot.groups == ALL_GROUPS.groups

        cpu = snapshot.counters_for(MetricGroup.CPU)
        assert cpu.user_ticks == 200
        assert cpu.system_ticks == 40
        assert cpu.guest_ticks == 50
        assert cpu.wait_ticks == 250
        assert cpu.processor == 5
        assert cpu.ticks_per_second == 100

        mem = snapshot.counters_for(MetricGroup.MEM)
        assert mem.minor_faults == 900
        assert mem.major_faults == 3
        assert mem.vsz_kb == 8192
        assert mem.rss_kb == 1024
        assert mem.total_memory_kb == 16384000

        io = snapshot.counters_for(MetricGroup.IO)
        assert (io.read_bytes, io.write_bytes, io.cancelled_write_bytes) == (4096, 8192, 512)
        assert io.blkio_delay_ticks == 7

        ctx = snapshot.counters_for(MetricGroup.CTX_SWITCH)
        assert (ctx.voluntary, ctx.involuntary) == (150, 7)

        stack = snapshot.counters_for(MetricGroup.STACK)
        assert (stack.size_kb, stack.referenced_kb) == (136, 20)

    def test_only_selected_records_are_read(self, proc_tree, collector):
        directory = proc_tree.write_task(4242)
        # Records the CPU group does not need may be unreadable
        (directory / "io").unlink()
        (directory / "smaps").unlink()

        snapshot = collector.collect(TargetId(4242), MetricSelection(cpu=True))
        assert snapshot.groups == {MetricGroup.CPU}

    def test_guest_time_larger_than_utime_clamps_user(self, proc_tree, collector):
        proc_tree.write_task(4242, utime=10, guest_time=30)
        cpu = collector.collect(TargetId(4242), MetricSelection(cpu=True)).counters_for(MetricGroup.CPU)
        assert cpu.user_ticks == 0
        assert cpu.guest_ticks == 30

    def test_collect_thread(self, proc_tree, collector):
        proc_tree.write_task(4242)
        proc_tree.write_task(4242, tid=4243, comm="worker-1", utime=12)

        snapshot = collector.collect(TargetId(4242, 4243), MetricSelection(cpu=True))

        assert snapshot.target == TargetId(4242, 4243)
        assert snapshot.identity.command == "worker-1"
        assert snapshot.counters_for(MetricGroup.CPU).user_ticks == 12

    def test_missing_process_raises_no_such_target(self, collector):
        with pytest.raises(NoSuchTargetError) as exc_info:
            collector.collect(TargetId(99999), MetricSelection(cpu=True))
        assert exc_info.value.target == TargetId(99999)

    def test_vanished_record_raises_no_such_target(self, proc_tree, collector):
        directory = proc_tree.write_task(4242)
        (directory / "schedstat").unlink()
        with pytest.raises(NoSuchTargetError):
            collector.collect(TargetId(4242), MetricSelection(cpu=True))

    def test_malformed_record_raises_internal_inconsistency(self, proc_tree, collector):
        directory = proc_tree.write_task(4242)
        (directory / "stat").write_text("garbage\n")
        with pytest.raises(InternalInconsistencyError):
            collector.collect(TargetId(4242), MetricSelection(cpu=True))

    def test_missing_meminfo_is_internal_inconsistency(self, proc_tree, collector):
        proc_tree.write_task(4242)
        (proc_tree.root / "meminfo").unlink()
        with pytest.raises(InternalInconsistencyError):
            collector.collect(TargetId(4242), MetricSelection(mem=True))

    def test_list_threads(self, proc_tree, collector):
        proc_tree.write_task(4242)
        proc_tree.write_task(4242, tid=4250)
        proc_tree.write_task(4242, tid=4243)
        (proc_tree.task_dir(4242) / "task" / "not-a-tid").mkdir()

        assert collector.list_threads(4242) == [4243, 4250]

    def test_list_threads_of_missing_process(self, collector):
        with pytest.raises(NoSuchTargetError):
            collector.list_threads(99999)

    def test_collect_task_group_with_threads(self, proc_tree, collector):
        proc_tree.write_task(4242)
        proc_tree.write_task(4242, tid=4244)
        proc_tree.write_task(4242, tid=4243)

        group = collector.collect_task_group(4242, MetricSelection(cpu=True), include_threads=True)

        assert group.pid == 4242
        assert list(group.threads) == [4243, 4244]

    def test_collect_task_group_without_threads(self, proc_tree, collector):
        proc_tree.write_task(4242)
        proc_tree.write_task(4242, tid=4243)

        group = collector.collect_task_group(4242, MetricSelection(cpu=True))
        assert not group.has_threads

    def test_vanished_thread_is_left_out(self, proc_tree, collector):
        proc_tree.write_task(4242)
        proc_tree.write_task(4242, tid=4243)
        # Listed, but its records are gone
        (proc_tree.task_dir(4242) / "task" / "4244").mkdir()

        group = collector.collect_task_group(4242, MetricSelection(cpu=True), include_threads=True)
        assert list(group.threads) == [4243]


@pytest.mark.unit
class TestCollectorFactory:
    """Test cases for platform selection."""

    def test_linux_gets_procfs_collector(self, tmp_path):
        collector = create_collector("linux", proc_root=tmp_path, ticks_per_second=100, page_size=4096)
        assert isinstance(collector, ProcfsSnapshotCollector)
        assert collector.proc_root == tmp_path

    @pytest.mark.parametrize("platform", ["darwin", "win32", "freebsd13"])
    def test_other_platforms_are_unimplemented(self, platform):
        collector = create_collector(platform)
        assert isinstance(collector, UnsupportedSnapshotCollector)

        with pytest.raises(UnimplementedError):
            collector.collect(TargetId(1), MetricSelection(cpu=True))
        with pytest.raises(UnimplementedError):
            collector.list_threads(1)
        with pytest.raises(UnimplementedError):
            collector.collect_task_group(1, MetricSelection(cpu=True))

    def test_unimplemented_is_a_not_implemented_error(self):
        with pytest.raises(NotImplementedError):
            UnsupportedSnapshotCollector("darwin").collect(TargetId(1), MetricSelection(cpu=True))
