"""Tests for force_scan.py."""

from pathlib import Path

from jxr_autocleaner.context import SchedulerContext
from jxr_autocleaner.force_scan import force_scan


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x00")
    return path


def test_queues_pending_and_sets_force_run(tmp_path):
    a = _touch(tmp_path / "a.jxr")
    _touch(tmp_path / "b.jxr")
    _touch(tmp_path / "b.jpg")
    c = _touch(tmp_path / "sub" / "c.jxr")
    context = SchedulerContext()

    assert force_scan(context, tmp_path) == 2
    assert context.force_run.is_set()
    assert context.wake_event.is_set()
    assert context.queue.drain() == [a, c]


def test_empty_directory_still_raises_flag(tmp_path):
    context = SchedulerContext()
    assert force_scan(context, tmp_path) == 0
    assert context.force_run.is_set()


def test_after_shutdown_nothing_queued(tmp_path):
    _touch(tmp_path / "a.jxr")
    context = SchedulerContext()
    context.request_shutdown()
    force_scan(context, tmp_path)
    assert len(context.queue) == 0


def test_flag_raised_again_after_walk(tmp_path, monkeypatch):
    a = _touch(tmp_path / "a.jxr")
    context = SchedulerContext()

    def walk_with_idle_timeout(root, source_ext, output_ext):
        # Worker times out on an empty queue while the walk is running
        assert context.force_run.is_set()
        context.force_run.clear()
        context.wake_event.clear()
        yield a

    monkeypatch.setattr("jxr_autocleaner.force_scan.find_pending", walk_with_idle_timeout)
    assert force_scan(context, tmp_path) == 1
    assert context.force_run.is_set()
    assert context.wake_event.is_set()


def test_flag_raised_before_walk(tmp_path, monkeypatch):
    context = SchedulerContext()
    seen = []

    def walk(root, source_ext, output_ext):
        seen.append((context.force_run.is_set(), context.wake_event.is_set()))
        return iter(())

    monkeypatch.setattr("jxr_autocleaner.force_scan.find_pending", walk)
    force_scan(context, tmp_path)
    assert seen == [(True, True)]
