"""Tests for service.py -- wiring, startup cleanup, force scan, shutdown."""

import threading
import time

import pytest

from jxr_autocleaner.config import AgentConfig
from jxr_autocleaner.events import DirectoryEventStream
from jxr_autocleaner.models import DirectoryEvent, EventAction, StreamSignal
from jxr_autocleaner.service import AutoCleanerService


class QueueStream(DirectoryEventStream):
    """Hands out batches pushed by the test until cancelled."""

    def __init__(self):
        self.batches: list[list[DirectoryEvent]] = []
        self.cancelled = threading.Event()
        self.ready = threading.Event()

    def start(self):
        self.ready.set()

    def next_batch(self, timeout=None):
        if self.cancelled.wait(0.01):
            return StreamSignal.CANCELLED
        return self.batches.pop(0) if self.batches else []

    def cancel(self):
        self.cancelled.set()


class FakeGate:
    def __init__(self, busy=False):
        self.busy = busy

    def is_busy(self, cpu_threshold=None):
        return self.busy


class RecordingConverter:
    def __init__(self):
        self.calls = []
        self.done = threading.Event()

    def __call__(self, path, quality):
        self.calls.append(path)
        path.with_suffix(".jpg").write_bytes(b"\xff\xd8")
        path.unlink()
        self.done.set()
        return True


@pytest.fixture
def config(tmp_path, monkeypatch):
    monkeypatch.delenv("JXR_WATCH_DIR", raising=False)
    return AgentConfig(
        _env_file=None,
        watch_dir=tmp_path / "videos",
        log_dir=tmp_path / "logs",
        lock_dir=tmp_path / "locks",
        queue_timeout=0.05,
        busy_retry_delay=0.05,
        ready_delay=0.01,
    )


def _service(config, busy=False):
    config.watch_dir.mkdir(parents=True, exist_ok=True)
    stream = QueueStream()
    converter = RecordingConverter()
    service = AutoCleanerService(
        config, convert=converter, busy_gate=FakeGate(busy), stream=stream
    )
    return service, stream, converter


def _wait_for(predicate, timeout=3.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestLifecycle:
    def test_start_removes_orphan_temps(self, config):
        service, _, _ = _service(config)
        orphan = config.watch_dir / "shot.tmp.jpg"
        orphan.write_bytes(b"partial")
        service.start()
        try:
            assert not orphan.exists()
        finally:
            service.stop()
            service.join(timeout=2.0)

    def test_event_is_converted(self, config):
        service, stream, converter = _service(config)
        service.start()
        try:
            src = config.watch_dir / "shot.jxr"
            src.write_bytes(b"\x00" * 8)
            stream.batches.append([DirectoryEvent(EventAction.ADDED, src)])
            assert converter.done.wait(3.0)
            assert converter.calls == [src]
        finally:
            service.stop()
            service.join(timeout=2.0)

    def test_stop_joins_threads(self, config):
        service, stream, _ = _service(config)
        service.start()
        assert stream.ready.wait(2.0)
        service.stop()
        service.join(timeout=2.0)
        assert all(not t.is_alive() for t in service._threads)
        assert stream.cancelled.is_set()

    def test_join_drains_queue(self, config):
        service, _, _ = _service(config)
        service.context.queue.push(config.watch_dir / "late.jxr")
        service.context.request_shutdown()
        service.join()
        assert len(service.context.queue) == 0


class TestForceScan:
    def test_force_scan_bypasses_busy_system(self, config):
        service, _, converter = _service(config, busy=True)
        existing = config.watch_dir / "old.jxr"
        existing.write_bytes(b"\x00" * 8)
        service.start()
        try:
            assert service.force_scan() == 1
            assert _wait_for(lambda: converter.calls == [existing])
        finally:
            service.stop()
            service.join(timeout=2.0)

    def test_busy_system_defers_without_force(self, config):
        service, stream, converter = _service(config, busy=True)
        service.start()
        try:
            src = config.watch_dir / "shot.jxr"
            src.write_bytes(b"\x00" * 8)
            stream.batches.append([DirectoryEvent(EventAction.ADDED, src)])
            assert not converter.done.wait(0.3)
        finally:
            service.stop()
            service.join(timeout=2.0)
        assert converter.calls == []
