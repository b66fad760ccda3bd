"""Scheduler context: the state shared by the watcher, worker and triggers."""

import threading
from collections.abc import Callable

from loguru import logger

from .work_queue import WorkQueue

log = logger.bind(component="context")


class SchedulerContext:
    """Explicitly constructed shared state, one per agent instance.

    Attributes:
        queue: Work queue fed by the watcher and force scans
        shutdown_event: Set once, never cleared; every loop exits on it
        wake_event: Auto-reset style wake for a worker parked on a busy system
        force_run: Set while a force-scan session bypasses the busy gate
    """

    def __init__(self, queue: WorkQueue | None = None) -> None:
        self.queue = queue if queue is not None else WorkQueue()
        self.shutdown_event = threading.Event()
        self.wake_event = threading.Event()
        self.force_run = threading.Event()
        self._callbacks: list[Callable[[], None]] = []
        self._lock = threading.Lock()

    @property
    def shutdown_requested(self) -> bool:
        return self.shutdown_event.is_set()

    def on_shutdown(self, callback: Callable[[], None]) -> None:
        """Register a cancel hook; runs immediately if shutdown already began."""
        with self._lock:
            if not self.shutdown_event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def request_shutdown(self) -> None:
        """Signal shutdown to every context. Idempotent."""
        with self._lock:
            if self.shutdown_event.is_set():
                return
            self.shutdown_event.set()
            callbacks, self._callbacks = self._callbacks, []
        log.info("Shutdown requested")
        self.wake_event.set()
        self.queue.shutdown()
        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                log.error(f"Shutdown hook failed: {e}")

    def wake(self) -> None:
        self.wake_event.set()

    def wait_for_wake(self, timeout: float) -> bool:
        """Park until woken, shut down, or ``timeout`` elapses.

        Returns True when shutdown was requested.
        """
        self.wake_event.wait(timeout)
        if self.shutdown_event.is_set():
            return True
        self.wake_event.clear()
        return False
