"""Background service: wires the watcher, worker and triggers together."""

from __future__ import annotations

import signal
import threading
from collections.abc import Callable
from pathlib import Path

from loguru import logger

from .busy_gate import BusyGate
from .config import AgentConfig
from .context import SchedulerContext
from .events import DirectoryEventStream
from .force_scan import force_scan
from .scanner import cleanup_orphan_temps
from .watcher import DirectoryWatcher
from .worker import ConversionWorker

log = logger.bind(component="service")


class AutoCleanerService:
    """Owns one scheduler context and its two long-lived threads.

    The watcher produces into the queue, the worker consumes from it, and
    ``force_scan`` may be called from any other thread (signal handler,
    UI callback). ``stop`` is cooperative: it signals shutdown and
    ``join`` waits for both threads to return on their own.
    """

    def __init__(
        self,
        config: AgentConfig,
        context: SchedulerContext | None = None,
        convert: Callable[[Path, int], bool] | None = None,
        busy_gate: BusyGate | None = None,
        stream: DirectoryEventStream | None = None,
    ) -> None:
        self.config = config
        self.context = context or SchedulerContext()
        self.watcher = DirectoryWatcher(
            config.watch_dir,
            self.context,
            stream=stream,
            source_ext=config.source_extension,
            output_ext=config.output_extension,
            buffer_size=config.event_buffer_size,
            rescan_interval=config.rescan_interval,
        )
        self.worker = ConversionWorker(
            self.context, config, convert=convert, busy_gate=busy_gate
        )
        self._threads: list[threading.Thread] = []

    def start(self) -> None:
        """Clear leftovers from interrupted runs, then start both threads."""
        removed = cleanup_orphan_temps(
            self.config.watch_dir,
            self.config.output_extension,
            self.config.temp_marker,
        )
        if removed:
            log.info(f"Removed {removed} orphan temp files")

        self._threads = [
            threading.Thread(target=self.watcher.run, name="watcher"),
            threading.Thread(target=self.worker.run, name="worker"),
        ]
        for thread in self._threads:
            thread.start()
        log.info(f"Monitoring: {self.config.watch_dir}")

    def force_scan(self) -> int:
        return force_scan(
            self.context,
            self.config.watch_dir,
            self.config.source_extension,
            self.config.output_extension,
        )

    def stop(self) -> None:
        self.context.request_shutdown()

    def join(self, timeout: float | None = None) -> None:
        """Wait for the threads, then report what was left in the queue."""
        for thread in self._threads:
            thread.join(timeout)
        dropped = self.context.queue.drain()
        if dropped:
            log.info(f"Dropped {len(dropped)} pending files at shutdown")

    def install_signal_handlers(self) -> None:
        """SIGINT/SIGTERM stop the service; SIGUSR1 (POSIX) forces a scan."""

        def _stop(signum, frame):
            log.info(f"Received signal {signum}")
            self.stop()

        def _force(signum, frame):
            self.force_scan()

        signal.signal(signal.SIGINT, _stop)
        signal.signal(signal.SIGTERM, _stop)
        if hasattr(signal, "SIGUSR1"):
            signal.signal(signal.SIGUSR1, _force)

    def run_forever(self) -> None:
        """Start, block the calling (main) thread until shutdown, then join."""
        self.install_signal_handlers()
        self.start()
        # Short waits keep the main thread responsive to signals on Windows
        while not self.context.shutdown_event.wait(timeout=1.0):
            continue
        log.info("Shutting down...")
        self.join()
