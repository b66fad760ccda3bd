"""Directory watcher: turns change notifications into queued source paths."""

from pathlib import Path

from loguru import logger

from .context import SchedulerContext
from .errors import WatchError
from .events import DirectoryEventStream, WatchdogEventStream
from .models import (
    OUTPUT_EXTENSION,
    SOURCE_EXTENSION,
    DirectoryEvent,
    EventAction,
    StreamSignal,
)
from .scanner import find_pending, needs_conversion

log = logger.bind(component="watcher")


class DirectoryWatcher:
    """Watches a directory tree and enqueues new source files.

    Handles the three stream results:
        events    -- enqueue each added or renamed-in source file that has no
                     converted counterpart yet (a directory that appears is
                     scanned, since its children produce no events)
        OVERFLOW  -- notifications were lost; rescan the whole tree
        timeout   -- after a quiet spell that followed activity, rescan the
                     whole tree anyway: watchdog drops OS-level overflows
                     (inotify IN_Q_OVERFLOW, an empty ReadDirectoryChangesW
                     buffer) without telling us
        CANCELLED -- shutdown; close the stream and return

    Duplicate queue entries are possible (a rescan can re-find a file the
    worker has not reached yet); the worker treats them idempotently.
    """

    def __init__(
        self,
        root: Path,
        context: SchedulerContext,
        stream: DirectoryEventStream | None = None,
        source_ext: str = SOURCE_EXTENSION,
        output_ext: str = OUTPUT_EXTENSION,
        buffer_size: int = 4096,
        rescan_interval: float = 60.0,
    ) -> None:
        self.root = root
        self.context = context
        self.stream = stream or WatchdogEventStream(root, capacity=buffer_size)
        self.source_ext = source_ext
        self.output_ext = output_ext
        self.rescan_interval = rescan_interval
        self._dirty = False

    def run(self) -> None:
        """Watcher thread entry point. Returns on shutdown or systemic error."""
        log.info(f"Watching '{self.root}'")
        try:
            self.stream.start()
        except WatchError as e:
            log.error(f"Watcher failed to start: {e}")
            return

        self.context.on_shutdown(self.stream.cancel)
        try:
            while True:
                batch = self.stream.next_batch(timeout=self.rescan_interval)
                if batch is StreamSignal.CANCELLED:
                    log.info("Shutdown signaled, exiting")
                    break
                if batch is StreamSignal.OVERFLOW:
                    log.warning(
                        f"Notification overflow, scanning {self.root} "
                        f"for {self.source_ext} files"
                    )
                    self.rescan()
                    self._dirty = False
                    continue
                if not batch:
                    if self._dirty:
                        log.debug("Quiet after activity, reconciling with a rescan")
                        self.rescan()
                        self._dirty = False
                    continue
                self._dirty = True
                self.handle_batch(batch)
        except Exception as e:
            log.error(f"Watcher stopped on unexpected error: {e}")
        finally:
            self.stream.close()
            log.info("Watcher exited")

    def handle_batch(self, events: list[DirectoryEvent]) -> int:
        """Enqueue qualifying paths from one batch. Returns the count queued."""
        queued = 0
        for event in events:
            if event.action == EventAction.DIRECTORY_ADDED:
                queued += self.rescan(event.path)
                continue
            if not needs_conversion(event.path, self.source_ext, self.output_ext):
                continue
            log.info(f"Detected {self.source_ext}: {event.path}")
            self.context.queue.push(event.path)
            queued += 1
        return queued

    def rescan(self, root: Path | None = None) -> int:
        """Enqueue every pending source file under ``root`` (default: all)."""
        target = root or self.root
        pending = find_pending(target, self.source_ext, self.output_ext)
        for path in pending:
            self.context.queue.push(path)
        if pending:
            log.info(f"Scan of {target} queued {len(pending)} files")
        return len(pending)
