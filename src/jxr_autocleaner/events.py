"""Directory event streams.

``DirectoryEventStream`` is the seam between the watcher's logic and the OS
notification machinery: ``next_batch`` returns a list of events, or
``StreamSignal.OVERFLOW`` when notifications were dropped, or
``StreamSignal.CANCELLED`` once ``cancel`` has been called.

``WatchdogEventStream`` implements it on top of a watchdog observer. The
observer thread feeds a bounded buffer; when the consumer falls behind and
the buffer fills, further events are dropped and the next read reports an
overflow so the watcher can recover with a full rescan.
"""

from __future__ import annotations

import os
import queue
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .errors import WatchError
from .models import DirectoryEvent, EventAction, StreamSignal

log = logger.bind(component="events")

_CANCEL = object()


class DirectoryEventStream(ABC):
    """Source of directory change batches for one watched subtree."""

    def start(self) -> None:
        """Begin delivering events. Raises WatchError if the watch fails."""

    def close(self) -> None:
        """Release OS resources. Called once after the consumer is done."""

    @abstractmethod
    def next_batch(
        self, timeout: float | None = None
    ) -> list[DirectoryEvent] | StreamSignal:
        """Block for the next batch; an empty list means the timeout elapsed."""

    @abstractmethod
    def cancel(self) -> None:
        """Wake a blocked ``next_batch`` and make every later call return
        CANCELLED. Safe to call from any thread, more than once."""


class _ForwardingHandler(FileSystemEventHandler):
    """Translate watchdog callbacks into DirectoryEvents."""

    def __init__(self, stream: WatchdogEventStream) -> None:
        self.stream = stream

    def on_created(self, event: FileSystemEvent) -> None:
        action = EventAction.DIRECTORY_ADDED if event.is_directory else EventAction.ADDED
        self.stream.offer(DirectoryEvent(action, Path(os.fsdecode(event.src_path))))

    def on_moved(self, event: FileSystemEvent) -> None:
        action = (
            EventAction.DIRECTORY_ADDED if event.is_directory else EventAction.RENAMED_IN
        )
        self.stream.offer(DirectoryEvent(action, Path(os.fsdecode(event.dest_path))))


class WatchdogEventStream(DirectoryEventStream):
    """Recursive watchdog observer feeding a bounded event buffer."""

    def __init__(self, root: Path, capacity: int = 4096) -> None:
        self.root = root
        self.capacity = capacity
        self._buffer: queue.Queue = queue.Queue(maxsize=capacity)
        self._overflowed = threading.Event()
        self._cancelled = threading.Event()
        self._observer = None

    def start(self) -> None:
        if not self.root.is_dir():
            raise WatchError(self.root, "not a directory")
        observer = Observer()
        try:
            observer.schedule(_ForwardingHandler(self), str(self.root), recursive=True)
            observer.start()
        except OSError as e:
            raise WatchError(self.root, str(e)) from e
        self._observer = observer
        log.debug(f"Observer started on {self.root}")

    def close(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()
        log.debug("Observer stopped")

    def offer(self, event: DirectoryEvent) -> None:
        """Called on the observer thread for every translated event."""
        if self._cancelled.is_set():
            return
        try:
            self._buffer.put_nowait(event)
        except queue.Full:
            if not self._overflowed.is_set():
                log.warning(f"Event buffer full ({self.capacity}), dropping events")
            self._overflowed.set()

    def _drain(self) -> list:
        items = []
        while True:
            try:
                items.append(self._buffer.get_nowait())
            except queue.Empty:
                return items

    def next_batch(
        self, timeout: float | None = None
    ) -> list[DirectoryEvent] | StreamSignal:
        if self._cancelled.is_set():
            return StreamSignal.CANCELLED
        if self._overflowed.is_set():
            self._overflowed.clear()
            self._drain()
            return StreamSignal.OVERFLOW

        try:
            first = self._buffer.get(timeout=timeout)
        except queue.Empty:
            return []
        batch = [first, *self._drain()]

        if self._cancelled.is_set() or _CANCEL in batch:
            return StreamSignal.CANCELLED
        if self._overflowed.is_set():
            self._overflowed.clear()
            return StreamSignal.OVERFLOW
        return batch

    def cancel(self) -> None:
        if self._cancelled.is_set():
            return
        self._cancelled.set()
        try:
            self._buffer.put_nowait(_CANCEL)
        except queue.Full:
            # A full buffer means next_batch is not blocked on get()
            pass
