"""Cancellable FIFO of source paths shared between producers and the worker."""

import threading
from collections import deque
from pathlib import Path

from loguru import logger

log = logger.bind(component="queue")


class WorkQueue:
    """Thread-safe FIFO with front-priority re-queue and broadcast shutdown.

    Producers (the directory watcher and force scans) ``push`` to the tail.
    The worker re-queues a deferred item with ``push_front`` so it is served
    before anything discovered in the meantime. After ``shutdown`` every
    blocked and future ``wait_pop`` returns None immediately; items still
    pending are left for ``drain``.
    """

    def __init__(self) -> None:
        self._items: deque[Path] = deque()
        self._cond = threading.Condition()
        self._shutdown = False

    def push(self, item: Path) -> None:
        """Append an item and wake one waiting consumer."""
        with self._cond:
            if self._shutdown:
                log.debug(f"Queue shut down, dropping {item}")
                return
            self._items.append(item)
            self._cond.notify()

    def push_front(self, item: Path) -> None:
        """Insert an item at the head (retry path) and wake one consumer."""
        with self._cond:
            if self._shutdown:
                log.debug(f"Queue shut down, dropping {item}")
                return
            self._items.appendleft(item)
            self._cond.notify()

    def try_pop(self) -> Path | None:
        """Return the head item without blocking, or None when empty."""
        with self._cond:
            if not self._items:
                return None
            return self._items.popleft()

    def wait_pop(self, timeout: float | None) -> Path | None:
        """Block until an item arrives, ``timeout`` elapses, or shutdown.

        Returns None on timeout and on shutdown; callers treat both as
        "nothing yet" and re-check their own stop condition.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._items or self._shutdown, timeout)
            if self._shutdown or not self._items:
                return None
            return self._items.popleft()

    def shutdown(self) -> None:
        """Wake every waiter permanently. Safe to call more than once."""
        with self._cond:
            if self._shutdown:
                return
            self._shutdown = True
            self._cond.notify_all()

    def drain(self) -> list[Path]:
        """Remove and return everything still pending."""
        drained: list[Path] = []
        while (item := self.try_pop()) is not None:
            drained.append(item)
        return drained

    @property
    def is_shut_down(self) -> bool:
        with self._cond:
            return self._shutdown

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)
