"""Readiness check: is the producer done writing a source file?

A file is ready once we can take an exclusive lock on it. On Windows the
open itself fails with a sharing violation while the capture tool still
holds the file; msvcrt then locks a byte to confirm. On POSIX an advisory
flock stands in for the same check.
"""

import sys
import threading
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from .errors import categorize_os_error
from .models import ErrorCategory, ProbeResult
from .retry import retry_with_delay

log = logger.bind(component="readiness")


@contextmanager
def _exclusive_handle(path: Path):
    if sys.platform == "win32":
        import msvcrt

        with open(path, "r+b") as fh:
            msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
            try:
                yield fh
            finally:
                fh.seek(0)
                msvcrt.locking(fh.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        with open(path, "rb") as fh:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            try:
                yield fh
            finally:
                fcntl.flock(fh.fileno(), fcntl.LOCK_UN)


def probe_exclusive(path: Path) -> ProbeResult:
    """One exclusive-access attempt.

    READY when the lock was taken and released, RETRY on a sharing
    violation, ABANDON when the file vanished or any other error occurred.
    """
    try:
        with _exclusive_handle(path):
            return ProbeResult.READY
    except FileNotFoundError:
        log.info(f"File no longer exists: {path}")
        return ProbeResult.ABANDON
    except OSError as e:
        if categorize_os_error(e) == ErrorCategory.TRANSIENT:
            log.debug(f"File locked: {path}")
            return ProbeResult.RETRY
        log.warning(f"Unexpected error opening {path}: {e}")
        return ProbeResult.ABANDON


def wait_until_ready(
    path: Path,
    attempts: int,
    delay: float,
    cancel: threading.Event,
    probe=probe_exclusive,
) -> ProbeResult:
    """Probe ``path`` with bounded retries. See ``retry_with_delay``."""
    return retry_with_delay(
        lambda: probe(path), attempts, delay, cancel, label=str(path)
    )
