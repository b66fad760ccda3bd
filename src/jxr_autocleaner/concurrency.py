"""Single-instance lock for the background agent."""

import sys
from pathlib import Path

from loguru import logger

log = logger.bind(component="concurrency")


class InstanceLockError(Exception):
    """Raised when another agent instance holds the lock."""


def acquire_instance_lock(lock_file: Path) -> object:
    """Take an exclusive non-blocking lock on ``lock_file``.

    Returns the open file handle; keep a reference for as long as the lock
    should be held and close it to release.
    Raises InstanceLockError if another instance holds the lock.
    """
    lock_file.parent.mkdir(parents=True, exist_ok=True)
    fh = open(lock_file, "w")

    if sys.platform == "win32":
        import msvcrt

        try:
            msvcrt.locking(fh.fileno(), msvcrt.LK_NBLCK, 1)
        except OSError:
            fh.close()
            log.warning(f"Failed to acquire lock at {lock_file}")
            raise InstanceLockError("Another instance is already running")
    else:
        import fcntl

        try:
            fcntl.flock(fh.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fh.close()
            log.warning(f"Failed to acquire lock at {lock_file}")
            raise InstanceLockError("Another instance is already running")

    log.debug(f"Lock acquired at {lock_file}")
    return fh
