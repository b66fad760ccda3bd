"""Exception hierarchy and error categorization for the autocleaner."""

import errno
import sys
from pathlib import Path

from .models import ErrorCategory

# ERROR_SHARING_VIOLATION, ERROR_LOCK_VIOLATION
SHARING_VIOLATION_WINERRORS = frozenset({32, 33})


class AutoCleanerError(Exception):
    """Base exception for all autocleaner errors."""


class ConfigError(AutoCleanerError):
    """Invalid or missing configuration."""


class DecodeError(AutoCleanerError):
    """A source image could not be read or decoded."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Failed to decode {path}: {detail}")
        self.path = path
        self.detail = detail


class EncodeError(AutoCleanerError):
    """An output image could not be encoded or written."""

    def __init__(self, path: Path, detail: str) -> None:
        super().__init__(f"Failed to encode {path}: {detail}")
        self.path = path
        self.detail = detail


class CodecError(AutoCleanerError):
    """The gain-map encoder rejected its input or failed mid-encode."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Gain-map codec error: {detail}")
        self.detail = detail


class WatchError(AutoCleanerError):
    """The directory watch could not be established (systemic)."""

    def __init__(self, root: Path, detail: str) -> None:
        super().__init__(f"Cannot watch {root}: {detail}")
        self.root = root
        self.detail = detail


def categorize_os_error(exc: OSError) -> ErrorCategory:
    """Map an OS error raised while probing a file to an error category.

    Sharing violations and lock conflicts mean another process still holds
    the file and are transient. Everything else (missing file, permission
    denied, bad path) is permanent for that item.
    """
    if isinstance(exc, BlockingIOError):
        return ErrorCategory.TRANSIENT
    winerror = getattr(exc, "winerror", None)
    if winerror is not None:
        if winerror in SHARING_VIOLATION_WINERRORS:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.PERMANENT
    # msvcrt.locking reports a held range through errno only
    if sys.platform == "win32" and exc.errno in (errno.EACCES, errno.EDEADLK):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.PERMANENT
