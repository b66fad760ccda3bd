"""Core enums, constants, and type definitions for the autocleaner.

Enums:
    ConversionOutcome -- Terminal result of one worker pass over a path.
    ProbeResult       -- Tagged result of a single readiness/retry attempt
                         (ready, retry later, abandon).
    ErrorCategory     -- Error classification (transient, permanent, systemic).
    EventAction       -- Kind of directory change reported by an event stream.
    StreamSignal      -- Out-of-band results of ``next_batch`` (overflow,
                         cancelled).
"""

from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path


class ConversionOutcome(StrEnum):
    CONVERTED = "converted"
    SKIPPED_ALREADY_CONVERTED = "skipped-already-converted"
    SKIPPED_UNREADY = "skipped-unready"
    FAILED = "failed"


class ProbeResult(StrEnum):
    READY = "ready"
    RETRY = "retry"
    ABANDON = "abandon"


class ErrorCategory(StrEnum):
    TRANSIENT = "transient"
    PERMANENT = "permanent"
    SYSTEMIC = "systemic"


class EventAction(StrEnum):
    ADDED = "added"
    RENAMED_IN = "renamed-in"
    DIRECTORY_ADDED = "directory-added"


class StreamSignal(StrEnum):
    OVERFLOW = "overflow"
    CANCELLED = "cancelled"


SOURCE_EXTENSION = ".jxr"
OUTPUT_EXTENSION = ".jpg"
TEMP_MARKER = ".tmp"

DEFAULT_JPEG_QUALITY = 95


@dataclass(frozen=True)
class DirectoryEvent:
    """One change notification: what happened and to which absolute path."""

    action: EventAction
    path: Path


@dataclass
class OutcomeTally:
    """Per-outcome counters kept by the worker for its exit summary."""

    counts: dict[ConversionOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in ConversionOutcome}
    )

    def record(self, outcome: ConversionOutcome) -> None:
        self.counts[outcome] += 1

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def summary(self) -> str:
        return ", ".join(f"{outcome.value}={n}" for outcome, n in self.counts.items())
