"""Conversion worker: the single consumer of the work queue.

Each pass of ``step`` walks one item through:

    await      -- wait_pop with a bounded timeout; an idle timeout ends any
                  force-run session
    dedup      -- an item whose output already exists is a no-op
    gate       -- outside a force-run session, a busy system sends the item
                  back to the queue head and parks the worker until woken,
                  shut down, or the retry delay passes
    readiness  -- bounded exclusive-open probes while the producer finishes
    re-check   -- the file may have vanished while we waited
    dispatch   -- hand off to the converter; failures are logged, not retried
"""

from collections.abc import Callable
from pathlib import Path

from loguru import logger

from .busy_gate import BusyGate
from .config import AgentConfig
from .context import SchedulerContext
from .converter import Converter
from .models import ConversionOutcome, OutcomeTally, ProbeResult
from .readiness import probe_exclusive, wait_until_ready
from .scanner import converted_path

log = logger.bind(component="worker")


class ConversionWorker:
    """Scheduler loop that converts queued files one at a time.

    Attributes:
        context: Shared scheduler state (queue, signals, force-run flag)
        config: Timing, threshold and quality settings
        tally: Outcome counters, logged when the loop exits
    """

    def __init__(
        self,
        context: SchedulerContext,
        config: AgentConfig,
        convert: Callable[[Path, int], bool] | None = None,
        busy_gate: BusyGate | None = None,
        probe: Callable[[Path], ProbeResult] = probe_exclusive,
    ) -> None:
        self.context = context
        self.config = config
        self.convert = convert or Converter(config).convert
        self.busy_gate = busy_gate or BusyGate(
            cpu_threshold=config.cpu_threshold,
            sample_window=config.cpu_sample_window,
            cache_ttl=config.cpu_cache_ttl,
        )
        self.probe = probe
        self.tally = OutcomeTally()

    def run(self) -> None:
        """Worker thread entry point. Returns once shutdown is observed."""
        log.info("Worker started")
        while not self.context.shutdown_requested:
            outcome = self.step()
            if outcome is not None:
                self.tally.record(outcome)
        log.info(f"Worker exited ({self.tally.summary()})")

    def step(self) -> ConversionOutcome | None:
        """Process at most one queue item.

        Returns the item's terminal outcome, or None when nothing reached a
        terminal state (idle timeout, busy deferral, or shutdown).
        """
        item = self.context.queue.wait_pop(self.config.queue_timeout)
        if item is None:
            if self.context.force_run.is_set() and not self.context.shutdown_requested:
                log.info("Queue idle, force run session finished")
            self.context.force_run.clear()
            return None

        if converted_path(item, self.config.output_extension).exists():
            log.debug(f"Already converted, skipping: {item}")
            return ConversionOutcome.SKIPPED_ALREADY_CONVERTED

        if not self.context.force_run.is_set() and self.busy_gate.is_busy(
            self.config.cpu_threshold
        ):
            log.info(f"System busy, re-queuing {item}")
            self.context.queue.push_front(item)
            self.context.wait_for_wake(self.config.busy_retry_delay)
            return None

        ready = wait_until_ready(
            item,
            self.config.ready_attempts,
            self.config.ready_delay,
            self.context.shutdown_event,
            probe=self.probe,
        )
        if self.context.shutdown_requested:
            return None
        if ready is not ProbeResult.READY:
            log.info(f"Skipping file (not accessible): {item}")
            return ConversionOutcome.SKIPPED_UNREADY

        if not item.exists():
            log.info(f"File disappeared before conversion: {item}")
            return ConversionOutcome.SKIPPED_UNREADY

        try:
            ok = self.convert(item, self.config.jpeg_quality)
        except Exception as e:
            log.error(f"Error converting {item}: {e}")
            ok = False
        if not ok:
            # Not re-queued: a malformed file would fail the same way forever
            log.error(f"Conversion failed for {item}")
            return ConversionOutcome.FAILED
        return ConversionOutcome.CONVERTED
