"""Force scan: queue every pending file now and bypass the busy gate."""

from pathlib import Path

from loguru import logger

from .context import SchedulerContext
from .models import OUTPUT_EXTENSION, SOURCE_EXTENSION
from .scanner import find_pending

log = logger.bind(component="force-scan")


def force_scan(
    context: SchedulerContext,
    root: Path,
    source_ext: str = SOURCE_EXTENSION,
    output_ext: str = OUTPUT_EXTENSION,
) -> int:
    """Start a force-run session and enqueue all pending files under ``root``.

    Runs on the caller's thread. The flag is raised and the worker woken
    before the walk, so a worker parked on a busy system starts draining
    right away. The worker clears the flag on any idle timeout, which can
    land mid-walk; the flag is raised again once the walk is done.
    The worker clears it for good once the queue goes idle.

    Returns the number of files queued.
    """
    log.info("Force scan requested")
    context.force_run.set()
    context.wake()

    count = 0
    for path in find_pending(root, source_ext, output_ext):
        context.queue.push(path)
        count += 1

    context.force_run.set()
    context.wake()
    log.info(f"Force scan: queued {count} files")
    return count
