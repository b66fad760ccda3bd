"""Bounded retry-with-delay over a tagged ProbeResult."""

import threading
from collections.abc import Callable

from loguru import logger

from .models import ProbeResult

log = logger.bind(component="retry")


def retry_with_delay(
    probe: Callable[[], ProbeResult],
    attempts: int,
    delay: float,
    cancel: threading.Event,
    label: str = "",
) -> ProbeResult:
    """Call ``probe`` up to ``attempts`` times, sleeping ``delay`` between tries.

    Returns READY or ABANDON as soon as the probe does. Returns RETRY when
    every attempt asked to retry (the bound was exhausted). The sleep wakes
    early when ``cancel`` is set, in which case ABANDON is returned.
    """
    result = ProbeResult.RETRY
    for attempt in range(1, attempts + 1):
        result = probe()
        if result is not ProbeResult.RETRY:
            return result
        log.debug(f"{label} not ready (attempt {attempt}/{attempts})")
        if attempt < attempts and cancel.wait(delay):
            log.debug(f"{label} retry cancelled")
            return ProbeResult.ABANDON
    return result
