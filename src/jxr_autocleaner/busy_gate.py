"""System-busy gate: exclusive foreground app or high CPU defers conversion."""

import sys
import time
from collections.abc import Callable

import psutil
from loguru import logger

log = logger.bind(component="busy-gate")

# QUERY_USER_NOTIFICATION_STATE values that mean "leave the machine alone":
# QUNS_BUSY, QUNS_RUNNING_D3D_FULL_SCREEN, QUNS_PRESENTATION_MODE
EXCLUSIVE_NOTIFICATION_STATES = frozenset({2, 3, 4})


def foreground_is_exclusive() -> bool:
    """Return True if a full-screen game, D3D exclusive app, or presentation
    owns the foreground.

    Only Windows exposes this signal; other platforms report not busy.
    """
    if sys.platform != "win32":
        return False

    import ctypes

    state = ctypes.c_int(0)
    hr = ctypes.windll.shell32.SHQueryUserNotificationState(ctypes.byref(state))
    if hr != 0:
        log.debug(f"SHQueryUserNotificationState failed: hr=0x{hr & 0xFFFFFFFF:08X}")
        return False
    return state.value in EXCLUSIVE_NOTIFICATION_STATES


def sample_cpu_percent(window: float) -> float:
    """Sample system-wide CPU utilization over ``window`` seconds (0-100).

    Blocking sample: a non-blocking psutil read underreports when the
    calling thread has been asleep in a wait.
    """
    return psutil.cpu_percent(interval=window)


class BusyGate:
    """Point-in-time busy predicate with a cached CPU sample.

    The CPU sample blocks for ``sample_window`` seconds, so the result is
    reused for ``cache_ttl`` seconds (never less than the window). Probe
    failures count as "not busy" so a flaky OS query can't stall the queue.
    """

    def __init__(
        self,
        cpu_threshold: float = 25.0,
        sample_window: float = 1.0,
        cache_ttl: float = 5.0,
        foreground_probe: Callable[[], bool] = foreground_is_exclusive,
        cpu_sampler: Callable[[float], float] = sample_cpu_percent,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cpu_threshold = cpu_threshold
        self.sample_window = sample_window
        self.cache_ttl = max(cache_ttl, sample_window)
        self._foreground_probe = foreground_probe
        self._cpu_sampler = cpu_sampler
        self._clock = clock
        self._cached_cpu: float | None = None
        self._sampled_at = 0.0

    def foreground_exclusive(self) -> bool:
        try:
            return bool(self._foreground_probe())
        except Exception as e:
            log.debug(f"Foreground query failed, assuming not busy: {e}")
            return False

    def cpu_percent(self) -> float:
        """Return the cached CPU sample, refreshing it once it goes stale."""
        now = self._clock()
        if self._cached_cpu is not None and now - self._sampled_at < self.cache_ttl:
            return self._cached_cpu
        try:
            value = float(self._cpu_sampler(self.sample_window))
        except Exception as e:
            log.debug(f"CPU sample failed, assuming idle: {e}")
            value = 0.0
        self._cached_cpu = value
        self._sampled_at = self._clock()
        return value

    def is_busy(self, cpu_threshold: float | None = None) -> bool:
        """True if the foreground is exclusive or CPU exceeds the threshold."""
        if self.foreground_exclusive():
            log.debug("Exclusive foreground application active")
            return True
        threshold = self.cpu_threshold if cpu_threshold is None else cpu_threshold
        cpu = self.cpu_percent()
        if cpu > threshold:
            log.debug(f"CPU at {cpu:.0f}% (threshold {threshold:.0f}%)")
            return True
        return False
