"""In-memory idle detection — tracks the last HTTP request instant.

NOTE: This implementation is process-local. In multi-worker deployments
(uvicorn --workers N > 1), each worker keeps its own tracker and its own
idle monitor, so each worker shuts itself down independently.
"""
import threading
import time
from collections.abc import Callable
from datetime import timedelta


class ActivityTracker:
    """Holds the configured idle timeout and the instant of the last request.

    Timestamps come from a monotonic clock, so `last_activity` never moves
    backwards and `idle_duration()` is never negative.
    """

    def __init__(self, timeout_seconds: int = 0, clock: Callable[[], float] = time.monotonic):
        self._timeout_seconds = timeout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self.last_activity: float = clock()

    def record_activity(self) -> None:
        """Call on every incoming HTTP request."""
        now = self._clock()
        # Concurrent writers may read the clock out of order; keep the max.
        with self._lock:
            if now > self.last_activity:
                self.last_activity = now

    def idle_duration(self) -> timedelta:
        elapsed = self._clock() - self.last_activity
        return timedelta(seconds=max(elapsed, 0.0))

    def configured_timeout(self) -> int:
        return self._timeout_seconds

    def is_idle(self, seconds: float) -> bool:
        """Return True if no activity has been recorded in the last `seconds`."""
        return self.idle_duration() >= timedelta(seconds=seconds)
