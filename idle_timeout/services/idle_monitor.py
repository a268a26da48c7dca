"""Background idle check — shuts the process down after a period without requests."""
import asyncio
import enum
import logging
import os
import sys
import time
from collections.abc import Awaitable, Callable

from idle_timeout.services.activity import ActivityTracker

logger = logging.getLogger(__name__)

MAX_CHECK_INTERVAL_SECONDS = 60


class MonitorState(enum.Enum):
    DISABLED = "disabled"
    WATCHING = "watching"
    TRIGGERED = "triggered"


def check_interval(timeout_seconds: float) -> float:
    """Check at least every minute, or at the timeout interval if that is shorter."""
    return float(min(timeout_seconds, MAX_CHECK_INTERVAL_SECONDS))


def report_idle_timeout(timeout_seconds: int) -> None:
    sys.stderr.write(f"Idle timeout of {timeout_seconds} seconds exceeded. Shutting down.\n")
    sys.stderr.flush()


def terminate_process(timeout_seconds: int) -> None:
    """Default shutdown action for hosts that give the monitor no way to stop them.

    Exits with status 0 without running the host's shutdown hooks. The CLI
    passes a graceful action that lets the uvicorn server return instead.
    """
    report_idle_timeout(timeout_seconds)
    logging.shutdown()
    os._exit(0)


class MonitorHandle:
    """A running recurring check; cancelling it stops all further ticks."""

    def __init__(self) -> None:
        self.task: asyncio.Task | None = None
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True
        # The check task drops its own handle on trigger and simply returns.
        if self.task is not None and self.task is not asyncio.current_task():
            self.task.cancel()


class IdleMonitor:
    """Runs the periodic idle check for one ActivityTracker.

    At most one recurring check is active at a time. The check task lives on
    the running event loop and never keeps the process alive on its own.
    """

    def __init__(
        self,
        shutdown: Callable[[int], None] = terminate_process,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._shutdown = shutdown
        self._clock = clock
        self._sleep = sleep
        self._handle: MonitorHandle | None = None
        self._tracker: ActivityTracker | None = None
        self._timeout_seconds = 0
        self._state = MonitorState.DISABLED

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def handle(self) -> MonitorHandle | None:
        return self._handle

    def start(self, tracker: ActivityTracker, timeout_seconds: int) -> None:
        """Start watching `tracker`; restarts the check if one is already running.

        Must be called from the event loop thread; without a running loop
        monitoring stays disabled. A non-positive timeout disables monitoring
        and never creates a timer.
        """
        if not isinstance(timeout_seconds, (int, float)) or timeout_seconds <= 0:
            logger.debug("Idle timeout disabled, monitor not started")
            return
        if self._state is MonitorState.TRIGGERED:
            logger.warning("Idle monitor already triggered shutdown, ignoring start")
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, idle monitor not started")
            return

        if self._handle is not None:
            logger.info("Restarting idle monitor")
            self._handle.cancel()
            self._handle = None

        interval = check_interval(timeout_seconds)
        self._tracker = tracker
        self._timeout_seconds = timeout_seconds

        handle = MonitorHandle()
        first_tick = self._clock() + interval
        handle.task = loop.create_task(self._run(handle, first_tick, interval))
        self._handle = handle
        self._state = MonitorState.WATCHING
        logger.info(
            "Idle monitor started: timeout %ss, checking every %ss", timeout_seconds, interval
        )

    def stop(self) -> None:
        """Cancel the running check, if any. Safe to call at any time."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None
        self._state = MonitorState.DISABLED
        logger.info("Idle monitor stopped")

    def check(self) -> bool:
        """Run one tick's decision. Returns True if it triggered shutdown."""
        if self._state is not MonitorState.WATCHING or self._tracker is None:
            return False

        logger.debug("Idle check against %ss timeout", self._timeout_seconds)
        if not self._tracker.is_idle(self._timeout_seconds):
            return False

        self._state = MonitorState.TRIGGERED
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.cancel()

        logger.info("Idle timeout of %s seconds exceeded, shutting down", self._timeout_seconds)
        try:
            self._shutdown(self._timeout_seconds)
        except Exception:
            logger.exception("Idle shutdown action failed")
        return True

    async def _run(self, handle: MonitorHandle, deadline: float, interval: float) -> None:
        # Fixed-rate ticks: each deadline is one interval after the previous one.
        while True:
            await self._sleep(max(deadline - self._clock(), 0.0))
            deadline += interval
            if handle.cancelled or handle is not self._handle:
                return
            if self.check():
                return
