import asyncio

import pytest


class FakeClock:
    """Simulated monotonic clock; `sleep` advances time and fires scheduled events."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self._events: list[tuple[float, object]] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def at(self, when: float, callback) -> None:
        self._events.append((when, callback))
        self._events.sort(key=lambda event: event[0])

    async def sleep(self, delay: float) -> None:
        target = self.now + delay
        while self._events and self._events[0][0] <= target:
            when, callback = self._events.pop(0)
            self.now = when
            callback()
        self.now = target
        await asyncio.sleep(0)

    async def settle(self, rounds: int = 50) -> None:
        """Let background tasks sleeping on this clock make progress."""
        for _ in range(rounds):
            await asyncio.sleep(0)


@pytest.fixture
def clock():
    return FakeClock()
