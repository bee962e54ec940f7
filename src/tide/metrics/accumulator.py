from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from tide.metrics.models import MetricsSnapshot


class Counter:
    """Monotonic counter guarded by its own lock."""

    __slots__ = ("_value", "_lock")

    def __init__(self) -> None:
        self._value = 0
        self._lock = asyncio.Lock()

    async def increment(self) -> int:
        async with self._lock:
            self._value += 1
            return self._value

    @property
    def value(self) -> int:
        return self._value


class LatencyLog:
    """Append-only list of latencies in nanoseconds, guarded by its own lock."""

    __slots__ = ("_times", "_lock")

    def __init__(self) -> None:
        self._times: list[int] = []
        self._lock = asyncio.Lock()

    async def append(self, latency_ns: int) -> None:
        async with self._lock:
            self._times.append(latency_ns)

    def snapshot(self) -> tuple[int, ...]:
        return tuple(self._times)

    def __len__(self) -> int:
        return len(self._times)


@dataclass(slots=True)
class MetricsAccumulator:
    """Counters and latencies shared by every in-flight request of a run.

    Each cell locks independently so a latency append never waits on a
    counter update. Reads are only final once every writer has been awaited.
    """

    successful_requests: Counter = field(default_factory=Counter)
    failed_requests: Counter = field(default_factory=Counter)
    request_times: LatencyLog = field(default_factory=LatencyLog)

    async def record_success(self, latency_ns: int) -> None:
        await self.request_times.append(latency_ns)
        await self.successful_requests.increment()

    async def record_failure(self, latency_ns: int) -> None:
        await self.request_times.append(latency_ns)
        await self.failed_requests.increment()

    def snapshot(self) -> MetricsSnapshot:
        return MetricsSnapshot(
            successful_requests=self.successful_requests.value,
            failed_requests=self.failed_requests.value,
            request_times=self.request_times.snapshot(),
        )
