from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import signal
import time
from dataclasses import dataclass, field
from typing import Awaitable, Iterator

import httpx

from tide.config import RunConfig
from tide.loadgen.client import RETRY_BACKOFF_SEC, send_with_retry
from tide.metrics import Counter, MetricsAccumulator, RequestOutcome, RunReport, summarize

logger = logging.getLogger(__name__)

TICK_INTERVAL_SEC = 1.0


@dataclass(slots=True)
class RunState:
    started_mono: float = field(default_factory=time.perf_counter)
    total_requests: Counter = field(default_factory=Counter)

    def elapsed(self) -> float:
        return time.perf_counter() - self.started_mono


async def run_load(
    config: RunConfig,
    stop: asyncio.Event | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunReport:
    """Drive a full run and summarize it.

    Without an explicit ``stop`` event, SIGINT ends the run early.
    """
    metrics = MetricsAccumulator()
    async with httpx.AsyncClient(timeout=config.timeout_sec, transport=transport) as client:
        state = RunState()
        if stop is None:
            with interrupt_event() as sigint:
                interrupted = await run_until_stopped(run_ticks(client, config, metrics, state), sigint)
        else:
            interrupted = await run_until_stopped(run_ticks(client, config, metrics, state), stop)
        elapsed = state.elapsed()
    if interrupted:
        logger.warning("Interrupted after %.3fs, in-flight requests abandoned", elapsed)
    return summarize(
        metrics.snapshot(),
        state.total_requests.value,
        elapsed,
        config.concurrency,
        config.url,
    )


async def run_until_stopped(run: Awaitable[int], stop: asyncio.Event) -> bool:
    """Race ``run`` against ``stop``; return True if the stop signal won.

    The losing run is cancelled without draining: requests still in flight
    may never reach the accumulator.
    """
    run_task = asyncio.ensure_future(run)
    stop_task = asyncio.ensure_future(stop.wait())
    try:
        await asyncio.wait({run_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (run_task, stop_task):
            if not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    current = asyncio.current_task()
                    # only swallow the cancellation we requested
                    if current is not None and current.cancelling():
                        raise
    if run_task.cancelled():
        return True
    run_task.result()
    return False


async def run_ticks(
    client: httpx.AsyncClient,
    config: RunConfig,
    metrics: MetricsAccumulator,
    state: RunState,
    *,
    tick_interval_sec: float = TICK_INTERVAL_SEC,
    backoff_sec: float = RETRY_BACKOFF_SEC,
) -> int:
    """Dispatch one batch of ``config.concurrency`` requests per tick until the duration elapses."""
    tick = 0
    while True:
        elapsed = state.elapsed()
        if elapsed >= config.duration_sec:
            break
        remaining = config.duration_sec - elapsed
        logger.info("Time elapsed: %ds - Time remaining: %ds", int(elapsed), int(remaining))
        outcomes = await _dispatch_batch(client, config, metrics, state, backoff_sec)
        ok = sum(1 for o in outcomes if o.success)
        logger.debug("tick %d: %d ok, %d failed", tick, ok, len(outcomes) - ok)
        tick += 1
        await _sleep_until_time(state.started_mono + tick * tick_interval_sec)
    return tick


async def _dispatch_batch(
    client: httpx.AsyncClient,
    config: RunConfig,
    metrics: MetricsAccumulator,
    state: RunState,
    backoff_sec: float,
) -> list[RequestOutcome]:
    tasks = [
        asyncio.create_task(_issue_one(client, config, metrics, state, backoff_sec))
        for _ in range(config.concurrency)
    ]
    try:
        results = await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        for task in tasks:
            task.cancel()
    outcomes: list[RequestOutcome] = []
    for result in results:
        if isinstance(result, RequestOutcome):
            outcomes.append(result)
        elif isinstance(result, Exception):
            logger.error("Request crashed: %r", result, exc_info=result)
        else:
            raise result
    return outcomes


async def _issue_one(
    client: httpx.AsyncClient,
    config: RunConfig,
    metrics: MetricsAccumulator,
    state: RunState,
    backoff_sec: float,
) -> RequestOutcome:
    await state.total_requests.increment()
    outcome = await send_with_retry(
        client,
        config.url,
        config.timeout_sec,
        config.max_retries,
        metrics,
        backoff_sec=backoff_sec,
    )
    if not outcome.success:
        logger.error("Request failed: %s", outcome.error)
    return outcome


async def _sleep_until_time(target: float) -> None:
    delay = max(0.0, target - time.perf_counter())
    if delay > 0:
        await asyncio.sleep(delay)


@contextlib.contextmanager
def interrupt_event() -> Iterator[asyncio.Event]:
    """Yield an event that SIGINT sets while the context is active."""
    loop = asyncio.get_running_loop()
    event = asyncio.Event()
    try:
        loop.add_signal_handler(signal.SIGINT, event.set)
    except NotImplementedError:
        # loops without signal support, e.g. the Windows proactor
        def on_sigint(signum: int, frame: object) -> None:
            loop.call_soon_threadsafe(event.set)

        previous = signal.signal(signal.SIGINT, on_sigint)
        restore = functools.partial(signal.signal, signal.SIGINT, previous)
    else:
        restore = functools.partial(loop.remove_signal_handler, signal.SIGINT)
    try:
        yield event
    finally:
        restore()
