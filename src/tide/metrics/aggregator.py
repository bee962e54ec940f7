from __future__ import annotations

from typing import Sequence

import numpy as np

from tide.metrics.models import LatencyStats, MetricsSnapshot, RunReport

# Largest duration representable as unsigned 64-bit nanoseconds.
MAX_DURATION_NS = 2**64 - 1


def summarize(
    metrics: MetricsSnapshot,
    total_requests: int,
    elapsed_sec: float,
    concurrency: int,
    target_url: str,
) -> RunReport:
    return RunReport(
        target_url=target_url,
        concurrency=concurrency,
        elapsed_sec=elapsed_sec,
        total_requests=total_requests,
        successful_requests=metrics.successful_requests,
        failed_requests=metrics.failed_requests,
        stats=latency_stats(metrics.request_times),
    )


def latency_stats(request_times: Sequence[int]) -> LatencyStats | None:
    if not request_times:
        return None
    times = sorted(request_times)
    count = len(times)
    # Upper median for even counts: [10, 20, 30, 40] -> 30.
    median = times[count // 2]
    avg = min(sum(times) // count, MAX_DURATION_NS)
    return LatencyStats(
        min_ns=times[0],
        median_ns=median,
        max_ns=times[-1],
        avg_ns=avg,
        p95_ns=_order_statistic(times, 95),
        p99_ns=_order_statistic(times, 99),
    )


def _order_statistic(sorted_times: list[int], q: float) -> int:
    # "higher" picks an observed sample instead of interpolating between two.
    return int(np.percentile(np.asarray(sorted_times, dtype=np.float64), q, method="higher"))
