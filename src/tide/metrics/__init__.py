from __future__ import annotations

from tide.metrics.accumulator import Counter, LatencyLog, MetricsAccumulator
from tide.metrics.aggregator import latency_stats, summarize
from tide.metrics.models import ErrorType, LatencyStats, MetricsSnapshot, RequestOutcome, RunReport

__all__ = [
    "Counter",
    "ErrorType",
    "LatencyLog",
    "LatencyStats",
    "MetricsAccumulator",
    "MetricsSnapshot",
    "RequestOutcome",
    "RunReport",
    "latency_stats",
    "summarize",
]
