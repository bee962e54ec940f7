from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorType(str, Enum):
    TIMEOUT = "timeout"
    CONNECT = "connect"
    READ = "read"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class RequestOutcome:
    success: bool
    attempts: int
    latency_ns: int
    status_code: int | None = None
    error: str | None = None
    error_type: ErrorType | None = None


@dataclass(frozen=True, slots=True)
class MetricsSnapshot:
    successful_requests: int
    failed_requests: int
    request_times: tuple[int, ...]


@dataclass(frozen=True, slots=True)
class LatencyStats:
    min_ns: int
    median_ns: int
    max_ns: int
    avg_ns: int
    p95_ns: int
    p99_ns: int


@dataclass(frozen=True, slots=True)
class RunReport:
    target_url: str
    concurrency: int
    elapsed_sec: float
    total_requests: int
    successful_requests: int
    failed_requests: int
    stats: LatencyStats | None
