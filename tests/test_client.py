from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

import httpx
import pytest
from hypothesis import given, settings, strategies as st

from tide.loadgen.client import send_with_retry
from tide.metrics import ErrorType, MetricsAccumulator, MetricsSnapshot, RequestOutcome

URL = "http://target.test/"

Handler = Callable[[httpx.Request], httpx.Response]


def _failing_then(failures: int, status: int = 200) -> tuple[Handler, list[httpx.Request]]:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) <= failures:
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(status)

    return handler, calls


def _run(
    handler: Handler,
    max_retries: int,
    backoff_sec: float = 0.0,
) -> tuple[RequestOutcome, MetricsSnapshot]:
    async def scenario() -> tuple[RequestOutcome, MetricsSnapshot]:
        metrics = MetricsAccumulator()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            outcome = await send_with_retry(client, URL, 1, max_retries, metrics, backoff_sec=backoff_sec)
        return outcome, metrics.snapshot()

    return asyncio.run(scenario())


def test_first_response_is_success() -> None:
    handler, calls = _failing_then(0)
    outcome, snapshot = _run(handler, max_retries=3)
    assert outcome.success
    assert outcome.attempts == 1
    assert outcome.status_code == 200
    assert len(calls) == 1
    assert snapshot.successful_requests == 1
    assert snapshot.failed_requests == 0
    assert len(snapshot.request_times) == 1


@pytest.mark.parametrize("status", [404, 500, 503])
def test_error_status_counts_as_success(status: int) -> None:
    handler, calls = _failing_then(0, status=status)
    outcome, snapshot = _run(handler, max_retries=2)
    assert outcome.success
    assert outcome.status_code == status
    assert len(calls) == 1
    assert snapshot.successful_requests == 1


def test_retries_until_response() -> None:
    handler, calls = _failing_then(2)
    outcome, snapshot = _run(handler, max_retries=2)
    assert outcome.success
    assert outcome.attempts == 3
    assert len(calls) == 3
    assert snapshot.successful_requests == 1
    assert snapshot.failed_requests == 0
    assert len(snapshot.request_times) == 1


def test_exhausted_retries_counted_once() -> None:
    handler, calls = _failing_then(10)
    outcome, snapshot = _run(handler, max_retries=2)
    assert not outcome.success
    assert outcome.attempts == 3
    assert outcome.error == "connection refused"
    assert outcome.error_type is ErrorType.CONNECT
    assert outcome.status_code is None
    assert len(calls) == 3
    assert snapshot.successful_requests == 0
    assert snapshot.failed_requests == 1
    assert len(snapshot.request_times) == 1


def test_no_retries_means_single_attempt() -> None:
    handler, calls = _failing_then(10)
    outcome, snapshot = _run(handler, max_retries=0)
    assert outcome.attempts == 1
    assert len(calls) == 1
    assert snapshot.failed_requests == 1


def test_timeout_classified() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("", request=request)

    outcome, _ = _run(handler, max_retries=0)
    assert outcome.error_type is ErrorType.TIMEOUT
    assert outcome.error == "ReadTimeout"


def test_backoff_between_attempts() -> None:
    handler, _ = _failing_then(10)
    start = time.perf_counter()
    _run(handler, max_retries=2, backoff_sec=0.05)
    assert time.perf_counter() - start >= 0.1


def test_retry_logged_with_attempt_number(caplog: pytest.LogCaptureFixture) -> None:
    handler, _ = _failing_then(1)
    with caplog.at_level(logging.INFO, logger="tide.loadgen.client"):
        _run(handler, max_retries=2)
    assert "attempt 1/3" in caplog.text
    assert "connection refused" in caplog.text
    assert "Request successful" in caplog.text


@settings(deadline=None, max_examples=30)
@given(max_retries=st.integers(min_value=0, max_value=4), failures=st.integers(min_value=0, max_value=6))
def test_attempt_bounds(max_retries: int, failures: int) -> None:
    handler, calls = _failing_then(failures)
    outcome, snapshot = _run(handler, max_retries=max_retries)
    assert 1 <= outcome.attempts <= max_retries + 1
    assert len(calls) == outcome.attempts
    assert outcome.success == (failures <= max_retries)
    assert snapshot.successful_requests + snapshot.failed_requests == 1
    assert len(snapshot.request_times) == 1
