from __future__ import annotations

import asyncio
import logging
import time

import httpx

from tide.metrics import ErrorType, MetricsAccumulator, RequestOutcome

logger = logging.getLogger(__name__)

RETRY_BACKOFF_SEC = 0.2


async def send_with_retry(
    client: httpx.AsyncClient,
    url: str,
    timeout_sec: float,
    max_retries: int,
    metrics: MetricsAccumulator,
    *,
    backoff_sec: float = RETRY_BACKOFF_SEC,
) -> RequestOutcome:
    """Run one logical request: up to ``max_retries + 1`` GET attempts.

    Any HTTP response, whatever its status, ends the sequence as a success.
    Transport failures are retried after a fixed backoff. Exactly one latency
    (that of the final attempt) and one counter are recorded per call.
    """
    total_attempts = max_retries + 1
    attempt = 0
    while True:
        attempt += 1
        start = time.perf_counter_ns()
        try:
            resp = await client.get(url, timeout=timeout_sec)
        except httpx.TimeoutException as exc:
            err, error_type = exc, ErrorType.TIMEOUT
        except httpx.ConnectError as exc:
            err, error_type = exc, ErrorType.CONNECT
        except httpx.ReadError as exc:
            err, error_type = exc, ErrorType.READ
        except httpx.HTTPError as exc:
            err, error_type = exc, ErrorType.OTHER
        else:
            latency_ns = time.perf_counter_ns() - start
            await metrics.record_success(latency_ns)
            logger.info(
                "Request successful (Duration: %.3fms) %d",
                latency_ns / 1e6,
                resp.status_code,
            )
            return RequestOutcome(
                success=True,
                attempts=attempt,
                latency_ns=latency_ns,
                status_code=resp.status_code,
            )
        latency_ns = time.perf_counter_ns() - start
        description = _describe(err)
        if attempt < total_attempts:
            logger.warning(
                "Request failed (attempt %d/%d): %s. Retrying...",
                attempt,
                total_attempts,
                description,
            )
            await asyncio.sleep(backoff_sec)
            continue
        await metrics.record_failure(latency_ns)
        logger.warning(
            "Giving up after %d attempt(s): %s (Duration: %.3fms)",
            attempt,
            description,
            latency_ns / 1e6,
        )
        return RequestOutcome(
            success=False,
            attempts=attempt,
            latency_ns=latency_ns,
            error=description,
            error_type=error_type,
        )


def _describe(exc: httpx.HTTPError) -> str:
    # httpx timeouts frequently carry an empty message
    return str(exc) or type(exc).__name__
