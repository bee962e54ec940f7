from __future__ import annotations

from dataclasses import dataclass

import httpx


class ConfigError(ValueError):
    """Raised for configuration that must stop the run before any request."""


@dataclass(frozen=True, slots=True)
class RunConfig:
    url: str
    concurrency: int = 5
    duration_sec: int = 10
    timeout_sec: int = 10
    max_retries: int = 2

    def validate(self) -> RunConfig:
        if not self.url.strip():
            raise ConfigError("Target URL is required")
        if not _is_absolute_url(self.url):
            raise ConfigError("Invalid target URL")
        if self.concurrency <= 0:
            raise ConfigError("Concurrency must be > 0")
        if self.duration_sec <= 0:
            raise ConfigError("Duration must be > 0")
        if self.timeout_sec <= 0:
            raise ConfigError("Timeout must be > 0")
        if self.max_retries < 0:
            raise ConfigError("Retries must be >= 0")
        return self


def _is_absolute_url(url: str) -> bool:
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return bool(parsed.scheme) and bool(parsed.host)
