"""
Async HTTP client wrapper for results-feed requests.

Retries rate-limited (429) and server-error responses plus transport failures,
honours Retry-After, and records per-request metrics. Other 4xx responses are
raised immediately.
"""
from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import FEED_LATENCY, FEED_REQUESTS

logger = get_logger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})
MAX_RETRY_AFTER_S = 10.0
DEFAULT_RETRY_AFTER_S = 2.0


def retry_after_seconds(value: Optional[str], now: Optional[datetime] = None) -> float:
    """Seconds to wait for a Retry-After header given as delta-seconds or HTTP-date."""
    if not value:
        return DEFAULT_RETRY_AFTER_S
    try:
        seconds = float(value)
    except ValueError:
        try:
            when = parsedate_to_datetime(value)
        except (TypeError, ValueError):
            return DEFAULT_RETRY_AFTER_S
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        seconds = (when - (now or datetime.now(timezone.utc))).total_seconds()
    return min(max(seconds, 0.0), MAX_RETRY_AFTER_S)


class FeedHTTPClient:
    """
    Async HTTP client for one feed provider.
    The base URL and auth headers are fixed per instance.
    """

    def __init__(
        self,
        provider_name: str,
        base_url: str,
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        max_attempts: int = 2,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._provider = provider_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_s or get_settings().feed_request_timeout_s
        self._attempts = max(1, max_attempts)
        self._headers = headers or {}
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            transport=self._transport,
        )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    def _observe(self, endpoint: str, status: str, started: float) -> None:
        FEED_REQUESTS.labels(provider=self._provider, endpoint=endpoint, status=status).inc()
        FEED_LATENCY.labels(provider=self._provider).observe(time.perf_counter() - started)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        endpoint: str = "unknown",
    ) -> httpx.Response:
        """
        GET ``path`` relative to the base URL.

        Raises:
            httpx.HTTPStatusError: non-success response, after retries when retryable.
            httpx.TransportError: network failure on the last attempt.
        """
        if not self._client:
            raise RuntimeError("FeedHTTPClient not started. Call start() first.")

        for attempt in range(1, self._attempts + 1):
            last_attempt = attempt == self._attempts
            started = time.perf_counter()
            try:
                resp = await self._client.get(path, params=params)
            except httpx.TransportError as exc:
                status = "timeout" if isinstance(exc, httpx.TimeoutException) else "error"
                self._observe(endpoint, status, started)
                logger.warning(
                    "feed_transport_error",
                    provider=self._provider,
                    path=path,
                    error=str(exc),
                    attempt=attempt,
                )
                if last_attempt:
                    raise
                await asyncio.sleep(1.0 * attempt)
                continue

            self._observe(endpoint, str(resp.status_code), started)

            if resp.status_code in RETRYABLE_STATUS and not last_attempt:
                if resp.status_code == 429:
                    delay = retry_after_seconds(resp.headers.get("Retry-After"))
                    logger.warning("feed_rate_limited", provider=self._provider, path=path, delay_s=delay)
                else:
                    delay = 1.0 * attempt
                    logger.warning(
                        "feed_server_error",
                        provider=self._provider,
                        path=path,
                        status=resp.status_code,
                        attempt=attempt,
                    )
                await asyncio.sleep(delay)
                continue

            if resp.is_error:
                logger.error(
                    "feed_http_error",
                    provider=self._provider,
                    path=path,
                    status=resp.status_code,
                    attempt=attempt,
                )
            resp.raise_for_status()
            logger.debug(
                "feed_request_success",
                provider=self._provider,
                path=path,
                latency_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            return resp

        raise RuntimeError(f"Feed request to {path} made no attempts")
