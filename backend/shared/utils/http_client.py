"""
Async HTTP client wrapper for crawler requests.
Includes retry logic, timeout management, metrics collection and an optional
randomized browser identity for scraping requests.
"""
from __future__ import annotations

import asyncio
import random
import time
from typing import Any, Optional

import httpx

from shared.config import get_settings
from shared.utils.logging import get_logger
from shared.utils.metrics import REQUEST_LATENCY, SCRAPE_REQUESTS

logger = get_logger(__name__)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:109.0) Gecko/20100101 Firefox/120.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)
ACCEPT_LANGUAGES = (
    "pt-PT,pt;q=0.9,en;q=0.8",
    "pt-BR,pt;q=0.9,en;q=0.8",
    "pt-PT,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "pt-BR,pt;q=0.9,en-US;q=0.8,en;q=0.7",
    "en-US,en;q=0.9,pt;q=0.8",
    "en-GB,en;q=0.9,pt;q=0.8",
)
ACCEPTS = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
)


def random_client_identity() -> dict[str, str]:
    """Browser-like request headers, different on every call."""
    now = int(time.time())

    def random_id() -> int:
        return random.randint(1_000_000_000, 1_999_999_999)

    def recent_timestamp() -> int:
        # any moment in the last 30 days
        return now - random.randint(0, 86400 * 30)

    ga_ts = recent_timestamp()
    return {
        "User-Agent": random.choice(USER_AGENTS),
        "Accept": random.choice(ACCEPTS),
        "Accept-Language": random.choice(ACCEPT_LANGUAGES),
        "Accept-Encoding": "gzip, deflate",
        "DNT": "1" if random.random() > 0.5 else "0",
        "Connection": "keep-alive",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": "none",
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0" if random.random() > 0.3 else "no-cache",
        "Cookie": (
            f"_ga=GA1.2.{random_id()}.{ga_ts}; "
            f"_gid=GA1.2.{random_id()}.{recent_timestamp()}; "
            f"_fbp=fb.1.{recent_timestamp()}.{ga_ts}"
        ),
    }


class CrawlerHTTPClient:
    """
    Async HTTP client used for both the scraped site and the reference API.
    Handles timeouts, retries, and records metrics per request.
    """

    def __init__(
        self,
        client_name: str,
        base_url: str = "",
        headers: dict[str, str] | None = None,
        timeout_s: float | None = None,
        max_retries: int = 2,
        randomize_identity: bool = False,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._name = client_name
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_s or settings.request_timeout_s
        self._max_retries = max(1, max_retries)
        self._default_headers = headers or {}
        self._randomize_identity = randomize_identity
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        """Initialize the underlying httpx client."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._default_headers,
            timeout=httpx.Timeout(self._timeout, connect=5.0),
            follow_redirects=True,
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            transport=self._transport,
        )

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _request_headers(self, extra_headers: dict[str, str] | None) -> dict[str, str]:
        merged = {**self._default_headers}
        if self._randomize_identity:
            merged.update(random_client_identity())
        if extra_headers:
            merged.update(extra_headers)
        return merged

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform a GET request with retry, metrics, and structured logging.

        Timeouts, transport errors and 5xx responses are retried; 429 honours
        Retry-After. Any other non-2xx response is raised immediately.

        Raises:
            httpx.HTTPStatusError: On non-retryable or exhausted HTTP errors.
            httpx.TransportError: If all retries fail at the transport level.
        """
        if not self._client:
            raise RuntimeError("CrawlerHTTPClient not started. Call start() first.")

        last_exc: Optional[Exception] = None
        for attempt in range(1, self._max_retries + 1):
            start_time = time.perf_counter()
            status = "unknown"
            try:
                resp = await self._client.get(url, params=params, headers=self._request_headers(extra_headers))
                status = str(resp.status_code)

                if resp.status_code == 429 and attempt < self._max_retries:
                    logger.warning("http_rate_limited", client=self._name, url=url, attempt=attempt)
                    retry_after = float(resp.headers.get("Retry-After", "2"))
                    await asyncio.sleep(min(retry_after, 10.0))
                    continue

                if resp.status_code >= 500 and attempt < self._max_retries:
                    logger.warning(
                        "http_server_error",
                        client=self._name,
                        url=url,
                        status=resp.status_code,
                        attempt=attempt,
                    )
                    await asyncio.sleep(1.0 * attempt)
                    continue

                resp.raise_for_status()
                logger.debug(
                    "http_request_success",
                    client=self._name,
                    url=url,
                    status=resp.status_code,
                    latency_ms=round((time.perf_counter() - start_time) * 1000, 2),
                )
                return resp

            except httpx.HTTPStatusError:
                raise

            except httpx.TransportError as exc:
                status = "timeout" if isinstance(exc, httpx.TimeoutException) else "error"
                last_exc = exc
                logger.warning(
                    "http_transport_error",
                    client=self._name,
                    url=url,
                    error=str(exc) or type(exc).__name__,
                    attempt=attempt,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(1.0 * attempt)
                    continue

            finally:
                SCRAPE_REQUESTS.labels(client=self._name, status=status).inc()
                REQUEST_LATENCY.labels(client=self._name).observe(time.perf_counter() - start_time)

        if last_exc:
            raise last_exc
        raise RuntimeError(f"{self._name} request failed after {self._max_retries} attempts")

    async def post(
        self,
        url: str,
        json: Any = None,
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """
        Perform a single POST request. Never retried: the caller decides whether a
        failed submission is attempted again later.

        Raises:
            httpx.HTTPStatusError: On any non-2xx response.
            httpx.TransportError: On network failure.
        """
        if not self._client:
            raise RuntimeError("CrawlerHTTPClient not started. Call start() first.")

        start_time = time.perf_counter()
        status = "unknown"
        try:
            resp = await self._client.post(url, json=json, headers=self._request_headers(extra_headers))
            status = str(resp.status_code)
            resp.raise_for_status()
            return resp
        except httpx.TransportError:
            status = "error"
            raise
        finally:
            SCRAPE_REQUESTS.labels(client=self._name, status=status).inc()
            REQUEST_LATENCY.labels(client=self._name).observe(time.perf_counter() - start_time)
