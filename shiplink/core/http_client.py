"""
Resilient HTTP Client for the shipping provider

- Exponential backoff: delay before retry n is base_delay * exponential_base ** n
- Retries transport failures (connect errors, timeouts) and 5xx responses
- Never retries 4xx - those are permanent
- Suspends with asyncio.sleep, so cancelling the calling task stops the loop

The client returns the final httpx.Response (successful or not) and leaves
classification of the body to the caller. Transport failures that survive
every attempt are re-raised.
"""
import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Dict, Optional

import httpx

logger = logging.getLogger(__name__)


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    base_delay: float = 1.0           # Base delay in seconds
    max_delay: float = 60.0           # Maximum delay cap
    exponential_base: float = 2.0     # Exponential backoff multiplier
    jitter_factor: float = 0.0        # Random jitter (0-1), off by default

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code >= 500


class ResilientHTTPClient:
    """
    Async HTTP client with retry and backoff.

    Usage:
        async with ResilientHTTPClient(base_url="https://api.example.com") as client:
            response = await client.get("/v2/carriers")
    """

    def __init__(
        self,
        base_url: str = "",
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 30.0,
        default_headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout
        self.default_headers = default_headers or {}

        self._client: Optional[httpx.AsyncClient] = None

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=self.default_headers,
            follow_redirects=True,
        )

    async def __aenter__(self):
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def init(self):
        """Initialize client without context manager. Must call close() when done."""
        if self._client is None:
            self._client = self._build_client()
        return self

    async def close(self):
        """Close the client. Use this when not using context manager."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _calculate_backoff(self, attempt: int) -> float:
        """
        Calculate delay before retry number `attempt` (zero-indexed).

        Formula: min(base * (exp_base ^ attempt) + jitter, max_delay)
        """
        cfg = self.retry_config

        delay = cfg.base_delay * (cfg.exponential_base ** attempt)

        if cfg.jitter_factor:
            delay += delay * cfg.jitter_factor * (2 * random.random() - 1)

        return max(0.0, min(delay, cfg.max_delay))

    async def request(
        self,
        method: str,
        url: str,
        **kwargs,
    ) -> httpx.Response:
        """
        Make an HTTP request with retry.

        Args:
            method: HTTP method (GET, POST, etc.)
            url: Path relative to base_url, or an absolute URL
            **kwargs: Additional arguments passed to httpx

        Returns:
            The last httpx.Response received. Non-2xx responses are returned,
            not raised, once retrying stops.

        Raises:
            httpx.TransportError: When every attempt failed before a response arrived
        """
        # Auto-initialize if not using context manager
        if not self._client:
            await self.init()

        cfg = self.retry_config
        attempts = cfg.max_retries + 1
        last_exception: Optional[Exception] = None

        for attempt in range(attempts):
            try:
                logger.debug(f"[HTTP] {method} {url} (attempt {attempt + 1}/{attempts})")
                response = await self._client.request(method, url, **kwargs)

                if cfg.is_retryable_status(response.status_code) and attempt < cfg.max_retries:
                    delay = self._calculate_backoff(attempt)
                    logger.warning(
                        f"[HTTP] {method} {url}: Status {response.status_code}, "
                        f"retrying in {delay:.1f}s (attempt {attempt + 1})"
                    )
                    await asyncio.sleep(delay)
                    continue

                if response.status_code >= 400:
                    logger.error(f"[HTTP] {method} {url}: Status {response.status_code}, not retrying")

                return response

            except httpx.TransportError as e:
                last_exception = e

                if attempt < cfg.max_retries:
                    delay = self._calculate_backoff(attempt)
                    logger.warning(
                        f"[HTTP] {method} {url}: {e.__class__.__name__}, retrying in {delay:.1f}s"
                    )
                    await asyncio.sleep(delay)
                    continue

        # All retries exhausted on transport errors
        logger.error(f"[HTTP] {method} {url}: All {attempts} attempts failed")
        raise last_exception

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """GET request with retry."""
        return await self.request("GET", url, **kwargs)

    async def post(self, url: str, **kwargs) -> httpx.Response:
        """POST request with retry."""
        return await self.request("POST", url, **kwargs)

    async def put(self, url: str, **kwargs) -> httpx.Response:
        """PUT request with retry."""
        return await self.request("PUT", url, **kwargs)

    async def delete(self, url: str, **kwargs) -> httpx.Response:
        """DELETE request with retry."""
        return await self.request("DELETE", url, **kwargs)
