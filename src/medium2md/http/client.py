"""Async HTTP client used to fetch posts, embed frames and images."""

from __future__ import annotations

import asyncio
import logging
import random
from types import TracebackType

import aiohttp

from ..errors import FetchError
from .protocols import HttpResponse
from .rate_limiter import PerHostRateLimiter

logger = logging.getLogger(__name__)


class AsyncHttpClient:
    """
    Async HTTP client with optional transport-level retries.

    Features:
    - Per-host throttling via PerHostRateLimiter
    - Content size limit to prevent memory exhaustion
    - Every failure surfaces as FetchError (network errors, timeouts and
      any status >= 400)

    Retries default to zero: a failed fetch is final for the job that
    issued it.

    Example:
        client = AsyncHttpClient(rate_limiter=PerHostRateLimiter())

        async with client:
            response = await client.get("https://medium.com/@someone/post-1a2b3c")
    """

    MAX_CONTENT_SIZE = 50 * 1024 * 1024  # 50 MB

    # Status codes that warrant a retry when retries are enabled
    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

    RETRYABLE_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        ConnectionError,
    )

    def __init__(
        self,
        rate_limiter: PerHostRateLimiter | None = None,
        max_retries: int = 0,
        retry_base_delay: float = 1.0,
        max_content_size: int = MAX_CONTENT_SIZE,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = 30.0,
    ) -> None:
        """
        Initialize the HTTP client.

        Args:
            rate_limiter: Per-host limiter (a permissive one is created if None)
            max_retries: Retry attempts for transient failures
            retry_base_delay: Base delay for exponential backoff (seconds)
            max_content_size: Maximum response size in bytes
            user_agent: Custom User-Agent string
            proxy: Proxy URL
            default_timeout: Default request timeout in seconds
        """
        self._rate_limiter = rate_limiter or PerHostRateLimiter()
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._max_content_size = max_content_size
        self._proxy = proxy
        self._default_timeout = default_timeout

        if user_agent is None:
            user_agent = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (medium2md/1.0)"
        self._user_agent = user_agent

        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        """Enter async context and create session."""
        connector = aiohttp.TCPConnector(limit=100, limit_per_host=10, ttl_dns_cache=300)
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close session."""
        if self._session:
            await self._session.close()
            self._session = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with jitter for a 0-indexed attempt."""
        delay: float = self._retry_base_delay * (2**attempt)
        return delay + random.uniform(0, 1)

    async def _read_limited(self, response: aiohttp.ClientResponse, url: str) -> bytes:
        content_length = response.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > self._max_content_size:
            raise FetchError(url, f"content too large: {content_length} bytes", response.status)

        content = b""
        async for chunk in response.content.iter_chunked(8192):
            content += chunk
            if len(content) > self._max_content_size:
                raise FetchError(url, f"content size limit exceeded: >{self._max_content_size} bytes")
        return content

    async def get(
        self,
        url: str,
        *,
        timeout: float | None = None,
    ) -> HttpResponse:
        """
        Perform an HTTP GET request.

        Args:
            url: The URL to fetch
            timeout: Request timeout in seconds (uses default if None)

        Returns:
            HttpResponse for a successful (< 400) response

        Raises:
            FetchError: On network errors, timeouts or error statuses
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        timeout_val = timeout or self._default_timeout

        for attempt in range(self._max_retries + 1):
            try:
                async with (
                    self._rate_limiter.limit(url),
                    self._session.get(
                        url,
                        timeout=aiohttp.ClientTimeout(total=timeout_val),
                        proxy=self._proxy,
                        allow_redirects=True,
                    ) as response,
                ):
                    if response.status in self.RETRYABLE_STATUS_CODES and attempt < self._max_retries:
                        delay = self._calculate_retry_delay(attempt)
                        logger.warning(
                            f"Got {response.status} for {url}, retrying in {delay:.1f}s "
                            f"(attempt {attempt + 1}/{self._max_retries + 1})"
                        )
                        await asyncio.sleep(delay)
                        continue

                    if response.status >= 400:
                        raise FetchError(url, f"HTTP {response.status}", response.status)

                    content = await self._read_limited(response, url)
                    logger.debug(f"Fetched {url}: {len(content)} bytes")

                    return HttpResponse(
                        status_code=response.status,
                        content=content,
                        content_type=response.headers.get("Content-Type", ""),
                        url=str(response.url),
                    )

            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt < self._max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Error fetching {url}: {e}, retrying in {delay:.1f}s "
                        f"(attempt {attempt + 1}/{self._max_retries + 1})"
                    )
                    await asyncio.sleep(delay)
                    continue
                raise FetchError(url, str(e) or type(e).__name__) from e

        raise FetchError(url, f"gave up after {self._max_retries + 1} attempts")
