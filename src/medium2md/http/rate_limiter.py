"""Per-host throttling for requests to medium.com and its CDN."""

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class PerHostRateLimiter:
    """
    Limits concurrent requests per host and spaces them out.

    A post with dozens of CDN images and embeds fans out into many
    simultaneous requests against two or three hosts; this keeps that
    burst within ``max_concurrent`` open requests per host, each started
    at least ``delay`` seconds after the previous one.

    Example:
        limiter = PerHostRateLimiter(delay=0.2, max_concurrent=5)

        async with limiter.limit("https://cdn-images-1.medium.com/max/800/a.png"):
            await fetch(...)
    """

    def __init__(self, delay: float = 0.0, max_concurrent: int = 5):
        self.delay = delay
        self.max_concurrent = max_concurrent

        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._last_start: dict[str, float] = {}
        self._lock = asyncio.Lock()

    @staticmethod
    def _host(url: str) -> str:
        return urlparse(url).netloc

    def _semaphore(self, host: str) -> asyncio.Semaphore:
        sem = self._semaphores.get(host)
        if sem is None:
            sem = self._semaphores[host] = asyncio.Semaphore(self.max_concurrent)
        return sem

    @asynccontextmanager
    async def limit(self, url: str) -> AsyncIterator[None]:
        """
        Hold one of the host's request slots for the duration of the block.

        Args:
            url: The URL about to be requested
        """
        host = self._host(url)

        async with self._semaphore(host):
            if self.delay > 0:
                async with self._lock:
                    elapsed = time.monotonic() - self._last_start.get(host, 0.0)
                    wait_time = self.delay - elapsed
                    if wait_time > 0:
                        logger.debug(f"Throttling {host} for {wait_time:.2f}s")
                        await asyncio.sleep(wait_time)
                    self._last_start[host] = time.monotonic()
            yield

    def get_stats(self) -> dict:
        """Get limiter statistics."""
        return {"hosts_tracked": len(self._semaphores)}
