"""Per-post image download queue."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..http.protocols import HttpClient
from ..utils import url_extension

logger = logging.getLogger(__name__)


@dataclass
class AssetJob:
    """
    One queued image download.

    Attributes:
        source_url: CDN URL of the image
        filename: Local name, ``asset-<n><ext>``, fixed at enqueue time
        content: Downloaded bytes (None until fetched, or on failure)
    """

    source_url: str
    filename: str
    content: Optional[bytes] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False, compare=False)


class AssetCollector:
    """
    Ordered, append-only list of the image downloads of one post.

    Local filenames are assigned at render time from each job's 1-based
    position, so the Markdown can reference ``./asset-<n><ext>`` before
    the download has even started. Downloads start eagerly on enqueue;
    failed ones are logged and dropped at flush time.

    Create one collector per post conversion.

    Example:
        assets = AssetCollector(http_client)
        filename = assets.enqueue("https://cdn-images-1.medium.com/max/800/1*a.png")
        # filename == "asset-1.png"
        written = await assets.flush(Path("./content"), "my-post")
    """

    def __init__(self, http_client: HttpClient, timeout: float = 60.0) -> None:
        self._client = http_client
        self._timeout = timeout
        self._jobs: list[AssetJob] = []

    def __len__(self) -> int:
        return len(self._jobs)

    @property
    def jobs(self) -> list[AssetJob]:
        """Queued jobs, in enqueue order."""
        return list(self._jobs)

    def enqueue(self, source_url: str) -> str:
        """
        Queue an image and start downloading it.

        Must be called from within a running event loop.

        Args:
            source_url: URL of the image

        Returns:
            The local filename assigned to the image
        """
        job = AssetJob(
            source_url=source_url,
            filename=f"asset-{len(self._jobs) + 1}{url_extension(source_url)}",
        )
        self._jobs.append(job)
        job.task = asyncio.get_running_loop().create_task(self._download(job))
        return job.filename

    async def _download(self, job: AssetJob) -> None:
        """Fetch one job's bytes. Never raises."""
        try:
            response = await asyncio.wait_for(
                self._client.get(job.source_url, timeout=self._timeout),
                timeout=self._timeout,
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Failed to fetch image {job.source_url}: {type(e).__name__}: {e}")
            return
        job.content = response.content

    async def wait(self) -> None:
        """Wait until every queued download has settled."""
        tasks = [job.task for job in self._jobs if job.task is not None]
        if tasks:
            await asyncio.gather(*tasks)

    async def flush(self, content_folder: Path, slug: str) -> list[Path]:
        """
        Write every downloaded image to ``<content_folder>/<slug>/``.

        Jobs whose download failed are skipped silently.

        Args:
            content_folder: Root folder of converted posts
            slug: Directory name of this post

        Returns:
            Paths of the files written
        """
        await self.wait()

        post_dir = content_folder / slug
        written: list[Path] = []
        for job in self._jobs:
            if job.content is None:
                continue
            destination = post_dir / job.filename
            post_dir.mkdir(parents=True, exist_ok=True)
            try:
                await asyncio.to_thread(destination.write_bytes, job.content)
            except OSError as e:
                logger.warning(f"Failed to write image {destination}: {e}")
                continue
            written.append(destination)

        logger.debug(f"Saved {len(written)}/{len(self._jobs)} images for {slug}")
        return written
