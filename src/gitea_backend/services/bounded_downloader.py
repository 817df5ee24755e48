"""Bounded downloader — best-effort bulk fetch with a concurrency ceiling."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Generic, TypeVar

from gitea_backend.domain.entities import TreeEntry

logger = logging.getLogger(__name__)

MAX_CONCURRENT_DOWNLOADS = 10

T = TypeVar("T")


@dataclass(frozen=True)
class LoadedFile(Generic[T]):
    """A listed file together with whatever the reader produced for it."""

    file: TreeEntry
    data: T


class BoundedDownloader(Generic[T]):
    """Runs *read* over many files with at most *max_concurrency* in flight.

    A failing read is logged and left out of the result; it never fails the
    batch.  Results come back in completion order.
    """

    def __init__(
        self,
        read: Callable[[TreeEntry], Awaitable[T]],
        max_concurrency: int = MAX_CONCURRENT_DOWNLOADS,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._read = read
        self.max_concurrency = max_concurrency

    async def fetch_many(self, files: Iterable[TreeEntry]) -> list[LoadedFile[T]]:
        """Fetch every file; return the successes."""
        gate = asyncio.Semaphore(self.max_concurrency)
        loaded: list[LoadedFile[T]] = []

        async def _fetch_one(file: TreeEntry) -> None:
            async with gate:
                try:
                    data = await self._read(file)
                except Exception:
                    logger.warning("Failed to load file from Gitea: %s", file.path, exc_info=True)
                    return
            loaded.append(LoadedFile(file=file, data=data))

        await asyncio.gather(*(_fetch_one(f) for f in files))
        return loaded
