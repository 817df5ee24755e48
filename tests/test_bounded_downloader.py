"""Tests for the bounded downloader — concurrency ceiling and fault tolerance."""

import asyncio

import pytest

from gitea_backend.domain.entities import TreeEntry
from gitea_backend.services.bounded_downloader import BoundedDownloader

from conftest import blob


class TestConcurrencyBound:
    async def test_never_more_than_ten_in_flight(self):
        in_flight = 0
        peak = 0

        async def _read(file: TreeEntry) -> str:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return file.path

        downloader = BoundedDownloader(_read, max_concurrency=10)
        files = [blob(f"posts/{i}.md") for i in range(25)]

        loaded = await downloader.fetch_many(files)

        assert len(loaded) == 25
        assert peak == 10

    async def test_custom_ceiling(self):
        in_flight = 0
        peak = 0

        async def _read(file: TreeEntry) -> None:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1

        await BoundedDownloader(_read, max_concurrency=3).fetch_many(
            [blob(f"{i}.md") for i in range(12)]
        )

        assert peak <= 3

    def test_rejects_zero_concurrency(self):
        async def _read(file: TreeEntry) -> None:
            return None

        with pytest.raises(ValueError):
            BoundedDownloader(_read, max_concurrency=0)


class TestFaultTolerance:
    async def test_failed_file_is_dropped(self):
        async def _read(file: TreeEntry) -> str:
            if file.path == "posts/3.md":
                raise RuntimeError("connection reset")
            return file.path.upper()

        downloader = BoundedDownloader(_read)
        files = [blob(f"posts/{i}.md") for i in range(1, 6)]

        loaded = await downloader.fetch_many(files)

        assert sorted(item.file.path for item in loaded) == [
            "posts/1.md",
            "posts/2.md",
            "posts/4.md",
            "posts/5.md",
        ]
        assert all(item.data == item.file.path.upper() for item in loaded)

    async def test_failure_is_logged(self, caplog):
        async def _read(file: TreeEntry) -> str:
            raise RuntimeError("nope")

        with caplog.at_level("WARNING"):
            loaded = await BoundedDownloader(_read).fetch_many([blob("posts/x.md")])

        assert loaded == []
        assert "posts/x.md" in caplog.text

    async def test_empty_input(self):
        async def _read(file: TreeEntry) -> str:
            return ""

        assert await BoundedDownloader(_read).fetch_many([]) == []
