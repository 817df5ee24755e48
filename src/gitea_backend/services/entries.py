"""Entries by folder — list a collection folder and load every entry in it."""

from __future__ import annotations

import asyncio

from gitea_backend.domain.entities import EntryFile, LoadedEntry, TreeEntry
from gitea_backend.domain.value_objects import path_depth
from gitea_backend.services.bounded_downloader import (
    MAX_CONCURRENT_DOWNLOADS,
    BoundedDownloader,
)
from gitea_backend.services.file_reader import FileReader
from gitea_backend.services.tree_lister import TreeLister


def select_entry_files(
    files: list[TreeEntry], folder: str, extension: str, depth: int = 1
) -> list[TreeEntry]:
    """Keep files with *extension* at most *depth* levels below *folder*."""
    suffix = "." + extension.lstrip(".")
    base = path_depth(folder)
    return [
        f
        for f in files
        if f.name.endswith(suffix) and path_depth(f.path) - base <= depth
    ]


async def entries_by_folder(
    lister: TreeLister,
    reader: FileReader,
    folder: str,
    extension: str,
    depth: int = 1,
    *,
    max_concurrency: int = MAX_CONCURRENT_DOWNLOADS,
) -> list[LoadedEntry]:
    """Load every entry file of a folder along with its last-commit metadata.

    Files that fail to load are skipped (see :class:`BoundedDownloader`).
    """
    listed = await lister.list_files(folder, recursive=depth > 1)
    candidates = select_entry_files(listed, folder, extension, depth)

    async def _load(file: TreeEntry) -> LoadedEntry:
        data, metadata = await asyncio.gather(
            reader.read_file(file.path, file.content_id),
            reader.read_file_metadata(file.path, file.content_id),
        )
        return LoadedEntry(
            file=EntryFile(
                path=file.path,
                id=file.content_id,
                author=metadata.author,
                updated_on=metadata.updated_on,
            ),
            data=data,
        )

    downloader = BoundedDownloader(_load, max_concurrency=max_concurrency)
    loaded = await downloader.fetch_many(candidates)
    return [item.data for item in loaded]
