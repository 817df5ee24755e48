"""File reader — fetch and decode single files, backed by a SHA-keyed cache."""

from __future__ import annotations

import logging

from gitea_backend.domain.entities import FileContent, FileMetadata
from gitea_backend.domain.exceptions import ApiError
from gitea_backend.domain.ports.content_cache import ContentCache
from gitea_backend.domain.ports.repo_gateway import RepoGateway
from gitea_backend.services.wire_encoding import decode_base64, decode_raw

logger = logging.getLogger(__name__)


def _content_key(content_id: str, as_text: bool) -> str:
    return f"{content_id}.{'text' if as_text else 'blob'}"


def _metadata_key(content_id: str) -> str:
    return f"{content_id}.meta"


class FileReader:
    """Reads files from one branch, skipping the network for known SHAs."""

    def __init__(
        self,
        gateway: RepoGateway,
        branch: str,
        cache: ContentCache | None = None,
    ) -> None:
        self._gateway = gateway
        self._branch = branch
        self._cache = cache

    async def read_file(
        self,
        path: str,
        content_id: str | None = None,
        *,
        as_text: bool = True,
        branch: str | None = None,
    ) -> str | bytes:
        """Return the decoded content of *path*."""
        content = await self.fetch(path, content_id, as_text=as_text, branch=branch)
        return content.data

    async def fetch(
        self,
        path: str,
        content_id: str | None = None,
        *,
        as_text: bool = True,
        branch: str | None = None,
    ) -> FileContent:
        """Return *path* with the SHA it was read at.

        Raises NotFoundError when the file does not exist on the branch.
        """
        if content_id and self._cache is not None:
            cached = await self._cache.get(_content_key(content_id, as_text))
            if cached is not None:
                return FileContent(path=path, content_id=content_id, data=cached)

        ref = branch or self._branch
        remote = await self._gateway.get_file(path, ref)
        if remote.content is not None and remote.encoding == "base64":
            data = decode_base64(remote.content, as_text=as_text)
        else:
            # Large or LFS-backed files come without inline content.
            raw = await self._gateway.get_raw_file(path, ref)
            data = decode_raw(raw, as_text=as_text)

        if self._cache is not None:
            await self._cache.set(_content_key(remote.content_id, as_text), data)
        return FileContent(path=path, content_id=remote.content_id, data=data)

    async def read_file_metadata(
        self, path: str, content_id: str | None = None, *, branch: str | None = None
    ) -> FileMetadata:
        """Return author and date of the last commit touching *path*.

        Metadata is decorative, so API failures degrade to empty values.
        """
        if content_id and self._cache is not None:
            cached = await self._cache.get(_metadata_key(content_id))
            if cached is not None:
                return cached

        try:
            metadata = await self._gateway.get_last_commit(path, branch or self._branch)
        except ApiError:
            logger.debug("Failed to fetch metadata for %s — returning empty", path, exc_info=True)
            return FileMetadata()
        if metadata is None:
            return FileMetadata()

        if content_id and self._cache is not None:
            await self._cache.set(_metadata_key(content_id), metadata)
        return metadata
