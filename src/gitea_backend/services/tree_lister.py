"""Tree lister — flat file listings from the paginated git-tree endpoint."""

from __future__ import annotations

import logging

from gitea_backend.domain.entities import TreeEntry
from gitea_backend.domain.ports.repo_gateway import RepoGateway
from gitea_backend.domain.value_objects import (
    PaginationCursor,
    is_under,
    path_depth,
)

logger = logging.getLogger(__name__)


class TreeLister:
    """Walks a branch's tree at one fixed commit and filters it by folder.

    Parameters
    ----------
    gateway:
        Repository endpoints.
    branch:
        Default branch to list when the caller does not pass one.
    page_size:
        Default ``per_page`` sent to the tree endpoint.
    max_pages:
        Ceiling on pages fetched per listing; a server that keeps reporting
        ``truncated`` past it makes the listing fail.
    """

    def __init__(
        self,
        gateway: RepoGateway,
        branch: str,
        page_size: int = 200,
        max_pages: int = 1000,
    ) -> None:
        self._gateway = gateway
        self._branch = branch
        self._page_size = page_size
        self._max_pages = max_pages

    async def list_files(
        self,
        path_prefix: str,
        recursive: bool = False,
        page_size: int | None = None,
        branch: str | None = None,
    ) -> list[TreeEntry]:
        """Return every blob under *path_prefix*.

        With ``recursive=False`` only direct children of the folder are kept.
        The branch is resolved to a commit SHA once, so all pages describe the
        same snapshot.
        """
        ref = branch or self._branch
        sha = await self._gateway.get_branch_sha(ref)
        per_page = page_size or self._page_size
        child_depth = path_depth(path_prefix) + 1

        cursor = PaginationCursor(max_pages=self._max_pages)
        result: list[TreeEntry] = []
        while True:
            page = await self._gateway.get_tree_page(
                sha, page=cursor.page, per_page=per_page, recursive=True
            )
            cursor.record(page.truncated)
            result.extend(
                entry
                for entry in page.entries
                if _keep(entry, path_prefix, recursive, child_depth)
            )
            if not cursor.has_more:
                break
            cursor.advance()

        logger.debug(
            "Listed %d file(s) under '%s' at %s (%s) in %d page(s)",
            len(result),
            path_prefix,
            ref,
            sha,
            cursor.pages_fetched,
        )
        return result


def _keep(entry: TreeEntry, prefix: str, recursive: bool, child_depth: int) -> bool:
    if entry.type != "blob":
        return False
    if not is_under(entry.path, prefix):
        return False
    return recursive or path_depth(entry.path) == child_depth
