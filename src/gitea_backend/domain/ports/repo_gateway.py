"""Port: repository gateway — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from gitea_backend.domain.entities import (
    CommitBatch,
    CommitItem,
    FileMetadata,
    RemoteFile,
    RepoPermissions,
    TreePage,
    UserProfile,
)


class RepoGateway(Protocol):
    """Abstract contract for the endpoints of a Gitea-compatible repository."""

    async def get_user(self) -> UserProfile:
        """Return the profile of the authenticated account."""
        ...

    async def get_permissions(self) -> RepoPermissions:
        """Return the current user's permissions on the repository."""
        ...

    async def get_branch_sha(self, branch: str) -> str:
        """Resolve a branch name to the commit SHA it points at right now."""
        ...

    async def get_tree_page(
        self, sha: str, *, page: int, per_page: int, recursive: bool = True
    ) -> TreePage:
        """Return one page of the git tree at *sha*."""
        ...

    async def get_file(self, path: str, ref: str) -> RemoteFile:
        """Return a file from the contents endpoint; raise NotFoundError if absent."""
        ...

    async def get_raw_file(self, path: str, ref: str) -> bytes:
        """Return the raw bytes of a file."""
        ...

    async def get_last_commit(self, path: str, ref: str) -> FileMetadata | None:
        """Return author/date of the newest commit touching *path*."""
        ...

    async def change_files(self, batch: CommitBatch) -> str:
        """Apply every item of *batch* as a single commit; return its SHA."""
        ...

    async def write_file(
        self, item: CommitItem, *, message: str, branch: str, new_branch: str | None = None
    ) -> str:
        """Apply one item as its own commit; return the commit SHA."""
        ...
