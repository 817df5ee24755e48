"""Shared test fixtures for the Gitea backend."""

from __future__ import annotations

import base64
import hashlib
from collections.abc import Callable

import pytest

from gitea_backend.domain.entities import (
    CommitBatch,
    CommitItem,
    FileMetadata,
    RemoteFile,
    RepoPermissions,
    TreeEntry,
    TreePage,
    UserProfile,
)
from gitea_backend.domain.exceptions import NotFoundError


def sha_of(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()


def blob(path: str, content_id: str = "x", size: int = 1) -> TreeEntry:
    return TreeEntry(
        path=path,
        type="blob",
        content_id=content_id,
        name=path.rsplit("/", 1)[-1],
        size=size,
    )


class FakeGateway:
    """In-memory stand-in for the Gitea REST adapter.

    Records every call in ``calls`` so tests can assert on traffic.
    """

    def __init__(self, files: dict[str, bytes] | None = None, branch_sha: str = "c0ffee") -> None:
        self.files: dict[str, bytes] = dict(files or {})
        self.branch_sha = branch_sha
        self.calls: list[tuple] = []
        self.tree_page_fn: Callable[[int], TreePage] | None = None
        self.probe_errors: dict[str, Exception] = {}
        self.write_errors: dict[str, Exception] = {}
        self.change_error: Exception | None = None
        self.permissions = RepoPermissions(push=True, pull=True)
        self.permissions_error: Exception | None = None
        self.user = UserProfile(id=1, login="alice", name="Alice")
        self.batches: list[CommitBatch] = []
        self.writes: list[tuple[CommitItem, str, str | None]] = []
        self.inline_content = True

    async def get_user(self) -> UserProfile:
        self.calls.append(("user",))
        return self.user

    async def get_permissions(self) -> RepoPermissions:
        self.calls.append(("permissions",))
        if self.permissions_error:
            raise self.permissions_error
        return self.permissions

    async def get_branch_sha(self, branch: str) -> str:
        self.calls.append(("branch", branch))
        return self.branch_sha

    async def get_tree_page(
        self, sha: str, *, page: int, per_page: int, recursive: bool = True
    ) -> TreePage:
        self.calls.append(("tree", sha, page, per_page))
        if self.tree_page_fn is not None:
            return self.tree_page_fn(page)
        entries = [blob(path, sha_of(data), len(data)) for path, data in sorted(self.files.items())]
        return TreePage(entries=entries, truncated=False, page=page)

    async def get_file(self, path: str, ref: str) -> RemoteFile:
        self.calls.append(("file", path, ref))
        if path in self.probe_errors:
            raise self.probe_errors[path]
        if path not in self.files:
            raise NotFoundError(f"not found: {path}")
        data = self.files[path]
        return RemoteFile(
            path=path,
            content_id=sha_of(data),
            size=len(data),
            content=base64.b64encode(data).decode() if self.inline_content else None,
            encoding="base64" if self.inline_content else None,
        )

    async def get_raw_file(self, path: str, ref: str) -> bytes:
        self.calls.append(("raw", path, ref))
        return self.files[path]

    async def get_last_commit(self, path: str, ref: str) -> FileMetadata | None:
        self.calls.append(("commits", path, ref))
        return FileMetadata(author="Alice", updated_on="2024-05-01T10:00:00Z")

    async def change_files(self, batch: CommitBatch) -> str:
        self.calls.append(("change_files", batch.paths))
        if self.change_error:
            raise self.change_error
        self.batches.append(batch)
        return f"commit-{len(self.batches)}"

    async def write_file(
        self, item: CommitItem, *, message: str, branch: str, new_branch: str | None = None
    ) -> str:
        self.calls.append(("write", item.path, branch, new_branch))
        if item.path in self.write_errors:
            raise self.write_errors[item.path]
        self.writes.append((item, branch, new_branch))
        return f"commit-{len(self.writes)}"


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway(
        files={
            "content/posts/hello.md": b"---\ntitle: Hello\n---\nHi",
            "content/posts/world.md": "---\ntitle: Wörld\n---\n✓".encode(),
            "content/posts/drafts/wip.md": b"draft",
            "content/pages/about.md": b"about",
            "static/media/logo.png": b"\x89PNG\r\n\x1a\n",
        }
    )
