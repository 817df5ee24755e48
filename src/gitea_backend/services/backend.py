"""Gitea backend façade — the capability set consumed by the CMS front end.

All repository access goes through a :class:`Session`, an immutable bundle of
token + gateway + services.  Authentication builds a fresh session and swaps it
in only once it has been verified, so an in-flight operation keeps using the
session it started with.  Writes are serialized per backend instance.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from gitea_backend.domain.entities import (
    CommitResult,
    Entry,
    EntryFile,
    FileChange,
    LoadedEntry,
    MediaFile,
    MediaItem,
    PersistOptions,
    TreeEntry,
    UserProfile,
)
from gitea_backend.domain.exceptions import (
    ApiError,
    AuthorizationError,
    LockNotAcquiredError,
    NotAuthenticatedError,
    RepositoryAccessError,
)
from gitea_backend.domain.ports.content_cache import ContentCache
from gitea_backend.domain.ports.repo_gateway import RepoGateway
from gitea_backend.services.bounded_downloader import MAX_CONCURRENT_DOWNLOADS
from gitea_backend.services.commit_batcher import CommitBatcher
from gitea_backend.services.entries import entries_by_folder
from gitea_backend.services.file_reader import FileReader
from gitea_backend.services.tree_lister import TreeLister

logger = logging.getLogger(__name__)

R = TypeVar("R")

GatewayFactory = Callable[[str], RepoGateway]


@dataclass(frozen=True, slots=True)
class Session:
    """Everything bound to one access token."""

    token: str
    gateway: RepoGateway
    lister: TreeLister
    reader: FileReader
    batcher: CommitBatcher


class GiteaBackend:
    """Façade over the Gitea repository services.

    Parameters
    ----------
    gateway_factory:
        Builds a repository gateway for an access token.
    repo:
        ``owner/name`` of the repository; used in user-facing messages.
    branch:
        Branch that is read from and committed to.
    media_folder:
        Folder listed by :meth:`get_media`.
    cache:
        Optional SHA-keyed content cache shared by every session.
    tree_page_size, max_tree_pages:
        Pagination settings of the tree listing.
    max_concurrent_downloads:
        Ceiling on in-flight reads when loading a folder.
    persist_lock_timeout:
        Seconds a persist call waits for the lock before giving up.
    atomic_commits:
        Use the multi-file contents endpoint (one commit per batch).
    squash_merges, initial_workflow_status:
        Editorial-workflow options. Recognized and exposed to callers; no
        workflow behaviour is built on them.
    """

    def __init__(
        self,
        gateway_factory: GatewayFactory,
        *,
        repo: str,
        branch: str = "master",
        media_folder: str = "static/media",
        cache: ContentCache | None = None,
        tree_page_size: int = 200,
        max_tree_pages: int = 1000,
        max_concurrent_downloads: int = MAX_CONCURRENT_DOWNLOADS,
        persist_lock_timeout: float = 15.0,
        atomic_commits: bool = True,
        squash_merges: bool = False,
        initial_workflow_status: str = "",
    ) -> None:
        self._gateway_factory = gateway_factory
        self._repo = repo
        self._branch = branch
        self._media_folder = media_folder
        self._cache = cache
        self._tree_page_size = tree_page_size
        self._max_tree_pages = max_tree_pages
        self._max_concurrent_downloads = max_concurrent_downloads
        self._persist_lock_timeout = persist_lock_timeout
        self._atomic_commits = atomic_commits
        self.squash_merges = squash_merges
        self.initial_workflow_status = initial_workflow_status
        self._session: Session | None = None
        self._lock = asyncio.Lock()

    # ── Session management ──────────────────────────────────────────────

    async def authenticate(self, token: str) -> UserProfile:
        """Verify *token* against the repository and make it the active session."""
        session = self._build_session(token)
        user = await session.gateway.get_user()
        try:
            permissions = await session.gateway.get_permissions()
        except ApiError as exc:
            raise RepositoryAccessError(
                f'Repo "{self._repo}" not found.\n\n'
                "Please ensure the repo information is spelled correctly.\n\n"
                "If the repo is private, make sure you're logged into a Gitea "
                "account with access."
            ) from exc

        if not permissions.can_write:
            raise AuthorizationError(
                "Your Gitea user account does not have access to this repo."
            )

        self._session = session
        logger.info("Authenticated %s for %s", user.login, self._repo)
        return user

    def restore_session(self, token: str) -> None:
        """Install a session for a previously verified token, without network calls."""
        self._session = self._build_session(token)

    def logout(self) -> None:
        self._session = None

    def get_token(self) -> str | None:
        return self._session.token if self._session else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    # ── Capability surface ──────────────────────────────────────────────

    async def user(self) -> UserProfile:
        return await self._require_session().gateway.get_user()

    async def has_write_access(self) -> bool:
        permissions = await self._require_session().gateway.get_permissions()
        return permissions.can_write

    async def list_files(self, path: str, recursive: bool = False) -> list[TreeEntry]:
        return await self._require_session().lister.list_files(path, recursive=recursive)

    async def read_file(
        self, path: str, content_id: str | None = None, *, as_text: bool = True
    ) -> str | bytes:
        return await self._require_session().reader.read_file(
            path, content_id, as_text=as_text
        )

    async def persist_files(
        self, files: list[FileChange], options: PersistOptions
    ) -> CommitResult:
        """Commit *files* under the persist lock."""
        session = self._require_session()
        return await self._run_with_lock(lambda: session.batcher.persist(files, options))

    # ── Editorial-workflow surface ──────────────────────────────────────

    async def entries_by_folder(
        self, folder: str, extension: str, depth: int = 1
    ) -> list[LoadedEntry]:
        session = self._require_session()
        return await entries_by_folder(
            session.lister,
            session.reader,
            folder,
            extension,
            depth,
            max_concurrency=self._max_concurrent_downloads,
        )

    async def get_entry(self, path: str) -> LoadedEntry:
        """Fetch a single entry."""
        content = await self._require_session().reader.fetch(path)
        return LoadedEntry(
            file=EntryFile(path=path, id=content.content_id),
            data=content.data,
        )

    async def get_media(self) -> list[MediaItem]:
        files = await self.list_files(self._media_folder)
        return [
            MediaItem(id=f.content_id, name=f.name, path=f.path, size=f.size)
            for f in files
        ]

    async def persist_entry(
        self,
        entry: Entry | None,
        media_files: list[MediaFile],
        options: PersistOptions,
    ) -> CommitResult:
        """Commit an entry and its media as one batch."""
        files: list[FileChange] = []
        if entry is not None:
            files.append(FileChange(path=entry.path, content=entry.raw, from_path=entry.from_path))
        files.extend(FileChange(path=m.path, content=m.content) for m in media_files)
        return await self.persist_files(files, options)

    async def delete_files(self, paths: list[str], commit_message: str) -> CommitResult:
        files = [FileChange(path=p, content=None) for p in paths]
        return await self.persist_files(files, PersistOptions(commit_message=commit_message))

    # ── Internals ───────────────────────────────────────────────────────

    def _require_session(self) -> Session:
        session = self._session
        if session is None:
            raise NotAuthenticatedError("Not authenticated with Gitea.")
        return session

    async def _run_with_lock(self, operation: Callable[[], Awaitable[R]]) -> R:
        try:
            await asyncio.wait_for(
                self._lock.acquire(), timeout=self._persist_lock_timeout
            )
        except asyncio.TimeoutError:
            raise LockNotAcquiredError("Failed to acquire persist entry lock") from None
        try:
            return await operation()
        finally:
            self._lock.release()

    def _build_session(self, token: str) -> Session:
        gateway = self._gateway_factory(token)
        return Session(
            token=token,
            gateway=gateway,
            lister=TreeLister(
                gateway,
                self._branch,
                page_size=self._tree_page_size,
                max_pages=self._max_tree_pages,
            ),
            reader=FileReader(gateway, self._branch, self._cache),
            batcher=CommitBatcher(gateway, self._branch, atomic=self._atomic_commits),
        )
