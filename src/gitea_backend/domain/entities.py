"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CommitAction(str, Enum):
    """What a single commit item does to its path."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    MOVE = "move"


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """A single node from the Gitea git-tree API."""

    path: str
    type: str  # "blob" or "tree"
    content_id: str
    name: str
    size: int = 0


@dataclass(frozen=True, slots=True)
class TreePage:
    """One page of a (possibly truncated) tree listing."""

    entries: list[TreeEntry]
    truncated: bool
    page: int


@dataclass(frozen=True, slots=True)
class RemoteFile:
    """A file as returned by the contents endpoint, still wire-encoded."""

    path: str
    content_id: str
    size: int
    content: str | None  # base64, None when the server omitted it
    encoding: str | None = "base64"


@dataclass(frozen=True, slots=True)
class FileContent:
    """Decoded file content paired with the SHA it was fetched at."""

    path: str
    content_id: str | None
    data: str | bytes


@dataclass(frozen=True, slots=True)
class FileMetadata:
    """Author and date of the last commit that touched a file."""

    author: str = ""
    updated_on: str = ""


@dataclass(frozen=True, slots=True)
class UserProfile:
    """The authenticated Gitea account."""

    id: int
    login: str
    name: str = ""
    email: str = ""
    avatar_url: str = ""


@dataclass(frozen=True, slots=True)
class RepoPermissions:
    """Permission flags of the current user on the repository."""

    admin: bool = False
    push: bool = False
    pull: bool = False

    @property
    def can_write(self) -> bool:
        return self.push or self.admin


@dataclass(frozen=True, slots=True)
class FileChange:
    """A logical write requested by the caller.

    ``content=None`` deletes the path; ``from_path`` moves an existing file
    to ``path`` (optionally with new content).
    """

    path: str
    content: str | bytes | None
    from_path: str | None = None


@dataclass(frozen=True, slots=True)
class CommitItem:
    """One file of a commit, with its action resolved against remote state."""

    path: str
    action: CommitAction
    payload: str = ""  # base64
    prior_content_id: str | None = None
    from_path: str | None = None


@dataclass(frozen=True, slots=True)
class CommitBatch:
    """Everything that should land as one commit."""

    items: list[CommitItem]
    message: str
    branch: str
    new_branch: str | None = None

    @property
    def paths(self) -> list[str]:
        return [item.path for item in self.items]


@dataclass(frozen=True, slots=True)
class CommitResult:
    """Outcome of a persisted batch."""

    branch: str
    commit_shas: list[str]
    items: list[CommitItem] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class PersistOptions:
    """Caller options for a persist call."""

    commit_message: str
    branch: str | None = None
    use_new_branch: bool = False
    new_branch: str | None = None


@dataclass(frozen=True, slots=True)
class MediaFile:
    """A binary asset attached to an entry."""

    path: str
    content: bytes


@dataclass(frozen=True, slots=True)
class Entry:
    """A content entry about to be persisted."""

    path: str
    raw: str
    from_path: str | None = None


@dataclass(frozen=True, slots=True)
class EntryFile:
    """File descriptor attached to a loaded entry."""

    path: str
    id: str | None
    author: str = ""
    updated_on: str = ""


@dataclass(frozen=True, slots=True)
class LoadedEntry:
    """An entry file together with its decoded content."""

    file: EntryFile
    data: str | bytes


@dataclass(frozen=True, slots=True)
class MediaItem:
    """A media listing item (no content)."""

    id: str
    name: str
    path: str
    size: int
