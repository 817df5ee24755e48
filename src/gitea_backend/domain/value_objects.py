"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass

from gitea_backend.domain.exceptions import ConfigurationError, PaginationLimitError

_REPO_RE = re.compile(r"^(?P<owner>[A-Za-z0-9\-_.]+)/(?P<name>[A-Za-z0-9\-_.]+)$")


@dataclass(frozen=True, slots=True)
class RepoName:
    """Validated ``owner/name`` repository identifier."""

    owner: str
    name: str

    @classmethod
    def from_string(cls, value: str) -> RepoName:
        """Parse and validate a raw ``owner/name`` string."""
        value = value.strip().strip("/")
        match = _REPO_RE.match(value)
        if not match:
            raise ConfigurationError(
                f"Invalid repository '{value}'. Expected format: <owner>/<name>"
            )
        return cls(owner=match["owner"], name=match["name"])

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @property
    def api_path(self) -> str:
        return f"/repos/{self.owner}/{self.name}"


@dataclass(slots=True)
class PaginationCursor:
    """Page index plus the server's truncation flag.

    ``advance`` always moves to a strictly larger page and refuses to go past
    ``max_pages``, so a server that never clears ``truncated`` cannot keep a
    listing loop alive forever.
    """

    max_pages: int
    page: int = 1
    truncated: bool = True
    pages_fetched: int = 0

    @property
    def has_more(self) -> bool:
        return self.truncated

    def record(self, truncated: bool) -> None:
        """Record the truncation flag of the page just fetched."""
        self.pages_fetched += 1
        self.truncated = truncated

    def advance(self) -> int:
        """Move to the next page; raise once the ceiling is reached."""
        if self.pages_fetched >= self.max_pages:
            raise PaginationLimitError(self.pages_fetched)
        self.page += 1
        return self.page


def split_path(path: str) -> list[str]:
    """Split a repository path into its non-empty segments."""
    return [part for part in path.split("/") if part]


def path_depth(path: str) -> int:
    return len(split_path(path))


def is_under(path: str, prefix: str) -> bool:
    """True when *path* lies inside the directory *prefix* (segment-wise)."""
    prefix_parts = split_path(prefix)
    path_parts = split_path(path)
    return (
        len(path_parts) > len(prefix_parts)
        and path_parts[: len(prefix_parts)] == prefix_parts
    )
