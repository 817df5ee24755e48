"""Pydantic response schemas for the Gitea endpoints this backend consumes.

Only the fields we read are declared; everything else is ignored.  A shape
mismatch is turned into :class:`ResponseParseError` by :func:`parse`.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from gitea_backend.domain.exceptions import ResponseParseError


class _Schema(BaseModel):
    model_config = ConfigDict(extra="ignore")


class PermissionSchema(_Schema):
    admin: bool = False
    push: bool = False
    pull: bool = False


class RepositorySchema(_Schema):
    full_name: str
    default_branch: str = "master"
    permissions: PermissionSchema = Field(default_factory=PermissionSchema)


class UserSchema(_Schema):
    id: int
    login: str
    full_name: str = ""
    email: str = ""
    avatar_url: str = ""


class BranchCommitSchema(_Schema):
    id: str


class BranchSchema(_Schema):
    name: str
    commit: BranchCommitSchema


class TreeItemSchema(_Schema):
    path: str
    type: str
    sha: str
    size: int = 0


class TreeSchema(_Schema):
    sha: str
    tree: list[TreeItemSchema] = Field(default_factory=list)
    truncated: bool = False
    page: int = 1
    total_count: int = 0


class ContentsSchema(_Schema):
    name: str
    path: str
    sha: str
    type: str
    size: int = 0
    encoding: str | None = None
    content: str | None = None


class CommitUserSchema(_Schema):
    name: str = ""
    email: str = ""
    date: str = ""


class CommitDetailSchema(_Schema):
    author: CommitUserSchema = Field(default_factory=CommitUserSchema)


class AccountSchema(_Schema):
    login: str = ""
    full_name: str = ""


class CommitSchema(_Schema):
    sha: str
    commit: CommitDetailSchema = Field(default_factory=CommitDetailSchema)
    author: AccountSchema | None = None
    created: str = ""


class FileCommitSchema(_Schema):
    sha: str


class FileResponseSchema(_Schema):
    commit: FileCommitSchema


class FilesResponseSchema(_Schema):
    commit: FileCommitSchema


_S = TypeVar("_S", bound=BaseModel)


def parse(schema: type[_S], data: Any, endpoint: str) -> _S:
    """Validate *data* against *schema*, raising ResponseParseError on mismatch."""
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        raise ResponseParseError(
            f"Unexpected response shape from {endpoint}: {exc.error_count()} error(s): "
            f"{exc.errors()[0]['loc']} {exc.errors()[0]['msg']}"
        ) from exc


def parse_list(schema: type[_S], data: Any, endpoint: str) -> list[_S]:
    """Validate a JSON array of *schema* objects."""
    if not isinstance(data, list):
        raise ResponseParseError(
            f"Unexpected response shape from {endpoint}: expected a list, "
            f"got {type(data).__name__}"
        )
    return [parse(schema, item, endpoint) for item in data]
