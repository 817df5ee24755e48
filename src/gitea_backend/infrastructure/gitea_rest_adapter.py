"""Gitea REST API adapter — implements the RepoGateway port."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

from gitea_backend.domain.entities import (
    CommitAction,
    CommitBatch,
    CommitItem,
    FileMetadata,
    RemoteFile,
    RepoPermissions,
    TreeEntry,
    TreePage,
    UserProfile,
)
from gitea_backend.domain.exceptions import ResponseParseError
from gitea_backend.domain.value_objects import RepoName
from gitea_backend.infrastructure.gitea_schemas import (
    BranchSchema,
    CommitSchema,
    ContentsSchema,
    FileResponseSchema,
    FilesResponseSchema,
    RepositorySchema,
    TreeSchema,
    UserSchema,
    parse,
    parse_list,
)
from gitea_backend.infrastructure.gitea_transport import GiteaTransport

logger = logging.getLogger(__name__)

# Operation names of the multi-file contents endpoint.
_OPERATIONS: dict[CommitAction, str] = {
    CommitAction.CREATE: "create",
    CommitAction.UPDATE: "update",
    CommitAction.MOVE: "update",
    CommitAction.DELETE: "delete",
}


class GiteaRestAdapter:
    """Concrete RepoGateway backed by the Gitea v1 REST API."""

    def __init__(self, transport: GiteaTransport, repo: RepoName) -> None:
        self._transport = transport
        self._repo = repo
        self._repo_url = repo.api_path

    async def get_user(self) -> UserProfile:
        """GET /user → UserProfile."""
        data = await self._transport.request_json("GET", "/user")
        user = parse(UserSchema, data, "/user")
        return UserProfile(
            id=user.id,
            login=user.login,
            name=user.full_name,
            email=user.email,
            avatar_url=user.avatar_url,
        )

    async def get_permissions(self) -> RepoPermissions:
        """GET /repos/{owner}/{repo} → RepoPermissions."""
        data = await self._transport.request_json("GET", self._repo_url)
        repo = parse(RepositorySchema, data, self._repo_url)
        return RepoPermissions(
            admin=repo.permissions.admin,
            push=repo.permissions.push,
            pull=repo.permissions.pull,
        )

    async def get_branch_sha(self, branch: str) -> str:
        """GET /repos/{owner}/{repo}/branches/{branch} → commit SHA."""
        endpoint = f"{self._repo_url}/branches/{_quote(branch)}"
        data = await self._transport.request_json("GET", endpoint)
        return parse(BranchSchema, data, endpoint).commit.id

    async def get_tree_page(
        self, sha: str, *, page: int, per_page: int, recursive: bool = True
    ) -> TreePage:
        """GET /repos/{owner}/{repo}/git/trees/{sha}?page&per_page&recursive → TreePage."""
        endpoint = f"{self._repo_url}/git/trees/{sha}"
        data = await self._transport.request_json(
            "GET",
            endpoint,
            params={
                "page": page,
                "per_page": per_page,
                "recursive": "true" if recursive else "false",
            },
        )
        tree = parse(TreeSchema, data, endpoint)
        return TreePage(
            entries=[
                TreeEntry(
                    path=item.path,
                    type=item.type,
                    content_id=item.sha,
                    name=item.path.rsplit("/", 1)[-1],
                    size=item.size,
                )
                for item in tree.tree
            ],
            truncated=tree.truncated,
            page=page,
        )

    async def get_file(self, path: str, ref: str) -> RemoteFile:
        """GET /repos/{owner}/{repo}/contents/{path}?ref → RemoteFile."""
        endpoint = f"{self._repo_url}/contents/{_quote(path)}"
        data = await self._transport.request_json("GET", endpoint, params={"ref": ref})
        if isinstance(data, list):
            raise ResponseParseError(f"'{path}' is a directory, not a file.")
        contents = parse(ContentsSchema, data, endpoint)
        if contents.type != "file":
            raise ResponseParseError(f"'{path}' is a {contents.type}, not a file.")
        return RemoteFile(
            path=contents.path,
            content_id=contents.sha,
            size=contents.size,
            content=contents.content,
            encoding=contents.encoding,
        )

    async def get_raw_file(self, path: str, ref: str) -> bytes:
        """GET /repos/{owner}/{repo}/raw/{path}?ref → bytes."""
        return await self._transport.request_bytes(
            "GET", f"{self._repo_url}/raw/{_quote(path)}", params={"ref": ref}
        )

    async def get_last_commit(self, path: str, ref: str) -> FileMetadata | None:
        """GET /repos/{owner}/{repo}/commits?path&sha&limit=1 → FileMetadata."""
        endpoint = f"{self._repo_url}/commits"
        data = await self._transport.request_json(
            "GET",
            endpoint,
            params={"path": path, "sha": ref, "limit": 1, "page": 1},
        )
        commits = parse_list(CommitSchema, data, endpoint)
        if not commits:
            return None
        latest = commits[0]
        if latest.author and (latest.author.full_name or latest.author.login):
            author = latest.author.full_name or latest.author.login
        else:
            author = latest.commit.author.name
        return FileMetadata(
            author=author,
            updated_on=latest.commit.author.date or latest.created,
        )

    async def change_files(self, batch: CommitBatch) -> str:
        """POST /repos/{owner}/{repo}/contents — every item in one commit."""
        endpoint = f"{self._repo_url}/contents"
        body: dict[str, Any] = {
            "branch": batch.branch,
            "message": batch.message,
            "files": [_file_operation(item) for item in batch.items],
        }
        if batch.new_branch:
            body["new_branch"] = batch.new_branch
        data = await self._transport.request_json("POST", endpoint, json_body=body)
        sha = parse(FilesResponseSchema, data, endpoint).commit.sha
        logger.info(
            "Committed %d file(s) to %s as %s",
            len(batch.items),
            batch.new_branch or batch.branch,
            sha,
        )
        return sha

    async def write_file(
        self, item: CommitItem, *, message: str, branch: str, new_branch: str | None = None
    ) -> str:
        """POST/PUT/DELETE /repos/{owner}/{repo}/contents/{path} — one file, one commit."""
        endpoint = f"{self._repo_url}/contents/{_quote(item.path)}"
        body: dict[str, Any] = {"branch": branch, "message": message}
        if new_branch:
            body["new_branch"] = new_branch

        if item.action is CommitAction.CREATE:
            method = "POST"
            body["content"] = item.payload
        elif item.action is CommitAction.DELETE:
            method = "DELETE"
            body["sha"] = item.prior_content_id
        else:
            method = "PUT"
            body["content"] = item.payload
            body["sha"] = item.prior_content_id
            if item.action is CommitAction.MOVE:
                body["from_path"] = item.from_path

        data = await self._transport.request_json(method, endpoint, json_body=body)
        sha = parse(FileResponseSchema, data, endpoint).commit.sha
        logger.info("%s %s on %s as %s", item.action.value, item.path, new_branch or branch, sha)
        return sha


def _file_operation(item: CommitItem) -> dict[str, Any]:
    op: dict[str, Any] = {"operation": _OPERATIONS[item.action], "path": item.path}
    if item.action is not CommitAction.DELETE:
        op["content"] = item.payload
    if item.prior_content_id:
        op["sha"] = item.prior_content_id
    if item.from_path:
        op["from_path"] = item.from_path
    return op


def _quote(path: str) -> str:
    return quote(path.strip("/"), safe="/")
