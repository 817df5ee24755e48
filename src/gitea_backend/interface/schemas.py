"""Pydantic request / response DTOs for the API boundary."""

from __future__ import annotations

import base64
import binascii
from typing import Any

from pydantic import BaseModel, Field, field_validator


class AuthRequest(BaseModel):
    """Request body for ``POST /auth``."""

    token: str = Field(min_length=1)


class UserResponse(BaseModel):
    id: int
    login: str
    name: str
    email: str
    avatar_url: str


class TreeEntryResponse(BaseModel):
    path: str
    name: str
    id: str
    size: int


class EntryFileResponse(BaseModel):
    path: str
    id: str | None
    author: str = ""
    updated_on: str = ""


class EntryResponse(BaseModel):
    file: EntryFileResponse
    data: str


class MediaResponse(BaseModel):
    id: str
    name: str
    path: str
    size: int


class MediaUpload(BaseModel):
    """A media asset attached to an entry, base64-encoded."""

    path: str = Field(min_length=1)
    content_base64: str

    @field_validator("content_base64")
    @classmethod
    def _must_be_base64(cls, v: str) -> str:
        try:
            base64.b64decode(v, validate=True)
        except (binascii.Error, ValueError) as exc:
            msg = f"content_base64 is not valid base64: {exc}"
            raise ValueError(msg) from exc
        return v


class PersistEntryRequest(BaseModel):
    """Request body for ``PUT /entries/{path}``."""

    raw: str
    commit_message: str = Field(min_length=1)
    from_path: str | None = None
    new_branch: str | None = None
    media: list[MediaUpload] = Field(default_factory=list)


class DeleteFilesRequest(BaseModel):
    """Request body for ``POST /files/delete``."""

    paths: list[str] = Field(min_length=1)
    commit_message: str = Field(min_length=1)


class CommitFileResponse(BaseModel):
    path: str
    action: str


class CommitResponse(BaseModel):
    branch: str
    commit_shas: list[str]
    files: list[CommitFileResponse]


class ErrorResponse(BaseModel):
    """Standard error envelope returned on all failure paths."""

    status: str = "error"
    message: str
    paths: dict[str, Any] | None = None
