"""API routes — thin controllers that delegate to the backend façade."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from gitea_backend.domain.entities import (
    CommitResult,
    Entry,
    LoadedEntry,
    MediaFile,
    PersistOptions,
    UserProfile,
)
from gitea_backend.interface.dependencies import get_backend
from gitea_backend.interface.schemas import (
    AuthRequest,
    CommitFileResponse,
    CommitResponse,
    DeleteFilesRequest,
    EntryFileResponse,
    EntryResponse,
    ErrorResponse,
    MediaResponse,
    PersistEntryRequest,
    TreeEntryResponse,
    UserResponse,
)
from gitea_backend.services.backend import GiteaBackend
from gitea_backend.services.wire_encoding import decode_base64

router = APIRouter()

_BACKEND_ERRORS = {
    401: {"model": ErrorResponse, "description": "Not authenticated"},
    403: {"model": ErrorResponse, "description": "No write access to the repository"},
    404: {"model": ErrorResponse, "description": "File not found"},
    502: {"model": ErrorResponse, "description": "Gitea API error"},
}


@router.post("/auth", response_model=UserResponse, responses=_BACKEND_ERRORS)
async def authenticate(
    body: AuthRequest,
    backend: GiteaBackend = Depends(get_backend),
) -> UserResponse:
    """Verify a Gitea token and make it the active session."""
    return _user(await backend.authenticate(body.token))


@router.post("/logout", status_code=204)
async def logout(backend: GiteaBackend = Depends(get_backend)) -> Response:
    backend.logout()
    return Response(status_code=204)


@router.get("/user", response_model=UserResponse, responses=_BACKEND_ERRORS)
async def current_user(backend: GiteaBackend = Depends(get_backend)) -> UserResponse:
    return _user(await backend.user())


@router.get("/files", response_model=list[TreeEntryResponse], responses=_BACKEND_ERRORS)
async def list_files(
    path: str = "",
    recursive: bool = False,
    backend: GiteaBackend = Depends(get_backend),
) -> list[TreeEntryResponse]:
    """List the files of a folder (direct children unless ``recursive``)."""
    files = await backend.list_files(path, recursive=recursive)
    return [
        TreeEntryResponse(path=f.path, name=f.name, id=f.content_id, size=f.size)
        for f in files
    ]


@router.get("/files/{path:path}", responses=_BACKEND_ERRORS)
async def read_file(
    path: str,
    id: str | None = None,
    binary: bool = False,
    backend: GiteaBackend = Depends(get_backend),
) -> Response:
    """Return a file's content, as UTF-8 text or raw bytes."""
    data = await backend.read_file(path, id, as_text=not binary)
    if isinstance(data, bytes):
        return Response(content=data, media_type="application/octet-stream")
    return Response(content=data, media_type="text/plain; charset=utf-8")


@router.post("/files/delete", response_model=CommitResponse, responses=_BACKEND_ERRORS)
async def delete_files(
    body: DeleteFilesRequest,
    backend: GiteaBackend = Depends(get_backend),
) -> CommitResponse:
    """Delete several files in one commit."""
    return _commit(await backend.delete_files(body.paths, body.commit_message))


@router.get("/entries", response_model=list[EntryResponse], responses=_BACKEND_ERRORS)
async def entries_by_folder(
    folder: str,
    extension: str,
    depth: int = 1,
    backend: GiteaBackend = Depends(get_backend),
) -> list[EntryResponse]:
    """Load every entry of a collection folder."""
    entries = await backend.entries_by_folder(folder, extension, depth)
    return [_entry(e) for e in entries]


@router.get("/entries/{path:path}", response_model=EntryResponse, responses=_BACKEND_ERRORS)
async def get_entry(
    path: str,
    backend: GiteaBackend = Depends(get_backend),
) -> EntryResponse:
    return _entry(await backend.get_entry(path))


@router.put(
    "/entries/{path:path}",
    response_model=CommitResponse,
    responses={
        **_BACKEND_ERRORS,
        409: {"model": ErrorResponse, "description": "File changed remotely since it was read"},
        423: {"model": ErrorResponse, "description": "Another persist is still running"},
    },
)
async def persist_entry(
    path: str,
    body: PersistEntryRequest,
    backend: GiteaBackend = Depends(get_backend),
) -> CommitResponse:
    """Commit an entry and its media files together."""
    entry = Entry(path=path, raw=body.raw, from_path=body.from_path)
    media = [
        MediaFile(path=m.path, content=decode_base64(m.content_base64, as_text=False))  # type: ignore[arg-type]
        for m in body.media
    ]
    options = PersistOptions(
        commit_message=body.commit_message,
        use_new_branch=body.new_branch is not None,
        new_branch=body.new_branch,
    )
    return _commit(await backend.persist_entry(entry, media, options))


@router.get("/media", response_model=list[MediaResponse], responses=_BACKEND_ERRORS)
async def get_media(backend: GiteaBackend = Depends(get_backend)) -> list[MediaResponse]:
    media = await backend.get_media()
    return [MediaResponse(id=m.id, name=m.name, path=m.path, size=m.size) for m in media]


# ── Mapping helpers ─────────────────────────────────────────────────────────


def _user(user: UserProfile) -> UserResponse:
    return UserResponse(
        id=user.id,
        login=user.login,
        name=user.name,
        email=user.email,
        avatar_url=user.avatar_url,
    )


def _entry(entry: LoadedEntry) -> EntryResponse:
    data = entry.data
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return EntryResponse(
        file=EntryFileResponse(
            path=entry.file.path,
            id=entry.file.id,
            author=entry.file.author,
            updated_on=entry.file.updated_on,
        ),
        data=data,
    )


def _commit(result: CommitResult) -> CommitResponse:
    return CommitResponse(
        branch=result.branch,
        commit_shas=result.commit_shas,
        files=[CommitFileResponse(path=i.path, action=i.action.value) for i in result.items],
    )
