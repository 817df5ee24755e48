"""Exception handlers mapping backend errors onto the JSON error envelope.

Every failure is returned as ``{"status": "error", "message": ...}``.  Persist
failures also carry a ``paths`` object so a client can tell which files were
committed, which failed and which were never attempted.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from gitea_backend.domain.exceptions import (
    ApiError,
    AuthorizationError,
    BatchAbortedError,
    ConfigurationError,
    ConflictError,
    GiteaBackendError,
    LockNotAcquiredError,
    NotAuthenticatedError,
    NotFoundError,
    PaginationLimitError,
    PartialBatchError,
    ResponseParseError,
    TransportError,
    WriteOutcomeUnknownError,
)

logger = logging.getLogger(__name__)

_EXCEPTION_STATUS: list[tuple[type[GiteaBackendError], int]] = [
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (NotAuthenticatedError, 401),
    (ConflictError, 409),
    (LockNotAcquiredError, 423),
    (PartialBatchError, 502),
    (WriteOutcomeUnknownError, 502),
    (BatchAbortedError, 502),
    (PaginationLimitError, 502),
    (ResponseParseError, 502),
    (TransportError, 502),
    (ApiError, 502),
    (ConfigurationError, 500),
]

# Seconds a client should wait before retrying a persist that lost the lock.
_LOCK_RETRY_AFTER = "5"


def _error_json(
    status_code: int,
    message: str,
    paths: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"status": "error", "message": message}
    if paths is not None:
        content["paths"] = paths
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def _affected_paths(exc: Exception) -> dict[str, Any] | None:
    if isinstance(exc, PartialBatchError):
        return {
            "applied": exc.applied,
            "failed": {path: str(err) for path, err in exc.failures.items()},
            "skipped": exc.skipped,
        }
    if isinstance(exc, BatchAbortedError):
        return {
            "applied": [],
            "failed": {path: str(err) for path, err in exc.failures.items()},
            "skipped": [],
        }
    if isinstance(exc, WriteOutcomeUnknownError):
        return {
            "applied": exc.applied,
            "uncertain": exc.uncertain,
            "skipped": exc.skipped,
        }
    if isinstance(exc, ConflictError):
        return {"conflicts": exc.paths}
    return None


def _handler_for(status_code: int):  # type: ignore[no-untyped-def]
    async def handler(request: Request, exc: Exception) -> JSONResponse:
        log = logger.error if status_code >= 500 else logger.info
        log("%s %s -> %d %s: %s", request.method, request.url.path, status_code,
            type(exc).__name__, exc)
        headers = {"Retry-After": _LOCK_RETRY_AFTER} if status_code == 423 else None
        return _error_json(status_code, str(exc), _affected_paths(exc), headers)

    return handler


def register_error_handlers(app: FastAPI) -> None:
    """Attach the backend's exception handlers to *app*."""
    for exc_type, code in _EXCEPTION_STATUS:
        app.add_exception_handler(exc_type, _handler_for(code))

    @app.exception_handler(RequestValidationError)
    async def validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        messages = [
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', 'invalid')}"
            for err in exc.errors()
        ]
        return _error_json(422, "; ".join(messages))

    @app.exception_handler(Exception)
    async def unexpected_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_json(500, "Unexpected error while talking to Gitea.")
