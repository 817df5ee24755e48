"""Domain exception hierarchy.

Each exception maps to a specific HTTP status code at the interface layer.
Inner layers raise these; the outermost error-handler translates them.
"""

from __future__ import annotations


class GiteaBackendError(Exception):
    """Base exception for the entire application."""


# ── Configuration ───────────────────────────────────────────────────────────


class ConfigurationError(GiteaBackendError):
    """The backend configuration is missing or malformed."""


# ── Remote API errors ───────────────────────────────────────────────────────


class ApiError(GiteaBackendError):
    """A request to the Gitea API failed with a protocol-level error."""

    def __init__(self, message: str, status: int | None = None, detail: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.detail = detail or message


class NotFoundError(ApiError):
    """The requested resource does not exist (404)."""

    def __init__(self, message: str, detail: str = "") -> None:
        super().__init__(message, status=404, detail=detail)


class TransportError(ApiError):
    """Network failure, rate limit or 5xx that persisted through every retry."""


class ResponseParseError(ApiError):
    """A 2xx response body did not have the expected shape."""


class PaginationLimitError(ApiError):
    """A paginated listing kept reporting truncation past the page ceiling."""

    def __init__(self, pages: int) -> None:
        super().__init__(
            f"Tree listing still truncated after {pages} pages; giving up."
        )
        self.pages = pages


# ── Authentication / authorization ─────────────────────────────────────────


class NotAuthenticatedError(GiteaBackendError):
    """An operation needed a session but none has been established."""


class AuthorizationError(GiteaBackendError):
    """The authenticated user may not write to the repository."""


class RepositoryAccessError(AuthorizationError):
    """The repository could not be reached with the supplied credentials."""


# ── Persist errors ──────────────────────────────────────────────────────────


class ConflictError(GiteaBackendError):
    """The remote content changed since it was read (SHA mismatch)."""

    def __init__(self, paths: list[str], message: str = "") -> None:
        detail = f": {message}" if message else ""
        super().__init__(
            f"Content changed remotely for {', '.join(paths)}{detail}"
        )
        self.paths = paths


class BatchAbortedError(GiteaBackendError):
    """A persist batch failed before anything was written."""

    def __init__(self, failures: dict[str, Exception]) -> None:
        details = "; ".join(f"{path}: {exc}" for path, exc in failures.items())
        super().__init__(f"Nothing was committed. {details}")
        self.failures = failures


class PartialBatchError(GiteaBackendError):
    """Some files of a persist batch were committed, others were not."""

    def __init__(
        self,
        applied: list[str],
        failures: dict[str, Exception],
        skipped: list[str],
    ) -> None:
        details = "; ".join(f"{path}: {exc}" for path, exc in failures.items())
        super().__init__(
            f"Batch partially applied: committed {applied}, failed {details}, "
            f"not attempted {skipped}"
        )
        self.applied = applied
        self.failures = failures
        self.skipped = skipped


class WriteOutcomeUnknownError(GiteaBackendError):
    """A write failed in a way that leaves its commit status unknown.

    Network failures, 5xx responses and unreadable 2xx bodies on a write may
    come after Gitea already committed. ``uncertain`` holds the paths of that
    write; ``applied`` and ``skipped`` are as for :class:`PartialBatchError`.
    Re-read the branch before retrying.
    """

    def __init__(
        self,
        applied: list[str],
        uncertain: list[str],
        skipped: list[str],
        cause: Exception,
    ) -> None:
        super().__init__(
            f"Commit status unknown for {', '.join(uncertain)}: {cause}. "
            f"Committed {applied}, not attempted {skipped}."
        )
        self.applied = applied
        self.uncertain = uncertain
        self.skipped = skipped
        self.cause = cause


class LockNotAcquiredError(GiteaBackendError):
    """Another persist operation held the lock for too long."""
