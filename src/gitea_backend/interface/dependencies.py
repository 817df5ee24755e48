"""FastAPI dependency injection wiring."""

from __future__ import annotations

import httpx

from gitea_backend.domain.ports.content_cache import ContentCache
from gitea_backend.domain.ports.repo_gateway import RepoGateway
from gitea_backend.infrastructure.config import Settings, get_settings
from gitea_backend.infrastructure.gitea_rest_adapter import GiteaRestAdapter
from gitea_backend.infrastructure.gitea_transport import GiteaTransport
from gitea_backend.infrastructure.memory_cache import InMemoryContentCache
from gitea_backend.services.backend import GiteaBackend

_http_client: httpx.AsyncClient | None = None
_backend: GiteaBackend | None = None


def build_backend(
    settings: Settings,
    client: httpx.AsyncClient,
    cache: ContentCache | None = None,
) -> GiteaBackend:
    """Wire a GiteaBackend whose sessions talk to the configured Gitea host."""

    def _gateway(token: str) -> RepoGateway:
        transport = GiteaTransport(
            client,
            settings.gitea_api_root,
            token,
            max_retries=settings.max_retries,
            backoff=settings.retry_backoff_seconds,
        )
        return GiteaRestAdapter(transport, settings.repo_name)

    return GiteaBackend(
        _gateway,
        repo=settings.gitea_repo,
        branch=settings.gitea_branch,
        media_folder=settings.media_folder,
        cache=cache,
        tree_page_size=settings.tree_page_size,
        max_tree_pages=settings.max_tree_pages,
        max_concurrent_downloads=settings.max_concurrent_downloads,
        persist_lock_timeout=settings.persist_lock_timeout,
        atomic_commits=settings.atomic_commits,
        squash_merges=settings.squash_merges,
        initial_workflow_status=settings.initial_workflow_status,
    )


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client, _backend  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout))
    _backend = build_backend(settings, _http_client, InMemoryContentCache())
    if settings.gitea_token:
        _backend.restore_session(settings.gitea_token.get_secret_value())


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client, _backend  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None
    _backend = None


def get_backend() -> GiteaBackend:
    """Return the process-wide backend."""
    assert _backend is not None, "startup() was not called"
    return _backend
