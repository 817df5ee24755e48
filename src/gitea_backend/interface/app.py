"""FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI

from gitea_backend.interface.dependencies import get_backend, shutdown, startup
from gitea_backend.interface.error_handlers import register_error_handlers
from gitea_backend.interface.routes import router
from gitea_backend.services.backend import GiteaBackend

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    await startup()
    logger.info("Gitea backend ready")
    try:
        yield
    finally:
        await shutdown()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Gitea Content Backend",
        version="1.0.0",
        description=(
            "Serves a Gitea repository to a headless CMS as a file-backed "
            "content store: list and read files, load collection entries, "
            "and commit entries with their media in a single commit."
        ),
        lifespan=_lifespan,
    )
    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health", include_in_schema=False)
    async def health(backend: GiteaBackend = Depends(get_backend)) -> dict[str, object]:
        return {"status": "ok", "authenticated": backend.is_authenticated}

    return app
