from __future__ import annotations

import logging

import uvicorn
from pydantic import ValidationError

from gitea_backend.infrastructure.config import get_settings

logger = logging.getLogger("gitea_backend")


def main() -> None:
    """Validate the configuration, then serve the backend API with uvicorn."""
    try:
        settings = get_settings()
    except ValidationError as exc:
        raise SystemExit(f"Invalid Gitea backend configuration:\n{exc}") from exc

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    logger.info(
        "Serving %s (branch %s) from %s",
        settings.gitea_repo,
        settings.gitea_branch,
        settings.gitea_api_root,
    )
    if settings.gitea_token is None:
        logger.info("No GITEA_TOKEN configured; clients must POST /auth first")

    uvicorn.run(
        "gitea_backend.interface.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
