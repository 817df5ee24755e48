"""Application configuration — loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gitea_backend.domain.exceptions import ConfigurationError
from gitea_backend.domain.value_objects import RepoName


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gitea_repo: str
    gitea_api_root: str = "https://gitea.com/api/v1"
    gitea_token: SecretStr | None = None
    gitea_branch: str = "master"
    squash_merges: bool = False
    initial_workflow_status: str = ""
    media_folder: str = "static/media"
    max_concurrent_downloads: int = 10
    max_retries: int = 5
    retry_backoff_seconds: float = 0.5
    tree_page_size: int = 200
    max_tree_pages: int = 1000
    persist_lock_timeout: float = 15.0
    atomic_commits: bool = True
    http_timeout: float = 30.0
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("gitea_repo")
    @classmethod
    def _must_be_owner_slash_name(cls, v: str) -> str:
        try:
            return RepoName.from_string(v).full_name
        except ConfigurationError as exc:
            raise ValueError(
                f'The Gitea backend needs a "repo" of the form owner/name: {exc}'
            ) from exc

    @field_validator("gitea_api_root")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def repo_name(self) -> RepoName:
        return RepoName.from_string(self.gitea_repo)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()  # type: ignore[call-arg]
