"""Tests for environment-driven settings."""

import httpx
import pytest
from pydantic import ValidationError

from gitea_backend.infrastructure.config import Settings
from gitea_backend.interface.dependencies import build_backend


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("GITEA_REPO", "GITEA_API_ROOT", "GITEA_TOKEN", "GITEA_BRANCH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    monkeypatch.setenv("GITEA_REPO", "acme/site")

    settings = Settings(_env_file=None)

    assert settings.gitea_api_root == "https://gitea.com/api/v1"
    assert settings.gitea_branch == "master"
    assert settings.max_concurrent_downloads == 10
    assert settings.atomic_commits is True
    assert settings.gitea_token is None
    assert settings.repo_name.api_path == "/repos/acme/site"


def test_overrides(monkeypatch):
    monkeypatch.setenv("GITEA_REPO", "/acme/site/")
    monkeypatch.setenv("GITEA_API_ROOT", "https://git.example.com/api/v1/")
    monkeypatch.setenv("GITEA_TOKEN", "s3cret")
    monkeypatch.setenv("PERSIST_LOCK_TIMEOUT", "2.5")

    settings = Settings(_env_file=None)

    assert settings.gitea_repo == "acme/site"
    assert settings.gitea_api_root == "https://git.example.com/api/v1"
    assert settings.gitea_token.get_secret_value() == "s3cret"
    assert settings.persist_lock_timeout == 2.5
    assert "s3cret" not in repr(settings)


@pytest.mark.parametrize("repo", ["acme", "acme/site/extra", "ac me/site", ""])
def test_invalid_repo(monkeypatch, repo):
    monkeypatch.setenv("GITEA_REPO", repo)
    with pytest.raises(ValidationError, match="owner/name"):
        Settings(_env_file=None)


def test_repo_is_required():
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


async def test_build_backend_wires_settings():
    settings = Settings(
        _env_file=None,
        gitea_repo="acme/site",
        gitea_branch="main",
        squash_merges=True,
        initial_workflow_status="draft",
    )
    async with httpx.AsyncClient() as client:
        backend = build_backend(settings, client)

        assert backend.squash_merges is True
        assert backend.initial_workflow_status == "draft"
        backend.restore_session("tok")
        assert backend.get_token() == "tok"
