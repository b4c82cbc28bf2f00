"""Pytest configuration and shared fixtures.

Usage Guide:
- For GitHub API payloads: import dict factories from tests.factories
- For rate limit headers: import from tests.fixtures.rate_limit_responses
- For git: use the `fake_git` fixture, no git executable is needed
"""

from __future__ import annotations

from collections.abc import Generator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from gitback.backup.git import GitCommandError
from gitback.config import RateLimitConfig, get_settings
from gitback.logging import reset_logging

# -----------------------------------------------------------------------------
# Test Timeline Constants
# -----------------------------------------------------------------------------
NOW = datetime(2024, 1, 15, 12, 0, 0, tzinfo=UTC)
NOW_TS = int(NOW.timestamp())


# -----------------------------------------------------------------------------
# Global State
# -----------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _clean_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from the developer's environment and cached settings."""
    for name in (
        "GITHUB_TOKEN",
        "GITBACK_TOKEN",
        "GITBACK_NOAUTH",
        "GITBACK_NO_AUTH",
        "GITBACK_USER",
        "GITBACK_THREADS",
        "GITBACK_OUTPUT_DIR",
        "GITBACK_TIMEOUT",
        "GITBACK_INCLUDE_GISTS",
        "GITBACK_INCLUDE_WIKIS",
        "GITBACK_CLONE_PROTOCOL",
        "GITBACK_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    reset_logging()


@pytest.fixture
def rate_config() -> RateLimitConfig:
    """Rate limit config with the documented defaults."""
    return RateLimitConfig(low_water_mark=10, safety_margin_seconds=10.0, per_page=100)


# -----------------------------------------------------------------------------
# Git
# -----------------------------------------------------------------------------
class FakeGitRunner:
    """Records git invocations and mimics their effect on disk.

    A clone creates ``cwd/<name>``; an update touches nothing. Commands can
    be made to fail per destination name via ``fail_on``.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self.fail_on: dict[str, str] = {}

    async def clone_mirror(self, url: str, name: str, *, cwd: Path) -> str:
        self.calls.append(("clone", url, name, str(cwd)))
        if name in self.fail_on:
            raise GitCommandError(("clone", "--mirror", url, name), 128, self.fail_on[name])
        (cwd / name).mkdir(parents=True)
        return ""

    async def remote_update(self, repo_dir: Path) -> str:
        self.calls.append(("update", str(repo_dir)))
        if repo_dir.name in self.fail_on:
            raise GitCommandError(
                ("remote", "update", "--prune"), 1, self.fail_on[repo_dir.name]
            )
        return ""

    @property
    def clones(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == "clone"]

    @property
    def updates(self) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == "update"]


@pytest.fixture
def fake_git() -> FakeGitRunner:
    """A git runner that never touches the network."""
    return FakeGitRunner()
