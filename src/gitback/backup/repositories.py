"""Repository exporter - mirror clone or incremental update of one repository.

The on-disk state alone decides what happens: a missing directory is
cloned with ``git clone --mirror``, an existing one is refreshed with
``git remote update --prune``.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Literal
from urllib.parse import urlsplit, urlunsplit

from gitback.logging import bind_item, get_logger
from gitback.schemas import RepositoryDescriptor

from .exceptions import CloneError, UpdateError
from .git import GitCommandError, GitRunner, mask_secret
from .results import ExportAction, ItemKind

logger = get_logger(__name__)

CloneProtocol = Literal["https", "ssh"]


class LocalState(StrEnum):
    """Whether a mirror already exists on disk."""

    NOT_PRESENT = "not_present"
    PRESENT = "present"


def state_of(path: Path) -> LocalState:
    """Directory existence is the only signal for clone versus update."""
    return LocalState.PRESENT if path.is_dir() else LocalState.NOT_PRESENT


def embed_token(url: str, token: str) -> str:
    """Return an HTTPS clone URL authenticating with ``token``."""
    parts = urlsplit(url)
    host = parts.hostname or "github.com"
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit(("https", f"x-access-token:{token}@{host}", parts.path, "", ""))


def wiki_url_for(url: str) -> str:
    """Derive the wiki repository URL from a repository clone URL."""
    if url.endswith(".git"):
        return url[: -len(".git")] + ".wiki.git"
    return url + ".wiki.git"


class RepositoryExporter:
    """Clones or updates a single repository mirror.

    Usage:
        exporter = RepositoryExporter(GitRunner(), token=token)
        action = await exporter.export(repo, output_dir / "repos")
    """

    def __init__(
        self,
        git: GitRunner,
        *,
        token: str | None = None,
        clone_protocol: CloneProtocol = "https",
        include_wikis: bool = False,
    ) -> None:
        """Initialize the exporter.

        Args:
            git: Runner used for all git commands
            token: PAT for private repositories (None for anonymous clones)
            clone_protocol: "ssh" prefers the SSH URL when a token is set
            include_wikis: Also mirror the wiki of repositories that have one
        """
        self._git = git
        self._token = token or None
        self._clone_protocol = clone_protocol
        self._include_wikis = include_wikis

    def clone_url_for(self, repo: RepositoryDescriptor) -> str | None:
        """Pick the URL to clone from.

        Anonymous runs use the public clone URL. Token runs use the SSH
        URL when configured and available, otherwise the HTTPS URL with
        the token embedded.
        """
        if self._token is None:
            return repo.clone_url
        if self._clone_protocol == "ssh" and repo.ssh_url:
            return repo.ssh_url
        if repo.clone_url:
            return embed_token(repo.clone_url, self._token)
        return None

    async def export(self, repo: RepositoryDescriptor, destination_root: Path) -> ExportAction:
        """Back up one repository under ``destination_root/<name>``.

        Returns:
            ExportAction.CLONED or ExportAction.UPDATED

        Raises:
            CloneError: If the descriptor is unusable or the clone fails
            UpdateError: If updating the existing mirror fails
        """
        display = repo.display_name
        url = self.clone_url_for(repo)
        if not repo.name or not repo.clone_url or not url:
            raise CloneError(display, "invalid repository")

        log = bind_item(ItemKind.REPOSITORY.value, display)
        action = await self._sync(url, repo.name, destination_root, display)
        log.info("{} {}", action.value.capitalize(), display)

        if self._include_wikis and repo.has_wiki:
            await self._export_wiki(url, repo.name, destination_root, display)

        return action

    async def _sync(self, url: str, name: str, root: Path, display: str) -> ExportAction:
        target = root / name
        if state_of(target) is LocalState.PRESENT:
            try:
                await self._git.remote_update(target)
            except GitCommandError as e:
                raise UpdateError(display, self._redact(str(e))) from e
            return ExportAction.UPDATED

        try:
            await self._git.clone_mirror(url, name, cwd=root)
        except GitCommandError as e:
            raise CloneError(display, self._redact(str(e))) from e
        return ExportAction.CLONED

    async def _export_wiki(self, url: str, name: str, root: Path, display: str) -> None:
        # has_wiki is reported even for wikis that were never created
        wiki_display = f"{display} (wiki)"
        try:
            action = await self._sync(wiki_url_for(url), f"{name}.wiki", root, wiki_display)
        except (CloneError, UpdateError) as e:
            bind_item(ItemKind.REPOSITORY.value, display).warning(
                "Wiki backup skipped: {}", e.reason
            )
            return
        logger.debug("{} wiki for {}", action.value.capitalize(), display)

    def _redact(self, text: str) -> str:
        return mask_secret(text, self._token)
