"""Backup orchestrator - one complete pass over a user's repositories and gists.

Sequence:
    1. Resolve the acting username
    2. List repositories, then mirror them through the worker pool
    3. Optionally list the user's gists, then export them through the pool

The repository phase fully drains before the gist phase starts. Per-item
failures are collected into the report; only an unresolvable username, a
failed listing, or an unwritable output directory abort the run.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import httpx

from gitback.github import GitHubClient, GitHubClientError, Page, Paginator, RateLimitGate
from gitback.logging import LogContext, get_logger
from gitback.schemas import BackupTarget, GistDescriptor, RepositoryDescriptor

from .exceptions import ListingError, OutputDirectoryError, UsernameResolutionError
from .gists import GistExporter
from .git import GitRunner
from .pool import WorkerPool
from .progress import ProgressCallback, ProgressTracker
from .repositories import RepositoryExporter
from .results import BackupReport, ExportAction, ItemKind, PhaseResult

if TYPE_CHECKING:
    from gitback.config import Settings

logger = get_logger(__name__)

T = TypeVar("T")

REPOS_DIRNAME = "repos"
GISTS_DIRNAME = "gists"


class BackupOrchestrator:
    """Coordinates listing and exporting for one backup target.

    Usage:
        async with GitHubClient(token) as client:
            orchestrator = BackupOrchestrator(
                client=client,
                repository_exporter=RepositoryExporter(GitRunner(), token=token),
                gist_exporter=GistExporter(http),
                output_dir=Path("~/gitbackup").expanduser(),
                concurrency=5,
            )
            report = await orchestrator.backup(target)
    """

    def __init__(
        self,
        client: GitHubClient,
        repository_exporter: RepositoryExporter,
        gist_exporter: GistExporter,
        *,
        output_dir: Path,
        concurrency: int = 5,
        include_gists: bool = True,
        paginator: Paginator | None = None,
        cancel_event: asyncio.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: GitHub API client
            repository_exporter: Exporter for repositories
            gist_exporter: Exporter for gists
            output_dir: Root of the backup tree
            concurrency: Maximum exports in flight per phase
            include_gists: Run the gist phase after repositories
            paginator: Paginator for listings (default: fresh rate limit gate)
            cancel_event: Event that stops further dispatches when set
            progress_callback: Receives progress updates for each phase
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._client = client
        self._repository_exporter = repository_exporter
        self._gist_exporter = gist_exporter
        self._output_dir = output_dir
        self._concurrency = concurrency
        self._include_gists = include_gists
        self._paginator = paginator or Paginator(RateLimitGate())
        self._cancel_event = cancel_event or asyncio.Event()
        self._progress_callback = progress_callback

    @property
    def cancel_event(self) -> asyncio.Event:
        """Event that stops further dispatches when set."""
        return self._cancel_event

    def cancel(self) -> None:
        """Request cancellation; in-flight exports still finish."""
        if not self._cancel_event.is_set():
            logger.warning("Cancellation requested, finishing in-flight items")
        self._cancel_event.set()

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------
    async def resolve_username(self, target: BackupTarget) -> str:
        """Determine whose data is backed up.

        Anonymous runs use the configured username; token runs ask GitHub
        who the token belongs to.

        Raises:
            UsernameResolutionError: If the login cannot be determined
        """
        if not target.is_authenticated:
            if not target.username:
                raise UsernameResolutionError("username is required when running in no-auth mode")
            return target.username

        try:
            login = await self._client.get_authenticated_login()
        except GitHubClientError as e:
            raise UsernameResolutionError(f"Failed to resolve authenticated user: {e}") from e
        if not login:
            raise UsernameResolutionError("GitHub returned an empty login for the token")
        return login

    async def list_repositories(
        self, username: str, target: BackupTarget
    ) -> list[RepositoryDescriptor]:
        """List every repository owned by ``username``.

        Raises:
            ListingError: On any listing failure
        """
        authenticated = target.is_authenticated

        async def fetch(page: int, per_page: int) -> Page[RepositoryDescriptor]:
            return await self._client.list_repositories_page(
                username, authenticated=authenticated, page=page, per_page=per_page
            )

        try:
            return await self._paginator.list_all(
                fetch, key=lambda repo: repo.dedup_key, resource="repositories"
            )
        except GitHubClientError as e:
            raise ListingError(f"Failed to list repositories for {username}: {e}") from e

    async def list_gists(self, username: str, target: BackupTarget) -> list[GistDescriptor]:
        """List the gists owned by ``username``.

        The authenticated endpoint may return gists of other owners, so the
        result is filtered to the username (case-insensitively, as GitHub
        logins are).

        Raises:
            ListingError: On any listing failure
        """
        authenticated = target.is_authenticated

        async def fetch(page: int, per_page: int) -> Page[GistDescriptor]:
            return await self._client.list_gists_page(
                username, authenticated=authenticated, page=page, per_page=per_page
            )

        try:
            gists = await self._paginator.list_all(
                fetch, key=lambda gist: gist.dedup_key, resource="gists"
            )
        except GitHubClientError as e:
            raise ListingError(f"Failed to list gists for {username}: {e}") from e

        wanted = username.casefold()
        owned = [g for g in gists if g.owner_login and g.owner_login.casefold() == wanted]
        if len(owned) != len(gists):
            logger.debug("Ignoring {} gist(s) not owned by {}", len(gists) - len(owned), username)
        return owned

    # -------------------------------------------------------------------------
    # Backup
    # -------------------------------------------------------------------------
    async def backup(self, target: BackupTarget) -> BackupReport:
        """Run one complete backup pass.

        Returns:
            BackupReport with one outcome per listed item

        Raises:
            UsernameResolutionError: If the username cannot be resolved
            ListingError: If a listing fails
            OutputDirectoryError: If an output directory cannot be created
        """
        start_time = time.monotonic()

        username = await self.resolve_username(target)
        logger.info("Backing up GitHub account {} into {}", username, self._output_dir)
        report = BackupReport(username=username)

        with LogContext(phase=ItemKind.REPOSITORY.value):
            repos = await self.list_repositories(username, target)
            logger.info("Found {} repositories", len(repos))
            repos_dir = self._ensure_dir(self._output_dir / REPOS_DIRNAME)
            report.repositories = await self._run_phase(
                ItemKind.REPOSITORY,
                repos,
                lambda repo: self._repository_exporter.export(repo, repos_dir),
                lambda repo: repo.display_name,
            )

        if not self._include_gists:
            logger.info("Gist backup disabled, skipping")
        elif self._cancel_event.is_set():
            logger.warning("Skipping gists because the run was cancelled")
        else:
            with LogContext(phase=ItemKind.GIST.value):
                gists = await self.list_gists(username, target)
                logger.info("Found {} gists", len(gists))
                gists_dir = self._ensure_dir(self._output_dir / GISTS_DIRNAME)
                report.gists = await self._run_phase(
                    ItemKind.GIST,
                    gists,
                    lambda gist: self._gist_exporter.export(gist, gists_dir),
                    lambda gist: gist.display_name,
                )

        report.cancelled = self._cancel_event.is_set()
        report.duration_seconds = time.monotonic() - start_time
        logger.info(
            "Backup of {} finished: {} succeeded, {} failed in {:.1f}s",
            username,
            report.total_succeeded,
            report.total_failed,
            report.duration_seconds,
        )
        return report

    async def _run_phase(
        self,
        kind: ItemKind,
        items: Sequence[T],
        export: Callable[[T], Awaitable[ExportAction]],
        item_name: Callable[[T], str],
    ) -> PhaseResult:
        phase_start = time.monotonic()
        progress = ProgressTracker(total=len(items), name=f"{kind.value} backup")
        if self._progress_callback is not None:
            progress.on_progress(self._progress_callback)

        pool: WorkerPool[T] = WorkerPool(
            self._concurrency, cancel_event=self._cancel_event, progress=progress
        )
        outcomes = await pool.run(items, export, kind=kind, item_name=item_name)

        result = PhaseResult(
            kind=kind,
            outcomes=outcomes,
            duration_seconds=time.monotonic() - phase_start,
        )
        logger.info(
            "{} phase complete: {} succeeded, {} failed",
            kind.value.capitalize(),
            result.succeeded,
            result.failed,
        )
        for failure in result.failed_items:
            logger.warning("  {} {}: {}", kind.value, failure.name, failure.reason)
        return result

    def _ensure_dir(self, path: Path) -> Path:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputDirectoryError(f"Cannot create output directory {path}: {e}") from e
        return path


async def run_backup(
    settings: Settings,
    *,
    cancel_event: asyncio.Event | None = None,
    progress_callback: ProgressCallback | None = None,
) -> BackupReport:
    """Wire the collaborators from settings and run one backup pass.

    Raises:
        pydantic.ValidationError: If the settings do not form a valid target
        BackupError: On fatal backup errors
    """
    target = settings.to_target()
    logger.debug("Settings: {}", settings.sanitized())

    gate = RateLimitGate(settings.rate_limit)
    paginator = Paginator(gate, per_page=settings.rate_limit.per_page)

    async with (
        GitHubClient(target.token, timeout=float(settings.timeout)) as client,
        httpx.AsyncClient(timeout=float(settings.timeout), follow_redirects=True) as http,
    ):
        orchestrator = BackupOrchestrator(
            client=client,
            repository_exporter=RepositoryExporter(
                GitRunner(),
                token=target.token,
                clone_protocol=settings.clone_protocol,
                include_wikis=settings.include_wikis,
            ),
            gist_exporter=GistExporter(http),
            output_dir=settings.output_dir,
            concurrency=settings.threads,
            include_gists=settings.include_gists,
            paginator=paginator,
            cancel_event=cancel_event,
            progress_callback=progress_callback,
        )
        report = await orchestrator.backup(target)

    if gate.waits:
        logger.info(
            "Waited {} time(s) for rate limit resets ({:.0f}s total)",
            gate.waits,
            gate.total_waited,
        )
    return report
