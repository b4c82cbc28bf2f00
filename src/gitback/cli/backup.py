"""Backup command for gitback."""

import asyncio
import json
from pathlib import Path

import typer
from rich.progress import BarColumn, MofNCompleteColumn, Progress, TaskID, TextColumn
from rich.table import Table

from gitback.backup import (
    BackupReport,
    ExportAction,
    ItemKind,
    PhaseResult,
    ProgressUpdate,
    run_backup,
)
from gitback.cli.common import (
    EXIT_CANCELLED,
    OutputFormat,
    OutputFormatOption,
    console,
    install_cancel_handlers,
    load_settings,
    remove_cancel_handlers,
    run_async_command,
)
from gitback.config import Settings
from gitback.logging import get_logger

logger = get_logger(__name__)


def backup(
    noauth: bool = typer.Option(
        False,
        "--noauth",
        help="Run without a token (public data of --username only)",
    ),
    username: str | None = typer.Option(
        None,
        "--username",
        "-u",
        help="GitHub username (required with --noauth) [env: GITBACK_USER]",
    ),
    thread: int | None = typer.Option(
        None,
        "--thread",
        "-t",
        min=1,
        help="Number of concurrent clone/export workers [env: GITBACK_THREADS]",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        help="GitHub personal access token [env: GITHUB_TOKEN]",
    ),
    output_dir: Path | None = typer.Option(
        None,
        "--output-dir",
        "-o",
        help="Backup destination [env: GITBACK_OUTPUT_DIR, default: ~/gitbackup]",
    ),
    timeout: int | None = typer.Option(
        None,
        "--timeout",
        min=1,
        help="API request timeout in seconds [env: GITBACK_TIMEOUT]",
    ),
    no_gists: bool = typer.Option(
        False,
        "--no-gists",
        help="Skip gist backup",
    ),
    wikis: bool = typer.Option(
        False,
        "--wikis",
        help="Also mirror repository wikis",
    ),
    output_format: OutputFormatOption = OutputFormat.TEXT,
) -> None:
    """Back up all repositories and gists of a GitHub account.

    Repositories are mirrored into <output-dir>/repos and refreshed in
    place on later runs; gists are written to <output-dir>/gists.

    Examples:
        gitback backup
        gitback backup --noauth --username alice
        gitback backup --thread 10 --output-dir /srv/backup --format json
    """
    settings = load_settings(
        no_auth=True if noauth else None,
        user=username,
        threads=thread,
        token=token,
        output_dir=output_dir,
        timeout=timeout,
        include_gists=False if no_gists else None,
        include_wikis=True if wikis else None,
    )

    report = run_async_command(
        _run(settings, show_progress=output_format == OutputFormat.TEXT),
        error_prefix="Backup failed",
    )

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(report.to_dict()))
    else:
        _print_report(report)

    if report.cancelled:
        raise typer.Exit(EXIT_CANCELLED)


class BackupProgress:
    """Live progress bars for the backup phases.

    Passed to run_backup as its progress callback; one bar per phase,
    created on the phase's first update.
    """

    def __init__(self, progress: Progress) -> None:
        self._progress = progress
        self._tasks: dict[str, TaskID] = {}

    def __call__(self, update: ProgressUpdate) -> None:
        task = self._tasks.get(update.name)
        if task is None:
            task = self._progress.add_task(update.name, total=update.total, current="")
            self._tasks[update.name] = task
        self._progress.update(
            task,
            total=update.total,
            completed=update.completed + update.failed,
            current=update.current_item or "",
        )


def _progress_bars() -> Progress:
    return Progress(
        TextColumn("[bold]{task.description}[/bold]"),
        BarColumn(bar_width=40, complete_style="green", finished_style="green"),
        MofNCompleteColumn(),
        TextColumn("{task.fields[current]}", style="dim", markup=False),
        console=console,
        transient=True,
    )


async def _run(settings: Settings, *, show_progress: bool = False) -> BackupReport:
    cancel_event = asyncio.Event()

    def _on_signal() -> None:
        if not cancel_event.is_set():
            logger.warning("Interrupt received, finishing in-flight items")
        cancel_event.set()

    loop = asyncio.get_running_loop()
    installed = install_cancel_handlers(loop, _on_signal)
    try:
        if not show_progress:
            return await run_backup(settings, cancel_event=cancel_event)
        with _progress_bars() as progress:
            return await run_backup(
                settings, cancel_event=cancel_event, progress_callback=BackupProgress(progress)
            )
    finally:
        remove_cancel_handlers(loop, installed)


def _phase_row(label: str, phase: PhaseResult) -> tuple[str, ...]:
    if phase.skipped:
        return (label, "-", "-", "-", "[dim]skipped[/dim]")
    failed = f"[red]{phase.failed}[/red]" if phase.failed else "0"
    if phase.kind is ItemKind.REPOSITORY:
        detail = (
            f"{phase.count_action(ExportAction.CLONED)} cloned, "
            f"{phase.count_action(ExportAction.UPDATED)} updated"
        )
    else:
        detail = f"{phase.count_action(ExportAction.EXPORTED)} exported"
    return (label, str(phase.total), f"[green]{phase.succeeded}[/green]", failed, detail)


def _print_report(report: BackupReport) -> None:
    """Print a human-readable summary of a backup run."""
    table = Table(title=f"Backup of {report.username}")
    table.add_column("Phase", style="bold")
    table.add_column("Total", justify="right")
    table.add_column("Succeeded", justify="right")
    table.add_column("Failed", justify="right")
    table.add_column("Details")

    table.add_row(*_phase_row("Repositories", report.repositories))
    table.add_row(*_phase_row("Gists", report.gists))

    console.print()
    console.print(table)

    failures = [*report.repositories.failed_items, *report.gists.failed_items]
    if failures:
        console.print("\n[bold]Failures:[/bold]")
        for outcome in failures[:20]:
            console.print(f"  [red]✗[/red] {outcome.kind.value} {outcome.name}: {outcome.reason}")
        if len(failures) > 20:
            console.print(f"  ... and {len(failures) - 20} more")

    if report.cancelled:
        console.print("\n[yellow]Backup cancelled before all items were dispatched.[/yellow]")
    console.print(f"\n[dim]Completed in {report.duration_seconds:.1f}s[/dim]")
