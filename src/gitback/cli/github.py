"""GitHub API status commands."""

import typer
from rich.table import Table

from gitback.cli.common import console, run_async_command
from gitback.config import get_settings
from gitback.github import (
    GitHubAuthenticationError,
    GitHubClient,
    PoolRateLimit,
    RateLimitStatus,
)
from gitback.github.rate_limit import TokenInfo


def _get_status_style(status: RateLimitStatus) -> str:
    """Get rich style for status."""
    match status:
        case RateLimitStatus.HEALTHY:
            return "[green]HEALTHY[/green]"
        case RateLimitStatus.WARNING:
            return "[yellow]WARNING[/yellow]"
        case RateLimitStatus.CRITICAL:
            return "[red]CRITICAL[/red]"
        case RateLimitStatus.EXHAUSTED:
            return "[bold red]EXHAUSTED[/bold red]"
        case _:
            return str(status)


def _format_time_remaining(seconds: int) -> str:
    """Format seconds as human-readable time."""
    if seconds <= 0:
        return "Now"
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    return f"{hours}h {minutes}m"


def rate_limit(
    token: str | None = typer.Option(
        None,
        "--token",
        help="GitHub personal access token [env: GITHUB_TOKEN]",
    ),
    noauth: bool = typer.Option(
        False,
        "--noauth",
        help="Query the anonymous quota of this machine",
    ),
) -> None:
    """Show the current GitHub API core quota.

    Examples:
        gitback rate-limit
        gitback rate-limit --noauth
    """
    settings = get_settings()
    effective_token = None if noauth or settings.no_auth else (token or settings.token or None)

    async def _check() -> PoolRateLimit:
        try:
            async with GitHubClient(effective_token, timeout=float(settings.timeout)) as client:
                return await client.get_rate_limit()
        except GitHubAuthenticationError:
            console.print("[red]Error:[/red] Invalid GitHub token")
            raise typer.Exit(1) from None

    core = run_async_command(_check(), error_prefix="Rate limit check failed")

    token_info = TokenInfo.from_rate_limit(core.limit)
    if token_info.is_authenticated:
        console.print(f"[green]✓[/green] Authenticated ({core.limit:,} requests/hour)")
    else:
        console.print(f"[yellow]⚠[/yellow] Unauthenticated ({core.limit:,} requests/hour)")

    table = Table(title="GitHub API Rate Limit")
    table.add_column("Pool", style="bold")
    table.add_column("Status")
    table.add_column("Remaining", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Resets In", justify="right")
    table.add_row(
        core.pool.value,
        _get_status_style(core.get_status()),
        str(core.remaining),
        str(core.limit),
        _format_time_remaining(core.seconds_until_reset),
    )

    console.print()
    console.print(table)
