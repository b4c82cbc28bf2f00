"""Main CLI application for gitback."""

from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from gitback import __version__
from gitback.cli import backup as backup_cmd
from gitback.cli import github as github_cmd
from gitback.cli.common import console, format_validation_error
from gitback.config import get_settings
from gitback.logging import setup_logging

app = typer.Typer(
    name="gitback",
    help="Back up GitHub repositories and gists to local disk.",
    add_completion=False,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"gitback version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable debug logging.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-error output (WARNING level).",
        ),
    ] = False,
) -> None:
    """gitback - mirror every repository and gist of a GitHub account."""
    try:
        settings = get_settings()
    except ValidationError as e:
        console.print(f"[red]Configuration error:[/red] {format_validation_error(e)}")
        raise typer.Exit(1) from None
    log_config = settings.logging

    setup_logging(
        level=settings.log_level,
        verbose=verbose,
        quiet=quiet,
        log_file=Path(log_config.log_file) if log_config.log_file else None,
        rotation=log_config.rotation,
        retention=log_config.retention,
        serialize=log_config.serialize,
    )


app.command("backup")(backup_cmd.backup)
app.command("rate-limit")(github_cmd.rate_limit)


if __name__ == "__main__":
    app()
