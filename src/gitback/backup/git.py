"""Thin async wrapper around the ``git`` executable.

Only two operations are needed: a mirror clone of a new repository and a
pruning remote update of an existing mirror. The exit status and combined
output are the only error signal.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Sequence
from pathlib import Path

from gitback.logging import get_logger

logger = get_logger(__name__)

REDACTED = "[REDACTED]"


def mask_secret(text: str, secret: str | None) -> str:
    """Replace every occurrence of ``secret`` in ``text``."""
    if not secret:
        return text
    return text.replace(secret, REDACTED)


class GitCommandError(Exception):
    """Raised when a git command exits non-zero or cannot be started."""

    def __init__(self, args: Sequence[str], returncode: int | None, output: str) -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.output = output
        status = f"exit status {returncode}" if returncode is not None else "could not start"
        detail = output.strip()
        message = f"git {' '.join(self.args_list[:2])} failed ({status})"
        super().__init__(f"{message}: {detail}" if detail else message)


class GitRunner:
    """Runs git commands as subprocesses without blocking the event loop.

    Usage:
        git = GitRunner()
        await git.clone_mirror(url, "tools", cwd=repos_dir)
        await git.remote_update(repos_dir / "tools")
    """

    def __init__(self, executable: str = "git") -> None:
        self._executable = executable

    async def run(self, *args: str, cwd: Path) -> str:
        """Run ``git <args>`` in ``cwd`` and return its combined output.

        Raises:
            GitCommandError: If git exits non-zero or cannot be executed
        """
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        logger.debug("Running git {} in {}", args[0] if args else "", cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                cwd=cwd,
                env=env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise GitCommandError(args, None, str(e)) from e

        stdout, _ = await process.communicate()
        output = stdout.decode("utf-8", "replace") if stdout else ""
        if process.returncode != 0:
            raise GitCommandError(args, process.returncode, output)
        return output

    async def clone_mirror(self, url: str, name: str, *, cwd: Path) -> str:
        """``git clone --mirror <url> <name>`` inside ``cwd``."""
        return await self.run("clone", "--mirror", url, name, cwd=cwd)

    async def remote_update(self, repo_dir: Path) -> str:
        """``git remote update --prune`` inside an existing mirror."""
        return await self.run("remote", "update", "--prune", cwd=repo_dir)
