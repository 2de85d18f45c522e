"""Shared utility functions for cargo-scaffold.

Provides subprocess execution, logging setup, username discovery and the
Rich-based output helpers used by the pipeline and the CLI.
"""

from __future__ import annotations

import getpass
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

from cargo_scaffold.errors import CommandError

console = Console()

LOGGER_NAME = "cargo_scaffold"

# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CommandResult:
    """Structured outcome of an external command."""

    cmd: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def check(self) -> "CommandResult":
        """Return ``self`` or raise ``CommandError`` on a non-zero exit."""
        if not self.ok:
            raise CommandError(self.cmd, self.returncode, self.stderr)
        return self


def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
) -> CommandResult:
    """Run a command synchronously and capture its output.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.

    Returns:
        A ``CommandResult``.  A missing executable or a timeout is reported
        as ``CommandError`` because the caller cannot proceed either way.
    """
    try:
        completed = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError as exc:
        raise CommandError(cmd, 127, str(exc)) from exc
    except subprocess.TimeoutExpired as exc:
        raise CommandError(cmd, -1, f"timed out after {timeout}s") from exc

    return CommandResult(
        cmd=list(cmd),
        returncode=completed.returncode,
        stdout=(completed.stdout or "").strip(),
        stderr=(completed.stderr or "").strip(),
    )


# ---------------------------------------------------------------------------
# Username helpers
# ---------------------------------------------------------------------------


def try_git_username() -> str | None:
    """Return ``git config --get user.name`` or ``None`` if unavailable."""
    try:
        result = run_command(["git", "config", "--get", "user.name"], timeout=10)
    except CommandError:
        return None
    if not result.ok or not result.stdout:
        return None
    return result.stdout


def current_username(authors: list[str] | None = None) -> str:
    """Resolve the name used in licenses and repository URLs.

    The first explicit author wins, then the git user name, then the login
    name of the current process.
    """
    if authors:
        return authors[0]
    return try_git_username() or getpass.getuser()


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

_VERBOSITY_LEVELS: dict[int, int] = {
    0: logging.ERROR,
    1: logging.WARNING,
    2: logging.INFO,
    3: logging.DEBUG,
}

_NOISY_LOGGERS = ("httpx", "httpcore", "PIL")


def setup_logging(verbosity: int = 0) -> logging.Logger:
    """Configure logging once for the process and return the tool's logger.

    Verbosity ``0`` shows errors only, ``1`` warnings, ``2`` info, ``3``
    debug.  ``4`` and above also lets third-party loggers through at debug.
    """
    level = _VERBOSITY_LEVELS.get(verbosity, logging.DEBUG)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbosity >= 3,
        rich_tracebacks=True,
        markup=False,
    )
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    third_party_level = logging.DEBUG if verbosity >= 4 else max(level, logging.WARNING)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(third_party_level)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def confirm(message: str) -> bool:
    """Ask a yes/no question on the terminal.  Defaults to "no"."""
    return Confirm.ask(message, default=False, console=console)


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
    """
    if seconds < 0:
        return "0.0s"

    minutes = int(seconds // 60)
    secs = seconds % 60
    if minutes > 0:
        return f"{minutes}m {int(secs)}s"
    return f"{secs:.1f}s"
