"""Shared types and utilities for CLI commands.

This module provides the common options, exit codes and helper
functions used by the backup, restore and verify commands.
"""

from enum import IntEnum
from pathlib import Path
from typing import Annotated

import typer

from migratectl.core.config import ConfigError, Configuration, load_config
from migratectl.core.prompt import AutoPrompt, ConsolePrompt, Prompt
from migratectl.models.outcome import RunReport, RunStatus
from migratectl.utils.formatting import print_error


class ExitCode(IntEnum):
    """Process exit codes of migratectl commands."""

    OK = 0
    FAILED = 1
    NO_DATA = 2
    INVALID_TARGET = 3
    RESTART_REQUIRED = 4
    INTERRUPTED = 130


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to config.toml (default: the user config directory).",
        dir_okay=False,
    ),
]

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip confirmations and resume unfinished runs automatically.",
    ),
]

FreshOption = Annotated[
    bool,
    typer.Option(
        "--fresh",
        help="Discard an unfinished run at the target and start over.",
    ),
]


def load_config_or_exit(path: Path | None) -> Configuration:
    """Load the configuration, exiting with an error message on failure.

    Args:
        path: Explicit config file, or None for the default location.

    Returns:
        Loaded configuration.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    if path is not None and not path.is_file():
        print_error(f"Config file not found: {path}")
        raise typer.Exit(code=ExitCode.FAILED)
    try:
        return load_config(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=ExitCode.FAILED) from e


def make_prompt(*, yes: bool, fresh: bool, skip_verification: bool = False) -> Prompt:
    """Build the operator prompt for a run.

    Args:
        yes: Answer every question automatically.
        fresh: Start over instead of resuming unfinished runs.
        skip_verification: Restore despite integrity errors.

    Returns:
        AutoPrompt for --yes or --fresh, ConsolePrompt otherwise.
    """
    if yes or fresh:
        return AutoPrompt(fresh=fresh, skip_verification=skip_verification)
    return ConsolePrompt(skip_verification=skip_verification)


def exit_code_for(report: RunReport) -> int:
    """Map a run's terminal status onto the process exit code."""
    if report.status == RunStatus.FINISHED:
        return ExitCode.OK
    if report.status == RunStatus.INTERRUPTED:
        return ExitCode.INTERRUPTED
    if report.status == RunStatus.RESTART_REQUIRED:
        return ExitCode.RESTART_REQUIRED
    return ExitCode.FAILED
