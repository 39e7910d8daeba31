"""Shared Rich consoles and small output helpers.

Results go to stdout, warnings and errors to stderr, so piping a command's
output keeps the problems visible.
"""

import sys

from rich.console import Console

from migratectl.core.theme import get_theme

# Hex theme colors need truecolor; leave detection to Rich when not a tty
_COLOR_SYSTEM = "truecolor" if sys.stdout.isatty() else None

console = Console(theme=get_theme(), color_system=_COLOR_SYSTEM)
err_console = Console(theme=get_theme(), stderr=True, color_system=_COLOR_SYSTEM)


def format_size(size_bytes: int) -> str:
    """Return a human-readable size string.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Size such as '512 B', '1.5 MB' or '2.0 TB'.
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ("KB", "MB", "GB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} TB"


def format_duration(seconds: float) -> str:
    """Return a duration such as '42s', '3m 05s' or '1h 02m'."""
    total = int(round(seconds))
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
