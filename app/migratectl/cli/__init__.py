"""CLI package for migratectl.

This package contains the Typer application and all subcommands.
"""

from migratectl.cli.main import app

__all__ = ["app"]
