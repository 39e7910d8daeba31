"""CLI commands for migratectl.

This package contains all subcommand implementations.
"""

from migratectl.cli.commands import backup, config, inventory, restore, status, verify

__all__ = ["backup", "config", "inventory", "restore", "status", "verify"]
