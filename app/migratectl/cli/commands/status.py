"""Status command implementation.

Shows what a target directory holds: a completed backup, an unfinished
operation, or a run that is currently active.
"""

from pathlib import Path
from typing import Annotated

import typer

from migratectl.cli.display import create_progress_table
from migratectl.core.ledger import ProgressLedger
from migratectl.core.lock import TargetLock
from migratectl.core.manifest import ManifestError, ManifestNotFoundError, load_manifest
from migratectl.utils.formatting import (
    console,
    print_error,
    print_info,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="status",
    help="Show the backup and progress state of a target.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def status(
    ctx: typer.Context,
    target: Annotated[
        Path,
        typer.Argument(help="Backup directory to inspect."),
    ],
) -> None:
    """Show the manifest and unfinished progress of TARGET.

    Examples:
        migratectl status D:\\Backup
    """
    if ctx.invoked_subcommand is not None:
        return

    if not target.is_dir():
        print_error(f"Not a directory: {target}")
        raise typer.Exit(code=1)

    lock = TargetLock(target)
    if lock.path.exists():
        print_warning(f"A run may be active here (lock file {lock.path}).")

    try:
        manifest = load_manifest(target)
    except ManifestNotFoundError:
        print_info("No completed backup in this directory.")
    except ManifestError as e:
        print_warning(f"Backup manifest is unusable: {e}")
    else:
        print_success(
            f"Completed backup of {manifest.hostname} "
            f"({manifest.username or 'unknown user'}) at {manifest.completed_at:%Y-%m-%d %H:%M}"
        )
        console.print(f"  [muted]OS:[/muted] {manifest.os or 'unknown'}")
        console.print(f"  [muted]migratectl:[/muted] {manifest.tool_version or 'unknown'}")
        for source, rel_path in manifest.package_files.items():
            console.print(f"  [muted]{source.display_name}:[/muted] {rel_path}")
        for step, warning in manifest.step_warnings.items():
            print_warning(f"{step}: {warning}")

    state = ProgressLedger(target).load()
    if state is None:
        print_info("No unfinished operation.")
        return

    console.print(create_progress_table(state))
    if state.current_step:
        print_warning(
            f"Interrupted during {state.current_step}; run the command again to resume."
        )
