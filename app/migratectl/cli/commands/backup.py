"""Backup command implementation.

Captures package-manager exports, user profiles and the installed-program
inventory into a target directory. An interrupted backup resumes at the
first incomplete step when run again.
"""

from typing import Annotated

import typer

from migratectl.cli.display import show_report
from migratectl.cli.types import (
    ConfigOption,
    FreshOption,
    YesOption,
    exit_code_for,
    load_config_or_exit,
    make_prompt,
)
from migratectl.core.engine import WorkflowEngine

app = typer.Typer(
    name="backup",
    help="Back up this machine into a target directory.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def backup(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Backup destination, e.g. an external drive folder."),
    ],
    yes: YesOption = False,
    fresh: FreshOption = False,
    config_path: ConfigOption = None,
) -> None:
    """Back up packages, user data and inventory into TARGET.

    Steps run in a fixed order and each one is recorded in
    backup-progress.json as it completes. After the last step the
    backup manifest is written, marking the backup as restorable.

    Examples:
        migratectl backup D:\\Backup           # Back up, asking before resuming
        migratectl backup D:\\Backup --yes     # Resume without asking
        migratectl backup D:\\Backup --fresh   # Start over
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_config_or_exit(config_path)
    engine = WorkflowEngine(config, make_prompt(yes=yes, fresh=fresh))
    report = engine.backup(target)

    quiet = bool((ctx.obj or {}).get("quiet"))
    show_report(report, quiet=quiet)

    code = exit_code_for(report)
    if code:
        raise typer.Exit(code=code)
