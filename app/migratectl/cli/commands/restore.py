"""Restore command implementation.

Replays a completed backup on this machine: verifies integrity, makes
sure the package managers exist, reinstalls packages and copies user
profiles back.
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
    name="restore",
    help="Restore a completed backup onto this machine.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def restore(
    ctx: typer.Context,
    source: Annotated[
        str,
        typer.Argument(help="Directory holding a completed backup."),
    ],
    yes: YesOption = False,
    fresh: FreshOption = False,
    skip_verification: Annotated[
        bool,
        typer.Option(
            "--skip-verification",
            help="Continue even if backup files fail integrity verification.",
        ),
    ] = False,
    config_path: ConfigOption = None,
) -> None:
    """Restore the backup in SOURCE onto this machine.

    The backup must carry a valid backup-manifest.json. If package
    managers had to be installed, the command exits with code 4; open a
    new terminal and run it again to continue where it stopped.

    Examples:
        migratectl restore E:\\Backup
        migratectl restore E:\\Backup --yes --skip-verification
    """
    if ctx.invoked_subcommand is not None:
        return

    config = load_config_or_exit(config_path)
    prompt = make_prompt(yes=yes, fresh=fresh, skip_verification=skip_verification)
    engine = WorkflowEngine(config, prompt)
    report = engine.restore(source)

    quiet = bool((ctx.obj or {}).get("quiet"))
    show_report(report, quiet=quiet)

    code = exit_code_for(report)
    if code:
        raise typer.Exit(code=code)
