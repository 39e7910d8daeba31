"""Entry point of the migratectl command line.

Global flags are parsed here and handed to the subcommands through the
Typer context object.
"""

from typing import Annotated

import typer

from migratectl import __version__
from migratectl.cli.commands import backup, config, inventory, restore, status, verify
from migratectl.utils.logging import configure_console_logging

app = typer.Typer(
    name="migratectl",
    help="Resumable backup and restore for moving to a new Windows machine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

# Order matches the help listing
_SUBCOMMANDS = (
    ("backup", backup.app),
    ("restore", restore.app),
    ("verify", verify.app),
    ("status", status.app),
    ("inventory", inventory.app),
    ("config", config.app),
)


def _show_version(value: bool) -> None:
    if not value:
        return
    typer.echo(f"migratectl version {__version__}")
    raise typer.Exit()


VersionOption = Annotated[
    bool | None,
    typer.Option(
        "--version",
        "-V",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Show log records on the console."),
]
QuietOption = Annotated[
    bool,
    typer.Option("--quiet", "-q", help="Print only the result of each run."),
]


@app.callback()
def main(
    ctx: typer.Context,
    version: VersionOption = None,
    verbose: VerboseOption = False,
    quiet: QuietOption = False,
) -> None:
    """migratectl - Move packages and user data to a new machine.

    Back up package-manager exports, user profiles and an installed-program
    inventory into a directory, then restore them on the new machine.
    Interrupted runs resume where they stopped.
    """
    configure_console_logging(verbose)
    ctx.obj = {"verbose": verbose, "quiet": quiet}


for _name, _subapp in _SUBCOMMANDS:
    app.add_typer(_subapp, name=_name)


if __name__ == "__main__":
    app()
