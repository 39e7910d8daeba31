"""Config command implementation.

Shows, creates and locates the migratectl configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from migratectl.cli.types import ConfigOption, load_config_or_exit
from migratectl.core.config import ConfigError, Configuration, config_to_dict, save_config
from migratectl.core.paths import get_config_path
from migratectl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the migratectl configuration.",
    invoke_without_command=True,
    no_args_is_help=True,
)


@app.command()
def show(config_path: ConfigOption = None) -> None:
    """Print the effective configuration as TOML."""
    config = load_config_or_exit(config_path)
    source = config_path or get_config_path()
    if not source.exists():
        print_info(f"No config file at {source}; showing defaults.")
    console.print(tomli_w.dumps(config_to_dict(config)), markup=False, highlight=False)


@app.command()
def init(
    config_path: ConfigOption = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing config file.",
        ),
    ] = False,
) -> None:
    """Write a config file with the default settings."""
    path: Path = config_path or get_config_path()
    if path.exists() and not force:
        print_error(f"Config file already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(Configuration(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")


@app.command()
def path() -> None:
    """Print the default config file location."""
    typer.echo(str(get_config_path()))
