"""Verify command implementation.

Checks the package-manager exports and inventory of a backup against
the checksums recorded when the backup was taken.

Exit codes:
    0: All recorded files verified.
    1: At least one file is missing or corrupted.
    2: The backup holds no checksum data.
    3: The target is not a valid backup directory.
"""

from pathlib import Path
from typing import Annotated

import typer

from migratectl.cli.display import create_verification_table
from migratectl.cli.types import ConfigOption, ExitCode, load_config_or_exit
from migratectl.core.checksums import ChecksumStore
from migratectl.core.manifest import manifest_exists
from migratectl.core.validator import PathValidator
from migratectl.models.checksum import ChecksumErrorKind
from migratectl.utils.formatting import (
    console,
    print_error,
    print_success,
    print_warning,
)

app = typer.Typer(
    name="verify",
    help="Verify the integrity of a backup.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def verify(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Backup directory to verify."),
    ],
    config_path: ConfigOption = None,
) -> None:
    """Verify the checksummed files of the backup in TARGET.

    Examples:
        migratectl verify D:\\Backup
    """
    if ctx.invoked_subcommand is not None:
        return

    result = PathValidator().validate(target)
    if not result.valid or result.path is None:
        print_error(result.reason)
        raise typer.Exit(code=ExitCode.INVALID_TARGET)

    path = Path(str(result.path))
    if not path.is_dir():
        print_error(f"Not a directory: {path}")
        raise typer.Exit(code=ExitCode.INVALID_TARGET)

    config = load_config_or_exit(config_path)
    if not manifest_exists(path):
        print_warning("No backup manifest found; the backup may be incomplete.")

    report = ChecksumStore(path, config.checksum_algorithm).verify()

    if not report.has_data:
        print_warning(f"No checksum data in {path}; nothing to verify.")
        raise typer.Exit(code=ExitCode.NO_DATA)

    if report.verified:
        print_success(f"All {report.files_checked} checksummed file(s) verified.")
        return

    console.print(create_verification_table(report))
    missing = len(report.errors_of(ChecksumErrorKind.MISSING))
    corrupted = len(report.errors_of(ChecksumErrorKind.CORRUPTED))
    print_error(
        f"{len(report.errors)} of {report.files_checked} file(s) failed verification "
        f"({missing} missing, {corrupted} corrupted)."
    )
    raise typer.Exit(code=ExitCode.FAILED)
