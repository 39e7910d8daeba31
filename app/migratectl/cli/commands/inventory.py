"""Inventory command implementation.

Writes the installed-program inventory of this machine to a directory
without running a full backup.
"""

from collections import Counter
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from migratectl.core.validator import PathValidator
from migratectl.inventory.scanner import InventoryScanner, write_inventory
from migratectl.models.package import InstalledProgram
from migratectl.utils.formatting import console, print_error, print_success

app = typer.Typer(
    name="inventory",
    help="Record the programs installed on this machine.",
    invoke_without_command=True,
    context_settings={"allow_interspersed_args": True},
)


@app.callback(invoke_without_command=True)
def inventory(
    ctx: typer.Context,
    target: Annotated[
        str,
        typer.Argument(help="Directory to write inventory.json into."),
    ],
) -> None:
    """Scan the uninstall registry and write TARGET/inventory.json.

    Examples:
        migratectl inventory D:\\Backup
    """
    if ctx.invoked_subcommand is not None:
        return

    result = PathValidator().validate(target)
    if not result.valid or result.path is None:
        print_error(result.reason)
        raise typer.Exit(code=1)

    scanner = InventoryScanner()
    if not scanner.is_available():
        print_error("The program inventory needs the Windows registry.")
        raise typer.Exit(code=1)

    try:
        programs = scanner.scan()
        path = write_inventory(Path(str(result.path)), programs)
    except (OSError, RuntimeError) as e:
        print_error(f"Failed to write inventory: {e}")
        raise typer.Exit(code=1) from e

    console.print(_create_summary_table(programs))
    print_success(f"Recorded {len(programs)} program(s) in {path}")


def _create_summary_table(programs: list[InstalledProgram]) -> Table:
    """Create a table counting programs per registry location."""
    table = Table(
        title="Installed Programs",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Registry", no_wrap=True)
    table.add_column("Programs", justify="right")

    counts = Counter(p.hive or "unknown" for p in programs)
    for hive, count in sorted(counts.items()):
        table.add_row(hive, str(count))
    return table
