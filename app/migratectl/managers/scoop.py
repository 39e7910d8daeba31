"""Scoop package manager adapter.

`scoop export` prints its JSON to stdout, so the adapter writes the
captured output to the export file itself. `scoop import` replays it,
including buckets.
"""

import json
import logging
from pathlib import Path

from migratectl.managers.base import PackageManager
from migratectl.models.package import PackageSource
from migratectl.utils.shell import CommandResult

logger = logging.getLogger(__name__)

_INSTALL_SCRIPT = "iex \"& {$(irm get.scoop.sh)} -RunAsAdmin\""


class ScoopManager(PackageManager):
    """Adapter for Scoop."""

    executable = "scoop"
    export_filename = "scoop-packages.json"

    @property
    def source(self) -> PackageSource:
        """Return Scoop as the package source."""
        return PackageSource.SCOOP

    def _export_command(self, export_path: Path) -> list[str]:
        return ["scoop", "export"]

    def _import_command(self, export_path: Path) -> list[str]:
        return ["scoop", "import", str(export_path)]

    def _install_script(self) -> str:
        return _INSTALL_SCRIPT

    def _write_export_output(self, result: CommandResult, export_path: Path) -> None:
        """Write the JSON printed by `scoop export` to the export file.

        Output that is not JSON (an old Scoop printing a plain app list, or
        an error message) is not written, so the export counts as failed.
        """
        if not result.success:
            return
        text = result.stdout.strip()
        try:
            json.loads(text)
        except json.JSONDecodeError:
            logger.warning("scoop export did not print JSON; upgrade Scoop to export")
            return
        export_path.write_text(text + "\n", encoding="utf-8")
