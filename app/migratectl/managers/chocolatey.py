"""Chocolatey package manager adapter.

Exports a packages.config with `choco export` and replays it with
`choco install <packages.config>`.
"""

from pathlib import Path

from migratectl.managers.base import PackageManager
from migratectl.models.package import PackageSource
from migratectl.utils.shell import CommandResult

# choco reports "success, reboot required" with these exit codes
_SUCCESS_EXIT_CODES = frozenset({0, 1641, 3010})

_INSTALL_SCRIPT = (
    "Set-ExecutionPolicy Bypass -Scope Process -Force; "
    "[System.Net.ServicePointManager]::SecurityProtocol = "
    "[System.Net.ServicePointManager]::SecurityProtocol -bor 3072; "
    "iex ((New-Object System.Net.WebClient).DownloadString("
    "'https://community.chocolatey.org/install.ps1'))"
)


class ChocolateyManager(PackageManager):
    """Adapter for Chocolatey."""

    executable = "choco"
    export_filename = "chocolatey-packages.config"

    @property
    def source(self) -> PackageSource:
        """Return Chocolatey as the package source."""
        return PackageSource.CHOCOLATEY

    def _export_command(self, export_path: Path) -> list[str]:
        return ["choco", "export", f"--output-file-path={export_path}", "--no-progress"]

    def _import_command(self, export_path: Path) -> list[str]:
        return ["choco", "install", str(export_path), "--yes", "--no-progress"]

    def _install_script(self) -> str:
        return _INSTALL_SCRIPT

    def _import_succeeded(self, result: CommandResult) -> bool:
        return result.returncode in _SUCCESS_EXIT_CODES
