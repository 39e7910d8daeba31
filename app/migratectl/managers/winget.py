"""winget package manager adapter.

Exports with `winget export` (JSON) and replays with `winget import`.
"""

from pathlib import Path

from migratectl.managers.base import PackageManager
from migratectl.models.package import PackageSource

# App Installer ships winget; registering its family name installs or repairs it
_INSTALL_SCRIPT = (
    "Add-AppxPackage -RegisterByFamilyName "
    "-MainPackage Microsoft.DesktopAppInstaller_8wekyb3d8bbwe"
)


class WingetManager(PackageManager):
    """Adapter for the Windows Package Manager (winget)."""

    executable = "winget"
    export_filename = "winget-packages.json"

    @property
    def source(self) -> PackageSource:
        """Return winget as the package source."""
        return PackageSource.WINGET

    def _export_command(self, export_path: Path) -> list[str]:
        return [
            "winget",
            "export",
            "--output",
            str(export_path),
            "--accept-source-agreements",
            "--disable-interactivity",
        ]

    def _import_command(self, export_path: Path) -> list[str]:
        # Versions are ignored so the newest release is installed
        return [
            "winget",
            "import",
            "--import-file",
            str(export_path),
            "--ignore-unavailable",
            "--ignore-versions",
            "--accept-package-agreements",
            "--accept-source-agreements",
            "--disable-interactivity",
        ]

    def _install_script(self) -> str:
        return _INSTALL_SCRIPT
