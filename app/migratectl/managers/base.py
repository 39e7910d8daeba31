"""Abstract base class for package managers.

This module defines the PackageManager interface that the winget,
Chocolatey and Scoop adapters implement. An adapter exports the list of
installed packages into a backup and replays that list on a new machine.
Adapters never raise past their boundary: failures are logged and
reported through return values.
"""

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from migratectl.core.paths import get_package_managers_dir
from migratectl.models.outcome import StepOutcome
from migratectl.models.package import PackageSource
from migratectl.utils.shell import CommandResult, command_exists, powershell_command, run_command

logger = logging.getLogger(__name__)


class PackageManager(ABC):
    """Abstract base class for all package-manager adapters.

    Attributes:
        timeout: Timeout in seconds for export, import and install commands.

    Example:
        >>> manager = WingetManager()
        >>> if manager.is_available():
        ...     path = manager.export(Path("D:/Backup"))
    """

    #: Executable looked up on PATH
    executable: str = ""

    #: File name of the export inside PackageManagers/
    export_filename: str = ""

    def __init__(self, timeout: float = 3600.0) -> None:
        self._timeout = timeout

    @property
    def timeout(self) -> float:
        """Timeout in seconds for package-manager commands."""
        return self._timeout

    @property
    @abstractmethod
    def source(self) -> PackageSource:
        """Return the package source this adapter handles."""

    @abstractmethod
    def _export_command(self, export_path: Path) -> list[str]:
        """Build the command that writes the export file."""

    @abstractmethod
    def _import_command(self, export_path: Path) -> list[str]:
        """Build the command that installs everything listed in an export file."""

    @abstractmethod
    def _install_script(self) -> str:
        """PowerShell source that installs this package manager."""

    def is_available(self) -> bool:
        """Check if the package manager is on PATH."""
        return command_exists(self.executable)

    def export_path(self, target: Path) -> Path:
        """Location of this manager's export file inside a target."""
        return get_package_managers_dir(target) / self.export_filename

    def export(self, target: Path) -> Path | None:
        """Export the installed package list into a backup target.

        Args:
            target: Backup directory.

        Returns:
            Path of the written export file, or None if the export failed
            or the package manager is not installed.
        """
        if not self.is_available():
            logger.info("%s is not installed, nothing to export", self.source.display_name)
            return None

        export_path = self.export_path(target)
        try:
            export_path.parent.mkdir(parents=True, exist_ok=True)
            export_path.unlink(missing_ok=True)
            result = self._run(self._export_command(export_path))
            self._write_export_output(result, export_path)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("%s export failed: %s", self.source.display_name, e)
            return None

        if not export_path.is_file() or export_path.stat().st_size == 0:
            logger.warning(
                "%s export produced no file (exit code %d): %s",
                self.source.display_name,
                result.returncode,
                _last_line(result),
            )
            return None

        if not result.success:
            # winget and choco exit non-zero when some packages have no source
            logger.warning(
                "%s export finished with exit code %d: %s",
                self.source.display_name,
                result.returncode,
                _last_line(result),
            )
        logger.info("%s packages exported to %s", self.source.display_name, export_path)
        return export_path

    def import_packages(self, export_path: Path) -> StepOutcome:
        """Install every package listed in an export file.

        Individual package failures are expected and reported as a
        warning outcome, never raised.

        Args:
            export_path: Export file produced by export().

        Returns:
            StepOutcome describing the import.
        """
        name = self.source.display_name
        if not export_path.is_file():
            return StepOutcome.success(f"No {name} export in backup, skipped")
        if not self.is_available():
            return StepOutcome.failure(f"{name} is not installed")

        logger.info("Importing %s packages from %s", name, export_path)
        try:
            result = self._run(self._import_command(export_path))
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("%s import failed: %s", name, e)
            return StepOutcome.failure(f"{name} import failed: {e}")

        if self._import_succeeded(result):
            return StepOutcome.success(f"{name} packages imported")

        message = (
            f"{name} import finished with exit code {result.returncode}: {_last_line(result)}"
        )
        logger.warning(message)
        return StepOutcome.warning(message)

    def install_tool(self) -> bool:
        """Install the package manager itself.

        The new executable is usually not visible on PATH to the running
        process, so callers must restart before using it.

        Returns:
            True if the installer reported success.
        """
        logger.info("Installing %s", self.source.display_name)
        try:
            result = run_command(powershell_command(self._install_script()), timeout=self._timeout)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("%s installation failed: %s", self.source.display_name, e)
            return False

        if not result.success:
            logger.warning(
                "%s installation failed (exit code %d): %s",
                self.source.display_name,
                result.returncode,
                _last_line(result),
            )
        return result.success

    def _run(self, args: list[str]) -> CommandResult:
        """Run a command, resolving the executable's full path first.

        Windows shims such as scoop.cmd are not found by CreateProcess
        without the extension, so the PATH lookup is done here.
        """
        resolved = shutil.which(args[0]) or args[0]
        return run_command([resolved, *args[1:]], timeout=self._timeout)

    def _write_export_output(self, result: CommandResult, export_path: Path) -> None:
        """Hook for managers that print their export to stdout."""

    def _import_succeeded(self, result: CommandResult) -> bool:
        return result.success


def _last_line(result: CommandResult) -> str:
    """Last non-empty line of a command's output, for log messages."""
    for stream in (result.stderr, result.stdout):
        lines = [line.strip() for line in stream.splitlines() if line.strip()]
        if lines:
            return lines[-1]
    return "no output"
