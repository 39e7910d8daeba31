"""Installed-program inventory from the Windows uninstall registry.

The inventory is a reference list for the operator, covering software
that no package manager knows about. It is read from the three
uninstall locations Windows maintains: machine-wide 64-bit, machine-wide
32-bit (WOW6432Node) and per-user.
"""

import json
import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

from migratectl.core.paths import get_inventory_path
from migratectl.models.inventory import InventoryReport
from migratectl.models.package import InstalledProgram

logger = logging.getLogger(__name__)

_UNINSTALL_KEY = r"SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall"
_WOW64_UNINSTALL_KEY = r"SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall"


@dataclass(frozen=True, slots=True)
class RegistryView:
    """One uninstall key to read.

    Attributes:
        label: Short name recorded on each program (e.g. 'HKLM').
        hive: winreg root key constant name (e.g. 'HKEY_LOCAL_MACHINE').
        subkey: Path of the uninstall key below the root.
    """

    label: str
    hive: str
    subkey: str


REGISTRY_VIEWS: tuple[RegistryView, ...] = (
    RegistryView("HKLM", "HKEY_LOCAL_MACHINE", _UNINSTALL_KEY),
    RegistryView("HKLM-WOW64", "HKEY_LOCAL_MACHINE", _WOW64_UNINSTALL_KEY),
    RegistryView("HKCU", "HKEY_CURRENT_USER", _UNINSTALL_KEY),
)

_VALUE_NAMES = ("DisplayName", "DisplayVersion", "Publisher", "InstallDate")


class InventoryScanner:
    """Scanner for programs registered in the uninstall registry.

    Example:
        >>> scanner = InventoryScanner()
        >>> if scanner.is_available():
        ...     programs = scanner.scan()
    """

    def __init__(self, views: tuple[RegistryView, ...] = REGISTRY_VIEWS) -> None:
        self._views = views

    def is_available(self) -> bool:
        """Check if the Windows registry can be read."""
        return sys.platform == "win32"

    def scan(self) -> list[InstalledProgram]:
        """Read all uninstall entries, deduplicated by name and version.

        Entries without a display name, system components and update
        entries (those with a parent key) are left out. When the same
        program is registered in several views, the first view wins.

        Returns:
            Installed programs in discovery order.

        Raises:
            RuntimeError: If the registry is not available.
        """
        if not self.is_available():
            msg = "The Windows registry is not available on this system"
            raise RuntimeError(msg)

        seen: set[tuple[str, str]] = set()
        programs: list[InstalledProgram] = []
        for view in self._views:
            for values in self._read_view(view):
                program = _to_program(values, view.label)
                if program is None or program.key in seen:
                    continue
                seen.add(program.key)
                programs.append(program)

        logger.info("Inventory found %d installed program(s)", len(programs))
        return programs

    def _read_view(self, view: RegistryView) -> Iterator[dict[str, object]]:
        """Yield the values of every subkey of one uninstall key.

        Keys that cannot be opened are logged and skipped.
        """
        import winreg

        root = getattr(winreg, view.hive)
        try:
            parent = winreg.OpenKey(root, view.subkey)
        except OSError as e:
            logger.debug("Cannot open %s\\%s: %s", view.hive, view.subkey, e)
            return

        with parent:
            subkey_count = winreg.QueryInfoKey(parent)[0]
            for index in range(subkey_count):
                try:
                    name = winreg.EnumKey(parent, index)
                    with winreg.OpenKey(parent, name) as key:
                        yield _read_values(key)
                except OSError as e:
                    logger.debug("Skipping uninstall entry %d in %s: %s", index, view.label, e)


def _read_values(key: object) -> dict[str, object]:
    import winreg

    values: dict[str, object] = {}
    for value_name in (*_VALUE_NAMES, "SystemComponent", "ParentKeyName"):
        try:
            values[value_name] = winreg.QueryValueEx(key, value_name)[0]
        except OSError:
            continue
    return values


def _to_program(values: dict[str, object], label: str) -> InstalledProgram | None:
    """Convert raw registry values to a program, or None for hidden entries."""
    name = str(values.get("DisplayName") or "").strip()
    if not name:
        return None
    if values.get("SystemComponent") == 1 or values.get("ParentKeyName"):
        return None

    def text(value_name: str) -> str | None:
        value = values.get(value_name)
        if value is None:
            return None
        return str(value).strip() or None

    return InstalledProgram(
        name=name,
        version=text("DisplayVersion"),
        publisher=text("Publisher"),
        install_date=text("InstallDate"),
        hive=label,
    )


def write_inventory(target: Path, programs: list[InstalledProgram]) -> Path:
    """Write inventory.json into a backup target.

    Args:
        target: Backup directory.
        programs: Programs found by the scan.

    Returns:
        Path of the written file.

    Raises:
        OSError: If the file cannot be written.
    """
    report = InventoryReport.create(programs)
    path = get_inventory_path(target)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(report.to_dict(), indent=2) + "\n", encoding="utf-8")
    logger.info("Inventory of %d program(s) written to %s", len(programs), path)
    return path
