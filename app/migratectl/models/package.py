"""Package manager and installed-program models.

This module defines the package sources that can be exported and
re-imported, and the installed-program records gathered for the
reference inventory.
"""

from dataclasses import dataclass, field
from enum import Enum


class PackageSource(str, Enum):
    """Enumeration of supported package managers."""

    WINGET = "winget"
    CHOCOLATEY = "chocolatey"
    SCOOP = "scoop"

    @property
    def display_name(self) -> str:
        """Human-readable name of the package manager."""
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES: dict[PackageSource, str] = {
    PackageSource.WINGET: "winget",
    PackageSource.CHOCOLATEY: "Chocolatey",
    PackageSource.SCOOP: "Scoop",
}


@dataclass(frozen=True, slots=True)
class InstalledProgram:
    """A program listed in the Windows uninstall registry.

    Attributes:
        name: Display name of the program.
        version: Display version, if recorded.
        publisher: Publisher name, if recorded.
        install_date: Installation date as recorded (usually YYYYMMDD).
        hive: Registry location the entry was read from (e.g. 'HKLM').
    """

    name: str
    version: str | None = field(default=None)
    publisher: str | None = field(default=None)
    install_date: str | None = field(default=None)
    hive: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate program data after initialization."""
        if not self.name:
            msg = "Program name cannot be empty"
            raise ValueError(msg)

    @property
    def key(self) -> tuple[str, str]:
        """Identity used to deduplicate entries across registry views."""
        return (self.name.casefold(), (self.version or "").casefold())

    def to_dict(self) -> dict[str, str | None]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "version": self.version,
            "publisher": self.publisher,
            "install_date": self.install_date,
            "hive": self.hive,
        }
