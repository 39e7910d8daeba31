"""Inventory report model for JSON export.

This module defines the data structure written to inventory.json: a
reference listing of installed programs, kept so that applications
without a package-manager mapping can be reinstalled by hand.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from migratectl.models.package import InstalledProgram


@dataclass(frozen=True, slots=True)
class InventoryMetadata:
    """Metadata for an inventory report.

    Attributes:
        timestamp: ISO format timestamp when the scan was performed.
        hostname: Name of the machine that was scanned.
        tool_version: Version of migratectl that performed the scan.
    """

    timestamp: str
    hostname: str
    tool_version: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "hostname": self.hostname,
            "tool_version": self.tool_version,
        }


@dataclass(frozen=True, slots=True)
class InventoryReport:
    """Complete inventory for export.

    Attributes:
        metadata: Report metadata including timestamp and hostname.
        programs: Installed programs, sorted by name.
        summary: Program counts per registry hive plus a total.
    """

    metadata: InventoryMetadata
    programs: list[InstalledProgram]
    summary: dict[str, int] = field(default_factory=lambda: {})

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "metadata": self.metadata.to_dict(),
            "programs": [p.to_dict() for p in self.programs],
            "summary": self.summary,
        }

    @classmethod
    def create(cls, programs: list[InstalledProgram]) -> InventoryReport:
        """Create a report with auto-generated metadata.

        Args:
            programs: Programs found by the inventory scan.

        Returns:
            InventoryReport with populated metadata and summary.
        """
        import socket

        from migratectl import __version__

        summary: dict[str, int] = {}
        for program in programs:
            hive = program.hive or "unknown"
            summary[hive] = summary.get(hive, 0) + 1
        summary["total"] = len(programs)

        metadata = InventoryMetadata(
            timestamp=datetime.now(UTC).isoformat(),
            hostname=socket.gethostname(),
            tool_version=__version__,
        )

        ordered = sorted(programs, key=lambda p: p.name.casefold())
        return cls(metadata=metadata, programs=ordered, summary=summary)
