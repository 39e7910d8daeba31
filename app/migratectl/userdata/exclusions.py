"""Exclusion rules for user-data copies.

Entries are excluded by name, never by content. Directory patterns cover
cloud-sync folders (already stored remotely), the legacy junctions
Windows keeps in every profile, caches, and application state. File
patterns cover temporary, log and thumbnail files plus locked registry
hives.
"""

from __future__ import annotations

import fnmatch
from dataclasses import dataclass

# Directory-name patterns (matched case-insensitively)
EXCLUDED_DIR_PATTERNS: tuple[str, ...] = (
    # Cloud sync
    "OneDrive",
    "OneDrive - *",
    "Dropbox",
    "Google Drive",
    "iCloudDrive",
    "iCloud Drive",
    "Box",
    # Legacy profile junctions
    "Application Data",
    "Cookies",
    "Local Settings",
    "My Documents",
    "NetHood",
    "PrintHood",
    "Recent",
    "SendTo",
    "Start Menu",
    "Templates",
    "My Music",
    "My Pictures",
    "My Videos",
    # Application state (application migration is out of scope)
    "AppData",
    # Caches
    ".cache",
    "__pycache__",
    "node_modules",
    "Temp",
    "$Recycle.Bin",
)

# File-name patterns (matched case-insensitively)
EXCLUDED_FILE_PATTERNS: tuple[str, ...] = (
    "*.tmp",
    "*.temp",
    "~$*",
    "*.log",
    "*.etl",
    "Thumbs.db",
    "ehthumbs.db",
    "desktop.ini",
    ".DS_Store",
    "NTUSER.DAT*",
    "ntuser.ini",
    "ntuser.pol",
    "UsrClass.dat*",
)


@dataclass(frozen=True, slots=True)
class ExclusionPolicy:
    """Name-based exclusion rules consulted once per discovered entry.

    Attributes:
        dir_patterns: Glob patterns for directory names to skip.
        file_patterns: Glob patterns for file names to skip.
    """

    dir_patterns: tuple[str, ...] = EXCLUDED_DIR_PATTERNS
    file_patterns: tuple[str, ...] = EXCLUDED_FILE_PATTERNS

    @classmethod
    def with_extras(
        cls,
        extra_dirs: tuple[str, ...] = (),
        extra_files: tuple[str, ...] = (),
    ) -> ExclusionPolicy:
        """Create the default policy extended with configured patterns.

        Args:
            extra_dirs: Additional directory-name patterns.
            extra_files: Additional file-name patterns.

        Returns:
            ExclusionPolicy containing built-in and extra patterns.
        """
        return cls(
            dir_patterns=EXCLUDED_DIR_PATTERNS + tuple(extra_dirs),
            file_patterns=EXCLUDED_FILE_PATTERNS + tuple(extra_files),
        )

    def excludes_dir(self, name: str) -> bool:
        """Check if a directory with this name must be skipped."""
        return _matches(name, self.dir_patterns)

    def excludes_file(self, name: str) -> bool:
        """Check if a file with this name must be skipped."""
        return _matches(name, self.file_patterns)


def _matches(name: str, patterns: tuple[str, ...]) -> bool:
    folded = name.casefold()
    return any(fnmatch.fnmatchcase(folded, pattern.casefold()) for pattern in patterns)
