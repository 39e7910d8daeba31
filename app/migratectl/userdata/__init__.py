"""User-data discovery, exclusion and copy.

This module finds the user profiles to migrate, decides which entries
are excluded, and copies profile trees into or out of a backup.
"""

from migratectl.userdata.copier import (
    RobocopyCopier,
    TreeCopier,
    UserDataCopier,
    get_copier,
    parse_robocopy_summary,
)
from migratectl.userdata.discovery import SYSTEM_PROFILES, discover_profiles
from migratectl.userdata.exclusions import (
    EXCLUDED_DIR_PATTERNS,
    EXCLUDED_FILE_PATTERNS,
    ExclusionPolicy,
)

__all__ = [
    "EXCLUDED_DIR_PATTERNS",
    "EXCLUDED_FILE_PATTERNS",
    "SYSTEM_PROFILES",
    "ExclusionPolicy",
    "RobocopyCopier",
    "TreeCopier",
    "UserDataCopier",
    "discover_profiles",
    "get_copier",
    "parse_robocopy_summary",
]
