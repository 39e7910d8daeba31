"""User profile discovery.

Finds the user profiles whose data is backed up: every real directory
directly under the users root, except the built-in system profiles.
"""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

# Built-in profiles that never hold user data worth migrating
SYSTEM_PROFILES: frozenset[str] = frozenset(
    name.casefold()
    for name in (
        "All Users",
        "Default",
        "Default User",
        "Public",
        "WDAGUtilityAccount",
        "defaultuser0",
    )
)


def discover_profiles(users_root: Path) -> list[Path]:
    """List the user profile directories under a users root.

    Symlinks and junctions are skipped, as are system profiles and
    entries that cannot be inspected. A failing entry never stops the
    remaining entries from being listed.

    Args:
        users_root: Directory containing one folder per profile.

    Returns:
        Profile directories sorted by name.
    """
    try:
        entries = sorted(users_root.iterdir(), key=lambda p: p.name.casefold())
    except FileNotFoundError:
        logger.warning("Users directory does not exist: %s", users_root)
        return []
    except PermissionError:
        logger.warning("Permission denied listing users directory: %s", users_root)
        return []

    profiles: list[Path] = []
    for entry in entries:
        if entry.name.casefold() in SYSTEM_PROFILES:
            continue
        try:
            if _is_link(entry) or not entry.is_dir():
                continue
        except OSError as e:
            logger.warning("Cannot inspect %s: %s", entry, e)
            continue
        profiles.append(entry)

    logger.info("Found %d user profile(s) under %s", len(profiles), users_root)
    return profiles


def _is_link(path: Path) -> bool:
    """Check for symlinks and NTFS junctions."""
    if path.is_symlink():
        return True
    is_junction = getattr(path, "is_junction", None)
    return bool(is_junction and is_junction())
