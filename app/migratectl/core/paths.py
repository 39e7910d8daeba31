"""Path management for migratectl.

This module provides two groups of paths:

- Application directories (configuration and theme), following
  %APPDATA% on Windows and the XDG Base Directory Specification elsewhere.
- The fixed layout of files inside a backup target directory.

Target layout:
    <target>/PackageManagers/<tool>-packages.<ext>
    <target>/UserData/Users/<username>/...
    <target>/backup-manifest.json
    <target>/backup-progress.json
    <target>/checksums.json
    <target>/inventory.json
    <target>/migration.log
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "migratectl"

PACKAGE_MANAGERS_DIR = "PackageManagers"
USER_DATA_DIR = "UserData"
USERS_SUBDIR = "Users"
MANIFEST_FILENAME = "backup-manifest.json"
PROGRESS_FILENAME = "backup-progress.json"
CHECKSUMS_FILENAME = "checksums.json"
INVENTORY_FILENAME = "inventory.json"
LOG_FILENAME = "migration.log"
LOCK_FILENAME = ".migratectl.lock"


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        %APPDATA%/migratectl when APPDATA is set, otherwise
        $XDG_CONFIG_HOME/migratectl or ~/.config/migratectl.
    """
    appdata = os.environ.get("APPDATA")
    if appdata:
        return Path(appdata) / APP_NAME
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_NAME
    return Path.home() / ".config" / APP_NAME


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to <config dir>/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_user_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to <config dir>/theme.toml.
    """
    return get_config_dir() / "theme.toml"


def ensure_dir(path: Path, name: str) -> Path:
    """Create directory if it doesn't exist.

    Args:
        path: Directory path to create.
        name: Human-readable name for error messages.

    Returns:
        The created/existing directory path.

    Raises:
        RuntimeError: If directory cannot be created.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except PermissionError as e:
        msg = f"Cannot create {name} directory {path}: Permission denied"
        raise RuntimeError(msg) from e
    except OSError as e:
        msg = f"Cannot create {name} directory {path}: {e}"
        raise RuntimeError(msg) from e
    return path


# =============================================================================
# Target layout
# =============================================================================


def get_package_managers_dir(target: Path) -> Path:
    """Directory holding the package-manager export files."""
    return target / PACKAGE_MANAGERS_DIR


def get_user_data_dir(target: Path) -> Path:
    """Directory holding one subtree per backed-up user profile."""
    return target / USER_DATA_DIR / USERS_SUBDIR


def get_manifest_path(target: Path) -> Path:
    """Path of the backup manifest inside a target."""
    return target / MANIFEST_FILENAME


def get_progress_path(target: Path) -> Path:
    """Path of the progress ledger inside a target."""
    return target / PROGRESS_FILENAME


def get_checksums_path(target: Path) -> Path:
    """Path of the checksum records inside a target."""
    return target / CHECKSUMS_FILENAME


def get_inventory_path(target: Path) -> Path:
    """Path of the installed-software inventory inside a target."""
    return target / INVENTORY_FILENAME


def get_log_path(target: Path) -> Path:
    """Path of the append-only migration log inside a target."""
    return target / LOG_FILENAME


def get_lock_path(target: Path) -> Path:
    """Path of the exclusive run lock inside a target."""
    return target / LOCK_FILENAME


def relative_to_target(path: Path, target: Path) -> str:
    """Express a path inside a target as a forward-slash relative string.

    Args:
        path: File path inside the target directory.
        target: Target directory.

    Returns:
        Relative path using '/' separators on every platform.
    """
    return path.relative_to(target).as_posix()
