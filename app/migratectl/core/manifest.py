"""Backup manifest file I/O operations.

This module provides functions for reading and writing the
backup-manifest.json file with validation through the Pydantic model.
"""

import logging
import os
import platform
import socket
from datetime import UTC, datetime
from pathlib import Path

from pydantic import ValidationError

from migratectl.core.errors import MigrationError
from migratectl.core.ledger import current_username
from migratectl.core.paths import get_manifest_path
from migratectl.models.manifest import BackupManifest
from migratectl.models.package import PackageSource
from migratectl.models.progress import ProgressState
from migratectl.models.step import BackupStep

logger = logging.getLogger(__name__)

_BACKUP_NAMES = frozenset(step.value for step in BackupStep)


class ManifestError(MigrationError):
    """Base exception for manifest-related errors."""


class ManifestNotFoundError(ManifestError):
    """Raised when a target holds no manifest."""


class ManifestParseError(ManifestError):
    """Raised when the manifest file is not valid JSON or fails validation."""


def os_descriptor() -> str:
    """Describe the running operating system, e.g. 'Windows-11-10.0.22631-SP0'."""
    return platform.platform()


def build_manifest(
    state: ProgressState,
    package_files: dict[PackageSource, str] | None = None,
) -> BackupManifest:
    """Create the manifest for a backup that has just completed.

    Args:
        state: Final ledger state of the backup.
        package_files: Export file per package manager, relative to the target.

    Returns:
        BackupManifest describing the completed backup.
    """
    from migratectl import __version__

    completed = [BackupStep(name) for name in state.completed_steps if name in _BACKUP_NAMES]
    return BackupManifest(
        completed_at=datetime.now(UTC),
        hostname=state.hostname or socket.gethostname(),
        username=state.username or current_username(),
        os=os_descriptor(),
        tool_version=__version__,
        completed_steps=completed,
        step_warnings=dict(state.step_warnings),
        package_files=package_files or {},
    )


def load_manifest(target: Path) -> BackupManifest:
    """Load and validate the manifest of a target directory.

    Args:
        target: Backup directory.

    Returns:
        Validated BackupManifest.

    Raises:
        ManifestNotFoundError: If the target has no manifest file.
        ManifestParseError: If the file is not valid JSON or fails validation.
        ManifestError: If the file cannot be read.
    """
    manifest_path = get_manifest_path(target)

    if not manifest_path.is_file():
        raise ManifestNotFoundError(f"No backup manifest in {target}")

    try:
        text = manifest_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ManifestError(f"Failed to read manifest: {e}") from e

    try:
        return BackupManifest.model_validate_json(text)
    except ValidationError as e:
        raise ManifestParseError(f"Invalid manifest content: {e}") from e


def save_manifest(manifest: BackupManifest, target: Path) -> Path:
    """Write the manifest of a target directory.

    The file is written atomically by first writing to a temporary file
    in the same directory and then using os.replace() for atomic rename.

    Args:
        manifest: The manifest to save.
        target: Backup directory.

    Returns:
        Path where the manifest was saved.

    Raises:
        ManifestError: If the file cannot be written.
    """
    manifest_path = get_manifest_path(target)
    tmp_path = manifest_path.with_suffix(".json.tmp")
    try:
        target.mkdir(parents=True, exist_ok=True)
        tmp_path.write_text(manifest.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, manifest_path)
    except OSError as e:
        if tmp_path.exists():
            tmp_path.unlink()
        raise ManifestError(f"Failed to write manifest: {e}") from e

    logger.info("Wrote backup manifest %s", manifest_path)
    return manifest_path


def manifest_exists(target: Path) -> bool:
    """Check if a target holds a manifest file.

    Args:
        target: Directory to check.

    Returns:
        True if the manifest file exists, False otherwise.
    """
    return get_manifest_path(target).is_file()


def remove_manifest(target: Path) -> bool:
    """Delete the manifest of a target before its contents are rewritten.

    Args:
        target: Backup directory.

    Returns:
        True if a manifest was removed, False if there was none.

    Raises:
        ManifestError: If an existing manifest cannot be deleted.
    """
    manifest_path = get_manifest_path(target)
    if not manifest_path.exists():
        return False
    try:
        manifest_path.unlink()
    except OSError as e:
        raise ManifestError(f"Failed to remove previous manifest: {e}") from e

    logger.info("Removed previous backup manifest %s", manifest_path)
    return True
