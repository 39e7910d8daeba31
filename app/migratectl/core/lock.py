"""Exclusive run lock for a target directory.

Only one backup or restore may run against a target at a time. The lock
is a file created with O_CREAT | O_EXCL, holding the owner's PID and the
acquisition time. A lock left behind by a crashed process must be removed
by hand; the error message names the file.
"""

from __future__ import annotations

import logging
import os
import socket
from pathlib import Path
from types import TracebackType

from migratectl.core.errors import MigrationError
from migratectl.core.paths import get_lock_path
from migratectl.models.progress import utc_now

logger = logging.getLogger(__name__)


class LockError(MigrationError):
    """Raised when a target lock cannot be acquired."""


class TargetLock:
    """Context manager holding the run lock of one target directory.

    Example:
        >>> with TargetLock(Path("D:/Backup")):
        ...     run_steps()
    """

    def __init__(self, target: Path) -> None:
        self._target = target
        self._held = False

    @property
    def path(self) -> Path:
        """Path to the lock file."""
        return get_lock_path(self._target)

    @property
    def held(self) -> bool:
        """Check if this instance currently holds the lock."""
        return self._held

    def acquire(self) -> None:
        """Create the lock file.

        Raises:
            LockError: If another run holds the lock or the file cannot be created.
        """
        try:
            self._target.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError as e:
            owner = self._read_owner()
            msg = (
                f"Another migratectl run is using {self._target} ({owner}). "
                f"If no run is active, delete {self.path}"
            )
            raise LockError(msg) from e
        except OSError as e:
            raise LockError(f"Cannot create lock file {self.path}: {e}") from e

        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(f"{os.getpid()}\n{socket.gethostname()}\n{utc_now()}\n")
        self._held = True
        logger.debug("Acquired lock %s", self.path)

    def release(self) -> None:
        """Remove the lock file if this instance holds it."""
        if not self._held:
            return
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove lock file %s: %s", self.path, e)
        self._held = False
        logger.debug("Released lock %s", self.path)

    def _read_owner(self) -> str:
        try:
            lines = self.path.read_text(encoding="utf-8").splitlines()
        except OSError:
            return "owner unknown"
        if len(lines) >= 3:
            return f"pid {lines[0]} on {lines[1]} since {lines[2]}"
        return "owner unknown"

    def __enter__(self) -> TargetLock:
        self.acquire()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
