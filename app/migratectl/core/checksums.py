"""Checksum records for high-value backup files.

Only a small set of files is hashed: the package-manager export files and
the inventory. The bulk of user data is not checksummed; hashing the
whole tree costs far more than the copy itself.

Storage: <target>/checksums.json
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from migratectl.core.paths import get_checksums_path, relative_to_target
from migratectl.models.checksum import (
    ChecksumError,
    ChecksumErrorKind,
    VerificationReport,
)
from migratectl.models.progress import utc_now

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 1024 * 1024
_SUPPORTED_ALGORITHMS = ("sha256", "md5")


class ChecksumStore:
    """Computes, persists and verifies checksums within one target directory.

    Attributes:
        target: Target directory owning the checksum file.
        algorithm: Digest used for newly computed records.
    """

    def __init__(self, target: Path, algorithm: str = "sha256") -> None:
        """Initialize ChecksumStore.

        Args:
            target: Target directory the records belong to.
            algorithm: Digest name ('sha256' or 'md5').

        Raises:
            ValueError: If the algorithm is not supported.
        """
        if algorithm not in _SUPPORTED_ALGORITHMS:
            msg = f"Unsupported checksum algorithm: {algorithm}"
            raise ValueError(msg)
        self._target = target
        self._algorithm = algorithm

    @property
    def path(self) -> Path:
        """Path to the checksums.json file."""
        return get_checksums_path(self._target)

    @property
    def algorithm(self) -> str:
        """Digest used for newly computed records."""
        return self._algorithm

    def checksum(self, file_path: Path, algorithm: str | None = None) -> str | None:
        """Compute the hex digest of a file.

        Args:
            file_path: File to hash.
            algorithm: Digest override; defaults to the store's algorithm.

        Returns:
            Hex digest, or None if the file cannot be read.
        """
        digest = hashlib.new(algorithm or self._algorithm)
        try:
            with file_path.open("rb") as f:
                for chunk in iter(lambda: f.read(_CHUNK_SIZE), b""):
                    digest.update(chunk)
        except OSError as e:
            logger.debug("Cannot hash %s: %s", file_path, e)
            return None
        return digest.hexdigest()

    def collect(self, files: list[Path]) -> dict[str, str]:
        """Hash files inside the target and key them by relative path.

        Unreadable files are skipped with a warning.

        Args:
            files: Absolute paths of files inside the target directory.

        Returns:
            Mapping of forward-slash relative path to hex digest.
        """
        records: dict[str, str] = {}
        for file_path in files:
            value = self.checksum(file_path)
            if value is None:
                logger.warning("Skipping unreadable file for checksum: %s", file_path)
                continue
            records[relative_to_target(file_path, self._target)] = value
        return records

    def save(self, records: dict[str, str]) -> bool:
        """Write the full record mapping, replacing any previous content.

        Failures are logged, not raised.

        Args:
            records: Mapping of relative path to hex digest.

        Returns:
            True if the file was written, False otherwise.
        """
        data = {
            "algorithm": self._algorithm,
            "created_at": utc_now(),
            "files": dict(sorted(records.items())),
        }
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self._target.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.warning("Failed to save checksums to %s: %s", self.path, e)
            if tmp_path.exists():
                tmp_path.unlink()
            return False

        logger.info("Saved %d checksum record(s) to %s", len(records), self.path)
        return True

    def load(self) -> dict[str, str]:
        """Read the saved record mapping.

        Returns:
            Mapping of relative path to hex digest. Empty if the file is
            missing or corrupt.
        """
        return self._read()[1]

    def verify(self) -> VerificationReport:
        """Check every saved record against the file now on disk.

        Returns:
            VerificationReport. With no saved records, files_checked is 0
            and has_data is False.
        """
        algorithm, records = self._read()
        if not records:
            logger.info("No checksum data available in %s", self._target)
            return VerificationReport(verified=False, files_checked=0, has_data=False)

        errors: list[ChecksumError] = []
        for rel_path, expected in records.items():
            file_path = self._target.joinpath(*rel_path.split("/"))
            if not file_path.is_file():
                errors.append(ChecksumError(rel_path, ChecksumErrorKind.MISSING))
                logger.warning("Checksum verification: missing %s", rel_path)
                continue

            actual = self.checksum(file_path, algorithm)
            if actual is None or actual.lower() != expected.lower():
                errors.append(ChecksumError(rel_path, ChecksumErrorKind.CORRUPTED))
                logger.warning("Checksum verification: corrupted %s", rel_path)

        return VerificationReport(
            verified=not errors,
            files_checked=len(records),
            errors=tuple(errors),
        )

    def _read(self) -> tuple[str, dict[str, str]]:
        """Load (algorithm, records) from disk, tolerating any corruption."""
        if not self.path.exists():
            return self._algorithm, {}

        try:
            data: Any = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable checksum file %s: %s", self.path, e)
            return self._algorithm, {}

        if not isinstance(data, dict):
            logger.warning("Ignoring malformed checksum file %s", self.path)
            return self._algorithm, {}

        # Flat {path: hash} mappings come from older backups
        files = data.get("files", data)
        algorithm = data.get("algorithm", "md5" if "files" not in data else self._algorithm)
        if not isinstance(files, dict) or algorithm not in _SUPPORTED_ALGORITHMS:
            logger.warning("Ignoring malformed checksum file %s", self.path)
            return self._algorithm, {}

        records = {
            str(k): v for k, v in files.items() if isinstance(v, str) and isinstance(k, str)
        }
        return algorithm, records
