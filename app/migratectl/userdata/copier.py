"""User-data copy adapters.

A copier mirrors one profile directory tree into a destination, applying
an ExclusionPolicy. Failures of individual entries are collected in the
returned CopyStats and never stop the copy of sibling entries.
"""

import logging
import os
import re
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from migratectl.core.config import Configuration
from migratectl.models.outcome import CopyStats
from migratectl.userdata.exclusions import ExclusionPolicy
from migratectl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# robocopy exit codes from 8 upwards mean at least one copy failed
_ROBOCOPY_FAILURE_THRESHOLD = 8

# Summary rows of robocopy's job footer, e.g. "   Files :  120  118  2  0  0  0"
_SUMMARY_ROW = re.compile(r"^\s*(Files|Bytes)\s*:\s*(.+)$", re.MULTILINE)


class UserDataCopier(ABC):
    """Abstract base class for user-data copy strategies."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short name of the strategy, used in log messages."""

    @abstractmethod
    def copy(self, source_root: Path, dest_root: Path, exclusions: ExclusionPolicy) -> CopyStats:
        """Copy a directory tree, skipping excluded entries.

        Args:
            source_root: Directory to copy from.
            dest_root: Directory to copy into; created if missing.
            exclusions: Name-based exclusion rules.

        Returns:
            CopyStats with totals and the entries that failed.
        """


class TreeCopier(UserDataCopier):
    """Portable copier walking the tree with shutil.

    Symlinks and junctions are not followed. Existing destination files
    are overwritten, so a re-run repeats the copy in full.
    """

    @property
    def name(self) -> str:
        return "shutil"

    def copy(self, source_root: Path, dest_root: Path, exclusions: ExclusionPolicy) -> CopyStats:
        files_copied = 0
        bytes_copied = 0
        failures: list[str] = []

        try:
            dest_root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Cannot create %s: %s", dest_root, e)
            return CopyStats(failures=(str(dest_root),))

        # A destination inside the source tree must not be copied into itself
        dest_resolved = dest_root.resolve()

        pending: list[tuple[Path, Path]] = [(source_root, dest_root)]
        while pending:
            src_dir, dst_dir = pending.pop()
            try:
                with os.scandir(src_dir) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                logger.warning("Cannot list %s: %s", src_dir, e)
                failures.append(str(src_dir))
                continue

            for entry in entries:
                src = Path(entry.path)
                dst = dst_dir / entry.name
                try:
                    if entry.is_symlink() or _is_junction(entry):
                        logger.debug("Skipping link %s", src)
                        continue
                    if entry.is_dir(follow_symlinks=False):
                        if exclusions.excludes_dir(entry.name):
                            logger.debug("Excluded directory %s", src)
                            continue
                        if dest_resolved.is_relative_to(src.resolve()):
                            logger.debug("Skipping %s, it contains the destination", src)
                            continue
                        dst.mkdir(exist_ok=True)
                        pending.append((src, dst))
                    elif entry.is_file(follow_symlinks=False):
                        if exclusions.excludes_file(entry.name):
                            logger.debug("Excluded file %s", src)
                            continue
                        shutil.copy2(src, dst)
                        files_copied += 1
                        bytes_copied += entry.stat(follow_symlinks=False).st_size
                except OSError as e:
                    logger.warning("Failed to copy %s: %s", src, e)
                    failures.append(str(src))

        return CopyStats(
            files_copied=files_copied,
            bytes_copied=bytes_copied,
            failures=tuple(failures),
        )


class RobocopyCopier(UserDataCopier):
    """Copier delegating to robocopy with multithreaded copying.

    Attributes:
        threads: Value passed to robocopy's /MT switch.
    """

    def __init__(self, threads: int = 16, timeout: float | None = None) -> None:
        self._threads = threads
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "robocopy"

    @property
    def threads(self) -> int:
        return self._threads

    def build_command(
        self, source_root: Path, dest_root: Path, exclusions: ExclusionPolicy
    ) -> list[str]:
        """Build the robocopy command line for one tree."""
        args = [
            "robocopy",
            str(source_root),
            str(dest_root),
            "/E",
            f"/MT:{self._threads}",
            "/R:1",
            "/W:1",
            "/XJ",
            "/NP",
            "/NFL",
            "/NDL",
            "/NJH",
            "/BYTES",
        ]
        excluded_dirs = list(exclusions.dir_patterns)
        nested = _source_dir_holding(source_root, dest_root)
        if nested is not None:
            # robocopy accepts full paths after /XD
            excluded_dirs.append(str(nested))
        if excluded_dirs:
            args.extend(["/XD", *excluded_dirs])
        if exclusions.file_patterns:
            args.extend(["/XF", *exclusions.file_patterns])
        return args

    def copy(self, source_root: Path, dest_root: Path, exclusions: ExclusionPolicy) -> CopyStats:
        args = self.build_command(source_root, dest_root, exclusions)
        try:
            result = run_command(args, timeout=self._timeout)
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning("robocopy failed for %s: %s", source_root, e)
            return CopyStats(failures=(str(source_root),))

        files_copied, bytes_copied, failed = parse_robocopy_summary(result.stdout)
        failures: tuple[str, ...] = ()
        if result.returncode >= _ROBOCOPY_FAILURE_THRESHOLD:
            count = failed or "some"
            message = (
                f"{source_root}: robocopy exit code {result.returncode}, "
                f"{count} file(s) failed"
            )
            logger.warning(message)
            failures = (message,)

        return CopyStats(
            files_copied=files_copied,
            bytes_copied=bytes_copied,
            failures=failures,
        )


def parse_robocopy_summary(output: str) -> tuple[int, int, int]:
    """Extract copied files, copied bytes and failed files from robocopy output.

    Columns of the summary rows are Total, Copied, Skipped, Mismatch,
    FAILED and Extras. Byte counts are plain integers with /BYTES.

    Args:
        output: Standard output of a robocopy run.

    Returns:
        Tuple (files_copied, bytes_copied, files_failed); zeros when the
        summary is missing.
    """
    rows: dict[str, list[int]] = {}
    for label, values in _SUMMARY_ROW.findall(output):
        numbers = [int(v) for v in values.split() if v.isdigit()]
        if len(numbers) >= 5:
            rows[label] = numbers

    files = rows.get("Files", [0] * 6)
    size = rows.get("Bytes", [0] * 6)
    return files[1], size[1], files[4]


def get_copier(config: Configuration) -> UserDataCopier:
    """Pick the copy strategy for this machine.

    Args:
        config: Configuration providing the copy thread count.

    Returns:
        RobocopyCopier when robocopy is on PATH, TreeCopier otherwise.
    """
    if command_exists("robocopy"):
        return RobocopyCopier(threads=config.copy_threads)
    return TreeCopier()


def _source_dir_holding(source_root: Path, dest_root: Path) -> Path | None:
    """Top-level directory of source_root that contains dest_root, if any."""
    source = source_root.resolve()
    try:
        relative = dest_root.resolve().relative_to(source)
    except ValueError:
        return None
    if not relative.parts:
        return None
    return source / relative.parts[0]


def _is_junction(entry: os.DirEntry[str]) -> bool:
    is_junction = getattr(entry, "is_junction", None)
    return bool(is_junction and is_junction())
