"""Backup target path validation.

Rejects unsafe or nonsensical backup locations before any directory is
created or any ledger is touched. Validation is a pure function over the
path string; the environment (system directories, home directory) is read
once when the validator is constructed.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path, PurePath, PurePosixPath, PureWindowsPath

# Characters Windows does not allow in path components (besides separators)
_WINDOWS_ILLEGAL_CHARS = frozenset('<>"|?*')

# POSIX system directories used when not running on Windows
_POSIX_SYSTEM_DIRS: tuple[str, ...] = (
    "/bin",
    "/boot",
    "/dev",
    "/etc",
    "/lib",
    "/lib64",
    "/proc",
    "/sbin",
    "/sys",
    "/usr",
    "/var/lib",
)


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of validating a target path.

    Attributes:
        valid: Whether the path may be used as a target.
        reason: Why the path was rejected (empty when valid).
        path: Normalized path, set only when valid.
    """

    valid: bool
    reason: str = ""
    path: PurePath | None = None

    @classmethod
    def ok(cls, path: PurePath) -> ValidationResult:
        """Create a passing result."""
        return cls(valid=True, path=path)

    @classmethod
    def reject(cls, reason: str) -> ValidationResult:
        """Create a failing result."""
        return cls(valid=False, reason=reason)


def windows_system_dirs(env: dict[str, str] | None = None) -> tuple[str, ...]:
    """Build the Windows system-directory denylist from the environment.

    Args:
        env: Environment mapping. If None, uses os.environ.

    Returns:
        Tuple of absolute Windows paths that must not hold a backup.
    """
    env = dict(os.environ) if env is None else env
    drive = env.get("SystemDrive", "C:")
    users = env.get("PUBLIC", f"{drive}\\Users\\Public").rsplit("\\", 1)[0]
    return (
        env.get("SystemRoot", f"{drive}\\Windows"),
        env.get("ProgramFiles", f"{drive}\\Program Files"),
        env.get("ProgramFiles(x86)", f"{drive}\\Program Files (x86)"),
        env.get("ProgramW6432", f"{drive}\\Program Files"),
        env.get("ProgramData", f"{drive}\\ProgramData"),
        f"{users}\\Default",
        f"{users}\\Default User",
        env.get("PUBLIC", f"{users}\\Public"),
    )


def _system_root(windows: bool) -> str:
    """Root of the drive or filesystem the OS is installed on."""
    if windows:
        return os.environ.get("SystemDrive", "C:") + "\\"
    return "/"


class PathValidator:
    """Validates backup and restore target paths.

    Rules are applied in order and short-circuit on the first failure:

    1. The path must be non-empty.
    2. The path must be absolute.
    3. The path must be syntactically valid after normalization.
    4. The path must not be the system root, nor be or be under a
       system directory.
    5. The path must not be the user's home directory itself.

    Args:
        system_dirs: Denylisted directories. Defaults depend on the platform.
        home: Home directory of the current user. Defaults to Path.home().
        windows: Apply Windows path semantics. Defaults to the running OS.
    """

    def __init__(
        self,
        *,
        system_dirs: tuple[str, ...] | None = None,
        home: str | None = None,
        windows: bool | None = None,
    ) -> None:
        self._windows = os.name == "nt" if windows is None else windows
        if system_dirs is None:
            system_dirs = windows_system_dirs() if self._windows else _POSIX_SYSTEM_DIRS
        self._system_dirs = tuple(self._normalize(d) for d in system_dirs if d)
        self._root = self._normalize(_system_root(self._windows))
        self._home = self._normalize(home if home is not None else str(Path.home()))

    def validate(self, path: str) -> ValidationResult:
        """Validate a target path.

        Args:
            path: Path string as entered by the operator.

        Returns:
            ValidationResult with the normalized path when valid.
        """
        raw = path.strip() if path else ""
        if not raw:
            return ValidationResult.reject("Path is empty")

        pure = self._pure(raw)
        if not pure.is_absolute():
            return ValidationResult.reject(f"Path must be absolute: {raw}")

        problem = self._syntax_problem(raw)
        if problem:
            return ValidationResult.reject(problem)

        normalized = self._normalize(raw)

        if self._key(normalized) == self._key(self._root):
            return ValidationResult.reject(f"Path cannot be the system root: {self._root}")

        for system_dir in self._system_dirs:
            if self._is_same_or_under(normalized, system_dir):
                return ValidationResult.reject(
                    f"Path is inside a protected system directory: {system_dir}"
                )

        if self._key(normalized) == self._key(self._home):
            return ValidationResult.reject(
                "Path cannot be the home directory itself; use a subdirectory"
            )

        return ValidationResult.ok(normalized)

    def _pure(self, raw: str) -> PurePath:
        return PureWindowsPath(raw) if self._windows else PurePosixPath(raw)

    def _normalize(self, raw: str) -> PurePath:
        """Collapse '.' and '..' components without touching the filesystem."""
        pure = self._pure(raw)
        parts: list[str] = []
        for part in pure.parts[1:]:
            if part == "..":
                if parts:
                    parts.pop()
            elif part != ".":
                parts.append(part)
        return self._pure(pure.anchor).joinpath(*parts)

    def _syntax_problem(self, raw: str) -> str:
        """Return a description of a malformed path, or an empty string."""
        if "\x00" in raw:
            return "Path contains a NUL character"
        if not self._windows:
            return ""

        pure = PureWindowsPath(raw)
        if not pure.drive:
            return f"Path has no drive or share: {raw}"
        for part in pure.parts[1:]:
            if any(c in _WINDOWS_ILLEGAL_CHARS or ord(c) < 32 for c in part):
                return f"Path contains invalid characters: {part}"
            if ":" in part:
                return f"Path contains a misplaced ':' in {part}"
            if part.endswith((" ", ".")) and part not in (".", ".."):
                return f"Path component cannot end with a space or dot: {part!r}"
        return ""

    def _key(self, path: PurePath) -> tuple[str, ...]:
        if self._windows:
            return tuple(p.casefold().rstrip("\\") for p in path.parts)
        return path.parts

    def _is_same_or_under(self, path: PurePath, directory: PurePath) -> bool:
        path_key = self._key(path)
        dir_key = self._key(directory)
        return path_key[: len(dir_key)] == dir_key


def validate_target(path: str, validator: PathValidator | None = None) -> ValidationResult:
    """Validate a target path with the platform's default rules.

    Args:
        path: Path string to validate.
        validator: Optional preconfigured validator.

    Returns:
        ValidationResult for the path.
    """
    return (validator or PathValidator()).validate(path)
