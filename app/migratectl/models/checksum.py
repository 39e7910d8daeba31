"""Integrity verification models."""

from dataclasses import dataclass, field
from enum import Enum


class ChecksumErrorKind(str, Enum):
    """Kind of integrity problem found for a recorded file."""

    MISSING = "missing"
    CORRUPTED = "corrupted"


@dataclass(frozen=True, slots=True)
class ChecksumError:
    """Integrity problem for a single recorded file.

    Attributes:
        path: File path relative to the target directory.
        kind: Whether the file is missing or its content changed.
    """

    path: str
    kind: ChecksumErrorKind

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.path}"


@dataclass(frozen=True, slots=True)
class VerificationReport:
    """Result of verifying a target against its saved checksums.

    An empty saved record set is reported with has_data=False. Callers
    must treat that as "nothing to verify", not as a failed verification.

    Attributes:
        verified: True only if records exist and none has an error.
        files_checked: Number of recorded files that were checked.
        errors: Problems found, in record order.
        has_data: Whether any checksum records were available.
    """

    verified: bool
    files_checked: int
    errors: tuple[ChecksumError, ...] = field(default_factory=tuple)
    has_data: bool = True

    @property
    def failed(self) -> bool:
        """Check if verification found integrity errors."""
        return bool(self.errors)

    def errors_of(self, kind: ChecksumErrorKind) -> list[ChecksumError]:
        """Return the errors of a single kind."""
        return [e for e in self.errors if e.kind == kind]
