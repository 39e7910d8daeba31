"""Persisted progress state of an in-flight operation.

A ProgressState is what the ledger writes to backup-progress.json after
every step transition.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from migratectl.models.step import OperationKind


def utc_now() -> str:
    """Return the current UTC time as an ISO 8601 string."""
    return datetime.now(UTC).isoformat()


@dataclass(slots=True)
class ProgressState:
    """Mutable record of an operation's progress.

    Attributes:
        operation: Kind of operation in progress.
        started_at: When the operation was first started (ISO 8601).
        updated_at: When the record was last written (ISO 8601).
        completed_steps: Names of completed steps, in completion order.
        current_step: Name of the step in flight, or None between steps.
        hostname: Machine the operation runs on.
        username: User running the operation.
        step_warnings: Warning text per step that completed with problems.
    """

    operation: OperationKind
    started_at: str
    updated_at: str
    completed_steps: list[str] = field(default_factory=list)
    current_step: str | None = None
    hostname: str = ""
    username: str = ""
    step_warnings: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate state data after initialization."""
        if not self.started_at:
            msg = "Start time cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON storage."""
        return {
            "operation": self.operation.value,
            "started_at": self.started_at,
            "updated_at": self.updated_at,
            "completed_steps": list(self.completed_steps),
            "current_step": self.current_step,
            "hostname": self.hostname,
            "username": self.username,
            "step_warnings": dict(self.step_warnings),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProgressState:
        """Deserialize from dictionary.

        Args:
            data: Dictionary as produced by to_dict().

        Returns:
            ProgressState instance.

        Raises:
            KeyError: If required fields are missing.
            ValueError: If the operation kind or fields are invalid.
            TypeError: If a field has the wrong type.
        """
        completed = data.get("completed_steps", [])
        if not isinstance(completed, list):
            msg = "completed_steps must be a list"
            raise TypeError(msg)

        warnings = data.get("step_warnings", {})
        if not isinstance(warnings, dict):
            msg = "step_warnings must be a mapping"
            raise TypeError(msg)

        return cls(
            operation=OperationKind(data["operation"]),
            started_at=data["started_at"],
            updated_at=data.get("updated_at", data["started_at"]),
            completed_steps=[str(name) for name in completed],
            current_step=data.get("current_step"),
            hostname=data.get("hostname", ""),
            username=data.get("username", ""),
            step_warnings={str(k): str(v) for k, v in warnings.items()},
        )

    @property
    def last_completed(self) -> str | None:
        """Name of the most recently completed step, if any."""
        return self.completed_steps[-1] if self.completed_steps else None
