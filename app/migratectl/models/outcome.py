"""Step outcome and run report models.

Every step handler returns a StepOutcome, a tagged result the engine
dispatches on. The engine summarizes a run in a RunReport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from migratectl.models.step import OperationKind, Step


class OutcomeKind(str, Enum):
    """Tag of a step outcome.

    Attributes:
        SUCCESS: The step did its work without problems.
        WARNING: The step finished but some of its work failed.
        FAILURE: The step could not do its work at all.
        RESTART_REQUIRED: The step changed the environment; the run must
            continue in a fresh process.
        ABORTED: The operator declined to continue.
    """

    SUCCESS = "success"
    WARNING = "warning"
    FAILURE = "failure"
    RESTART_REQUIRED = "restart_required"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Result of running one step.

    Attributes:
        kind: Outcome tag.
        message: Human-readable summary or failure reason.
        payload: Optional step-specific data (export path, copy stats, ...).
    """

    kind: OutcomeKind
    message: str = ""
    payload: Any = None

    @classmethod
    def success(cls, message: str = "", payload: Any = None) -> StepOutcome:
        """Create a success outcome."""
        return cls(OutcomeKind.SUCCESS, message, payload)

    @classmethod
    def warning(cls, message: str, payload: Any = None) -> StepOutcome:
        """Create a success-with-warning outcome."""
        return cls(OutcomeKind.WARNING, message, payload)

    @classmethod
    def failure(cls, message: str) -> StepOutcome:
        """Create a failure outcome."""
        return cls(OutcomeKind.FAILURE, message)

    @classmethod
    def restart_required(cls, message: str) -> StepOutcome:
        """Create an outcome asking for the run to continue in a new process."""
        return cls(OutcomeKind.RESTART_REQUIRED, message)

    @classmethod
    def aborted(cls, message: str) -> StepOutcome:
        """Create an outcome for an operator-declined step."""
        return cls(OutcomeKind.ABORTED, message)

    @property
    def has_problem(self) -> bool:
        """Check if the outcome should be recorded as a warning on the step."""
        return self.kind in (OutcomeKind.WARNING, OutcomeKind.FAILURE)


@dataclass(frozen=True, slots=True)
class CopyStats:
    """Totals reported by a user-data copy.

    Attributes:
        files_copied: Number of files written to the destination.
        bytes_copied: Number of bytes written to the destination.
        failures: Paths (or robocopy messages) that could not be copied.
    """

    files_copied: int = 0
    bytes_copied: int = 0
    failures: tuple[str, ...] = ()

    def __add__(self, other: CopyStats) -> CopyStats:
        return CopyStats(
            files_copied=self.files_copied + other.files_copied,
            bytes_copied=self.bytes_copied + other.bytes_copied,
            failures=self.failures + other.failures,
        )


class RunStatus(str, Enum):
    """Terminal state of an engine run.

    Attributes:
        FINISHED: All steps ran; ledger cleared, manifest written (backup).
        CANCELLED: The operator declined; nothing further was changed.
        INTERRUPTED: The run stopped mid-way; the ledger is kept for resume.
        RESTART_REQUIRED: Tools were installed; rerun in a fresh process.
        REJECTED: A pre-flight check failed before any step ran.
    """

    FINISHED = "finished"
    CANCELLED = "cancelled"
    INTERRUPTED = "interrupted"
    RESTART_REQUIRED = "restart_required"
    REJECTED = "rejected"


@dataclass(slots=True)
class RunReport:
    """Summary of one engine run.

    Attributes:
        operation: Operation kind that was run.
        target: Target directory of the run.
        status: Terminal state.
        reason: Explanation for non-finished states.
        executed: Steps executed in this run, in order.
        skipped: Steps skipped because the ledger marked them complete.
        outcomes: Outcome of each executed step.
        stats: Accumulated user-data copy totals.
        duration_seconds: Wall time of the run.
        hints: What the operator should do next.
    """

    operation: OperationKind
    target: Path
    status: RunStatus = RunStatus.FINISHED
    reason: str = ""
    executed: list[Step] = field(default_factory=list)
    skipped: list[Step] = field(default_factory=list)
    outcomes: dict[Step, StepOutcome] = field(default_factory=dict)
    stats: CopyStats = field(default_factory=CopyStats)
    duration_seconds: float = 0.0
    hints: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        """Check if the run reached the finished state."""
        return self.status == RunStatus.FINISHED

    @property
    def warnings(self) -> dict[Step, StepOutcome]:
        """Executed steps whose outcome carries a warning or failure."""
        return {step: o for step, o in self.outcomes.items() if o.has_problem}
