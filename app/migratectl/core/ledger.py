"""Progress ledger for resumable operations.

This module provides the ProgressLedger class, which persists which
steps of the current operation have completed and which step is in
flight. The record is rewritten after every step transition so that an
interruption loses at most the in-flight step's work.

Storage: <target>/backup-progress.json
"""

import getpass
import json
import logging
import os
import socket
from pathlib import Path

from migratectl.core.paths import get_progress_path
from migratectl.models.progress import ProgressState, utc_now
from migratectl.models.step import OperationKind, Step

logger = logging.getLogger(__name__)


def current_username() -> str:
    """Return the name of the user running the process, or '' if unknown."""
    try:
        return getpass.getuser()
    except (OSError, KeyError, ImportError):
        return os.environ.get("USERNAME", "")


class ProgressLedger:
    """Persists operation progress inside one target directory.

    The existence of the ledger file means an operation at this target did
    not finish cleanly. Write failures are logged and never raised: a
    failed write only degrades resume to "start fresh".

    Attributes:
        target: Target directory owning the ledger.
    """

    def __init__(self, target: Path) -> None:
        """Initialize ProgressLedger.

        Args:
            target: Target directory the ledger belongs to.
        """
        self._target = target

    @property
    def path(self) -> Path:
        """Path to the backup-progress.json file."""
        return get_progress_path(self._target)

    def exists(self) -> bool:
        """Check if a ledger file is present."""
        return self.path.exists()

    def new_state(self, operation: OperationKind) -> ProgressState:
        """Create an empty state for a new operation.

        Args:
            operation: Kind of operation being started.

        Returns:
            ProgressState with no completed steps.
        """
        now = utc_now()
        return ProgressState(
            operation=operation,
            started_at=now,
            updated_at=now,
            hostname=socket.gethostname(),
            username=current_username(),
        )

    def save(self, state: ProgressState) -> bool:
        """Write the state, replacing the previous record atomically.

        Args:
            state: State to persist. Its updated_at is refreshed.

        Returns:
            True if the record was written, False if writing failed.
        """
        state.updated_at = utc_now()
        tmp_path = self.path.with_suffix(".json.tmp")
        try:
            self._target.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(state.to_dict(), indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.warning("Failed to save progress to %s: %s", self.path, e)
            if tmp_path.exists():
                tmp_path.unlink()
            return False
        return True

    def load(self) -> ProgressState | None:
        """Read the persisted state.

        Returns:
            ProgressState, or None if the file is absent or unparseable.
        """
        if not self.path.exists():
            return None

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            return ProgressState.from_dict(data)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable progress file %s: %s", self.path, e)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring invalid progress file %s: %s", self.path, e)
        return None

    def clear(self) -> None:
        """Delete the persisted record.

        Called only once an operation's final step has succeeded.
        """
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to remove progress file %s: %s", self.path, e)

    def is_step_complete(self, state: ProgressState, step: Step) -> bool:
        """Check if a step is recorded as complete.

        Args:
            state: Current operation state.
            step: Step to check.

        Returns:
            True if the step is in the completed set.
        """
        return step.value in state.completed_steps

    def set_current_step(self, state: ProgressState, step: Step) -> None:
        """Record the step about to run and persist immediately.

        A crash while the step runs is then visible on restart as
        "interrupted during <step>".

        Args:
            state: Current operation state.
            step: Step that is about to run.
        """
        state.current_step = step.value
        self.save(state)

    def mark_step_complete(
        self,
        state: ProgressState,
        step: Step,
        warning: str | None = None,
    ) -> None:
        """Add a step to the completed set, clear the current step and persist.

        Args:
            state: Current operation state.
            step: Step that finished.
            warning: Problem the step reported, kept for display.
        """
        if step.value not in state.completed_steps:
            state.completed_steps.append(step.value)
        if warning:
            state.step_warnings[step.value] = warning
        else:
            state.step_warnings.pop(step.value, None)
        state.current_step = None
        self.save(state)
