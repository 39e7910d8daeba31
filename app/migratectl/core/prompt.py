"""Operator prompt capability.

The workflow engine never reads console input itself. Every decision it
needs from the operator goes through a Prompt, which is injected at
construction. ConsolePrompt asks interactively; AutoPrompt answers
deterministically for non-interactive runs and tests.
"""

from abc import ABC, abstractmethod
from enum import Enum

import typer

from migratectl.models.checksum import VerificationReport
from migratectl.models.package import PackageSource
from migratectl.models.progress import ProgressState
from migratectl.utils.formatting import console, print_warning


class ResumeChoice(str, Enum):
    """Answer to "an unfinished operation exists at this target"."""

    RESUME = "resume"
    FRESH = "fresh"
    CANCEL = "cancel"


class Prompt(ABC):
    """Decisions the workflow engine delegates to the operator."""

    @abstractmethod
    def choose_resume(self, state: ProgressState) -> ResumeChoice:
        """Decide what to do with an unfinished operation of the same kind.

        Args:
            state: Persisted state of the unfinished operation.

        Returns:
            Resume, start fresh, or cancel.
        """

    @abstractmethod
    def confirm_discard(self, state: ProgressState) -> bool:
        """Confirm discarding an unfinished operation of a different kind.

        Args:
            state: Persisted state of the other operation.

        Returns:
            True to discard it and continue, False to cancel.
        """

    @abstractmethod
    def confirm_integrity_override(self, report: VerificationReport) -> bool:
        """Decide whether to restore despite integrity errors.

        Args:
            report: Verification result with at least one error.

        Returns:
            True to continue the restore, False to abort it.
        """

    @abstractmethod
    def confirm_install_tool(self, source: PackageSource) -> bool:
        """Decide whether to install a missing package manager.

        Args:
            source: The package manager that is not available.

        Returns:
            True to install it.
        """


class AutoPrompt(Prompt):
    """Non-interactive prompt with fixed answers.

    Args:
        fresh: Start fresh instead of resuming unfinished operations.
        skip_verification: Continue a restore despite integrity errors.
        install_tools: Install missing package managers.
    """

    def __init__(
        self,
        *,
        fresh: bool = False,
        skip_verification: bool = False,
        install_tools: bool = True,
    ) -> None:
        self._fresh = fresh
        self._skip_verification = skip_verification
        self._install_tools = install_tools

    def choose_resume(self, state: ProgressState) -> ResumeChoice:
        return ResumeChoice.FRESH if self._fresh else ResumeChoice.RESUME

    def confirm_discard(self, state: ProgressState) -> bool:
        return True

    def confirm_integrity_override(self, report: VerificationReport) -> bool:
        return self._skip_verification

    def confirm_install_tool(self, source: PackageSource) -> bool:
        return self._install_tools


class ConsolePrompt(Prompt):
    """Interactive prompt on the terminal.

    Args:
        skip_verification: Continue a restore despite integrity errors
            without asking.
    """

    def __init__(self, *, skip_verification: bool = False) -> None:
        self._skip_verification = skip_verification

    def choose_resume(self, state: ProgressState) -> ResumeChoice:
        console.print(
            f"\n[warning]An unfinished {state.operation.value} was found[/warning] "
            f"(started {state.started_at} on {state.hostname or 'unknown host'})."
        )
        done = ", ".join(state.completed_steps) or "none"
        console.print(f"  Completed steps: [muted]{done}[/muted]")
        if state.current_step:
            console.print(f"  Interrupted during: [warning]{state.current_step}[/warning]")

        answer = typer.prompt(
            "Resume (r), start fresh (f) or cancel (c)?",
            default="r",
        )
        return _parse_resume_answer(answer)

    def confirm_discard(self, state: ProgressState) -> bool:
        return typer.confirm(
            f"An unfinished {state.operation.value} exists here. Discard its progress?",
            default=False,
        )

    def confirm_integrity_override(self, report: VerificationReport) -> bool:
        for error in report.errors:
            print_warning(str(error))
        if self._skip_verification:
            return True
        return typer.confirm(
            f"{len(report.errors)} of {report.files_checked} checked file(s) failed "
            "verification. Restore anyway?",
            default=False,
        )

    def confirm_install_tool(self, source: PackageSource) -> bool:
        return typer.confirm(
            f"{source.display_name} is not installed. Install it now?",
            default=True,
        )


def _parse_resume_answer(answer: str) -> ResumeChoice:
    """Map a free-text answer onto a resume choice; unknown input cancels."""
    normalized = answer.strip().lower()
    if normalized in ("r", "resume"):
        return ResumeChoice.RESUME
    if normalized in ("f", "fresh", "start fresh"):
        return ResumeChoice.FRESH
    return ResumeChoice.CANCEL
