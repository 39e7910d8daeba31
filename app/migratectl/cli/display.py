"""Shared Rich display functions for run reports.

Provides table builders and summary printers for the results of backup
and restore runs, integrity verification and unfinished-run status.
"""

from rich.table import Table

from migratectl.models.checksum import VerificationReport
from migratectl.models.outcome import OutcomeKind, RunReport, RunStatus
from migratectl.models.progress import ProgressState
from migratectl.models.step import OperationKind, steps_for
from migratectl.utils.formatting import (
    console,
    format_duration,
    format_size,
    print_error,
    print_info,
    print_success,
    print_warning,
)

_OUTCOME_LABELS: dict[OutcomeKind, str] = {
    OutcomeKind.SUCCESS: "[success]OK[/success]",
    OutcomeKind.WARNING: "[warning]WARN[/warning]",
    OutcomeKind.FAILURE: "[error]FAIL[/error]",
    OutcomeKind.RESTART_REQUIRED: "[info]RESTART[/info]",
    OutcomeKind.ABORTED: "[error]ABORT[/error]",
}


def create_steps_table(report: RunReport) -> Table:
    """Create a Rich table with one row per step of the operation.

    Steps skipped because an earlier run completed them show [SKIP];
    steps that were not reached show a dash.

    Args:
        report: Report of the run.

    Returns:
        Rich Table configured for step display.
    """
    table = Table(
        title=f"{report.operation.value.capitalize()} Steps",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Step", no_wrap=True)
    table.add_column("Status", width=8, justify="center")
    table.add_column("Message")

    for step in steps_for(report.operation):
        if step in report.skipped:
            table.add_row(
                step.value,
                "[step_skipped]SKIP[/step_skipped]",
                "[muted]done earlier[/muted]",
            )
            continue
        outcome = report.outcomes.get(step)
        if outcome is None:
            table.add_row(f"[muted]{step.value}[/muted]", "[muted]-[/muted]", "")
            continue
        table.add_row(
            step.value,
            _OUTCOME_LABELS[outcome.kind],
            f"[muted]{outcome.message}[/muted]",
        )

    return table


def print_run_summary(report: RunReport) -> None:
    """Print the one-line result of a run and its next-step hints.

    Args:
        report: Report of the run.
    """
    operation = report.operation.value.capitalize()
    status = report.status

    if status == RunStatus.FINISHED:
        details = [format_duration(report.duration_seconds)]
        if report.stats.files_copied:
            details.append(
                f"{report.stats.files_copied} file(s), {format_size(report.stats.bytes_copied)}"
            )
        print_success(f"{operation} finished ({', '.join(details)})")
        if report.warnings:
            print_warning(f"{len(report.warnings)} step(s) reported problems")
    elif status == RunStatus.RESTART_REQUIRED:
        print_info(f"{operation} paused: {report.reason}")
    elif status == RunStatus.INTERRUPTED:
        print_warning(f"{operation} interrupted: {report.reason}")
    elif status == RunStatus.CANCELLED:
        print_info(f"{operation} cancelled: {report.reason}")
    else:
        print_error(f"{operation} rejected: {report.reason}")

    for hint in report.hints:
        console.print(f"  [muted]->[/muted] {hint}")


def create_verification_table(report: VerificationReport) -> Table:
    """Create a Rich table listing integrity errors.

    Args:
        report: Verification result with errors.

    Returns:
        Rich Table with one row per missing or corrupted file.
    """
    table = Table(
        title="Integrity Errors",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("File", no_wrap=True)
    table.add_column("Problem", width=10)

    for error in report.errors:
        table.add_row(error.path, f"[error]{error.kind.value}[/error]")

    return table


def create_progress_table(state: ProgressState) -> Table:
    """Create a Rich table showing an unfinished run's step states.

    Args:
        state: Persisted ledger state.

    Returns:
        Rich Table with one row per step of the operation.
    """
    table = Table(
        title=f"Unfinished {state.operation.value} (started {state.started_at})",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Step", no_wrap=True)
    table.add_column("State", width=12)
    table.add_column("Warning")

    for step in steps_for(OperationKind(state.operation)):
        if step.value in state.completed_steps:
            label = "[step_done]done[/step_done]"
        elif step.value == state.current_step:
            label = "[step_running]interrupted[/step_running]"
        else:
            label = "[muted]pending[/muted]"
        warning = state.step_warnings.get(step.value, "")
        table.add_row(step.value, label, f"[warning]{warning}[/warning]" if warning else "")

    return table


def show_report(report: RunReport, quiet: bool = False) -> None:
    """Print the steps table (unless quiet) followed by the run summary.

    Args:
        report: Report of the run.
        quiet: Print only the summary.
    """
    if not quiet and (report.executed or report.skipped):
        console.print(create_steps_table(report))
    print_run_summary(report)
