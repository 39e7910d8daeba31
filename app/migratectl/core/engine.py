"""Resumable workflow engine for backup and restore.

The engine runs the fixed step sequence of an operation against one
target directory. Before each step it consults the progress ledger and
skips steps already complete; after each step it records completion, so
an interrupted run resumes where it stopped. Every decision that needs
the operator goes through the injected Prompt.

Run sequence:
    validate path -> (restore) manifest gate -> target lock -> ledger
    resume decision -> steps -> (backup) manifest -> clear ledger
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from migratectl.core.checksums import ChecksumStore
from migratectl.core.config import Configuration
from migratectl.core.ledger import ProgressLedger
from migratectl.core.lock import LockError, TargetLock
from migratectl.core.manifest import (
    ManifestError,
    build_manifest,
    load_manifest,
    remove_manifest,
    save_manifest,
)
from migratectl.core.paths import (
    get_inventory_path,
    get_package_managers_dir,
    get_user_data_dir,
    relative_to_target,
)
from migratectl.core.prompt import Prompt, ResumeChoice
from migratectl.core.validator import PathValidator
from migratectl.inventory.scanner import InventoryScanner, write_inventory
from migratectl.managers import PackageManager, get_managers
from migratectl.models.outcome import (
    CopyStats,
    OutcomeKind,
    RunReport,
    RunStatus,
    StepOutcome,
)
from migratectl.models.package import PackageSource
from migratectl.models.progress import ProgressState
from migratectl.models.step import (
    EXPORT_STEPS,
    IMPORT_STEPS,
    BackupStep,
    OperationKind,
    RestoreStep,
    Step,
    steps_for,
)
from migratectl.userdata.copier import UserDataCopier, get_copier
from migratectl.userdata.discovery import discover_profiles
from migratectl.userdata.exclusions import ExclusionPolicy
from migratectl.utils.formatting import format_size
from migratectl.utils.logging import target_log

logger = logging.getLogger(__name__)

# Restores copy everything the backup holds
_RESTORE_EXCLUSIONS = ExclusionPolicy(dir_patterns=(), file_patterns=())


@dataclass(slots=True)
class StepContext:
    """Everything a step handler may use.

    Handlers read and write nothing outside this context and the target
    directory, so a step never depends on in-memory state of a prior run.

    Attributes:
        config: Run configuration.
        target: Target directory (backup destination or restore source).
        ledger: Ledger bound to the target.
        state: Current persisted state of the operation.
        prompt: Operator decisions.
        report: Report being assembled for this run.
    """

    config: Configuration
    target: Path
    ledger: ProgressLedger
    state: ProgressState
    prompt: Prompt
    report: RunReport


StepHandler = Callable[[StepContext, Step], StepOutcome]


class WorkflowEngine:
    """Runs backup and restore operations step by step.

    Args:
        config: Immutable run configuration.
        prompt: Operator decision capability.
        managers: Package-manager adapters. Defaults to the configured ones.
        copier: User-data copier. Defaults to the best one for this machine.
        inventory: Installed-program scanner.
        validator: Target path validator.

    Example:
        >>> engine = WorkflowEngine(load_config(), AutoPrompt())
        >>> report = engine.backup(Path("D:/Backup"))
        >>> report.status
        <RunStatus.FINISHED: 'finished'>
    """

    def __init__(
        self,
        config: Configuration,
        prompt: Prompt,
        *,
        managers: dict[PackageSource, PackageManager] | None = None,
        copier: UserDataCopier | None = None,
        inventory: InventoryScanner | None = None,
        validator: PathValidator | None = None,
    ) -> None:
        self._config = config
        self._prompt = prompt
        self._managers = (
            managers
            if managers is not None
            else get_managers(config.package_managers, timeout=config.command_timeout)
        )
        self._copier = copier
        self._inventory = inventory if inventory is not None else InventoryScanner()
        self._validator = validator if validator is not None else PathValidator()
        self._exclusions = ExclusionPolicy.with_extras(
            config.extra_excluded_dirs, config.extra_excluded_files
        )
        self._handlers: dict[Step, StepHandler] = {
            BackupStep.EXPORT_WINGET: self._export_packages,
            BackupStep.EXPORT_CHOCOLATEY: self._export_packages,
            BackupStep.EXPORT_SCOOP: self._export_packages,
            BackupStep.USER_DATA: self._backup_user_data,
            BackupStep.INVENTORY: self._record_inventory,
            BackupStep.CHECKSUMS: self._record_checksums,
            RestoreStep.VERIFICATION: self._verify_backup,
            RestoreStep.PACKAGE_MANAGERS: self._ensure_package_managers,
            RestoreStep.RESTORE_WINGET: self._import_packages,
            RestoreStep.RESTORE_CHOCOLATEY: self._import_packages,
            RestoreStep.RESTORE_SCOOP: self._import_packages,
            RestoreStep.RESTORE_USER_DATA: self._restore_user_data,
        }

    @property
    def copier(self) -> UserDataCopier:
        """User-data copier, chosen on first use."""
        if self._copier is None:
            self._copier = get_copier(self._config)
        return self._copier

    def backup(self, target: Path | str) -> RunReport:
        """Back up this machine into a target directory.

        Args:
            target: Backup destination.

        Returns:
            RunReport describing the run.
        """
        return self._run(OperationKind.BACKUP, target)

    def restore(self, source: Path | str) -> RunReport:
        """Restore a completed backup onto this machine.

        Args:
            source: Directory holding a completed backup.

        Returns:
            RunReport describing the run.
        """
        return self._run(OperationKind.RESTORE, source)

    # Run lifecycle

    def _run(self, kind: OperationKind, target: Path | str) -> RunReport:
        started = time.monotonic()
        report = RunReport(operation=kind, target=Path(str(target)))

        validation = self._validator.validate(str(target))
        if not validation.valid or validation.path is None:
            return _reject(report, validation.reason)
        target_path = Path(str(validation.path))
        report.target = target_path

        if kind == OperationKind.RESTORE:
            try:
                manifest = load_manifest(target_path)
            except ManifestError as e:
                return _reject(report, str(e))
            logger.info(
                "Backup of %s by %s completed %s",
                manifest.hostname,
                manifest.username,
                manifest.completed_at.isoformat(),
            )

        lock = TargetLock(target_path)
        try:
            lock.acquire()
        except LockError as e:
            return _reject(report, str(e))

        try:
            with target_log(target_path):
                logger.info("Starting %s at %s", kind.value, target_path)
                self._execute(kind, target_path, report)
                logger.info("%s ended: %s", kind.value.capitalize(), report.status.value)
        finally:
            lock.release()
            report.duration_seconds = time.monotonic() - started
        return report

    def _execute(self, kind: OperationKind, target: Path, report: RunReport) -> None:
        ledger = ProgressLedger(target)
        current: Step | None = None
        try:
            state = self._open_state(kind, target, ledger, report)
            if state is None:
                return

            ctx = StepContext(
                config=self._config,
                target=target,
                ledger=ledger,
                state=state,
                prompt=self._prompt,
                report=report,
            )

            for step in steps_for(kind):
                if ledger.is_step_complete(state, step):
                    logger.info("[SKIP] %s already complete", step.value)
                    report.skipped.append(step)
                    continue

                current = step
                ledger.set_current_step(state, step)
                outcome = self._run_step(ctx, step)
                report.executed.append(step)
                report.outcomes[step] = outcome

                if outcome.kind == OutcomeKind.ABORTED:
                    self._abandon(ctx, outcome.message)
                    return

                ledger.mark_step_complete(
                    state, step, outcome.message if outcome.has_problem else None
                )
                current = None

                if outcome.kind == OutcomeKind.RESTART_REQUIRED:
                    report.status = RunStatus.RESTART_REQUIRED
                    report.reason = outcome.message
                    report.hints.append(
                        "Open a new terminal so the installed tools are on PATH, "
                        f"then run the same {kind.value} command again to continue"
                    )
                    return
        except KeyboardInterrupt:
            where = current.value if current is not None else "startup"
            logger.warning("%s interrupted during %s", kind.value.capitalize(), where)
            report.status = RunStatus.INTERRUPTED
            report.reason = f"Interrupted during {where}"
            report.hints.append(f"Run the same {kind.value} command again to resume")
            return

        self._finish(ctx)

    def _open_state(
        self, kind: OperationKind, target: Path, ledger: ProgressLedger, report: RunReport
    ) -> ProgressState | None:
        """Load or create the ledger state; None when the run must not go on.

        A backup removes the manifest of any earlier backup here, before a
        step writes to the target.
        """
        previous = ledger.load()

        if previous is not None and previous.operation != kind:
            if previous.operation == OperationKind.BACKUP:
                # Restoring would discard the ledger of a half-written backup
                _reject(report, "The backup at this location is unfinished; resume it first")
                return None
            if not self._prompt.confirm_discard(previous):
                report.status = RunStatus.CANCELLED
                report.reason = (
                    f"An unfinished {previous.operation.value} exists at this target"
                )
                return None
            logger.info("Discarding unfinished %s", previous.operation.value)
            previous = None

        if previous is not None:
            if previous.current_step:
                logger.warning(
                    "Previous %s was interrupted during %s", kind.value, previous.current_step
                )
            choice = self._prompt.choose_resume(previous)
            if choice == ResumeChoice.CANCEL:
                report.status = RunStatus.CANCELLED
                report.reason = "Cancelled by operator"
                return None
            if choice == ResumeChoice.RESUME:
                logger.info(
                    "Resuming %s; completed steps: %s",
                    kind.value,
                    ", ".join(previous.completed_steps) or "none",
                )
            else:
                logger.info("Starting %s fresh", kind.value)
                previous = None

        if kind == OperationKind.BACKUP:
            try:
                remove_manifest(target)
            except ManifestError as e:
                _reject(report, str(e))
                return None

        if previous is not None:
            return previous
        state = ledger.new_state(kind)
        ledger.save(state)
        return state

    def _run_step(self, ctx: StepContext, step: Step) -> StepOutcome:
        """Invoke a step handler; exceptions become failure outcomes."""
        logger.info("Running %s", step.value)
        try:
            outcome = self._handlers[step](ctx, step)
        except Exception as e:
            logger.exception("Step %s failed", step.value)
            outcome = StepOutcome.failure(f"{type(e).__name__}: {e}")

        if outcome.has_problem:
            logger.warning("%s: %s", step.value, outcome.message)
        else:
            logger.info("%s: %s", step.value, outcome.message or outcome.kind.value)
        return outcome

    def _abandon(self, ctx: StepContext, reason: str) -> None:
        """End the run as cancelled without marking the current step."""
        ctx.report.status = RunStatus.CANCELLED
        ctx.report.reason = reason
        if ctx.state.completed_steps:
            ctx.state.current_step = None
            ctx.ledger.save(ctx.state)
        else:
            ctx.ledger.clear()

    def _finish(self, ctx: StepContext) -> None:
        """Write the manifest (backup only) and clear the ledger."""
        report = ctx.report
        if report.operation == OperationKind.BACKUP:
            manifest = build_manifest(ctx.state, self._package_files(ctx.target))
            try:
                save_manifest(manifest, ctx.target)
            except ManifestError as e:
                logger.error("%s", e)
                report.status = RunStatus.INTERRUPTED
                report.reason = str(e)
                report.hints.append("Fix the problem and run the same backup command again")
                return

        ctx.ledger.clear()
        report.status = RunStatus.FINISHED
        report.hints.extend(self._finish_hints(ctx))

    def _finish_hints(self, ctx: StepContext) -> list[str]:
        hints: list[str] = []
        if ctx.report.warnings:
            hints.append(f"Some steps reported problems; see {ctx.target / 'migration.log'}")
        if ctx.report.operation == OperationKind.BACKUP:
            hints.append(f"On the new machine run: migratectl restore {ctx.target}")
        else:
            hints.append("Sign out and back in so restored settings are picked up")
        if get_inventory_path(ctx.target).is_file():
            hints.append(
                f"Review {get_inventory_path(ctx.target)} for programs to reinstall by hand"
            )
        return hints

    def _package_files(self, target: Path) -> dict[PackageSource, str]:
        files: dict[PackageSource, str] = {}
        for source, manager in self._managers.items():
            path = manager.export_path(target)
            if path.is_file():
                files[source] = relative_to_target(path, target)
        return files

    def _manager_for(self, source: PackageSource) -> PackageManager | None:
        if not self._config.manages(source):
            return None
        return self._managers.get(source)

    # Backup steps

    def _export_packages(self, ctx: StepContext, step: Step) -> StepOutcome:
        source = EXPORT_STEPS[BackupStep(step)]
        name = source.display_name
        manager = self._manager_for(source)
        if manager is None:
            return StepOutcome.success(f"{name} not enabled, skipped")
        if not manager.is_available():
            return StepOutcome.success(f"{name} not installed, skipped")

        path = manager.export(ctx.target)
        if path is None:
            return StepOutcome.warning(f"{name} export failed; see migration.log")
        return StepOutcome.success(f"{name} packages exported", payload=path)

    def _backup_user_data(self, ctx: StepContext, step: Step) -> StepOutcome:
        users_root = ctx.config.users_root
        profiles = discover_profiles(users_root)
        if not profiles:
            return StepOutcome.warning(f"No user profiles found under {users_root}")

        dest_root = get_user_data_dir(ctx.target)
        stats = CopyStats()
        for profile in profiles:
            logger.info("Copying profile %s with %s", profile.name, self.copier.name)
            stats += self.copier.copy(profile, dest_root / profile.name, self._exclusions)
        ctx.report.stats += stats

        message = (
            f"{len(profiles)} profile(s), {stats.files_copied} file(s), "
            f"{format_size(stats.bytes_copied)}"
        )
        if stats.failures:
            return StepOutcome.warning(
                f"{message}; {len(stats.failures)} item(s) failed", payload=stats
            )
        return StepOutcome.success(message, payload=stats)

    def _record_inventory(self, ctx: StepContext, step: Step) -> StepOutcome:
        if not self._inventory.is_available():
            return StepOutcome.warning("Program inventory needs the Windows registry, skipped")
        programs = self._inventory.scan()
        path = write_inventory(ctx.target, programs)
        return StepOutcome.success(f"{len(programs)} program(s) recorded", payload=path)

    def _record_checksums(self, ctx: StepContext, step: Step) -> StepOutcome:
        store = ChecksumStore(ctx.target, ctx.config.checksum_algorithm)

        files: list[Path] = []
        packages_dir = get_package_managers_dir(ctx.target)
        if packages_dir.is_dir():
            files.extend(sorted(p for p in packages_dir.rglob("*") if p.is_file()))
        inventory_path = get_inventory_path(ctx.target)
        if inventory_path.is_file():
            files.append(inventory_path)

        records = store.collect(files)
        if not store.save(records):
            return StepOutcome.warning(f"Failed to write {store.path}")
        if not records:
            return StepOutcome.warning("No files to checksum; restore cannot verify integrity")
        return StepOutcome.success(f"{len(records)} file(s) checksummed ({store.algorithm})")

    # Restore steps

    def _verify_backup(self, ctx: StepContext, step: Step) -> StepOutcome:
        store = ChecksumStore(ctx.target, ctx.config.checksum_algorithm)
        result = store.verify()

        if not result.has_data:
            return StepOutcome.warning("No checksum data in backup; integrity not verified")
        if result.verified:
            return StepOutcome.success(f"{result.files_checked} file(s) verified", payload=result)

        if not ctx.prompt.confirm_integrity_override(result):
            return StepOutcome.aborted(
                f"Restore aborted: {len(result.errors)} file(s) failed verification"
            )
        return StepOutcome.warning(
            f"Continuing despite {len(result.errors)} integrity error(s)", payload=result
        )

    def _ensure_package_managers(self, ctx: StepContext, step: Step) -> StepOutcome:
        installed: list[str] = []
        failed: list[str] = []

        for source, manager in self._managers.items():
            if not self._config.manages(source):
                continue
            if not manager.export_path(ctx.target).is_file() or manager.is_available():
                continue
            if not ctx.prompt.confirm_install_tool(source):
                logger.info("Not installing %s; its packages will be skipped", source.display_name)
                continue
            if manager.install_tool():
                installed.append(source.display_name)
            else:
                failed.append(source.display_name)

        if installed:
            return StepOutcome.restart_required(
                f"Installed {', '.join(installed)}; a new process is needed to use them"
            )
        if failed:
            return StepOutcome.warning(f"Failed to install {', '.join(failed)}")
        return StepOutcome.success("Required package managers are available")

    def _import_packages(self, ctx: StepContext, step: Step) -> StepOutcome:
        source = IMPORT_STEPS[RestoreStep(step)]
        manager = self._manager_for(source)
        if manager is None:
            return StepOutcome.success(f"{source.display_name} not enabled, skipped")
        return manager.import_packages(manager.export_path(ctx.target))

    def _restore_user_data(self, ctx: StepContext, step: Step) -> StepOutcome:
        backup_root = get_user_data_dir(ctx.target)
        if not backup_root.is_dir():
            return StepOutcome.warning("Backup holds no user data")

        stats = CopyStats()
        restored: list[str] = []
        missing: list[str] = []
        for profile in discover_profiles(backup_root):
            dest = ctx.config.users_root / profile.name
            if not dest.is_dir():
                logger.warning("Profile %s does not exist on this machine, skipped", profile.name)
                missing.append(profile.name)
                continue
            logger.info("Restoring profile %s with %s", profile.name, self.copier.name)
            stats += self.copier.copy(profile, dest, _RESTORE_EXCLUSIONS)
            restored.append(profile.name)
        ctx.report.stats += stats

        message = (
            f"{len(restored)} profile(s), {stats.files_copied} file(s), "
            f"{format_size(stats.bytes_copied)}"
        )
        problems: list[str] = []
        if missing:
            problems.append(f"no local profile for {', '.join(missing)}")
        if stats.failures:
            problems.append(f"{len(stats.failures)} item(s) failed")
        if problems:
            return StepOutcome.warning(f"{message}; {'; '.join(problems)}", payload=stats)
        return StepOutcome.success(message, payload=stats)


def _reject(report: RunReport, reason: str) -> RunReport:
    logger.error("%s rejected: %s", report.operation.value.capitalize(), reason)
    report.status = RunStatus.REJECTED
    report.reason = reason
    return report
