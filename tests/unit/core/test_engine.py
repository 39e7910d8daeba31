"""Unit tests for the workflow engine.

Runs complete backups and restores against temporary directories with
package-manager and inventory doubles and the real shutil copier.
"""

import json
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest
from migratectl.core.checksums import ChecksumStore
from migratectl.core.config import Configuration
from migratectl.core.engine import WorkflowEngine
from migratectl.core.ledger import ProgressLedger
from migratectl.core.lock import TargetLock
from migratectl.core.manifest import ManifestError, load_manifest
from migratectl.core.paths import (
    get_checksums_path,
    get_lock_path,
    get_log_path,
    get_manifest_path,
    get_progress_path,
    get_user_data_dir,
)
from migratectl.core.prompt import AutoPrompt, Prompt, ResumeChoice
from migratectl.models.checksum import VerificationReport
from migratectl.models.outcome import CopyStats, OutcomeKind, RunStatus
from migratectl.models.package import PackageSource
from migratectl.models.progress import ProgressState
from migratectl.models.step import BackupStep, OperationKind, RestoreStep
from migratectl.userdata.copier import TreeCopier, UserDataCopier
from migratectl.userdata.exclusions import ExclusionPolicy

EngineFactory = Callable[..., WorkflowEngine]


class ScriptedPrompt(Prompt):
    """Prompt with configurable answers that records what it was asked."""

    def __init__(
        self,
        resume: ResumeChoice = ResumeChoice.RESUME,
        discard: bool = True,
        override: bool = False,
        install: bool = True,
    ) -> None:
        self.resume = resume
        self.discard = discard
        self.override = override
        self.install = install
        self.asked: list[str] = []

    def choose_resume(self, state: ProgressState) -> ResumeChoice:
        self.asked.append("resume")
        return self.resume

    def confirm_discard(self, state: ProgressState) -> bool:
        self.asked.append("discard")
        return self.discard

    def confirm_integrity_override(self, report: VerificationReport) -> bool:
        self.asked.append("override")
        return self.override

    def confirm_install_tool(self, source: PackageSource) -> bool:
        self.asked.append(f"install:{source.value}")
        return self.install


class InterruptingCopier(UserDataCopier):
    """Copier that simulates Ctrl+C in the middle of a copy."""

    @property
    def name(self) -> str:
        return "interrupting"

    def copy(self, source_root: Path, dest_root: Path, exclusions: ExclusionPolicy) -> CopyStats:
        raise KeyboardInterrupt


def _seed_ledger(
    target: Path,
    operation: OperationKind,
    completed: list[str],
    current: str | None = None,
) -> None:
    ledger = ProgressLedger(target)
    state = ledger.new_state(operation)
    state.completed_steps = list(completed)
    state.current_step = current
    assert ledger.save(state)


@pytest.fixture
def target(tmp_path: Path) -> Path:
    """Backup destination inside the temporary directory."""
    return tmp_path / "Backup"


@pytest.fixture
def completed_backup(make_engine: EngineFactory, target: Path) -> Path:
    """A finished backup of the alice/bob users directory."""
    report = make_engine().backup(target)
    assert report.status == RunStatus.FINISHED
    return target


class TestBackupScenario:
    """Tests for a complete backup of two user profiles."""

    def test_backup_finishes(self, make_engine: EngineFactory, target: Path) -> None:
        """A backup with no problems ends finished and runs every step."""
        report = make_engine().backup(target)

        assert report.status == RunStatus.FINISHED
        assert report.executed == list(BackupStep)
        assert report.skipped == []
        assert not report.warnings

    def test_user_profiles_are_copied(self, make_engine: EngineFactory, target: Path) -> None:
        """alice and bob are copied; system profiles are not."""
        make_engine().backup(target)

        users = get_user_data_dir(target)
        assert (users / "alice" / "Documents" / "report.docx").read_text() == "quarterly report"
        assert (users / "alice" / "Desktop" / "notes.txt").read_text() == "buy milk"
        assert (users / "bob" / "Pictures" / "holiday.jpg").exists()
        assert not (users / "Default").exists()
        assert not (users / "Public").exists()

    def test_exclusions_are_applied(self, make_engine: EngineFactory, target: Path) -> None:
        """AppData, cloud folders, Office lock files and thumbnails are skipped."""
        report = make_engine().backup(target)

        users = get_user_data_dir(target)
        assert not (users / "alice" / "AppData").exists()
        assert not (users / "alice" / "Documents" / "~$report.docx").exists()
        assert not (users / "bob" / "OneDrive").exists()
        assert not (users / "bob" / "Thumbs.db").exists()
        assert report.stats.files_copied == 3

    def test_manifest_written_and_ledger_removed(
        self, make_engine: EngineFactory, target: Path
    ) -> None:
        """Finishing writes the manifest and deletes the ledger and lock."""
        make_engine().backup(target)

        manifest = load_manifest(target)
        assert manifest.completed_steps == list(BackupStep)
        assert manifest.package_files[PackageSource.WINGET] == (
            "PackageManagers/winget-packages.json"
        )
        assert not get_progress_path(target).exists()
        assert not get_lock_path(target).exists()
        assert get_log_path(target).exists()

    def test_checksums_cover_exports_and_inventory(
        self, make_engine: EngineFactory, target: Path
    ) -> None:
        """checksums.json records every export file and the inventory."""
        make_engine().backup(target)

        data = json.loads(get_checksums_path(target).read_text())
        assert data["algorithm"] == "sha256"
        assert set(data["files"]) == {
            "PackageManagers/winget-packages.json",
            "PackageManagers/chocolatey-packages.json",
            "PackageManagers/scoop-packages.json",
            "inventory.json",
        }

    def test_disabled_manager_is_not_exported(
        self,
        make_engine: EngineFactory,
        spy_managers: dict,
        users_root: Path,
        target: Path,
    ) -> None:
        """Package managers left out of the configuration are skipped."""
        config = Configuration(users_root=users_root, package_managers=(PackageSource.WINGET,))

        report = make_engine(config=config).backup(target)

        assert report.status == RunStatus.FINISHED
        assert spy_managers[PackageSource.WINGET].exported == [target]
        assert spy_managers[PackageSource.SCOOP].exported == []
        assert "not enabled" in report.outcomes[BackupStep.EXPORT_SCOOP].message

    def test_unavailable_manager_is_skipped(
        self, make_engine: EngineFactory, spy_managers: dict, target: Path
    ) -> None:
        """A package manager that is not installed is skipped without a warning."""
        spy_managers[PackageSource.CHOCOLATEY].available = False

        report = make_engine().backup(target)

        outcome = report.outcomes[BackupStep.EXPORT_CHOCOLATEY]
        assert outcome.kind == OutcomeKind.SUCCESS
        assert "not installed" in outcome.message
        assert PackageSource.CHOCOLATEY not in load_manifest(target).package_files


class TestResume:
    """Tests for resuming interrupted operations."""

    def test_completed_steps_are_skipped(
        self,
        make_engine: EngineFactory,
        spy_managers: dict,
        stub_inventory,
        target: Path,
    ) -> None:
        """Steps recorded as complete are not executed again."""
        done = ["ExportWinget", "ExportChocolatey", "ExportScoop", "UserData"]
        _seed_ledger(target, OperationKind.BACKUP, done, current="Inventory")

        report = make_engine().backup(target)

        assert report.status == RunStatus.FINISHED
        assert [s.value for s in report.skipped] == done
        assert report.executed == [BackupStep.INVENTORY, BackupStep.CHECKSUMS]
        assert all(m.exported == [] for m in spy_managers.values())
        assert stub_inventory.scans == 1
        assert not get_user_data_dir(target).exists()

    def test_resume_after_interrupt(
        self, make_engine: EngineFactory, spy_managers: dict, target: Path
    ) -> None:
        """Ctrl+C keeps the ledger; the next run continues at the interrupted step."""
        first = make_engine(copier=InterruptingCopier()).backup(target)

        assert first.status == RunStatus.INTERRUPTED
        assert first.reason == "Interrupted during UserData"
        state = ProgressLedger(target).load()
        assert state is not None
        assert state.completed_steps == ["ExportWinget", "ExportChocolatey", "ExportScoop"]
        assert state.current_step == "UserData"
        assert not get_lock_path(target).exists()
        assert not get_manifest_path(target).exists()

        second = make_engine().backup(target)

        assert second.status == RunStatus.FINISHED
        assert second.executed[0] == BackupStep.USER_DATA
        assert all(len(m.exported) == 1 for m in spy_managers.values())
        assert (get_user_data_dir(target) / "alice" / "Desktop" / "notes.txt").exists()

    def test_second_run_after_finish_starts_over(
        self, make_engine: EngineFactory, spy_managers: dict, target: Path
    ) -> None:
        """With no ledger left behind, a new run executes every step."""
        make_engine().backup(target)
        report = make_engine().backup(target)

        assert report.executed == list(BackupStep)
        assert all(len(m.exported) == 2 for m in spy_managers.values())

    def test_fresh_ignores_completed_steps(
        self, make_engine: EngineFactory, target: Path
    ) -> None:
        """Starting fresh replaces the ledger and runs every step."""
        _seed_ledger(target, OperationKind.BACKUP, ["ExportWinget", "ExportChocolatey"])

        report = make_engine(AutoPrompt(fresh=True)).backup(target)

        assert report.executed == list(BackupStep)
        assert report.skipped == []

    def test_cancel_keeps_ledger(self, make_engine: EngineFactory, target: Path) -> None:
        """Cancelling at the resume prompt changes nothing."""
        _seed_ledger(target, OperationKind.BACKUP, ["ExportWinget"])
        prompt = ScriptedPrompt(resume=ResumeChoice.CANCEL)

        report = make_engine(prompt).backup(target)

        assert report.status == RunStatus.CANCELLED
        assert report.executed == []
        state = ProgressLedger(target).load()
        assert state is not None
        assert state.completed_steps == ["ExportWinget"]

    def test_other_operation_declined(self, make_engine: EngineFactory, target: Path) -> None:
        """A ledger of another operation kind cancels the run unless discarded."""
        _seed_ledger(target, OperationKind.RESTORE, ["Verification"])
        prompt = ScriptedPrompt(discard=False)

        report = make_engine(prompt).backup(target)

        assert report.status == RunStatus.CANCELLED
        assert prompt.asked == ["discard"]
        state = ProgressLedger(target).load()
        assert state is not None
        assert state.operation == OperationKind.RESTORE

    def test_other_operation_discarded(self, make_engine: EngineFactory, target: Path) -> None:
        """A discarded ledger of another kind is replaced by a fresh run."""
        _seed_ledger(target, OperationKind.RESTORE, ["Verification"])
        prompt = ScriptedPrompt(discard=True)

        report = make_engine(prompt).backup(target)

        assert report.status == RunStatus.FINISHED
        assert report.executed == list(BackupStep)
        assert "resume" not in prompt.asked


class TestStepFailures:
    """Tests for steps that fail or warn."""

    def test_exception_becomes_failure_and_step_completes(
        self, make_engine: EngineFactory, stub_inventory, target: Path
    ) -> None:
        """A raising handler is recorded as failed and the run continues."""
        with patch.object(stub_inventory, "scan", side_effect=RuntimeError("registry locked")):
            report = make_engine().backup(target)

        outcome = report.outcomes[BackupStep.INVENTORY]
        assert outcome.kind == OutcomeKind.FAILURE
        assert "registry locked" in outcome.message
        assert report.status == RunStatus.FINISHED
        manifest = load_manifest(target)
        assert BackupStep.INVENTORY in manifest.completed_steps
        assert "registry locked" in manifest.step_warnings["Inventory"]

    def test_inventory_unavailable_is_warning(
        self, make_engine: EngineFactory, stub_inventory, target: Path
    ) -> None:
        """Without a registry the inventory step warns and is skipped."""
        stub_inventory.available = False

        report = make_engine().backup(target)

        assert report.outcomes[BackupStep.INVENTORY].kind == OutcomeKind.WARNING
        assert report.status == RunStatus.FINISHED

    def test_missing_users_root_warns(
        self, make_engine: EngineFactory, tmp_path: Path, target: Path
    ) -> None:
        """A users root without profiles gives a warning, not a failure."""
        config = Configuration(users_root=tmp_path / "nowhere")

        report = make_engine(config=config).backup(target)

        assert report.outcomes[BackupStep.USER_DATA].kind == OutcomeKind.WARNING
        assert report.status == RunStatus.FINISHED


class TestPreflight:
    """Tests for checks made before any step runs."""

    def test_relative_path_rejected(self, make_engine: EngineFactory) -> None:
        """A relative target is rejected before anything is written."""
        report = make_engine().backup("relative/backup")

        assert report.status == RunStatus.REJECTED
        assert "absolute" in report.reason
        assert report.executed == []

    def test_held_lock_rejects(self, make_engine: EngineFactory, target: Path) -> None:
        """A second run against a locked target is rejected."""
        with TargetLock(target):
            report = make_engine().backup(target)

        assert report.status == RunStatus.REJECTED
        assert ".migratectl.lock" in report.reason
        assert not get_progress_path(target).exists()


class TestRestoreManifestGate:
    """Tests for the manifest check that guards every restore."""

    def test_missing_manifest_rejects(
        self, make_engine: EngineFactory, spy_managers: dict, tmp_path: Path
    ) -> None:
        """No adapter is called and no ledger is written without a manifest."""
        source = tmp_path / "NotABackup"
        source.mkdir()

        with patch.object(ChecksumStore, "verify") as verify_spy:
            report = make_engine().restore(source)

        assert report.status == RunStatus.REJECTED
        assert "manifest" in report.reason.lower()
        verify_spy.assert_not_called()
        for manager in spy_managers.values():
            assert manager.imported == []
            assert manager.install_calls == 0
        assert not get_progress_path(source).exists()
        assert not get_lock_path(source).exists()

    def test_invalid_manifest_rejects(self, make_engine: EngineFactory, tmp_path: Path) -> None:
        """An unparseable manifest is treated like a missing one."""
        source = tmp_path / "Broken"
        source.mkdir()
        get_manifest_path(source).write_text("{not json")

        report = make_engine().restore(source)

        assert report.status == RunStatus.REJECTED
        assert not get_progress_path(source).exists()


class TestRebackup:
    """Tests for backing up again into a directory holding a finished backup."""

    def test_interrupted_rebackup_removes_manifest(
        self, make_engine: EngineFactory, completed_backup: Path
    ) -> None:
        """Only a finished backup carries a manifest."""
        report = make_engine(AutoPrompt(fresh=True), copier=InterruptingCopier()).backup(
            completed_backup
        )

        assert report.status == RunStatus.INTERRUPTED
        assert not get_manifest_path(completed_backup).exists()
        assert get_progress_path(completed_backup).exists()

    def test_restore_after_interrupted_rebackup_is_rejected(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """The half-written backup is neither restored nor its ledger discarded."""
        make_engine(copier=InterruptingCopier()).backup(completed_backup)

        report = make_engine().restore(completed_backup)

        assert report.status == RunStatus.REJECTED
        assert all(m.imported == [] for m in spy_managers.values())
        state = ProgressLedger(completed_backup).load()
        assert state is not None
        assert state.operation == OperationKind.BACKUP

    def test_resumed_backup_removes_manifest_before_steps(
        self, make_engine: EngineFactory, completed_backup: Path
    ) -> None:
        """A manifest left next to an unfinished backup ledger is deleted on resume."""
        _seed_ledger(completed_backup, OperationKind.BACKUP, ["ExportWinget"], "ExportScoop")

        report = make_engine(copier=InterruptingCopier()).backup(completed_backup)

        assert report.status == RunStatus.INTERRUPTED
        assert report.skipped == [BackupStep.EXPORT_WINGET]
        assert not get_manifest_path(completed_backup).exists()

    def test_manifest_that_cannot_be_removed_rejects(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """No step runs while the old manifest would stay in place."""
        with patch(
            "migratectl.core.engine.remove_manifest",
            side_effect=ManifestError("Failed to remove previous manifest: denied"),
        ):
            report = make_engine().backup(completed_backup)

        assert report.status == RunStatus.REJECTED
        assert report.executed == []
        assert all(len(m.exported) == 1 for m in spy_managers.values())


class TestUnfinishedBackupAtRestoreSource:
    """Tests for restoring from a directory whose backup never finished."""

    def test_backup_ledger_rejects_without_asking(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """The backup ledger is kept and the operator is not offered to discard it."""
        _seed_ledger(completed_backup, OperationKind.BACKUP, ["ExportWinget"])
        prompt = ScriptedPrompt(discard=True)

        report = make_engine(prompt).restore(completed_backup)

        assert report.status == RunStatus.REJECTED
        assert "unfinished" in report.reason
        assert prompt.asked == []
        assert all(m.imported == [] for m in spy_managers.values())
        state = ProgressLedger(completed_backup).load()
        assert state is not None
        assert state.completed_steps == ["ExportWinget"]
        assert not get_lock_path(completed_backup).exists()


class TestInterruptedPrompt:
    """Tests for Ctrl+C while the operator is being asked."""

    def test_interrupt_at_resume_prompt(self, make_engine: EngineFactory, target: Path) -> None:
        """Ctrl+C at the resume question ends the run as interrupted."""

        class InterruptedPrompt(ScriptedPrompt):
            def choose_resume(self, state: ProgressState) -> ResumeChoice:
                raise KeyboardInterrupt

        _seed_ledger(target, OperationKind.BACKUP, ["ExportWinget"])

        report = make_engine(InterruptedPrompt()).backup(target)

        assert report.status == RunStatus.INTERRUPTED
        assert report.reason == "Interrupted during startup"
        assert report.executed == []
        assert not get_lock_path(target).exists()
        state = ProgressLedger(target).load()
        assert state is not None
        assert state.completed_steps == ["ExportWinget"]


class TestRestoreScenario:
    """Tests for restoring a completed backup."""

    def test_restore_finishes(
        self,
        make_engine: EngineFactory,
        spy_managers: dict,
        completed_backup: Path,
        tmp_path: Path,
    ) -> None:
        """Every package export is imported and user data is copied back."""
        new_users = tmp_path / "NewUsers"
        (new_users / "alice").mkdir(parents=True)
        (new_users / "bob").mkdir()
        config = Configuration(users_root=new_users)

        report = make_engine(config=config).restore(completed_backup)

        assert report.status == RunStatus.FINISHED
        assert report.executed == list(RestoreStep)
        assert all(len(m.imported) == 1 for m in spy_managers.values())
        assert (new_users / "alice" / "Documents" / "report.docx").read_text() == (
            "quarterly report"
        )
        assert (new_users / "bob" / "Pictures" / "holiday.jpg").exists()
        assert not get_progress_path(completed_backup).exists()

    def test_missing_local_profile_warns(
        self, make_engine: EngineFactory, completed_backup: Path, tmp_path: Path
    ) -> None:
        """Profiles that do not exist on the new machine are skipped with a warning."""
        new_users = tmp_path / "NewUsers"
        (new_users / "alice").mkdir(parents=True)
        config = Configuration(users_root=new_users)

        report = make_engine(config=config).restore(completed_backup)

        outcome = report.outcomes[RestoreStep.RESTORE_USER_DATA]
        assert outcome.kind == OutcomeKind.WARNING
        assert "bob" in outcome.message
        assert not (new_users / "bob").exists()

    def test_interrupted_restore_resumes_at_package_import(
        self,
        make_engine: EngineFactory,
        spy_managers: dict,
        completed_backup: Path,
    ) -> None:
        """A restore interrupted during RestoreWinget skips verification on resume."""
        _seed_ledger(
            completed_backup,
            OperationKind.RESTORE,
            ["Verification", "PackageManagers"],
            current="RestoreWinget",
        )

        with patch.object(ChecksumStore, "verify") as verify_spy:
            report = make_engine().restore(completed_backup)

        verify_spy.assert_not_called()
        assert report.skipped == [RestoreStep.VERIFICATION, RestoreStep.PACKAGE_MANAGERS]
        assert report.executed[0] == RestoreStep.RESTORE_WINGET
        assert len(spy_managers[PackageSource.WINGET].imported) == 1
        assert report.status == RunStatus.FINISHED

    def test_corrupted_backup_declined(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """Declining the integrity override cancels before anything is installed."""
        export = completed_backup / "PackageManagers" / "winget-packages.json"
        export.write_text('{"tampered": true}')
        prompt = ScriptedPrompt(override=False)

        report = make_engine(prompt).restore(completed_backup)

        assert report.status == RunStatus.CANCELLED
        assert report.outcomes[RestoreStep.VERIFICATION].kind == OutcomeKind.ABORTED
        assert "override" in prompt.asked
        assert all(m.imported == [] for m in spy_managers.values())
        assert not get_progress_path(completed_backup).exists()

    def test_corrupted_backup_overridden(
        self, make_engine: EngineFactory, completed_backup: Path
    ) -> None:
        """Skipping verification continues the restore with a warning."""
        (completed_backup / "inventory.json").unlink()

        report = make_engine(AutoPrompt(skip_verification=True)).restore(completed_backup)

        assert report.status == RunStatus.FINISHED
        assert report.outcomes[RestoreStep.VERIFICATION].kind == OutcomeKind.WARNING

    def test_no_checksum_data_warns(
        self, make_engine: EngineFactory, completed_backup: Path
    ) -> None:
        """A backup without checksums.json is restored with a warning."""
        get_checksums_path(completed_backup).unlink()

        report = make_engine().restore(completed_backup)

        outcome = report.outcomes[RestoreStep.VERIFICATION]
        assert outcome.kind == OutcomeKind.WARNING
        assert "No checksum data" in outcome.message
        assert report.status == RunStatus.FINISHED


class TestRestartRequired:
    """Tests for installing missing package managers during restore."""

    def test_install_ends_run_for_restart(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """Installing a tool stops the run and keeps the ledger for the next process."""
        spy_managers[PackageSource.SCOOP].available = False

        report = make_engine().restore(completed_backup)

        assert report.status == RunStatus.RESTART_REQUIRED
        assert spy_managers[PackageSource.SCOOP].install_calls == 1
        assert all(m.imported == [] for m in spy_managers.values())
        state = ProgressLedger(completed_backup).load()
        assert state is not None
        assert state.completed_steps == ["Verification", "PackageManagers"]
        assert state.current_step is None

    def test_next_process_continues_at_first_import(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """After the restart the run resumes at RestoreWinget."""
        spy_managers[PackageSource.SCOOP].available = False
        make_engine().restore(completed_backup)
        spy_managers[PackageSource.SCOOP].available = True

        report = make_engine().restore(completed_backup)

        assert report.status == RunStatus.FINISHED
        assert report.skipped == [RestoreStep.VERIFICATION, RestoreStep.PACKAGE_MANAGERS]
        assert len(spy_managers[PackageSource.SCOOP].imported) == 1

    def test_declined_install_continues(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """Declining an install continues; the import step reports the missing tool."""
        scoop = spy_managers[PackageSource.SCOOP]
        scoop.available = False
        prompt = ScriptedPrompt(install=False)

        report = make_engine(prompt).restore(completed_backup)

        assert scoop.install_calls == 0
        assert "install:scoop" in prompt.asked
        assert report.status == RunStatus.FINISHED

    def test_failed_install_warns(
        self, make_engine: EngineFactory, spy_managers: dict, completed_backup: Path
    ) -> None:
        """A failed install is a warning, not a restart."""
        scoop = spy_managers[PackageSource.SCOOP]
        scoop.available = False
        scoop.install_result = False

        report = make_engine().restore(completed_backup)

        assert report.outcomes[RestoreStep.PACKAGE_MANAGERS].kind == OutcomeKind.WARNING
        assert report.status == RunStatus.FINISHED


class TestDefaultCopier:
    """Tests for copier selection."""

    def test_copier_chosen_on_first_use(self, config: Configuration, validator) -> None:
        """Without an injected copier the engine picks one from the machine."""
        with patch("migratectl.userdata.copier.command_exists", return_value=False):
            engine = WorkflowEngine(config, AutoPrompt(), managers={}, validator=validator)
            assert isinstance(engine.copier, TreeCopier)
