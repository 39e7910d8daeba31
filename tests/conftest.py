"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from pathlib import Path

import pytest
from migratectl.core.config import Configuration
from migratectl.core.engine import WorkflowEngine
from migratectl.core.prompt import AutoPrompt, Prompt
from migratectl.core.validator import PathValidator
from migratectl.managers.base import PackageManager
from migratectl.models.outcome import StepOutcome
from migratectl.models.package import InstalledProgram, PackageSource
from migratectl.userdata.copier import TreeCopier


class SpyManager(PackageManager):
    """Package manager double recording every call."""

    def __init__(self, source: PackageSource, *, available: bool = True) -> None:
        super().__init__(timeout=30.0)
        self._source = source
        self.available = available
        self.export_filename = f"{source.value}-packages.json"
        self.exported: list[Path] = []
        self.imported: list[Path] = []
        self.install_calls = 0
        self.install_result = True

    @property
    def source(self) -> PackageSource:
        return self._source

    def _export_command(self, export_path: Path) -> list[str]:
        return [self._source.value, "export"]

    def _import_command(self, export_path: Path) -> list[str]:
        return [self._source.value, "import"]

    def _install_script(self) -> str:
        return ""

    def is_available(self) -> bool:
        return self.available

    def export(self, target: Path) -> Path | None:
        self.exported.append(target)
        path = self.export_path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f'{{"source": "{self._source.value}", "packages": ["git"]}}\n')
        return path

    def import_packages(self, export_path: Path) -> StepOutcome:
        self.imported.append(export_path)
        return StepOutcome.success(f"{self._source.display_name} packages imported")

    def install_tool(self) -> bool:
        self.install_calls += 1
        return self.install_result


class StubInventory:
    """Inventory scanner double returning a fixed program list."""

    def __init__(self, available: bool = True) -> None:
        self.available = available
        self.scans = 0

    def is_available(self) -> bool:
        return self.available

    def scan(self) -> list[InstalledProgram]:
        self.scans += 1
        return [
            InstalledProgram(
                name="Git",
                version="2.45.1",
                publisher="The Git Development Community",
                install_date="20240601",
                hive="HKLM",
            ),
            InstalledProgram(name="7-Zip", version="23.01", hive="HKLM-WOW64"),
        ]


@pytest.fixture
def users_root(tmp_path: Path) -> Path:
    """Users directory with two real profiles and two system profiles."""
    root = tmp_path / "Users"
    alice = root / "alice"
    (alice / "Documents").mkdir(parents=True)
    (alice / "Documents" / "report.docx").write_text("quarterly report")
    (alice / "Documents" / "~$report.docx").write_text("lock")
    (alice / "Desktop").mkdir()
    (alice / "Desktop" / "notes.txt").write_text("buy milk")
    (alice / "AppData" / "Local").mkdir(parents=True)
    (alice / "AppData" / "Local" / "cache.bin").write_text("cache")

    bob = root / "bob"
    (bob / "Pictures").mkdir(parents=True)
    (bob / "Pictures" / "holiday.jpg").write_bytes(b"\xff\xd8\xff\xe0jpeg")
    (bob / "OneDrive").mkdir()
    (bob / "OneDrive" / "synced.txt").write_text("in the cloud")
    (bob / "Thumbs.db").write_text("thumbs")

    (root / "Default" / "Documents").mkdir(parents=True)
    (root / "Default" / "Documents" / "template.txt").write_text("default")
    (root / "Public" / "Music").mkdir(parents=True)
    return root


@pytest.fixture
def config(users_root: Path) -> Configuration:
    """Configuration pointing at the test users directory."""
    return Configuration(users_root=users_root)


@pytest.fixture
def validator() -> PathValidator:
    """POSIX validator accepting any absolute temporary directory."""
    return PathValidator(windows=False, system_dirs=("/proc",), home="/nonexistent-home")


@pytest.fixture
def spy_managers() -> dict[PackageSource, SpyManager]:
    """One spy manager per package source, all available."""
    return {source: SpyManager(source) for source in PackageSource}


@pytest.fixture
def stub_inventory() -> StubInventory:
    """Inventory scanner double."""
    return StubInventory()


@pytest.fixture
def make_engine(
    config: Configuration,
    spy_managers: dict[PackageSource, SpyManager],
    stub_inventory: StubInventory,
    validator: PathValidator,
) -> Callable[..., WorkflowEngine]:
    """Factory for engines wired to test doubles and the shutil copier."""

    def factory(prompt: Prompt | None = None, **overrides: object) -> WorkflowEngine:
        kwargs: dict[str, object] = {
            "managers": spy_managers,
            "copier": TreeCopier(),
            "inventory": stub_inventory,
            "validator": validator,
        }
        kwargs.update(overrides)
        cfg = kwargs.pop("config", config)
        return WorkflowEngine(cfg, prompt or AutoPrompt(), **kwargs)  # type: ignore[arg-type]

    return factory
