"""Data models for migratectl.

This module exports the core data structures used throughout the application.
"""

from migratectl.models.checksum import ChecksumError, ChecksumErrorKind, VerificationReport
from migratectl.models.inventory import InventoryMetadata, InventoryReport
from migratectl.models.manifest import MANIFEST_FORMAT_VERSION, BackupManifest
from migratectl.models.outcome import (
    CopyStats,
    OutcomeKind,
    RunReport,
    RunStatus,
    StepOutcome,
)
from migratectl.models.package import InstalledProgram, PackageSource
from migratectl.models.progress import ProgressState
from migratectl.models.step import (
    BackupStep,
    OperationKind,
    RestoreStep,
    Step,
    parse_step,
    steps_for,
)

__all__ = [
    "MANIFEST_FORMAT_VERSION",
    "BackupManifest",
    "BackupStep",
    "ChecksumError",
    "ChecksumErrorKind",
    "CopyStats",
    "InstalledProgram",
    "InventoryMetadata",
    "InventoryReport",
    "OperationKind",
    "OutcomeKind",
    "PackageSource",
    "ProgressState",
    "RestoreStep",
    "RunReport",
    "RunStatus",
    "Step",
    "StepOutcome",
    "VerificationReport",
    "parse_step",
    "steps_for",
]
