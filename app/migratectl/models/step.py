"""Operation kinds and their ordered step sequences.

Each operation kind owns a string enum of its steps. The enum's
declaration order is the execution order, so the step sequence of an
operation is fixed and an unknown step name cannot be represented.
"""

from enum import Enum

from migratectl.models.package import PackageSource


class OperationKind(str, Enum):
    """Kind of migration operation.

    Attributes:
        BACKUP: Capture packages, user data and inventory into a target.
        RESTORE: Replay a completed backup on the current machine.
    """

    BACKUP = "backup"
    RESTORE = "restore"


class BackupStep(str, Enum):
    """Steps of a backup, in execution order."""

    EXPORT_WINGET = "ExportWinget"
    EXPORT_CHOCOLATEY = "ExportChocolatey"
    EXPORT_SCOOP = "ExportScoop"
    USER_DATA = "UserData"
    INVENTORY = "Inventory"
    CHECKSUMS = "Checksums"


class RestoreStep(str, Enum):
    """Steps of a restore, in execution order."""

    VERIFICATION = "Verification"
    PACKAGE_MANAGERS = "PackageManagers"
    RESTORE_WINGET = "RestoreWinget"
    RESTORE_CHOCOLATEY = "RestoreChocolatey"
    RESTORE_SCOOP = "RestoreScoop"
    RESTORE_USER_DATA = "RestoreUserData"


Step = BackupStep | RestoreStep

# Package source handled by each export/import step
EXPORT_STEPS: dict[BackupStep, PackageSource] = {
    BackupStep.EXPORT_WINGET: PackageSource.WINGET,
    BackupStep.EXPORT_CHOCOLATEY: PackageSource.CHOCOLATEY,
    BackupStep.EXPORT_SCOOP: PackageSource.SCOOP,
}

IMPORT_STEPS: dict[RestoreStep, PackageSource] = {
    RestoreStep.RESTORE_WINGET: PackageSource.WINGET,
    RestoreStep.RESTORE_CHOCOLATEY: PackageSource.CHOCOLATEY,
    RestoreStep.RESTORE_SCOOP: PackageSource.SCOOP,
}


def steps_for(kind: OperationKind) -> tuple[Step, ...]:
    """Return the ordered step sequence of an operation kind.

    Args:
        kind: The operation kind.

    Returns:
        Tuple of steps in execution order.
    """
    if kind == OperationKind.BACKUP:
        return tuple(BackupStep)
    return tuple(RestoreStep)


def parse_step(kind: OperationKind, name: str) -> Step:
    """Convert a persisted step name back into its enum member.

    Args:
        kind: Operation kind the step belongs to.
        name: Step name as stored in the ledger.

    Returns:
        The matching step.

    Raises:
        ValueError: If the name is not a step of this operation kind.
    """
    if kind == OperationKind.BACKUP:
        return BackupStep(name)
    return RestoreStep(name)
