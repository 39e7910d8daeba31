"""Backup manifest model.

The manifest is written once a backup completes. Its presence at a
target directory is the only signal that the directory holds a complete
backup that can be restored.
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from migratectl.models.package import PackageSource
from migratectl.models.step import BackupStep

MANIFEST_FORMAT_VERSION = "1.0"


class BackupManifest(BaseModel):
    """Descriptor identifying a directory as a complete backup.

    Attributes:
        format_version: Manifest schema version.
        completed_at: When the backup finished.
        hostname: Machine the backup was taken from.
        username: User who ran the backup.
        os: Operating system descriptor of the source machine.
        tool_version: migratectl version that wrote the backup.
        completed_steps: Backup steps recorded as complete.
        step_warnings: Warning text for steps that completed with problems.
        package_files: Export file per package manager, relative to the target.
    """

    model_config = ConfigDict(extra="ignore")

    format_version: Annotated[str, Field(description="Manifest schema version")] = (
        MANIFEST_FORMAT_VERSION
    )
    completed_at: Annotated[datetime, Field(description="Completion timestamp")]
    hostname: Annotated[str, Field(min_length=1, description="Source machine name")]
    username: Annotated[str, Field(description="Source user name")] = ""
    os: Annotated[str, Field(description="Source OS descriptor")] = ""
    tool_version: Annotated[str, Field(description="migratectl version")] = ""
    completed_steps: Annotated[
        list[BackupStep],
        Field(default_factory=list, description="Completed backup steps"),
    ]
    step_warnings: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Warnings per step"),
    ]
    package_files: Annotated[
        dict[PackageSource, str],
        Field(default_factory=dict, description="Export file per package manager"),
    ]

    @field_validator("format_version")
    @classmethod
    def validate_major_version(cls, v: str) -> str:
        """Reject manifests written by an incompatible major format."""
        major = v.split(".", 1)[0]
        if major != MANIFEST_FORMAT_VERSION.split(".", 1)[0]:
            msg = f"Unsupported manifest format version: {v}"
            raise ValueError(msg)
        return v

    def has_step(self, step: BackupStep) -> bool:
        """Check if a backup step is recorded as complete."""
        return step in self.completed_steps
