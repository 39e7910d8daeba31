"""Configuration model and I/O.

Configuration is an immutable value passed to the workflow engine at
construction. It is stored as TOML in the application config directory
and falls back to defaults when no file exists.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Annotated, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from migratectl.core.errors import MigrationError
from migratectl.core.paths import get_config_path
from migratectl.models.package import PackageSource

logger = logging.getLogger(__name__)

ChecksumAlgorithm = Literal["sha256", "md5"]


def _default_users_root() -> Path:
    """Directory holding the OS user profiles on this machine."""
    if os.name == "nt":
        return Path(os.environ.get("SystemDrive", "C:") + "\\") / "Users"
    return Path.home().parent


class Configuration(BaseModel):
    """Settings for backup and restore runs.

    Attributes:
        users_root: Directory containing one folder per user profile.
        package_managers: Package managers to export and import.
        extra_excluded_dirs: Directory-name patterns added to the built-in exclusions.
        extra_excluded_files: File-name patterns added to the built-in exclusions.
        copy_threads: Worker threads for the external copy tool.
        checksum_algorithm: Digest used for new checksum records.
        command_timeout: Timeout in seconds for package-manager commands.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    users_root: Annotated[
        Path,
        Field(default_factory=_default_users_root, description="User profiles root"),
    ]
    package_managers: Annotated[
        tuple[PackageSource, ...],
        Field(description="Package managers to export and import"),
    ] = (PackageSource.WINGET, PackageSource.CHOCOLATEY, PackageSource.SCOOP)
    extra_excluded_dirs: Annotated[
        tuple[str, ...],
        Field(description="Additional directory-name exclusion patterns"),
    ] = ()
    extra_excluded_files: Annotated[
        tuple[str, ...],
        Field(description="Additional file-name exclusion patterns"),
    ] = ()
    copy_threads: Annotated[
        int,
        Field(ge=1, le=128, description="Copy worker threads (1-128)"),
    ] = 16
    checksum_algorithm: Annotated[
        ChecksumAlgorithm,
        Field(description="Digest for checksum records"),
    ] = "sha256"
    command_timeout: Annotated[
        int,
        Field(ge=30, le=14400, description="Package-manager command timeout in seconds"),
    ] = 3600

    @field_validator("package_managers")
    @classmethod
    def validate_unique_managers(
        cls, v: tuple[PackageSource, ...]
    ) -> tuple[PackageSource, ...]:
        """Reject duplicate package managers."""
        if len(set(v)) != len(v):
            msg = "package_managers must not contain duplicates"
            raise ValueError(msg)
        return v

    def manages(self, source: PackageSource) -> bool:
        """Check if a package manager is enabled."""
        return source in self.package_managers


class ConfigError(MigrationError):
    """Base exception for configuration errors."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""


def load_config(path: Path | None = None) -> Configuration:
    """Load configuration from a TOML file.

    A missing file yields the default configuration.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated Configuration object.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read or the content is invalid.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.debug("No config file at %s, using defaults", config_path)
        return Configuration()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return Configuration.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: Configuration, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The Configuration to save.
        path: Path to save the config. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def config_to_dict(config: Configuration) -> dict[str, object]:
    """Convert a Configuration to a dictionary for TOML serialization.

    Args:
        config: The Configuration to convert.

    Returns:
        Dictionary ready for TOML serialization.
    """
    return {
        "users_root": str(config.users_root),
        "package_managers": [source.value for source in config.package_managers],
        "extra_excluded_dirs": list(config.extra_excluded_dirs),
        "extra_excluded_files": list(config.extra_excluded_files),
        "copy_threads": config.copy_threads,
        "checksum_algorithm": config.checksum_algorithm,
        "command_timeout": config.command_timeout,
    }
