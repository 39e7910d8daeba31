"""Unit tests for configuration loading and saving."""

from pathlib import Path

import pytest
from migratectl.core.config import (
    ConfigError,
    ConfigParseError,
    Configuration,
    config_to_dict,
    load_config,
    save_config,
)
from migratectl.models.package import PackageSource
from pydantic import ValidationError


class TestConfiguration:
    """Tests for the Configuration model."""

    def test_defaults(self) -> None:
        """All three package managers and sha256 by default."""
        config = Configuration()

        assert config.package_managers == tuple(PackageSource)
        assert config.checksum_algorithm == "sha256"
        assert config.copy_threads == 16
        assert config.manages(PackageSource.SCOOP)

    def test_is_frozen(self) -> None:
        """Configuration is immutable."""
        config = Configuration()
        with pytest.raises(ValidationError):
            config.copy_threads = 4  # type: ignore[misc]

    def test_rejects_unknown_keys(self) -> None:
        """Typos in the file are errors, not silently ignored."""
        with pytest.raises(ValidationError):
            Configuration.model_validate({"copy_thread": 4})

    def test_rejects_duplicate_managers(self) -> None:
        """A package manager may be listed once."""
        with pytest.raises(ValidationError, match="duplicates"):
            Configuration(package_managers=(PackageSource.WINGET, PackageSource.WINGET))

    @pytest.mark.parametrize("threads", [0, 129])
    def test_thread_bounds(self, threads: int) -> None:
        """copy_threads must be between 1 and 128."""
        with pytest.raises(ValidationError):
            Configuration(copy_threads=threads)

    def test_rejects_unsupported_algorithm(self) -> None:
        """Only sha256 and md5 are accepted."""
        with pytest.raises(ValidationError):
            Configuration.model_validate({"checksum_algorithm": "sha1"})


class TestConfigIO:
    """Tests for load_config and save_config."""

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        """No file means default settings."""
        assert load_config(tmp_path / "config.toml") == Configuration()

    def test_save_and_load(self, tmp_path: Path) -> None:
        """Saved settings load back equal."""
        config = Configuration(
            users_root=tmp_path / "Users",
            package_managers=(PackageSource.SCOOP,),
            extra_excluded_dirs=("Games",),
            checksum_algorithm="md5",
        )
        path = tmp_path / "cfg" / "config.toml"

        save_config(config, path)

        assert load_config(path) == config

    def test_partial_file(self, tmp_path: Path) -> None:
        """Keys not in the file keep their defaults."""
        path = tmp_path / "config.toml"
        path.write_text('package_managers = ["winget"]\ncopy_threads = 8\n')

        config = load_config(path)

        assert config.package_managers == (PackageSource.WINGET,)
        assert config.copy_threads == 8
        assert config.command_timeout == 3600

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Syntax errors raise ConfigParseError."""
        path = tmp_path / "config.toml"
        path.write_text("copy_threads = = 4\n")

        with pytest.raises(ConfigParseError):
            load_config(path)

    def test_invalid_content(self, tmp_path: Path) -> None:
        """Values failing validation raise ConfigError."""
        path = tmp_path / "config.toml"
        path.write_text('package_managers = ["apt"]\n')

        with pytest.raises(ConfigError, match="Invalid config content"):
            load_config(path)

    def test_config_to_dict_is_toml_ready(self) -> None:
        """Paths and enums are converted to plain strings."""
        data = config_to_dict(Configuration(users_root=Path("/srv/users")))

        assert data["users_root"] == str(Path("/srv/users"))
        assert data["package_managers"] == ["winget", "chocolatey", "scoop"]
