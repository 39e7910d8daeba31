"""Unit tests for the config command."""

import os
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest
from migratectl.cli.main import app
from migratectl.core.config import Configuration, load_config
from typer.testing import CliRunner

runner = CliRunner()


@pytest.fixture
def config_dir(tmp_path: Path) -> Iterator[Path]:
    """Default config location inside the test directory."""
    path = tmp_path / "appdata"
    with patch.dict(os.environ, {"APPDATA": str(path)}):
        yield path / "migratectl"


class TestConfigCommand:
    """Tests for `migratectl config`."""

    def test_path(self, config_dir: Path) -> None:
        """config path prints the default location."""
        result = runner.invoke(app, ["config", "path"])

        assert result.exit_code == 0
        assert "config.toml" in result.output

    def test_show_defaults(self, config_dir: Path) -> None:
        """Without a file the defaults are shown as TOML."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "checksum_algorithm" in result.output
        assert "copy_threads = 16" in result.output

    def test_init_writes_defaults(self, config_dir: Path) -> None:
        """config init writes a loadable file."""
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0
        assert load_config(config_dir / "config.toml") == Configuration()

    def test_init_refuses_overwrite(self, config_dir: Path) -> None:
        """An existing file is kept unless --force is given."""
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text("copy_threads = 4\n")

        refused = runner.invoke(app, ["config", "init"])
        forced = runner.invoke(app, ["config", "init", "--force"])

        assert refused.exit_code == 1
        assert forced.exit_code == 0
        assert load_config(config_dir / "config.toml").copy_threads == 16

    def test_show_invalid_file(self, config_dir: Path) -> None:
        """An invalid config file is reported with exit code 1."""
        config_dir.mkdir(parents=True)
        (config_dir / "config.toml").write_text("copy_threads = 0\n")

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 1
