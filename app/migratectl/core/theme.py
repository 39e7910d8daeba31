"""Console color theme.

The palette is read from the bundled data/theme.toml. A theme.toml in the
config directory may override single colors under its [colors] table.
An override that fails validation is ignored as a whole.
"""

import logging
import re
import tomllib
from importlib import resources
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError
from rich.theme import Theme

from migratectl.core.paths import get_user_theme_path

logger = logging.getLogger(__name__)

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def _hex_color(value: str) -> str:
    color = value.strip()
    if not _HEX_COLOR.match(color):
        msg = f"'{value}' is not a #RGB or #RRGGBB color"
        raise ValueError(msg)
    return color


HexColor = Annotated[str, AfterValidator(_hex_color)]


class ThemeColors(BaseModel):
    """Palette used by tables, summaries and log output."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    # Step states in the progress and step tables
    step_done: HexColor = "#03b971"
    step_skipped: HexColor = "#7f8c8d"
    step_running: HexColor = "#0e8ac8"

    def to_rich(self) -> Theme:
        """Build the Rich theme; error and running steps are rendered bold."""
        styles = {name: str(value) for name, value in self.model_dump().items()}
        styles["error"] = f"bold {self.error}"
        styles["step_running"] = f"bold {self.step_running}"
        styles["bold_header"] = f"bold {self.header}"
        return Theme(styles)


def get_bundled_theme_path() -> Path:
    """Path of the theme.toml shipped with the package."""
    return Path(str(resources.files("migratectl.data").joinpath("theme.toml")))


def read_colors(path: Path) -> dict[str, str]:
    """Read the [colors] table of a theme file.

    Args:
        path: Theme file to read.

    Returns:
        Mapping of color name to value. Empty if the file is missing,
        unreadable or has no usable [colors] table.
    """
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        return {}
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return {}

    table = data.get("colors")
    if not isinstance(table, dict):
        if table is not None:
            logger.warning("Ignoring theme file %s: [colors] is not a table", path)
        return {}
    return {str(k): v for k, v in table.items() if isinstance(v, str)}


def load_theme() -> ThemeColors:
    """Load the bundled palette with user overrides applied.

    Returns:
        Validated palette. Falls back to the built-in defaults if the
        merged colors do not validate.
    """
    colors = read_colors(get_bundled_theme_path())
    overrides = read_colors(get_user_theme_path())
    if overrides:
        logger.debug("Applying %d theme override(s)", len(overrides))

    try:
        return ThemeColors.model_validate({**colors, **overrides})
    except ValidationError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Convert a palette to a Rich theme, loading the configured one by default."""
    return (colors or load_theme()).to_rich()


_cached_theme: Theme | None = None


def get_theme() -> Theme:
    """Return the Rich theme, loading it on first use."""
    global _cached_theme
    if _cached_theme is None:
        _cached_theme = get_rich_theme()
    return _cached_theme
