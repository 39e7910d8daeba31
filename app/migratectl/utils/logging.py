"""Logging setup for migration runs.

Every run appends to <target>/migration.log. With --verbose, log records
are also rendered on stderr through Rich.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from rich.logging import RichHandler

from migratectl.core.paths import get_log_path
from migratectl.utils.formatting import err_console

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ROOT_LOGGER = "migratectl"


def configure_console_logging(verbose: bool = False) -> None:
    """Route package log records to the console.

    Run results are printed by the CLI itself, so log records reach the
    console only with verbose output. They always reach migration.log.

    Args:
        verbose: Render debug and info records on stderr through Rich.
    """
    logger = logging.getLogger(_ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, (RichHandler, logging.NullHandler)):
            logger.removeHandler(handler)

    if not verbose:
        logger.addHandler(logging.NullHandler())
        return

    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    handler.setLevel(logging.DEBUG)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


@contextmanager
def target_log(target: Path) -> Iterator[Path | None]:
    """Append package log records to the target's migration.log.

    The handler is detached when the context exits. If the log file
    cannot be opened the run continues without it.

    Args:
        target: Target directory of the run.

    Yields:
        Path of the log file, or None if it could not be opened.
    """
    log_path = get_log_path(target)
    logger = logging.getLogger(_ROOT_LOGGER)

    try:
        target.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    except OSError as e:
        logger.warning("Cannot open log file %s: %s", log_path, e)
        yield None
        return

    handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    handler.setLevel(logging.INFO)
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > logging.INFO:
        logger.setLevel(logging.INFO)
    try:
        yield log_path
    finally:
        logger.removeHandler(handler)
        handler.close()
