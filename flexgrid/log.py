"""Logging for FlexGrid.

Rendering never logs per cell. What gets logged is the grid lifecycle
(conventions applied, data sets rebuilt, stale loads discarded, failed loads),
refused detail grids and failing event callbacks. Everything goes to the
``flexgrid`` logger, which writes to stderr unless the host reconfigures it.
"""

from __future__ import annotations

import logging
import sys

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from .config import LogSettings


LOGGER_NAME = "flexgrid"
DEFAULT_FORMAT = "%(name)s - %(levelname)s - %(message)s"


class _LoggerHolder:
    """Holder for the package logger, created on first use."""

    logger: logging.Logger | None = None


def get_logger() -> logging.Logger:
    """Get the ``flexgrid`` logger.

    The first call installs a stderr handler (unless the logger already has
    one) and sets the level to WARNING.

    Returns
    -------
    logging.Logger
        The package logger.
    """
    if _LoggerHolder.logger is None:
        logger = logging.getLogger(LOGGER_NAME)
        logger.setLevel(logging.WARNING)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setLevel(logging.DEBUG)
            handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
            logger.addHandler(handler)
        _LoggerHolder.logger = logger
    return _LoggerHolder.logger


def debug(msg: str, *args: Any) -> None:
    get_logger().debug(msg, *args)


def info(msg: str, *args: Any) -> None:
    get_logger().info(msg, *args)


def warn(msg: str, *args: Any) -> None:
    """Log a recoverable problem, such as an ignored config file or a refused detail grid."""
    get_logger().warning(msg, *args)


def error(msg: str, *args: Any) -> None:
    get_logger().error(msg, *args)


def exception(msg: str, *args: Any) -> None:
    """Log ``msg`` with the traceback of the exception being handled.

    Only meaningful inside an ``except`` block.
    """
    get_logger().exception(msg, *args)


def set_level(level: int | str) -> None:
    """Change the package log level.

    Parameters
    ----------
    level : int or str
        A ``logging`` level constant or its name, in any case.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())
    get_logger().setLevel(level)


def enable_debug() -> None:
    """Log data set and context lifecycle events too."""
    set_level(logging.DEBUG)


def configure_from_settings(settings: LogSettings) -> None:
    """Apply the level and record format of a ``LogSettings`` section."""
    logger = get_logger()
    logger.setLevel(settings.level)
    formatter = logging.Formatter(settings.format)
    for handler in logger.handlers:
        handler.setFormatter(formatter)


def log_callback_error(event_type: str, grid: str, exc: BaseException) -> None:
    """Log an exception raised by a grid's event callback.

    Parameters
    ----------
    event_type : str
        The event being reported, e.g. ``"save_operation_finished"``.
    grid : str
        Name of the entity type the grid shows.
    exc : BaseException
        What the callback raised.
    """
    get_logger().error(
        f"Callback error for '{event_type}' on grid '{grid}': {exc}",
        exc_info=(type(exc), exc, exc.__traceback__),
    )
