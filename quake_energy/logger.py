"""Logger helpers: a quiet library logger and opt-in console output."""

from __future__ import annotations
import logging
from typing import Optional

LIB_LOGGER_NAME = "quake_energy"
DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Return the package logger, or a child of it when `name` is given
    (``get_logger("plots")`` -> ``quake_energy.plots``).

    Only the package logger gets a NullHandler; children propagate to it.
    """
    root = logging.getLogger(LIB_LOGGER_NAME)
    if not root.handlers:
        root.addHandler(logging.NullHandler())
    if name:
        return root.getChild(name)
    return root


def verbosity_to_level(verbose: int) -> int:
    """Map a ``-v`` count to a logging level: 0 → WARNING, 1 → INFO, 2+ → DEBUG."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(level: int = logging.INFO, fmt: Optional[str] = None) -> None:
    """
    Route package logs to stderr.

    Parameters
    ----------
    level : int
        Logging level (e.g., logging.INFO).
    fmt : Optional[str]
        Custom format string, defaults to `DEFAULT_FORMAT`.

    Examples
    --------
    >>> from quake_energy.logger import configure_logging
    >>> configure_logging(logging.DEBUG)
    """
    logger = logging.getLogger(LIB_LOGGER_NAME)
    logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    logger.setLevel(level)
    logger.addHandler(handler)
