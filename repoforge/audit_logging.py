"""Logging helpers for the RepoForge rule engine.

All modules log through the package logger returned by ``get_logger()``.
Handlers are only attached by ``setup_logging()``, which the CLI calls;
library callers keep control of their own logging configuration.
"""

import logging
import sys
from typing import TextIO

LOGGER_NAME = "repoforge"

_LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
_VERBOSE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the package logger, or a child of it.

    Args:
        name: Optional child logger suffix (e.g. 'config').

    Returns:
        Logger instance under the ``repoforge`` namespace.
    """
    if name:
        return logging.getLogger(f"{LOGGER_NAME}.{name}")
    return logging.getLogger(LOGGER_NAME)


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach a stream handler to the package logger.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates.

    Args:
        verbose: Log at DEBUG level with timestamps.
        quiet: Only log errors.
        stream: Output stream (default: stderr).

    Returns:
        The configured package logger.
    """
    logger = get_logger()

    for handler in list(logger.handlers):
        if getattr(handler, "_repoforge_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler._repoforge_handler = True  # type: ignore[attr-defined]
    handler.setFormatter(
        logging.Formatter(_VERBOSE_FORMAT if verbose else _LOG_FORMAT)
    )
    logger.addHandler(handler)

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.ERROR)
    else:
        logger.setLevel(logging.WARNING)

    logger.propagate = False
    return logger


__all__ = ["LOGGER_NAME", "get_logger", "setup_logging"]
