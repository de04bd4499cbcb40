"""Logging setup for perfmark.

perfmark is mostly used as a library inside a test run, where the test
runner already owns the console. Library modules therefore only call
:func:`get_logger`; :func:`setup_logging` is for the CLI and for callers
that want perfmark's own handlers, and it can leave the console alone.
"""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "perfmark"
_DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_CONSOLE_FORMAT = "%(levelname)-8s %(message)s"


def console_level(*, verbose: bool = False, quiet: bool = False) -> int:
    """Map the CLI verbosity flags to a log level. *verbose* wins."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    return logging.INFO


def setup_logging(
    *,
    verbose: bool = False,
    quiet: bool = False,
    level: int | None = None,
    console: bool = True,
    log_file: Path | None = None,
) -> logging.Logger:
    """Configure and return the ``perfmark`` logger.

    Args:
        verbose: Console level DEBUG.
        quiet: Console level WARNING. Ignored if *verbose* is True.
        level: Explicit console level; overrides *verbose*/*quiet*.
        console: If False, install no console handler and let records
            propagate to whatever the host (e.g. pytest) configured.
        log_file: If provided, add a file handler at DEBUG level to this path.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Remove any existing handlers to allow reconfiguration.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if console:
        stream = logging.StreamHandler()
        if level is None:
            level = console_level(verbose=verbose, quiet=quiet)
        stream.setLevel(level)
        stream.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(stream)
    # Our own console handler replaces the host's; without one, defer to it.
    logger.propagate = not console

    if log_file is not None:
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(fh)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a named child logger under the perfmark namespace."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}")
