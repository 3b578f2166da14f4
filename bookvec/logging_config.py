"""
Logging configuration for bookvec.

Nothing here runs on import. Applications choose quiet or debug output
with configure_from_env(); BookLibrary attaches the operations log.
"""

import logging
import os
import sys
import warnings
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_PACKAGE_LOGGER = "bookvec"
_LIBRARY_LOGGERS = ("httpx", "httpcore")

OPS_LOG_FILENAME = "bookvec-ops.log"
OPS_LOG_MAX_BYTES = 1_000_000
OPS_LOG_BACKUPS = 3


def configure_quiet_mode(quiet: bool = True):
    """
    Configure logging to suppress verbose library output.

    Silences per-request INFO lines from httpx/httpcore; bookvec's own
    warnings about degraded service calls still get through.

    Args:
        quiet: If True, suppress verbose output. If False, show everything.
    """
    level = logging.WARNING if quiet else logging.NOTSET
    for name in _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(level)
    if quiet:
        warnings.filterwarnings("ignore", category=DeprecationWarning)


def enable_debug_mode():
    """Enable debug-level logging to stderr."""
    warnings.filterwarnings("default")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Add stderr handler if not already present
    if not any(isinstance(h, logging.StreamHandler) and h.stream == sys.stderr
               for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%H:%M:%S"
        ))
        root_logger.addHandler(handler)

    for name in (_PACKAGE_LOGGER,) + _LIBRARY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG)


def configure_from_env():
    """Debug mode when BOOKVEC_VERBOSE=1, quiet mode otherwise."""
    if os.environ.get("BOOKVEC_VERBOSE") == "1":
        enable_debug_mode()
    else:
        configure_quiet_mode(quiet=True)


def configure_ops_log(log_dir: str | Path, level: int = logging.INFO) -> RotatingFileHandler:
    """
    Record catalog operations in ``{log_dir}/bookvec-ops.log``.

    The file rotates at 1 MB with three backups. The ``bookvec`` logger is
    lowered to ``level`` if needed so operation records reach the file
    even in quiet mode. Pass the returned handler to ``remove_ops_log``.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / OPS_LOG_FILENAME,
        maxBytes=OPS_LOG_MAX_BYTES,
        backupCount=OPS_LOG_BACKUPS,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))

    package_logger = logging.getLogger(_PACKAGE_LOGGER)
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > level:
        package_logger.setLevel(level)
    return handler


def remove_ops_log(handler: Optional[logging.Handler]) -> None:
    """Detach and close a handler from ``configure_ops_log``; None is ignored."""
    if handler is None:
        return
    logging.getLogger(_PACKAGE_LOGGER).removeHandler(handler)
    handler.close()
