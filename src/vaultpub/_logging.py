"""Logging configuration for the vaultpub package.

Modules obtain their logger the usual way:
    log = logging.getLogger(__name__)

The level is taken from the explicit argument, else the VAULTPUB_LOG_LEVEL
environment variable, else INFO.
"""

import logging
import os
import sys


def configure_logging(level: str | None = None) -> None:
    """Attach a stderr handler to the package logger.

    Call once at startup (the CLI callback does). Subsequent calls are no-ops.
    """
    pkg_logger = logging.getLogger("vaultpub")
    if pkg_logger.handlers:
        return

    level_name = (level or os.environ.get("VAULTPUB_LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt="[%(levelname)s] %(name)s: %(message)s"))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False
