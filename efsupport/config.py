"""Centralized configuration constants for the package.

Values that callers may want to tune are read from environment variables
at import time; everything else lives in small constant classes.
"""

from __future__ import annotations

import logging
import os

# Logging
LOG_LEVEL = os.environ.get("EFSUPPORT_LOG_LEVEL", "WARNING").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def configure_logging(level: str | int | None = None) -> None:
    """Install a basic root handler for applications embedding the package."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)


class TreeConfig:
    """Configuration constants for compiling game descriptions."""

    # Player name that marks a node as a chance node
    CHANCE_PLAYER = "Chance"

    # Chance probabilities at a node must sum to 1 within this tolerance
    PROBABILITY_TOLERANCE = 1e-9


class SupportConfig:
    """Configuration constants for supports."""

    DEFAULT_NAME = ""

    # Copies of a cached support recompute their cache instead of copying it
    REBUILD_CACHE_ON_COPY = _env_flag("EFSUPPORT_REBUILD_CACHE_ON_COPY", True)


class DumpConfig:
    """Configuration constants for the diagnostic support listing."""

    INDENT = "  "
    EMPTY_MARKER = "(none)"
