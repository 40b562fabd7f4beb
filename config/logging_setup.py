# Path: config/logging_setup.py
# Purpose: Configure process-wide logging for scripts and the HTTP API.
# Layer: config.
# Details: Installs a single timestamped stream handler at the configured level.

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a stdout handler to the root logger, replacing any previous configuration."""

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
