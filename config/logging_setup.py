# Path: config/logging_setup.py
# Purpose: Configure process-wide logging from application settings.
# Layer: config.
# Details: Modules obtain loggers via logging.getLogger(__name__); this sets the root handler once.

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach a stream handler to the root logger and apply the requested level."""

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
