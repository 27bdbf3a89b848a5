# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models and logging setup for application-wide configuration.

from .logging_setup import configure_logging
from .settings import AppSettings, CacheSettings

__all__ = ["AppSettings", "CacheSettings", "configure_logging"]
