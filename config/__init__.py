# Path: config/__init__.py
# Purpose: Package initializer for configuration module.
# Layer: config.
# Details: Exposes settings models and logging setup for application-wide configuration.

from .logging_setup import configure_logging
from .settings import AppSettings, EmbedderSettings, IndexSettings, IngestionSettings, SearchSettings

__all__ = [
    "AppSettings",
    "EmbedderSettings",
    "IndexSettings",
    "IngestionSettings",
    "SearchSettings",
    "configure_logging",
]
