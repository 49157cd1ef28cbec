"""
Spixi Directory Common Utilities

Shared exceptions, logging and decorators.
"""

from .exceptions import (
    SiteError, RemoteError, RemoteListingError, ManifestFetchError,
    ManifestParseError, AssetUnavailable, CatalogReadError,
    DocumentInjectionWarning, ConfigError, InvalidConfigError,
    MissingConfigError,
)
from .decorators import timed
from .logging_config import setup_logging, LogContext

__all__ = [
    # Exceptions
    "SiteError", "RemoteError", "RemoteListingError", "ManifestFetchError",
    "ManifestParseError", "AssetUnavailable", "CatalogReadError",
    "DocumentInjectionWarning", "ConfigError", "InvalidConfigError",
    "MissingConfigError",
    # Decorators
    "timed",
    # Logging
    "setup_logging", "LogContext",
]
