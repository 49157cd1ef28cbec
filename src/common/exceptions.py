"""
Spixi Directory Exception Hierarchy

Provides clear, actionable error messages with structured information
for logging, run summaries, and programmatic error handling.
"""

from typing import Optional, Dict, Any


class SiteError(Exception):
    """
    Base exception for all site builder errors.

    Attributes:
        message: Human-readable error message
        code: Machine-readable error code
        details: Additional context as key-value pairs
        cause: Original exception that caused this error
        recoverable: Whether the run can continue past this error
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.cause = cause
        self.recoverable = recoverable

    def __str__(self):
        s = f"[{self.code}] {self.message}"
        if self.details:
            s += f" (details: {self.details})"
        if self.cause:
            s += f" caused by: {self.cause}"
        return s

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# Upstream repository errors
# =============================================================================

class RemoteError(SiteError):
    """Base for errors talking to the upstream repository."""
    pass


class RemoteListingError(RemoteError):
    """The app directory listing could not be retrieved. Aborts the run."""
    def __init__(self, url: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Failed to list apps at {url}: {reason}",
            code="REMOTE_LISTING_FAILED",
            details={"url": url, "reason": reason},
            cause=cause,
            recoverable=False,
        )


class ManifestFetchError(RemoteError):
    """An app manifest could not be downloaded."""
    def __init__(self, app_id: str, url: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Failed to fetch manifest for '{app_id}': {reason}",
            code="MANIFEST_FETCH_FAILED",
            details={"app_id": app_id, "url": url, "reason": reason},
            cause=cause,
        )


class ManifestParseError(RemoteError):
    """An app manifest was downloaded but could not be read."""
    def __init__(self, app_id: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Failed to parse manifest for '{app_id}': {reason}",
            code="MANIFEST_PARSE_FAILED",
            details={"app_id": app_id, "reason": reason},
            cause=cause,
        )


class AssetUnavailable(RemoteError):
    """An icon asset did not answer the existence probe."""
    def __init__(self, url: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Asset unavailable: {url}: {reason}",
            code="ASSET_UNAVAILABLE",
            details={"url": url, "reason": reason},
            cause=cause,
        )


# =============================================================================
# Local artifact errors
# =============================================================================

class CatalogReadError(SiteError):
    """The previously persisted catalog exists but cannot be used."""
    def __init__(self, path: str, reason: str, cause: Optional[Exception] = None):
        super().__init__(
            f"Cannot read catalog {path}: {reason}",
            code="CATALOG_READ_FAILED",
            details={"path": path, "reason": reason},
            cause=cause,
        )


class DocumentInjectionWarning(SiteError):
    """An HTML injection step could not be applied and was skipped."""
    def __init__(self, path: str, step: str, reason: str):
        super().__init__(
            f"Skipped {step} for {path}: {reason}",
            code="DOCUMENT_INJECTION_SKIPPED",
            details={"path": path, "step": step, "reason": reason},
        )


# =============================================================================
# Configuration errors
# =============================================================================

class ConfigError(SiteError):
    """Base for configuration errors."""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration."""
    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid configuration: {field}={value}: {reason}",
            code="INVALID_CONFIG",
            details={"field": field, "value": str(value), "reason": reason},
            recoverable=False,
        )


class MissingConfigError(ConfigError):
    """Configuration file does not exist."""
    def __init__(self, path: str):
        super().__init__(
            f"Configuration file not found: {path}",
            code="MISSING_CONFIG",
            details={"path": path},
            recoverable=False,
        )
