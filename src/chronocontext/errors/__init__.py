"""Centralized error definitions for chronocontext.

This module provides a unified error hierarchy and user-friendly error handling
for the temporal extraction pipeline and its tooling.

Usage:
    from chronocontext.errors import ChronoContextError

    try:
        tokens = contextualizer.resolve(text, "en")
    except ChronoContextError as e:
        print(f"{e.user_message} ({e.recovery_suggestion})")
"""

from __future__ import annotations

from chronocontext.errors.user_messages import (
    get_user_message,
    get_recovery_suggestion,
)


# =============================================================================
# Base Error
# =============================================================================


class ChronoContextError(Exception):
    """Base exception for all chronocontext errors.

    Attributes:
        code: Error code for categorization
        user_message: User-friendly message (optional override)
        recoverable: Whether the error is potentially recoverable
        details: Additional error details for debugging
    """

    code: str = "CHRONOCONTEXT_ERROR"
    default_message: str = "An unexpected error occurred"
    recoverable: bool = True

    def __init__(
        self,
        message: str | None = None,
        *,
        user_message: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.message = message or self.default_message
        self._user_message = user_message
        self.details = details or {}
        super().__init__(self.message)

    @property
    def user_message(self) -> str:
        """Get user-friendly message."""
        if self._user_message:
            return self._user_message
        return get_user_message(self)

    @property
    def recovery_suggestion(self) -> str:
        """Get recovery suggestion."""
        return get_recovery_suggestion(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
            "details": self.details,
        }


# =============================================================================
# Connection Errors
# =============================================================================


class ConnectionError(ChronoContextError):
    """Base error for connection issues."""

    code = "CONNECTION_ERROR"
    default_message = "Connection failed"
    recoverable = True


class ExtractorConnectionError(ConnectionError):
    """Cannot reach the date/time extractor service."""

    code = "EXTRACTOR_CONNECTION_ERROR"
    default_message = "Cannot connect to the time extractor"


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(ChronoContextError):
    """Base error for configuration issues."""

    code = "CONFIGURATION_ERROR"
    default_message = "Configuration error"
    recoverable = True


class InvalidConfigError(ConfigurationError):
    """Configuration is invalid."""

    code = "INVALID_CONFIG"
    default_message = "Invalid configuration"


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""

    code = "MISSING_CONFIG"
    default_message = "Missing required configuration"


# =============================================================================
# Processing Errors
# =============================================================================


class ProcessingError(ChronoContextError):
    """Base error for document processing."""

    code = "PROCESSING_ERROR"
    default_message = "Document processing failed"


class ExtractionError(ProcessingError):
    """Temporal extraction failed."""

    code = "EXTRACTION_ERROR"
    default_message = "Extraction failed"


class UnsupportedLanguageError(ProcessingError):
    """The extractor has no rules for the requested language."""

    code = "UNSUPPORTED_LANGUAGE"
    default_message = "Language not supported"

    def __init__(self, language: str, *, message: str | None = None) -> None:
        self.language = language
        super().__init__(
            message or f"Language '{language}' is not supported by the time extractor",
            details={"language": language},
        )


__all__ = [
    # Base
    "ChronoContextError",
    # Connection
    "ConnectionError",
    "ExtractorConnectionError",
    # Configuration
    "ConfigurationError",
    "InvalidConfigError",
    "MissingConfigError",
    # Processing
    "ProcessingError",
    "ExtractionError",
    "UnsupportedLanguageError",
]
