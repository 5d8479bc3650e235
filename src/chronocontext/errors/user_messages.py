"""User-friendly error messages for chronocontext.

This module provides human-readable error messages and recovery suggestions
for all error types, so CLI users never see raw technical errors.

Privacy Note:
- Error messages NEVER include the analysed text
- Only error codes and whitelisted details are shown
"""

from __future__ import annotations

from typing import Any


# =============================================================================
# Error Message Catalog
# =============================================================================

ERROR_MESSAGES: dict[str, str] = {
    # Connection errors
    "CONNECTION_ERROR": "A connection issue occurred. Check your services.",
    "EXTRACTOR_CONNECTION_ERROR": "Cannot connect to the Duckling time extractor.",
    # Configuration errors
    "CONFIGURATION_ERROR": "There's a configuration issue.",
    "INVALID_CONFIG": "The configuration is invalid. Check settings.",
    "MISSING_CONFIG": "Required configuration is missing.",
    # Processing errors
    "PROCESSING_ERROR": "Failed to process the document.",
    "EXTRACTION_ERROR": "Couldn't extract dates and times from the text.",
    "UNSUPPORTED_LANGUAGE": "Dates and times can't be extracted for this language.",
    # Generic
    "CHRONOCONTEXT_ERROR": "An unexpected error occurred. Please try again.",
    "UNKNOWN_ERROR": "Something went wrong. Please try again.",
}


# =============================================================================
# Recovery Suggestions
# =============================================================================

RECOVERY_SUGGESTIONS: dict[str, str] = {
    # Connection errors
    "CONNECTION_ERROR": "Check your network and service status.",
    "EXTRACTOR_CONNECTION_ERROR": "Start Duckling (docker run -p 8000:8000 rasa/duckling) and retry.",
    # Configuration errors
    "CONFIGURATION_ERROR": "Check config: chronocontext config show",
    "INVALID_CONFIG": "Recreate defaults: chronocontext config init",
    "MISSING_CONFIG": "Create the settings file: chronocontext config init",
    # Processing errors
    "PROCESSING_ERROR": "Check that the document text is valid UTF-8.",
    "EXTRACTION_ERROR": "Check the Duckling server logs for the failing request.",
    "UNSUPPORTED_LANGUAGE": "List supported languages: chronocontext time languages",
    # Generic
    "CHRONOCONTEXT_ERROR": "If this persists, please report the issue.",
    "UNKNOWN_ERROR": "Retry with --log-level DEBUG and report if the issue continues.",
}


# =============================================================================
# Helper Functions
# =============================================================================


def _error_code(error: Any) -> str:
    if hasattr(error, "code"):
        return error.code
    if isinstance(error, str):
        return error
    return type(error).__name__.upper()


def get_user_message(error: Any) -> str:
    """Get user-friendly message for an error.

    Args:
        error: The error (can be Exception or error code string)

    Returns:
        User-friendly error message
    """
    return ERROR_MESSAGES.get(_error_code(error), ERROR_MESSAGES["UNKNOWN_ERROR"])


def get_recovery_suggestion(error: Any) -> str:
    """Get recovery suggestion for an error.

    Args:
        error: The error (can be Exception or error code string)

    Returns:
        Recovery suggestion
    """
    return RECOVERY_SUGGESTIONS.get(
        _error_code(error), RECOVERY_SUGGESTIONS["UNKNOWN_ERROR"]
    )


def format_error_for_cli(error: Any) -> str:
    """Format error for CLI output.

    Args:
        error: The error to format

    Returns:
        CLI-formatted error message
    """
    message = getattr(error, "user_message", None) or get_user_message(error)
    suggestion = getattr(error, "recovery_suggestion", None) or get_recovery_suggestion(error)
    code = getattr(error, "code", "ERROR")

    lines = [
        f"Error [{code}]: {message}",
        "",
        f"Suggestion: {suggestion}",
    ]

    if getattr(error, "details", None):
        lines.append("")
        lines.append("Details:")
        for key, value in error.details.items():
            # Don't echo document content back
            if key not in ("content", "text", "section"):
                lines.append(f"  {key}: {value}")

    return "\n".join(lines)


__all__ = [
    "ERROR_MESSAGES",
    "RECOVERY_SUGGESTIONS",
    "get_user_message",
    "get_recovery_suggestion",
    "format_error_for_cli",
]
