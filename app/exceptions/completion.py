# ruff: noqa: D107
"""Completion provider (transport) exceptions."""

from typing import Any

from .base import BaseAppException


class CompletionTransportError(BaseAppException):
    """Base exception for failed calls to the completion provider."""

    def __init__(
        self,
        message: str = "Completion request failed",
        status_code: int = 500,
        error_code: str = "COMPLETION_TRANSPORT_ERROR",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, status_code, error_code, details)


class CompletionAuthError(CompletionTransportError):
    """Exception raised when the provider rejects the caller's API key."""

    def __init__(
        self,
        message: str = "Invalid API key. Please check your API key.",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 401, "COMPLETION_AUTH_ERROR", details)


class CompletionRateLimitError(CompletionTransportError):
    """Exception raised when the provider rate limit is hit."""

    def __init__(
        self,
        message: str = "Rate limit exceeded. Please try again later.",
        retry_after: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        if details is None:
            details = {}
        if retry_after:
            details["retry_after"] = retry_after
        super().__init__(message, 429, "COMPLETION_RATE_LIMITED", details)


class CompletionUnavailableError(CompletionTransportError):
    """Exception raised when the provider cannot be reached or returns 5xx."""

    def __init__(
        self,
        message: str = "Completion service is temporarily unavailable",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 500, "COMPLETION_UNAVAILABLE", details)


class CompletionTimeoutError(CompletionTransportError):
    """Exception raised when the completion call exceeds its time budget."""

    def __init__(
        self,
        message: str = "Completion request timed out",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 500, "COMPLETION_TIMEOUT", details)


class CompletionConfigurationError(CompletionTransportError):
    """Exception raised when the provider response or setup is unusable."""

    def __init__(
        self,
        message: str = "Completion service is not properly configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, 500, "COMPLETION_CONFIGURATION_ERROR", details)


# Map upstream HTTP statuses to exceptions
COMPLETION_ERROR_MAPPING = {
    401: CompletionAuthError,
    403: CompletionAuthError,
    429: CompletionRateLimitError,
}


def map_completion_error(
    status_code: int, message: str, details: dict[str, Any] | None = None
) -> CompletionTransportError:
    """Map an upstream HTTP status to the matching exception."""
    exception_class = COMPLETION_ERROR_MAPPING.get(status_code)
    if exception_class is None and status_code >= 500:
        exception_class = CompletionUnavailableError
    if exception_class is None:
        return CompletionTransportError(message, details=details)
    return exception_class(message, details=details)
