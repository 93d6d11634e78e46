# ruff: noqa: D107
"""Base exception classes.

Every domain error is an `HTTPException` carrying a structured detail, so the
API layer renders it without translation.
"""

from typing import Any

from fastapi import HTTPException


class BaseAppException(HTTPException):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(
            status_code=status_code,
            detail={"message": message, "error_code": error_code, "details": self.details},
        )

    def __str__(self) -> str:
        return self.message


class NotFoundError(BaseAppException):
    """Exception raised when a resource is missing or not accessible to the caller."""

    def __init__(
        self,
        message: str = "Resource not found",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, status_code=404, error_code="NOT_FOUND", details=details)


class ValidationError(BaseAppException):
    """Exception raised when input shape or constraints are invalid."""

    def __init__(
        self,
        message: str = "Validation failed",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_code="VALIDATION_ERROR",
            details=details,
        )


class ConflictError(BaseAppException):
    """Exception raised when a write collides with existing state (duplicate names)."""

    def __init__(
        self,
        message: str = "Resource already exists",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, status_code=409, error_code="CONFLICT", details=details)


class InvariantViolationError(BaseAppException):
    """Exception raised for an illegal state transition."""

    def __init__(
        self,
        message: str = "Operation would violate a data invariant",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=400,
            error_code="INVARIANT_VIOLATION",
            details=details,
        )


class CredentialError(BaseAppException):
    """Exception raised when the caller's stored API key is missing or unreadable."""

    def __init__(
        self,
        message: str = "API key not configured",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            status_code=401,
            error_code="CREDENTIAL_ERROR",
            details=details,
        )
