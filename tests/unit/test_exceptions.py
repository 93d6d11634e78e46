"""
Unit tests for Exception classes.

Covers the base taxonomy, the branching errors and the completion error mapping.
"""

import pytest
from fastapi import HTTPException

from app.exceptions.base import (
    BaseAppException,
    ConflictError,
    CredentialError,
    InvariantViolationError,
    NotFoundError,
    ValidationError,
)
from app.exceptions.branching import (
    BranchHasChildrenError,
    BranchNotFoundError,
    ConversationNotFoundError,
    DuplicateBranchNameError,
    MainBranchDeletionError,
    MessageNotFoundError,
    NonAncestorForkError,
)
from app.exceptions.completion import (
    CompletionAuthError,
    CompletionRateLimitError,
    CompletionTimeoutError,
    CompletionTransportError,
    CompletionUnavailableError,
    map_completion_error,
)


class TestBaseAppException:
    """Test cases for BaseAppException."""

    def test_base_exception_default_values(self):
        exc = BaseAppException("Test error")

        assert isinstance(exc, HTTPException)
        assert exc.message == "Test error"
        assert exc.status_code == 500
        assert exc.error_code == "INTERNAL_ERROR"
        assert exc.details == {}
        assert exc.detail == {"message": "Test error", "error_code": "INTERNAL_ERROR", "details": {}}
        assert str(exc) == "Test error"

    @pytest.mark.parametrize(
        "exc_class,status_code,error_code",
        [
            (ValidationError, 400, "VALIDATION_ERROR"),
            (NotFoundError, 404, "NOT_FOUND"),
            (ConflictError, 409, "CONFLICT"),
            (InvariantViolationError, 400, "INVARIANT_VIOLATION"),
            (CredentialError, 401, "CREDENTIAL_ERROR"),
        ],
    )
    def test_taxonomy_status_codes(self, exc_class, status_code, error_code):
        exc = exc_class()

        assert exc.status_code == status_code
        assert exc.error_code == error_code


class TestBranchingExceptions:
    """Test cases for conversation/branch/message errors."""

    def test_not_found_family(self):
        for exc in (ConversationNotFoundError(), BranchNotFoundError(), MessageNotFoundError()):
            assert isinstance(exc, NotFoundError)
            assert exc.status_code == 404

    def test_duplicate_branch_name_is_conflict(self):
        exc = DuplicateBranchNameError("alt")

        assert isinstance(exc, ConflictError)
        assert exc.status_code == 409
        assert exc.details == {"name": "alt"}

    def test_invariant_family(self):
        for exc in (MainBranchDeletionError(), BranchHasChildrenError(2), NonAncestorForkError()):
            assert isinstance(exc, InvariantViolationError)
            assert exc.error_code == "INVARIANT_VIOLATION"

    def test_branch_has_children_details(self):
        assert BranchHasChildrenError(3).details == {"child_count": 3}


class TestCompletionErrorMapping:
    """Test cases for map_completion_error."""

    @pytest.mark.parametrize(
        "status_code,expected",
        [
            (401, CompletionAuthError),
            (403, CompletionAuthError),
            (429, CompletionRateLimitError),
            (500, CompletionUnavailableError),
            (503, CompletionUnavailableError),
        ],
    )
    def test_maps_upstream_status(self, status_code, expected):
        exc = map_completion_error(status_code, "upstream said no")

        assert isinstance(exc, expected)
        assert exc.message == "upstream said no"

    def test_unmapped_status_falls_back_to_base(self):
        exc = map_completion_error(400, "bad request", details={"upstream_status": 400})

        assert type(exc) is CompletionTransportError
        assert exc.status_code == 500
        assert exc.details == {"upstream_status": 400}

    def test_rate_limit_carries_retry_after(self):
        exc = CompletionRateLimitError(retry_after=7)

        assert exc.status_code == 429
        assert exc.details["retry_after"] == 7

    def test_timeout_is_transport_error(self):
        assert isinstance(CompletionTimeoutError(), CompletionTransportError)
