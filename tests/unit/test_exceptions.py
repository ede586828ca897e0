"""
Unit tests for Exception classes.

Checks status codes and error codes that the API surfaces to clients.
"""

import pytest
from fastapi import HTTPException, status

from app.exceptions.ai import (
    AIConfigurationError,
    AIContentFilterError,
    AIServiceError,
    AIServiceUnavailableError,
    AITimeoutError,
)
from app.exceptions.base import (
    AuthenticationError,
    AuthorizationError,
    BaseAppException,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from app.exceptions.chat import (
    ChatSessionAccessError,
    ChatSessionInactiveError,
    ChatSessionNotFoundError,
    InvalidTurnSequenceError,
    TurnSequenceConflictError,
)
from app.exceptions.user import InvalidCredentialsError, UserAlreadyExistsError


class TestBaseAppException:
    """Test cases for BaseAppException."""

    def test_base_exception_default_values(self):
        exc = BaseAppException("Test error")

        assert isinstance(exc, HTTPException)
        assert exc.message == "Test error"
        assert exc.status_code == 500
        assert exc.error_code == "INTERNAL_ERROR"
        assert exc.details == {}
        assert exc.detail["message"] == "Test error"
        assert exc.detail["error_code"] == "INTERNAL_ERROR"

    def test_base_exception_custom_values(self):
        exc = BaseAppException("Custom", status_code=418, error_code="TEAPOT", details={"k": "v"})

        assert exc.status_code == 418
        assert exc.detail["details"] == {"k": "v"}


class TestBaseErrors:
    """Test cases for the generic error classes."""

    @pytest.mark.parametrize(
        "exc_class, status_code, error_code",
        [
            (AuthenticationError, status.HTTP_401_UNAUTHORIZED, "AUTHENTICATION_REQUIRED"),
            (AuthorizationError, status.HTTP_403_FORBIDDEN, "PERMISSION_DENIED"),
            (NotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
            (ConflictError, status.HTTP_409_CONFLICT, "CONFLICT"),
            (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY, "VALIDATION_ERROR"),
        ],
    )
    def test_defaults(self, exc_class, status_code, error_code):
        exc = exc_class()

        assert exc.status_code == status_code
        assert exc.error_code == error_code

    def test_authentication_error_challenges_bearer(self):
        assert AuthenticationError().headers == {"WWW-Authenticate": "Bearer"}


class TestChatExceptions:
    """Test cases for chat exceptions."""

    def test_missing_and_foreign_sessions_look_identical(self):
        missing = ChatSessionNotFoundError()
        foreign = ChatSessionAccessError()

        assert missing.status_code == foreign.status_code == status.HTTP_404_NOT_FOUND
        assert missing.error_code == foreign.error_code == "SESSION_NOT_FOUND"
        assert missing.message == foreign.message

    @pytest.mark.parametrize(
        "exc_class, error_code",
        [
            (ChatSessionInactiveError, "SESSION_INACTIVE"),
            (TurnSequenceConflictError, "TURN_SEQUENCE_CONFLICT"),
            (InvalidTurnSequenceError, "INVALID_TURN_SEQUENCE"),
        ],
    )
    def test_conflicts(self, exc_class, error_code):
        exc = exc_class()

        assert isinstance(exc, ConflictError)
        assert exc.status_code == status.HTTP_409_CONFLICT
        assert exc.error_code == error_code


class TestUserExceptions:
    """Test cases for user exceptions."""

    def test_user_already_exists(self):
        exc = UserAlreadyExistsError()

        assert exc.status_code == status.HTTP_409_CONFLICT
        assert exc.error_code == "USER_ALREADY_EXISTS"

    def test_invalid_credentials(self):
        exc = InvalidCredentialsError()

        assert exc.status_code == status.HTTP_401_UNAUTHORIZED
        assert exc.error_code == "INVALID_CREDENTIALS"


class TestAIExceptions:
    """Test cases for AI exceptions."""

    @pytest.mark.parametrize(
        "exc_class, error_code",
        [
            (AIServiceUnavailableError, "AI_SERVICE_UNAVAILABLE"),
            (AITimeoutError, "AI_TIMEOUT"),
            (AIConfigurationError, "AI_CONFIGURATION_ERROR"),
            (AIContentFilterError, "AI_CONTENT_FILTERED"),
        ],
    )
    def test_ai_errors(self, exc_class, error_code):
        exc = exc_class()

        assert isinstance(exc, AIServiceError)
        assert exc.status_code == 500
        assert exc.error_code == error_code
