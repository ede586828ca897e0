# ruff: noqa: D107
"""Chat session and turn exceptions."""

from typing import Any

from .base import AuthorizationError, ConflictError, NotFoundError

# Shared by not-found and not-owned so other users' sessions are not revealed
SESSION_UNAVAILABLE_MESSAGE = "Session not found or access denied"
SESSION_UNAVAILABLE_CODE = "SESSION_NOT_FOUND"


class ChatSessionNotFoundError(NotFoundError):
    """Raised when a chat session does not exist."""

    def __init__(self, message: str = SESSION_UNAVAILABLE_MESSAGE, details: dict[str, Any] | None = None):
        super().__init__(message=message, error_code=SESSION_UNAVAILABLE_CODE, details=details)


class ChatSessionAccessError(AuthorizationError):
    """Raised when a chat session belongs to another user."""

    def __init__(self, message: str = SESSION_UNAVAILABLE_MESSAGE, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            status_code=404,
            error_code=SESSION_UNAVAILABLE_CODE,
            details=details,
        )


class ChatSessionInactiveError(ConflictError):
    """Raised when a message is submitted to a deleted session."""

    def __init__(self, message: str = "Session has been deleted", details: dict[str, Any] | None = None):
        super().__init__(message=message, error_code="SESSION_INACTIVE", details=details)


class TurnSequenceConflictError(ConflictError):
    """Raised when two turns would share a sequence number."""

    def __init__(
        self,
        message: str = "Another message was written to this session at the same time",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, error_code="TURN_SEQUENCE_CONFLICT", details=details)


class InvalidTurnSequenceError(ConflictError):
    """Raised when an assistant turn does not directly follow its user turn."""

    def __init__(
        self,
        message: str = "Assistant turn must directly follow its user turn",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message=message, error_code="INVALID_TURN_SEQUENCE", details=details)
