"""User and credential exceptions."""

from .base import AuthenticationError, ConflictError


class UserAlreadyExistsError(ConflictError):
    """Raised when signing up with an email that is already registered."""

    def __init__(self, message: str = "User already exists"):
        super().__init__(message=message, error_code="USER_ALREADY_EXISTS")


class InvalidCredentialsError(AuthenticationError):
    """Raised when an email/password pair does not match."""

    def __init__(self, message: str = "Invalid credentials"):
        super().__init__(message=message, error_code="INVALID_CREDENTIALS")
