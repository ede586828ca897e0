# ruff: noqa: D107
"""Counselor reply generation failures.

Raised inside the generation client only. ``AIServiceUnavailableError`` is the
retry signal; every other failure is logged and the caller gets the fallback
reply, so none of these reaches the chat endpoints.
"""

from typing import Any

from .base import BaseAppException


class AIServiceError(BaseAppException):
    """A counselor reply could not be produced."""

    default_message = "Counselor reply generation failed"
    default_code = "AI_SERVICE_ERROR"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message or self.default_message,
            error_code=error_code or self.default_code,
            details=details,
        )


class AIServiceUnavailableError(AIServiceError):
    """The model answered 503 (overloaded); the attempt may be retried."""

    default_message = "Counselor model is overloaded"
    default_code = "AI_SERVICE_UNAVAILABLE"


class AITimeoutError(AIServiceError):
    default_message = "Counselor model did not answer in time"
    default_code = "AI_TIMEOUT"


class AIConfigurationError(AIServiceError):
    """No usable API key or model client."""

    default_message = "Counselor model is not configured"
    default_code = "AI_CONFIGURATION_ERROR"


class AIContentFilterError(AIServiceError):
    default_message = "Counselor reply was blocked by safety filters"
    default_code = "AI_CONTENT_FILTERED"
