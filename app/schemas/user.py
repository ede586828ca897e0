"""User-related Pydantic schemas for request/response validation."""

from pydantic import EmailStr, Field, field_validator

from app.core.config import settings

from .base import BaseModelSchema, BaseSchema


class UserSignupRequest(BaseSchema):
    """Schema for user signup request."""

    email: EmailStr = Field(..., description="User's email address")
    name: str = Field(..., min_length=2, max_length=100, description="Display name")
    password: str = Field(..., max_length=128, description="Plain-text password")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate that the name is not blank."""
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        """Validate the password length."""
        if len(v) < settings.password_min_length:
            raise ValueError(f"Password must be at least {settings.password_min_length} characters")
        return v


class UserSigninRequest(BaseSchema):
    """Schema for user sign in request."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, max_length=128, description="Plain-text password")


class UserResponse(BaseModelSchema):
    """Schema for user response data."""

    email: str
    name: str
    is_active: bool


class TokenResponse(BaseSchema):
    """Schema for a successful sign in."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    user: UserResponse
