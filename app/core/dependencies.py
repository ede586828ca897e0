# app/core/dependencies.py
import logging
from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import TokenAuthenticator
from app.database import get_db
from app.domains.ai.generation import GenerationClient
from app.domains.user.service import UserService
from app.exceptions.base import AuthenticationError
from models import User

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)
auth = TokenAuthenticator()


async def validate_token(
    token: HTTPAuthorizationCredentials | None = Depends(security),
) -> dict:
    """Validate and decode the bearer token.

    Returns:
        dict: Decoded token payload

    Raises:
        AuthenticationError: If token is missing, invalid or expired
    """
    if not token or not token.credentials:
        raise AuthenticationError("Authentication token is required")

    return auth.verify_token(token.credentials)


async def get_current_user(
    request: Request,
    payload: dict = Depends(validate_token),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get current authenticated user from the token payload.

    Returns:
        User: Current authenticated user

    Raises:
        AuthenticationError: If the user no longer exists or is inactive
    """
    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError) as e:
        raise AuthenticationError("Invalid token payload - missing user ID") from e

    user = await UserService(db).get_user_by_id(user_id)
    if not user or not user.is_active:
        logger.warning(f"Token presented for unknown or inactive user {user_id}")
        raise AuthenticationError("User account is unavailable")

    # Add user info to request state for logging
    request.state.user_id = user.id

    return user


@lru_cache
def get_generation_client() -> GenerationClient:
    """Shared generation client, built once per process."""
    return GenerationClient()
