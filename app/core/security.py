"""Security related functions."""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import bcrypt
import jwt
from jwt import ExpiredSignatureError, InvalidTokenError

from app.core.config import settings
from app.exceptions.base import AuthenticationError


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plain-text password against a stored bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


class TokenAuthenticator:
    """
    Issues and verifies the bearer tokens used by the API.

    Tokens are HS256 JSON Web Tokens signed with the application secret key.
    The ``sub`` claim carries the user id.

    :ivar secret_key: The secret key used to sign and verify tokens.
    :type secret_key: str
    :ivar algorithm: The JWT signing algorithm.
    :type algorithm: str
    """

    def __init__(self, secret_key: str | None = None, algorithm: str | None = None):
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.expire_minutes = settings.access_token_expire_minutes

    @property
    def expires_in(self) -> int:
        return self.expire_minutes * 60

    def create_access_token(self, user_id: UUID, email: str) -> str:
        """Create a signed access token for the given user."""
        now = datetime.now(UTC)
        payload = {
            "sub": str(user_id),
            "email": email,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> dict:
        """
        Verifies a bearer token and returns its decoded payload.

        :param token: The JWT token to be verified.
        :return: A dictionary containing the decoded payload.
        :raises AuthenticationError: If the token is expired, malformed or has no subject.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except ExpiredSignatureError as e:
            raise AuthenticationError("Authentication token has expired") from e
        except InvalidTokenError as e:
            raise AuthenticationError("Invalid authentication token") from e

        return payload
