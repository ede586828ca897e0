# app/domains/user/service.py
import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.security import hash_password, verify_password
from app.exceptions.user import InvalidCredentialsError, UserAlreadyExistsError
from models import User

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        """Get a user by email, case-insensitively."""
        result = await self.db.execute(select(User).where(func.lower(User.email) == email.lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create_user(self, email: str, name: str, password: str) -> User:
        """Register a new user with a hashed password."""
        if await self.get_user_by_email(email):
            raise UserAlreadyExistsError()

        user = User(email=email.lower(), name=name, password_hash=hash_password(password))

        try:
            self.db.add(user)
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise UserAlreadyExistsError() from e
        except SQLAlchemyError:
            await self.db.rollback()
            raise

        logger.info(f"Registered user {user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Return the user matching the credentials or raise InvalidCredentialsError."""
        user = await self.get_user_by_email(email)
        if not user or not user.is_active or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()
        return user
