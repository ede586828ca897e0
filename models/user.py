"""
Provides the User model for the application's database schema.

Users sign up with an email address and a password; only the bcrypt hash
of the password is stored. A user owns any number of chat sessions.

Attributes
----------
email : sqlalchemy.Column
    The email address of the user, which must be unique.
name : sqlalchemy.Column
    Display name chosen at sign up.
password_hash : sqlalchemy.Column
    bcrypt hash of the user's password.
is_active : sqlalchemy.Column
    A boolean indicating if the user is active. Defaults to `True`.

Relationships
-------------
chat_sessions : sqlalchemy.orm.relationship
    One-to-many relationship with the `ChatSession` model.
"""

from sqlalchemy import Boolean, Column, String
from sqlalchemy.orm import relationship

from .base import BaseModel


class User(BaseModel):
    """
    Represents a user entity in the application.

    :ivar email: Email address of the user. It must be unique.
    :type email: str
    :ivar name: Display name of the user.
    :type name: str
    :ivar password_hash: bcrypt hash of the password.
    :type password_hash: str
    :ivar is_active: Indicates whether the user account is active.
    :type is_active: bool
    """

    __tablename__ = "users"

    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(100), nullable=False)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    chat_sessions = relationship("ChatSession", back_populates="user")
