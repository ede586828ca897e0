"""
Models package initialization.
"""

from .base import Base, BaseModel
from .chat_session import ChatSession
from .chat_turn import ChatTurn, MessageRole
from .user import User

__all__ = [
    "Base",
    "BaseModel",
    "User",
    # Chat models
    "ChatSession",
    "ChatTurn",
    "MessageRole",
]
