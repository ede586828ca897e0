"""
Chat turn model: one message within a chat session.
"""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class MessageRole(str, enum.Enum):
    """Message role enumeration."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatTurn(BaseModel):
    """
    Represents a single turn of a conversation.

    ``sequence_number`` starts at 1 and is unique within a session.
    """

    __tablename__ = "chat_turns"
    __table_args__ = (
        UniqueConstraint("session_id", "sequence_number", name="uq_chat_turns_session_sequence"),
    )

    session_id = Column(UUID(), ForeignKey("chat_sessions.id"), nullable=False, index=True)
    role = Column(
        Enum(MessageRole, name="messagerole", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    content = Column(Text, nullable=False)
    sequence_number = Column(Integer, nullable=False)

    # Model that produced an assistant turn
    ai_model = Column(String(100), nullable=True)

    # Relationships
    session = relationship("ChatSession", back_populates="turns")
