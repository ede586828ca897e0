"""
Chat session model for career-counseling conversations.
"""

from sqlalchemy import Boolean, Column, ForeignKey, Index, String
from sqlalchemy.orm import relationship

from .base import UUID, BaseModel


class ChatSession(BaseModel):
    """
    Represents a conversation owned by a single user.

    Sessions are never physically deleted; ``is_active`` is cleared instead so
    that historical turns stay addressable by session id.
    """

    __tablename__ = "chat_sessions"
    __table_args__ = (Index("idx_chat_sessions_user_updated", "user_id", "updated_at"),)

    user_id = Column(UUID(), ForeignKey("users.id"), nullable=False)
    title = Column(String(255), nullable=False)  # Set once from the first user message
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    user = relationship("User", back_populates="chat_sessions")
    turns = relationship(
        "ChatTurn",
        back_populates="session",
        order_by="ChatTurn.sequence_number",
    )
