"""Chat schemas for request/response serialization."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import ConfigDict, Field, field_validator

from app.core.config import settings
from models.chat_turn import MessageRole

from .base import BaseSchema


class ChatTurnResponse(BaseSchema):
    """Schema for a persisted chat turn."""

    id: UUID
    session_id: UUID
    role: MessageRole
    content: str
    sequence_number: int
    ai_model: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatSessionResponse(BaseSchema):
    """Schema for a chat session without its turns."""

    id: UUID
    user_id: UUID
    title: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatSessionSummary(ChatSessionResponse):
    """Session list entry with message previews."""

    first_message: str | None = Field(None, description="Content of the first turn")
    last_message: str | None = Field(None, description="Content of the most recent turn")
    turn_count: int = Field(default=0, description="Number of turns in the session")


class ChatSessionDetailResponse(ChatSessionResponse):
    """Session with its full ordered turn list."""

    turns: list[ChatTurnResponse] = Field(default_factory=list, description="Turns in sequence order")


class ChatSessionListResponse(BaseSchema):
    """Cursor-paginated list of sessions, most recent first."""

    sessions: list[ChatSessionSummary]
    next_cursor: UUID | None = Field(None, description="Pass as `cursor` to fetch the next page")
    has_more: bool = False


class ChatMessageRequest(BaseSchema):
    """Schema for submitting a message to an existing session."""

    message: str = Field(..., min_length=1, max_length=settings.chat_message_max_length, description="User message")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Reject whitespace-only messages."""
        if not v.strip():
            raise ValueError("Message cannot be empty")
        return v


class ChatRequest(ChatMessageRequest):
    """Schema for submitting a message with the session id in the body."""

    session_id: UUID = Field(..., description="Target session ID")


class ChatTurnPair(BaseSchema):
    """A user turn and the assistant turn written in reply."""

    user_turn: ChatTurnResponse
    assistant_turn: ChatTurnResponse


# Update forward references if needed
ChatSessionDetailResponse.model_rebuild()
ChatTurnPair.model_rebuild()
