"""Turn storage for chat sessions.

Turns form an append-only log per session. Sequence numbers are assigned as
``count + 1``, which is only safe while appends to one session are serialized:
callers hold ``TurnStore.session_lock`` for the whole submission, and the
``(session_id, sequence_number)`` unique constraint rejects anything that slips
through from another process.
"""

import asyncio
import logging
import weakref
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.exceptions.chat import (
    ChatSessionAccessError,
    ChatSessionNotFoundError,
    InvalidTurnSequenceError,
    TurnSequenceConflictError,
)
from models.base import utcnow
from models.chat_session import ChatSession
from models.chat_turn import ChatTurn, MessageRole


logger = logging.getLogger(__name__)


def make_session_title(content: str, max_length: int | None = None) -> str:
    """Derive a session title from the first user message."""
    max_length = max_length or settings.chat_title_max_length
    if len(content) > max_length:
        return content[:max_length] + "..."
    return content


class SessionLockRegistry:
    """Process-wide per-session locks, dropped once no submission holds them."""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def get(self, session_id: UUID) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


session_locks = SessionLockRegistry()


class TurnStore:
    """Ordered turn log and session metadata for chat sessions."""

    def __init__(self, db: AsyncSession, locks: SessionLockRegistry | None = None):
        self.db = db
        self.locks = locks or session_locks

    def session_lock(self, session_id: UUID) -> asyncio.Lock:
        """Lock serializing turn appends to one session."""
        return self.locks.get(session_id)

    async def get_owned_session(self, session_id: UUID, user_id: UUID, for_update: bool = False) -> ChatSession:
        """Load a session and confirm the caller owns it.

        Raises:
            ChatSessionNotFoundError: No session has this id.
            ChatSessionAccessError: The session belongs to someone else.
        """
        query = select(ChatSession).where(ChatSession.id == session_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        session = result.scalar_one_or_none()

        if session is None:
            raise ChatSessionNotFoundError()
        if session.user_id != user_id:
            logger.warning(f"User {user_id} attempted to access session {session_id} owned by another user")
            raise ChatSessionAccessError()
        return session

    async def count_turns(self, session_id: UUID) -> int:
        result = await self.db.execute(select(func.count(ChatTurn.id)).where(ChatTurn.session_id == session_id))
        return result.scalar() or 0

    async def list_turns(self, session_id: UUID) -> list[ChatTurn]:
        """All turns of a session in ascending sequence order."""
        result = await self.db.execute(
            select(ChatTurn).where(ChatTurn.session_id == session_id).order_by(ChatTurn.sequence_number)
        )
        return list(result.scalars().all())

    async def append_user_turn(self, session_id: UUID, user_id: UUID, content: str) -> ChatTurn:
        """Append a user turn, titling the session when it is the first turn."""
        session = await self.get_owned_session(session_id, user_id, for_update=True)
        prior_count = await self.count_turns(session_id)

        turn = ChatTurn(
            session_id=session.id,
            role=MessageRole.USER,
            content=content,
            sequence_number=prior_count + 1,
        )
        self.db.add(turn)

        if prior_count == 0:
            session.title = make_session_title(content)
        session.updated_at = utcnow()

        await self._commit()
        await self.db.refresh(turn)
        return turn

    async def append_assistant_turn(
        self,
        session_id: UUID,
        user_turn: ChatTurn,
        content: str,
        ai_model: str | None = None,
    ) -> ChatTurn:
        """Append the assistant reply directly after its user turn."""
        if user_turn.session_id != session_id or user_turn.role != MessageRole.USER:
            raise InvalidTurnSequenceError(details={"turn_id": str(user_turn.id)})

        result = await self.db.execute(
            select(ChatSession).where(ChatSession.id == session_id).with_for_update()
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise ChatSessionNotFoundError()

        latest = await self.db.execute(
            select(func.max(ChatTurn.sequence_number)).where(ChatTurn.session_id == session_id)
        )
        if latest.scalar() != user_turn.sequence_number:
            raise InvalidTurnSequenceError(details={"turn_id": str(user_turn.id)})

        turn = ChatTurn(
            session_id=session_id,
            role=MessageRole.ASSISTANT,
            content=content,
            sequence_number=user_turn.sequence_number + 1,
            ai_model=ai_model,
        )
        self.db.add(turn)
        session.updated_at = utcnow()

        await self._commit()
        await self.db.refresh(turn)
        return turn

    async def _commit(self):
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.error(f"Turn sequence conflict: {str(e)}")
            raise TurnSequenceConflictError() from e
