"""Chat service layer coordinating sessions, turns and reply generation."""

import logging
from uuid import UUID

from sqlalchemy import and_, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.domains.ai.generation import FALLBACK_RESPONSE, GenerationClient
from app.domains.chat.store import TurnStore
from app.exceptions.chat import ChatSessionInactiveError
from app.schemas.chat import (
    ChatSessionDetailResponse,
    ChatSessionListResponse,
    ChatSessionResponse,
    ChatSessionSummary,
    ChatTurnPair,
    ChatTurnResponse,
)
from app.shared.pagination import CursorParams, paginate_by_cursor
from models.chat_session import ChatSession
from models.chat_turn import ChatTurn


logger = logging.getLogger(__name__)


class ChatService:
    """Service class for career counseling chat sessions."""

    def __init__(
        self,
        db: AsyncSession,
        generator: GenerationClient | None = None,
        store: TurnStore | None = None,
    ):
        """Initialize chat service.

        Args:
            db: Async database session for data operations.
            generator: Client producing assistant replies.
            store: Turn log for the same database session.
        """
        self.db = db
        self._generator = generator
        self.store = store or TurnStore(db)

    @property
    def generator(self) -> GenerationClient:
        if self._generator is None:
            self._generator = GenerationClient()
        return self._generator

    async def create_session(self, user_id: UUID) -> ChatSessionResponse:
        """Create an empty, active session with the placeholder title."""
        session = ChatSession(user_id=user_id, title=settings.chat_default_session_title)
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info(f"Created chat session {session.id} for user {user_id}")
        return ChatSessionResponse.model_validate(session)

    async def submit(self, session_id: UUID, user_id: UUID, content: str) -> ChatTurnPair:
        """Run one conversation turn: persist the message, generate and persist the reply.

        Submissions to the same session are serialized so each user turn is
        immediately followed by its assistant turn. The user turn stays
        persisted even if a later step fails.

        Args:
            session_id: Target session
            user_id: Authenticated caller, must own the session
            content: User message

        Returns:
            The persisted user and assistant turns

        Raises:
            ChatSessionNotFoundError: Session does not exist
            ChatSessionAccessError: Session belongs to another user
            ChatSessionInactiveError: Session was deleted
        """
        async with self.store.session_lock(session_id):
            session = await self.store.get_owned_session(session_id, user_id)
            if not session.is_active:
                raise ChatSessionInactiveError()

            user_turn = await self.store.append_user_turn(session_id, user_id, content)

            history = await self.store.list_turns(session_id)
            reply = await self.generator.generate(history)

            ai_model = None if reply == FALLBACK_RESPONSE else self.generator.model_name
            assistant_turn = await self.store.append_assistant_turn(session_id, user_turn, reply, ai_model=ai_model)

        logger.info(
            f"Session {session_id}: stored turns {user_turn.sequence_number} and {assistant_turn.sequence_number}"
        )
        return ChatTurnPair(
            user_turn=ChatTurnResponse.model_validate(user_turn),
            assistant_turn=ChatTurnResponse.model_validate(assistant_turn),
        )

    async def list_sessions(
        self, user_id: UUID, limit: int | None = None, cursor: UUID | None = None
    ) -> ChatSessionListResponse:
        """List the caller's active sessions, most recently updated first.

        Args:
            user_id: Session owner
            limit: Page size
            cursor: ``next_cursor`` from the previous page

        Returns:
            Session summaries with first/last message previews
        """
        params = CursorParams(limit=limit or settings.chat_sessions_page_size, cursor=cursor)
        query = select(ChatSession).where(ChatSession.user_id == user_id, ChatSession.is_active.is_(True))

        page = await paginate_by_cursor(self.db, query, params, ChatSession.updated_at, ChatSession.id)
        sessions = page.items
        previews = await self._get_previews([session.id for session in sessions])

        summaries = []
        for session in sessions:
            first_message, last_message, turn_count = previews.get(session.id, (None, None, 0))
            summaries.append(
                ChatSessionSummary(
                    id=session.id,
                    user_id=session.user_id,
                    title=session.title,
                    is_active=session.is_active,
                    created_at=session.created_at,
                    updated_at=session.updated_at,
                    first_message=first_message,
                    last_message=last_message,
                    turn_count=turn_count,
                )
            )

        return ChatSessionListResponse(
            sessions=summaries,
            next_cursor=page.next_cursor,
            has_more=page.has_more,
        )

    async def get_session(self, session_id: UUID, user_id: UUID) -> ChatSessionDetailResponse:
        """Get a session with all turns in sequence order.

        Deleted sessions stay readable by their owner.
        """
        session = await self.store.get_owned_session(session_id, user_id)
        turns = await self.store.list_turns(session_id)

        return ChatSessionDetailResponse(
            id=session.id,
            user_id=session.user_id,
            title=session.title,
            is_active=session.is_active,
            created_at=session.created_at,
            updated_at=session.updated_at,
            turns=[ChatTurnResponse.model_validate(turn) for turn in turns],
        )

    async def delete_session(self, session_id: UUID, user_id: UUID) -> ChatSessionResponse:
        """Soft-delete a session. Deleting an already deleted session is a no-op."""
        session = await self.store.get_owned_session(session_id, user_id)

        if session.is_active:
            session.is_active = False
            await self.db.commit()
            await self.db.refresh(session)
            logger.info(f"Deactivated chat session {session_id}")

        return ChatSessionResponse.model_validate(session)

    # Private helper methods

    async def _get_previews(self, session_ids: list[UUID]) -> dict[UUID, tuple[str | None, str | None, int]]:
        """Map session id to (first message, last message, turn count)."""
        if not session_ids:
            return {}

        stats_query = (
            select(
                ChatTurn.session_id,
                func.count(ChatTurn.id),
                func.min(ChatTurn.sequence_number),
                func.max(ChatTurn.sequence_number),
            )
            .where(ChatTurn.session_id.in_(session_ids))
            .group_by(ChatTurn.session_id)
        )
        stats = (await self.db.execute(stats_query)).all()
        if not stats:
            return {}

        edges_query = select(ChatTurn).where(
            or_(
                *[
                    and_(ChatTurn.session_id == sid, ChatTurn.sequence_number.in_([first, last]))
                    for sid, _count, first, last in stats
                ]
            )
        )
        edge_turns = (await self.db.execute(edges_query)).scalars().all()
        content_by_position = {(turn.session_id, turn.sequence_number): turn.content for turn in edge_turns}

        return {
            sid: (content_by_position.get((sid, first)), content_by_position.get((sid, last)), count)
            for sid, count, first, last in stats
        }
