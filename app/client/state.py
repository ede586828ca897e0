"""Client-side chat state with optimistic turns.

While a message is in flight, the visible conversation is the confirmed
history followed by exactly two synthetic turns: the user's message and a
typing placeholder for the reply. They disappear when the request settles,
and switching or creating a session drops them regardless of any request
still in flight.
"""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from app.client.api import ChatAPIClient, ChatAPIError
from app.client.cache import SessionQueryCache
from app.schemas.chat import (
    ChatSessionDetailResponse,
    ChatSessionSummary,
    ChatTurnPair,
    ChatTurnResponse,
)
from models.chat_turn import MessageRole


logger = logging.getLogger(__name__)


class ChatStateError(Exception):
    """Raised for requests the client state refuses before calling the API."""


@dataclass
class DisplayTurn:
    """A turn as rendered by the client, confirmed or synthetic."""

    id: str
    role: MessageRole
    content: str
    created_at: datetime
    sequence_number: int | None = None
    pending: bool = False
    is_typing: bool = False

    @classmethod
    def from_turn(cls, turn: ChatTurnResponse) -> "DisplayTurn":
        return cls(
            id=str(turn.id),
            role=turn.role,
            content=turn.content,
            created_at=turn.created_at,
            sequence_number=turn.sequence_number,
        )


@dataclass
class PendingSubmission:
    """Synthetic turns shown while one message is being sent."""

    session_id: UUID
    user_turn: DisplayTurn
    placeholder: DisplayTurn = field(repr=False)

    @classmethod
    def start(cls, session_id: UUID, content: str) -> "PendingSubmission":
        now = datetime.now(UTC)
        return cls(
            session_id=session_id,
            user_turn=DisplayTurn(
                id=f"local-{uuid4()}", role=MessageRole.USER, content=content, created_at=now, pending=True
            ),
            placeholder=DisplayTurn(
                id=f"local-{uuid4()}",
                role=MessageRole.ASSISTANT,
                content="",
                created_at=now,
                pending=True,
                is_typing=True,
            ),
        )

    @property
    def turns(self) -> list[DisplayTurn]:
        return [self.user_turn, self.placeholder]


class ChatState:
    """Current session, session list and in-flight message for one signed-in user."""

    def __init__(self, api: ChatAPIClient, cache: SessionQueryCache | None = None):
        self.api = api
        self.cache = cache or SessionQueryCache()
        self.current_session_id: UUID | None = None
        self.deleting_session_id: UUID | None = None
        self.error: str | None = None
        self._pending: PendingSubmission | None = None

    @property
    def sessions(self) -> list[ChatSessionSummary]:
        return self.cache.get_list() or []

    @property
    def current_session(self) -> ChatSessionDetailResponse | None:
        if self.current_session_id is None:
            return None
        return self.cache.get(self.current_session_id)

    @property
    def is_sending(self) -> bool:
        return self._pending is not None

    @property
    def confirmed_turns(self) -> list[DisplayTurn]:
        session = self.current_session
        if session is None:
            return []
        return [DisplayTurn.from_turn(turn) for turn in session.turns]

    @property
    def visible_turns(self) -> list[DisplayTurn]:
        """Confirmed history plus the in-flight synthetic turns for the current session."""
        turns = self.confirmed_turns
        if self._pending is not None and self._pending.session_id == self.current_session_id:
            turns.extend(self._pending.turns)
        return turns

    def clear_error(self):
        self.error = None

    async def refresh_sessions(self) -> list[ChatSessionSummary]:
        page = await self.api.list_sessions()
        self.cache.set_list(page.sessions)
        return page.sessions

    async def load_session(self, session_id: UUID, force: bool = False) -> ChatSessionDetailResponse:
        """Return the session from cache, fetching it when missing or forced."""
        cached = None if force else self.cache.get(session_id)
        if cached is not None:
            return cached

        detail = await self.api.get_session(session_id)
        self.cache.set(detail)
        return detail

    async def select_session(self, session_id: UUID) -> ChatSessionDetailResponse:
        """Switch to another session, dropping any in-flight synthetic turns."""
        self._pending = None
        self.error = None
        self.current_session_id = session_id
        return await self.load_session(session_id)

    async def create_new_session(self) -> UUID:
        """Create a session, make it current and refresh the session list."""
        self._pending = None
        self.error = None

        try:
            session = await self.api.create_session()
        except ChatAPIError:
            self.error = "Failed to create chat session"
            raise

        self.cache.set(ChatSessionDetailResponse(**session.model_dump(), turns=[]))
        self.current_session_id = session.id
        self.cache.invalidate_list()
        await self._reconcile_sessions()
        return session.id

    async def send_message(self, content: str) -> ChatTurnPair:
        """Send a message to the current session, creating one if needed.

        Synthetic turns are visible until the request settles. On success the
        confirmed history is re-fetched before they are removed; on failure
        they are removed and ``error`` is set.
        """
        if not content.strip():
            raise ChatStateError("Message cannot be empty")
        if self.is_sending:
            raise ChatStateError("A message is already being sent")

        self.error = None
        session_id = self.current_session_id
        if session_id is None:
            session_id = await self.create_new_session()

        submission = PendingSubmission.start(session_id, content)
        self._pending = submission

        try:
            pair = await self.api.send_message(session_id, content)
        except Exception as e:
            if self._pending is submission:
                self._pending = None
            self.error = getattr(e, "message", None) or "Failed to send message"
            raise

        self.cache.invalidate_list()
        if self._pending is submission:
            try:
                await self.load_session(session_id, force=True)
            except ChatAPIError as e:
                logger.warning(f"Could not refresh session {session_id}, merging reply locally: {e.message}")
                self._merge_pair(session_id, pair)
            self._pending = None
        else:
            # Superseded by a session switch; refetch on next load
            self.cache.invalidate(session_id)

        await self._reconcile_sessions()
        return pair

    async def delete_session(self, session_id: UUID):
        """Remove a session from the list immediately, restoring it if the request fails."""
        self.deleting_session_id = session_id
        previous = self.cache.get_list()
        if previous is not None:
            self.cache.set_list([session for session in previous if session.id != session_id])

        try:
            await self.api.delete_session(session_id)
        except Exception:
            if previous is not None:
                self.cache.set_list(previous)
            self.error = "Failed to delete chat session"
            raise
        finally:
            self.deleting_session_id = None

        self.cache.invalidate(session_id)
        if self.current_session_id == session_id:
            self.current_session_id = None
            self._pending = None

        await self._reconcile_sessions()

    def _merge_pair(self, session_id: UUID, pair: ChatTurnPair):
        detail = self.cache.get(session_id)
        if detail is None:
            return
        known = {turn.id for turn in detail.turns}
        turns = detail.turns + [turn for turn in (pair.user_turn, pair.assistant_turn) if turn.id not in known]
        self.cache.set(detail.model_copy(update={"turns": sorted(turns, key=lambda turn: turn.sequence_number)}))

    async def _reconcile_sessions(self):
        try:
            await self.refresh_sessions()
        except ChatAPIError as e:
            logger.warning(f"Could not refresh session list: {e.message}")
