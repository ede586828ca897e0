"""In-memory cache of session queries, invalidated explicitly after writes."""

from uuid import UUID

from app.schemas.chat import ChatSessionDetailResponse, ChatSessionSummary


class SessionQueryCache:
    """Caches the session list and per-session details keyed by session id."""

    def __init__(self):
        self._details: dict[UUID, ChatSessionDetailResponse] = {}
        self._session_list: list[ChatSessionSummary] | None = None

    def get(self, session_id: UUID) -> ChatSessionDetailResponse | None:
        return self._details.get(session_id)

    def set(self, detail: ChatSessionDetailResponse):
        self._details[detail.id] = detail

    def invalidate(self, session_id: UUID):
        self._details.pop(session_id, None)

    def get_list(self) -> list[ChatSessionSummary] | None:
        return None if self._session_list is None else list(self._session_list)

    def set_list(self, sessions: list[ChatSessionSummary]):
        self._session_list = list(sessions)

    def invalidate_list(self):
        self._session_list = None

    def clear(self):
        self._details.clear()
        self._session_list = None
