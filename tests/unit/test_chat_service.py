"""Unit tests for Chat Service."""

import asyncio
import uuid

import pytest
from google.api_core import exceptions as google_exceptions
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.domains.ai.generation import FALLBACK_RESPONSE, GenerationClient
from app.domains.chat.service import ChatService
from app.exceptions.base import ValidationError
from app.exceptions.chat import (
    ChatSessionAccessError,
    ChatSessionInactiveError,
    ChatSessionNotFoundError,
)
from models.chat_session import ChatSession
from models.chat_turn import ChatTurn, MessageRole
from tests.factories import ChatSessionFactory, create_conversation, persist
from tests.fakes import FakeModel, RecordingSleep


@pytest.mark.asyncio
class TestChatService:
    """Test cases for ChatService."""

    @pytest.fixture
    def chat_service(self, test_db: AsyncSession, generation_client):
        """Create chat service instance."""
        return ChatService(test_db, generator=generation_client)

    async def test_create_session(self, chat_service, test_user):
        session = await chat_service.create_session(test_user.id)

        assert session.user_id == test_user.id
        assert session.title == "New Conversation"
        assert session.is_active is True

    async def test_submit_first_message(self, chat_service, test_user, test_chat_session, fake_model):
        pair = await chat_service.submit(test_chat_session.id, test_user.id, "I want to switch careers")

        assert pair.user_turn.sequence_number == 1
        assert pair.user_turn.role == MessageRole.USER
        assert pair.user_turn.content == "I want to switch careers"
        assert pair.assistant_turn.sequence_number == 2
        assert pair.assistant_turn.role == MessageRole.ASSISTANT
        assert pair.assistant_turn.content == "Here are some steps:\n\n• Update your resume\n• Reach out to mentors"
        assert pair.assistant_turn.ai_model == "fake-model"
        assert fake_model.calls == 1

    async def test_submit_sends_full_history(self, chat_service, test_db, test_user, test_chat_session, fake_model):
        await create_conversation(test_db, test_chat_session, pairs=2)

        pair = await chat_service.submit(test_chat_session.id, test_user.id, "Third question")

        assert pair.user_turn.sequence_number == 5
        assert pair.assistant_turn.sequence_number == 6
        prompt = fake_model.prompts[0]
        assert "User: Question 1\nCareer Counselor: Answer 1\nUser: Question 2\nCareer Counselor: Answer 2" in prompt
        assert prompt.endswith("User: Third question\nCareer Counselor:")

    async def test_sequence_is_gapless(self, chat_service, test_db, test_user, test_chat_session):
        for index in range(3):
            await chat_service.submit(test_chat_session.id, test_user.id, f"Message {index}")

        result = await test_db.execute(
            select(ChatTurn).where(ChatTurn.session_id == test_chat_session.id).order_by(ChatTurn.sequence_number)
        )
        turns = result.scalars().all()
        assert [turn.sequence_number for turn in turns] == [1, 2, 3, 4, 5, 6]
        assert [turn.role for turn in turns] == [MessageRole.USER, MessageRole.ASSISTANT] * 3

    async def test_title_from_first_message_only(self, chat_service, test_user, test_chat_session):
        long_message = "I have been a nurse for ten years and want to move into instructional design"

        await chat_service.submit(test_chat_session.id, test_user.id, long_message)
        await chat_service.submit(test_chat_session.id, test_user.id, "Short follow up")

        detail = await chat_service.get_session(test_chat_session.id, test_user.id)
        assert detail.title == long_message[:40] + "..."

    async def test_submit_updates_session_timestamp(self, chat_service, test_user, test_chat_session):
        before = test_chat_session.updated_at
        await asyncio.sleep(0.01)

        await chat_service.submit(test_chat_session.id, test_user.id, "Hello")

        detail = await chat_service.get_session(test_chat_session.id, test_user.id)
        assert detail.updated_at > before

    async def test_submit_degraded_reply_is_persisted(self, test_db, test_user, test_chat_session):
        overloaded = google_exceptions.ServiceUnavailable("overloaded")
        model = FakeModel(outcomes=[overloaded, overloaded, overloaded])
        sleep = RecordingSleep()
        service = ChatService(test_db, generator=GenerationClient(model=model, sleep=sleep))

        pair = await service.submit(test_chat_session.id, test_user.id, "Anyone there?")

        assert pair.assistant_turn.content == FALLBACK_RESPONSE
        assert pair.assistant_turn.ai_model is None
        assert pair.assistant_turn.sequence_number == 2
        assert model.calls == 3
        assert sleep.delays == [3.0, 3.0]

    async def test_submit_missing_session(self, chat_service, test_user):
        with pytest.raises(ChatSessionNotFoundError):
            await chat_service.submit(uuid.uuid4(), test_user.id, "Hello")

    async def test_submit_other_users_session(self, chat_service, test_db, test_user, other_user_session, fake_model):
        with pytest.raises(ChatSessionAccessError):
            await chat_service.submit(other_user_session.id, test_user.id, "Hello")

        result = await test_db.execute(select(ChatTurn).where(ChatTurn.session_id == other_user_session.id))
        assert result.scalars().all() == []
        assert fake_model.calls == 0

    async def test_submit_inactive_session(self, chat_service, test_db, test_user, test_chat_session, fake_model):
        await chat_service.delete_session(test_chat_session.id, test_user.id)

        with pytest.raises(ChatSessionInactiveError):
            await chat_service.submit(test_chat_session.id, test_user.id, "Hello again")

        assert fake_model.calls == 0

    async def test_user_turn_kept_when_generation_step_fails(self, test_db, test_user, test_chat_session):
        class ExplodingGenerator:
            model_name = "broken"

            async def generate(self, history):
                raise RuntimeError("generator crashed")

        service = ChatService(test_db, generator=ExplodingGenerator())

        with pytest.raises(RuntimeError):
            await service.submit(test_chat_session.id, test_user.id, "Hello")

        detail = await service.get_session(test_chat_session.id, test_user.id)
        assert [(turn.role, turn.content) for turn in detail.turns] == [(MessageRole.USER, "Hello")]

    async def test_concurrent_submissions_stay_paired(self, session_factory, test_user, test_chat_session):
        """Submissions racing on one session each get an adjacent user/assistant pair."""

        class EchoGenerator:
            model_name = "echo"

            async def generate(self, history):
                await asyncio.sleep(0.01)
                return f"Reply to {history[-1].content}"

        async def submit(message: str):
            async with session_factory() as db:
                service = ChatService(db, generator=EchoGenerator())
                return await service.submit(test_chat_session.id, test_user.id, message)

        messages = [f"Message {index}" for index in range(5)]
        pairs = await asyncio.gather(*(submit(message) for message in messages))

        for pair in pairs:
            assert pair.assistant_turn.sequence_number == pair.user_turn.sequence_number + 1
            assert pair.assistant_turn.content == f"Reply to {pair.user_turn.content}"

        async with session_factory() as db:
            result = await db.execute(
                select(ChatTurn).where(ChatTurn.session_id == test_chat_session.id).order_by(ChatTurn.sequence_number)
            )
            turns = result.scalars().all()

        assert [turn.sequence_number for turn in turns] == list(range(1, 11))
        assert [turn.role for turn in turns] == [MessageRole.USER, MessageRole.ASSISTANT] * 5
        assert sorted(turn.content for turn in turns if turn.role == MessageRole.USER) == messages

    async def test_list_sessions_previews(self, chat_service, test_db, test_user, test_chat_session):
        await create_conversation(test_db, test_chat_session, pairs=2)
        empty = await persist(test_db, ChatSessionFactory.build(user_id=test_user.id))

        result = await chat_service.list_sessions(test_user.id)

        by_id = {session.id: session for session in result.sessions}
        assert by_id[test_chat_session.id].first_message == "Question 1"
        assert by_id[test_chat_session.id].last_message == "Answer 2"
        assert by_id[test_chat_session.id].turn_count == 4
        assert by_id[empty.id].first_message is None
        assert by_id[empty.id].turn_count == 0

    async def test_list_sessions_excludes_inactive_and_foreign(
        self, chat_service, test_db, test_user, test_chat_session, other_user_session
    ):
        deleted = await persist(test_db, ChatSessionFactory.build(user_id=test_user.id, is_active=False))

        result = await chat_service.list_sessions(test_user.id)

        ids = [session.id for session in result.sessions]
        assert ids == [test_chat_session.id]
        assert deleted.id not in ids
        assert other_user_session.id not in ids

    async def test_list_sessions_orders_by_recent_activity(self, chat_service, test_user):
        first = await chat_service.create_session(test_user.id)
        second = await chat_service.create_session(test_user.id)
        await asyncio.sleep(0.01)

        await chat_service.submit(first.id, test_user.id, "Bump me")

        result = await chat_service.list_sessions(test_user.id)
        assert [session.id for session in result.sessions] == [first.id, second.id]

    async def test_list_sessions_cursor_pagination(self, chat_service, test_user):
        created = []
        for _ in range(5):
            created.append((await chat_service.create_session(test_user.id)).id)
            await asyncio.sleep(0.005)

        first_page = await chat_service.list_sessions(test_user.id, limit=2)
        second_page = await chat_service.list_sessions(test_user.id, limit=2, cursor=first_page.next_cursor)
        last_page = await chat_service.list_sessions(test_user.id, limit=2, cursor=second_page.next_cursor)

        seen = [s.id for s in first_page.sessions + second_page.sessions + last_page.sessions]
        assert seen == list(reversed(created))
        assert first_page.has_more and second_page.has_more
        assert not last_page.has_more
        assert last_page.next_cursor is None

    async def test_list_sessions_invalid_cursor(self, chat_service, test_user):
        with pytest.raises(ValidationError):
            await chat_service.list_sessions(test_user.id, cursor=uuid.uuid4())

    async def test_list_sessions_foreign_cursor_same_as_unknown(self, chat_service, test_user, other_user_session):
        with pytest.raises(ValidationError) as foreign:
            await chat_service.list_sessions(test_user.id, cursor=other_user_session.id)
        with pytest.raises(ValidationError) as unknown:
            await chat_service.list_sessions(test_user.id, cursor=uuid.uuid4())

        assert foreign.value.message == unknown.value.message
        assert foreign.value.error_code == unknown.value.error_code

    async def test_list_sessions_inactive_cursor_rejected(self, chat_service, test_user, test_chat_session):
        session_id = test_chat_session.id
        await chat_service.delete_session(session_id, test_user.id)

        with pytest.raises(ValidationError):
            await chat_service.list_sessions(test_user.id, cursor=session_id)

    async def test_get_session_with_turns(self, chat_service, test_db, test_user, test_chat_session):
        await create_conversation(test_db, test_chat_session, pairs=2)

        detail = await chat_service.get_session(test_chat_session.id, test_user.id)

        assert [turn.sequence_number for turn in detail.turns] == [1, 2, 3, 4]
        assert detail.turns[0].content == "Question 1"

    async def test_get_session_other_user(self, chat_service, test_user, other_user_session):
        with pytest.raises(ChatSessionAccessError):
            await chat_service.get_session(other_user_session.id, test_user.id)

    async def test_delete_session_is_soft_and_idempotent(self, chat_service, test_db, test_user, test_chat_session):
        await create_conversation(test_db, test_chat_session, pairs=1)

        first = await chat_service.delete_session(test_chat_session.id, test_user.id)
        second = await chat_service.delete_session(test_chat_session.id, test_user.id)

        assert first.is_active is False
        assert second.is_active is False
        row = await test_db.get(ChatSession, test_chat_session.id)
        assert row is not None
        detail = await chat_service.get_session(test_chat_session.id, test_user.id)
        assert len(detail.turns) == 2
        assert detail.is_active is False

    async def test_delete_session_other_user(self, chat_service, test_user, other_user_session):
        with pytest.raises(ChatSessionAccessError):
            await chat_service.delete_session(other_user_session.id, test_user.id)
