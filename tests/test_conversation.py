"""Tests for the conversation service and session manager."""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from clawagent.clients.base import LLMProvider
from clawagent.clients.rate_limit import TokenEstimator
from clawagent.models.llm import ChatResponse
from clawagent.services.agent import AgentLoop
from clawagent.services.conversation import ConversationService
from clawagent.services.memory import InMemoryMemory
from clawagent.services.session_manager import SessionManager


class SlowProvider(LLMProvider):
    """Records overlapping calls so tests can detect concurrent turns."""

    def __init__(self):
        super().__init__()
        self.active = 0
        self.max_active = 0

    async def chat(self, messages, tools=None, model=None, max_tokens=None, temperature=None) -> ChatResponse:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        await asyncio.sleep(0.01)
        self.active -= 1
        return ChatResponse(content=messages[-1].content)


def make_service(provider: LLMProvider, memory: InMemoryMemory) -> ConversationService:
    estimator = TokenEstimator()
    estimator._loaded = True
    return ConversationService(AgentLoop(provider, memory), token_estimator=estimator, max_message_tokens=50)


class TestConversationService:
    """Tests for per-session turn handling."""

    @pytest.mark.asyncio
    async def test_turns_in_one_session_do_not_overlap(self):
        """Test that the session lock serializes concurrent turns."""
        provider = SlowProvider()
        memory = InMemoryMemory()
        service = make_service(provider, memory)

        await asyncio.gather(*(service.process_message(f"m{i}", "shared") for i in range(3)))

        assert provider.max_active == 1
        assert len(memory.sessions["shared"]) == 7

    @pytest.mark.asyncio
    async def test_separate_sessions_can_overlap(self):
        """Test that different sessions are not serialized against each other."""
        provider = SlowProvider()
        service = make_service(provider, InMemoryMemory())

        await asyncio.gather(service.process_message("a", "s1"), service.process_message("b", "s2"))

        assert provider.max_active == 2

    @pytest.mark.asyncio
    async def test_records_turns(self):
        """Test that completed turns are counted on the session."""
        service = make_service(SlowProvider(), InMemoryMemory())

        reply = await service.process_message("hello")

        assert reply.response == "hello"
        assert service.session_manager.get_session(reply.session_id).turns == 1

    @pytest.mark.asyncio
    async def test_oversized_message_is_rejected_before_the_session(self):
        """Test that validation happens before any session is created."""
        service = make_service(SlowProvider(), InMemoryMemory())

        with pytest.raises(ValueError, match="token limit"):
            await service.process_message("a" * 1000, "s1")

        assert service.session_manager.get_session("s1") is None


class TestSessionManager:
    """Tests for the gateway session store."""

    def test_create_and_get(self):
        """Test new and existing sessions."""
        manager = SessionManager()

        session = manager.get_or_create_session()

        assert session.session_id
        assert manager.get_or_create_session(session.session_id) is session
        assert manager.get_session(session.session_id) is session
        assert manager.get_session_count() == 1

    def test_caller_supplied_id_is_adopted(self):
        """Test that unknown ids are used as given."""
        assert SessionManager().get_or_create_session("mine").session_id == "mine"

    def test_delete(self):
        """Test deletion."""
        manager = SessionManager()
        manager.get_or_create_session("x")

        assert manager.delete_session("x") is True
        assert manager.delete_session("x") is False

    def test_idle_sessions_expire(self):
        """Test that sessions past the timeout are dropped."""
        manager = SessionManager(session_timeout_minutes=1)
        session = manager.get_or_create_session("old")
        session.last_activity = datetime.now(UTC) - timedelta(minutes=5)

        assert manager.get_session("old") is None

    @pytest.mark.asyncio
    async def test_busy_sessions_do_not_expire(self):
        """Test that a session with a turn in flight is kept."""
        manager = SessionManager(session_timeout_minutes=1)
        session = manager.get_or_create_session("busy")
        session.last_activity = datetime.now(UTC) - timedelta(minutes=5)

        async with session.lock:
            assert manager.get_session("busy") is session
