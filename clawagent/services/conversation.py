"""Conversation service: runs agent turns for gateway sessions."""

import json

from clawagent.clients.rate_limit import TokenEstimator
from clawagent.models.conversation import ChatReply
from clawagent.services.agent import AgentLoop
from clawagent.services.session_manager import SessionManager
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationService:
    """Serializes turns per session and hands them to the agent loop."""

    def __init__(
        self,
        agent: AgentLoop,
        session_manager: SessionManager | None = None,
        token_estimator: TokenEstimator | None = None,
        max_message_tokens: int | None = None,
    ):
        """Initialize conversation service.

        Args:
            agent: Agent loop that runs each turn
            session_manager: Session store (a fresh one by default)
            token_estimator: Tokenizer used to reject oversized messages
            max_message_tokens: Per-message limit (defaults to the agent config)
        """
        self.agent = agent
        self.session_manager = session_manager or SessionManager()
        self.token_estimator = token_estimator or TokenEstimator()
        self.max_message_tokens = max_message_tokens or agent.config.max_message_tokens

    async def process_message(self, message: str, session_id: str | None = None) -> ChatReply:
        """Process a user message and return the agent's reply.

        Args:
            message: User's message
            session_id: Existing session to continue; a new one is created when omitted

        Returns:
            Reply with the response text and the turn's usage counters

        Raises:
            ValueError: If message exceeds token limit
            ProviderError: If the provider call fails
        """
        self.token_estimator.validate_message_tokens(message, self.max_message_tokens)

        session = self.session_manager.get_or_create_session(session_id)
        logger.info(f"Processing message for session {session.session_id} {json.dumps(session.as_dict())}")

        async with session.lock:
            result = await self.agent.run(session.session_id, message)
            session.record_turn()

        logger.info(
            f"Token usage - Input: {result.total_input_tokens}, "
            f"Output: {result.total_output_tokens}, "
            f"Tool calls: {result.tool_calls_count}"
        )
        return ChatReply(
            response=result.response,
            session_id=session.session_id,
            input_tokens=result.total_input_tokens,
            output_tokens=result.total_output_tokens,
            tool_calls=result.tool_calls_count,
        )

    async def clear_session(self, session_id: str) -> None:
        """Drop a session and its stored history."""
        session = self.session_manager.get_session(session_id)
        if session is None:
            await self.agent.clear_session(session_id)
            return

        async with session.lock:
            await self.agent.clear_session(session_id)
            self.session_manager.delete_session(session_id)
        logger.info(f"Cleared session {session_id}")

    async def aclose(self) -> None:
        """Release the agent's provider."""
        await self.agent.provider.aclose()
