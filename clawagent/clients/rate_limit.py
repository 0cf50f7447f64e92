"""Client-side rate limiting and token estimation shared by all providers."""

import asyncio
import time

import tiktoken
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

from clawagent.models.llm import Message, ToolDefinition
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

MIN_WAIT_SECONDS = 0.05


class TokenEstimator:
    """Rough token counter used for rate limiting and message validation."""

    def __init__(self, encoding_model: str = "gpt-4"):
        self.encoding_model = encoding_model
        self.tokenizer: tiktoken.Encoding | None = None
        self._loaded = False

    def _get_tokenizer(self) -> tiktoken.Encoding | None:
        if not self._loaded:
            self._loaded = True
            try:
                self.tokenizer = tiktoken.encoding_for_model(self.encoding_model)
            except Exception as e:
                logger.warning(f"Tokenizer unavailable, falling back to character estimate: {e}")
                self.tokenizer = None
        return self.tokenizer

    def estimate(self, text: str) -> int:
        """Estimate token count for a piece of text."""
        tokenizer = self._get_tokenizer()
        try:
            return len(tokenizer.encode(text)) if tokenizer else len(text) // 4
        except Exception:
            # Fallback: roughly 4 characters per token
            return len(text) // 4

    def estimate_request(self, messages: list[Message], tools: list[ToolDefinition] | None = None) -> int:
        """Estimate token count for a whole chat request."""
        text_content = "".join(message.content for message in messages)
        for message in messages:
            for call in message.tool_calls or []:
                text_content += call.function.name + call.function.arguments
        for tool in tools or []:
            text_content += tool.function.name + tool.function.description
        return self.estimate(text_content)

    def validate_message_tokens(self, message: str, max_tokens: int) -> None:
        """Validate that a message doesn't exceed a token limit.

        Raises:
            ValueError: If message exceeds token limit
        """
        token_count = self.estimate(message)
        if token_count > max_tokens:
            raise ValueError(f"Message exceeds token limit: {token_count} tokens > {max_tokens} limit")


class RateLimiter:
    """Moving-window request and token budget per provider."""

    def __init__(self, requests_per_minute: int = 50, tokens_per_minute: int = 40_000):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
            tokens_per_minute: Maximum tokens per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)

        self.request_limit = parse(f"{requests_per_minute}/minute")
        self.token_limit = parse(f"{tokens_per_minute}/minute")

    async def check_rate_limit(self, estimated_tokens: int, identifier: str = "default") -> None:
        """Wait until the request fits within the configured budgets.

        A request estimated above the whole per-minute token budget is charged
        the full budget, so it waits for an empty window instead of forever.
        """
        logger.debug(f"Checking rate limit for {estimated_tokens} tokens, identifier: {identifier}")

        while not self.limiter.hit(self.request_limit, identifier):
            await self._wait_for_window(self.request_limit, identifier, "Request")

        token_identifier = f"{identifier}_tokens"
        cost = min(max(1, estimated_tokens), self.token_limit.amount)
        if cost < estimated_tokens:
            logger.warning(f"Request estimate of {estimated_tokens} tokens exceeds the per-minute budget")
        while not self.limiter.hit(self.token_limit, token_identifier, cost=cost):
            await self._wait_for_window(self.token_limit, token_identifier, "Token")

    async def _wait_for_window(self, limit, identifier: str, kind: str) -> None:
        window_stats = self.limiter.get_window_stats(limit, identifier)
        wait_time = max(MIN_WAIT_SECONDS, window_stats.reset_time - time.time())
        logger.warning(f"{kind} rate limit exceeded for {identifier}, waiting {wait_time:.2f}s")
        await asyncio.sleep(wait_time)
