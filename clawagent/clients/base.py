"""Provider abstraction shared by every LLM backend family."""

from abc import ABC, abstractmethod

from clawagent.clients.rate_limit import RateLimiter, TokenEstimator
from clawagent.models.llm import ChatResponse, Message, ToolDefinition


class ProviderError(Exception):
    """A chat call failed: bad status, transport failure or unreadable body.

    Fatal for the current turn. Providers never retry on it.
    """

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is not None:
            return f"{message} (status {self.status_code}): {self.body}"
        return message


class LLMProvider(ABC):
    """A backend that turns canonical messages into a canonical response.

    Each implementation owns the translation to and from its wire format and
    must accept history produced by any other provider.
    """

    name: str = "provider"

    def __init__(self, rate_limiter: RateLimiter | None = None, token_estimator: TokenEstimator | None = None):
        self.rate_limiter = rate_limiter
        self.token_estimator = token_estimator or TokenEstimator()

    @abstractmethod
    async def chat(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        """Send the conversation and return the model's reply.

        Raises:
            ProviderError: On non-success status, transport failure or malformed body
        """

    async def aclose(self) -> None:
        """Release network resources held by the provider."""

    async def _throttle(self, messages: list[Message], tools: list[ToolDefinition] | None) -> None:
        if self.rate_limiter is None:
            return
        estimated_tokens = self.token_estimator.estimate_request(messages, tools)
        await self.rate_limiter.check_rate_limit(estimated_tokens, self.name)
