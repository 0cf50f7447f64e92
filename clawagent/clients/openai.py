"""OpenAI-compatible chat completions provider (also serves local gateways)."""

import json
from typing import Any

import httpx

from clawagent.clients.base import LLMProvider, ProviderError
from clawagent.clients.rate_limit import RateLimiter
from clawagent.models.llm import ChatResponse, Message, ToolCall, ToolCallFunction, ToolDefinition
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_OPENAI_BASE = "https://api.openai.com/v1"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_MAX_TOKENS = 4096
DEFAULT_TEMPERATURE = 0.7
REQUEST_TIMEOUT = 300.0


class OpenAIProvider(LLMProvider):
    """Flat ``tool_calls`` array protocol over ``/chat/completions``."""

    name = "openai"

    def __init__(
        self,
        api_key: str = "",
        api_base: str | None = None,
        default_model: str | None = None,
        is_local: bool = False,
        rate_limiter: RateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize provider.

        Args:
            api_key: Bearer token; may be empty only for local providers
            api_base: Base URL up to and including the API version segment
            default_model: Model used when a call does not name one
            is_local: Allow requests without an API key
            rate_limiter: Optional shared client-side throttle
            http_client: Preconfigured client (tests inject a mock transport)
        """
        super().__init__(rate_limiter=rate_limiter)
        if not api_key and not is_local:
            raise ValueError("API key is required for non-local providers")

        self.api_key = api_key
        self.api_base = (api_base or DEFAULT_OPENAI_BASE).rstrip("/")
        self.default_model = default_model
        self.is_local = is_local
        self.client = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def chat(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        request = self.build_request(messages, tools, model, max_tokens, temperature)
        await self._throttle(messages, tools)

        url = f"{self.api_base}/chat/completions"
        logger.debug(f"POST {url} with {len(messages)} messages, {len(tools) if tools else 0} tools")
        try:
            response = await self.client.post(url, json=request, headers=self._headers())
        except httpx.HTTPError as e:
            raise ProviderError(f"Request to {url} failed: {e}") from e

        if not response.is_success:
            raise ProviderError("API error", status_code=response.status_code, body=response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError("Response body is not valid JSON", body=response.text) from e

        return self.parse_response(payload)

    def build_request(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Translate canonical messages and tools into a request body."""
        request: dict[str, Any] = {
            "model": model or self.default_model or DEFAULT_OPENAI_MODEL,
            "messages": [self._convert_message(message) for message in messages],
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
            "temperature": temperature if temperature is not None else DEFAULT_TEMPERATURE,
        }
        if tools:
            request["tools"] = [tool.model_dump(exclude_none=True) for tool in tools]
        return request

    @staticmethod
    def _convert_message(message: Message) -> dict[str, Any]:
        converted: dict[str, Any] = {"role": message.role.value, "content": message.content}
        if message.tool_call_id:
            converted["tool_call_id"] = message.tool_call_id
        if message.name:
            converted["name"] = message.name
        if message.tool_calls:
            converted["tool_calls"] = [call.model_dump() for call in message.tool_calls]
        return converted

    def parse_response(self, payload: dict[str, Any]) -> ChatResponse:
        """Translate a chat completions body into a canonical response."""
        try:
            message = payload["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderError("Malformed response: missing choices[0].message", body=json.dumps(payload)) from e

        tool_calls = None
        raw_calls = message.get("tool_calls")
        if raw_calls:
            tool_calls = [self._parse_tool_call(raw) for raw in raw_calls]

        usage = payload.get("usage") or {}
        return ChatResponse(
            content=message.get("content") or "",
            tool_calls=tool_calls,
            input_tokens=usage.get("prompt_tokens") or 0,
            output_tokens=usage.get("completion_tokens") or 0,
        )

    @staticmethod
    def _parse_tool_call(raw: dict[str, Any]) -> ToolCall:
        function = raw.get("function") or {}
        arguments = function.get("arguments")
        if arguments is None:
            arguments = "{}"
        elif not isinstance(arguments, str):
            # Some gateways send the arguments as an object
            arguments = json.dumps(arguments, ensure_ascii=False)

        return ToolCall(
            id=raw.get("id") or "",
            function=ToolCallFunction(name=function.get("name") or "", arguments=arguments),
        )

    async def aclose(self) -> None:
        await self.client.aclose()
