"""Anthropic Messages API provider (typed content blocks)."""

import json
import re
import uuid
from typing import Any

import httpx
from anthropic import APIConnectionError, APIStatusError, AsyncAnthropic

from clawagent.clients.base import LLMProvider, ProviderError
from clawagent.clients.rate_limit import RateLimiter
from clawagent.models.llm import ChatResponse, Message, MessageRole, ToolCall, ToolCallFunction, ToolDefinition
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"[ \t\n\r]*")
_DECODER = json.JSONDecoder()

DEFAULT_ANTHROPIC_BASE = "https://api.anthropic.com"
DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_MAX_TOKENS = 4096
REQUEST_TIMEOUT = 300.0


class AnthropicProvider(LLMProvider):
    """Typed content block protocol over the Messages API."""

    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        api_base: str | None = None,
        default_model: str | None = None,
        rate_limiter: RateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """Initialize provider.

        Args:
            api_key: Anthropic API key, sent as ``x-api-key``
            api_base: Base URL override (without the ``/v1`` segment)
            default_model: Model used when a call does not name one
            rate_limiter: Optional shared client-side throttle
            http_client: Preconfigured client (tests inject a mock transport)
        """
        super().__init__(rate_limiter=rate_limiter)
        if not api_key:
            raise ValueError("Anthropic API key is required")

        self.default_model = default_model
        # No automatic retries
        self.client = AsyncAnthropic(
            api_key=api_key,
            base_url=api_base or DEFAULT_ANTHROPIC_BASE,
            max_retries=0,
            timeout=REQUEST_TIMEOUT,
            http_client=http_client,
        )

    async def chat(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> ChatResponse:
        request_params = self.build_request(messages, tools, model, max_tokens, temperature)
        await self._throttle(messages, tools)

        logger.debug(f"Making Anthropic API call with model: {request_params['model']}")
        try:
            raw_response = await self.client.messages.with_raw_response.create(**request_params)
        except APIStatusError as e:
            raise ProviderError("API error", status_code=e.status_code, body=e.response.text) from e
        except APIConnectionError as e:
            raise ProviderError(f"Request to Anthropic failed: {e}") from e

        response = raw_response.parse()
        logger.debug(f"Response received - Stop reason: {response.stop_reason}, blocks: {len(response.content)}")
        return self.parse_response(response.model_dump(), raw_tool_inputs(raw_response.http_response.text))

    def build_request(
        self,
        messages: list[Message],
        tools: list[ToolDefinition] | None = None,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> dict[str, Any]:
        """Translate canonical messages and tools into Messages API parameters."""
        system_parts = [message.content for message in messages if message.role == MessageRole.SYSTEM]
        other_messages = [message for message in messages if message.role != MessageRole.SYSTEM]

        request_params: dict[str, Any] = {
            "model": model or self.default_model or DEFAULT_ANTHROPIC_MODEL,
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
            "messages": self.convert_messages(other_messages),
        }
        if system_parts:
            request_params["system"] = "\n\n".join(system_parts)
        if temperature is not None:
            request_params["temperature"] = temperature
        if tools:
            request_params["tools"] = [
                {
                    "name": tool.function.name,
                    "description": tool.function.description,
                    "input_schema": tool.function.parameters.model_dump(exclude_none=True),
                }
                for tool in tools
            ]
        return request_params

    def convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert non-system canonical messages into content-block messages.

        The Messages API rejects empty text blocks, so messages with no text
        and no tool calls are left out.
        """
        converted: list[dict[str, Any]] = []
        for message in messages:
            if message.role == MessageRole.TOOL:
                converted.append(
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "tool_result",
                                "tool_use_id": message.tool_call_id,
                                "content": message.content,
                            }
                        ],
                    }
                )
            elif message.tool_calls:
                blocks: list[dict[str, Any]] = []
                if message.content:
                    blocks.append({"type": "text", "text": message.content})
                for call in message.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.function.name,
                            "input": self._parse_arguments(call),
                        }
                    )
                converted.append({"role": "assistant", "content": blocks})
            elif message.content:
                converted.append(
                    {
                        "role": message.role.value,
                        "content": [{"type": "text", "text": message.content}],
                    }
                )
            else:
                logger.debug(f"Dropping empty {message.role.value} message")
        return converted

    @staticmethod
    def _parse_arguments(call: ToolCall) -> dict[str, Any]:
        try:
            arguments = json.loads(call.function.arguments or "{}")
        except json.JSONDecodeError:
            logger.warning(f"Tool call {call.id} has malformed arguments, sending empty input")
            return {}
        if not isinstance(arguments, dict):
            logger.warning(f"Tool call {call.id} arguments are not an object, sending empty input")
            return {}
        return arguments

    def parse_response(self, payload: dict[str, Any], raw_inputs: dict[str, str] | None = None) -> ChatResponse:
        """Scan response content blocks into a canonical response.

        Args:
            payload: Decoded response body
            raw_inputs: Exact ``input`` JSON text per tool_use id, see :func:`raw_tool_inputs`
        """
        raw_inputs = raw_inputs or {}
        content_blocks = payload.get("content")
        if not isinstance(content_blocks, list):
            raise ProviderError("Malformed response: missing content array", body=json.dumps(payload, default=str))

        text_content: str | None = None
        tool_calls: list[ToolCall] = []
        for block in content_blocks:
            block_type = block.get("type")
            if block_type == "text":
                text_content = block.get("text")
            elif block_type == "tool_use":
                block_id = block.get("id")
                arguments = raw_inputs.get(block_id) if block_id else None
                if arguments is None:
                    arguments = json.dumps(block.get("input", {}), ensure_ascii=False, separators=(",", ":"))
                tool_calls.append(
                    ToolCall(
                        id=block_id or uuid.uuid4().hex,
                        function=ToolCallFunction(name=block.get("name") or "", arguments=arguments),
                    )
                )
            else:
                logger.debug(f"Skipping content block of type: {block_type}")

        usage = payload.get("usage") or {}
        return ChatResponse(
            content=text_content or "",
            tool_calls=tool_calls or None,
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
        )

    async def aclose(self) -> None:
        await self.client.close()


def raw_tool_inputs(body: str) -> dict[str, str]:
    """Map each tool_use block id to the exact JSON text of its ``input``.

    Returns an empty mapping when the body cannot be walked.
    """
    inputs: dict[str, str] = {}
    try:
        members, _ = _object_members(body, _skip_whitespace(body, 0))
        content_start = next((start for key, start, _ in members if key == "content"), None)
        if content_start is None or body[content_start] != "[":
            return inputs

        index = _skip_whitespace(body, content_start + 1)
        while body[index] != "]":
            block, index = _object_members(body, index)
            fields = {key: (start, end) for key, start, end in block}
            if "id" in fields and "input" in fields:
                block_id = json.loads(body[slice(*fields["id"])])
                inputs[str(block_id)] = body[slice(*fields["input"])]
            index = _skip_whitespace(body, index)
            if body[index] == ",":
                index = _skip_whitespace(body, index + 1)
    except (ValueError, IndexError) as e:
        logger.debug(f"Could not read raw tool inputs from response body: {e}")
        return {}
    return inputs


def _skip_whitespace(text: str, index: int) -> int:
    return _WHITESPACE.match(text, index).end()


def _object_members(text: str, index: int) -> tuple[list[tuple[str, int, int]], int]:
    """Members of the JSON object at ``index`` as (key, value start, value end), plus the object's end."""
    if text[index] != "{":
        raise ValueError(f"expected an object at offset {index}")

    members: list[tuple[str, int, int]] = []
    index = _skip_whitespace(text, index + 1)
    if text[index] == "}":
        return members, index + 1

    while True:
        key, index = _DECODER.raw_decode(text, index)
        index = _skip_whitespace(text, index)
        if text[index] != ":":
            raise ValueError(f"expected ':' at offset {index}")
        start = _skip_whitespace(text, index + 1)
        _, end = _DECODER.raw_decode(text, start)
        members.append((key, start, end))

        index = _skip_whitespace(text, end)
        if text[index] == "}":
            return members, index + 1
        if text[index] != ",":
            raise ValueError(f"expected ',' at offset {index}")
        index = _skip_whitespace(text, index + 1)
