"""Tests for the OpenAI-compatible provider wire translation."""

import json

import httpx
import pytest

from clawagent.clients.base import ProviderError
from clawagent.clients.openai import OpenAIProvider
from clawagent.models.llm import Message, ToolCall, ToolDefinition, ToolFunction, ToolParameters, ToolProperty


def completion(message: dict, usage: dict | None = None) -> dict:
    """Build a chat completions response body."""
    body = {"id": "chatcmpl-1", "choices": [{"index": 0, "message": message, "finish_reason": "stop"}]}
    if usage is not None:
        body["usage"] = usage
    return body


def make_provider(handler, **kwargs) -> OpenAIProvider:
    """Create a provider whose HTTP traffic goes to a mock transport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    kwargs.setdefault("api_key", "sk-test")
    return OpenAIProvider(http_client=client, **kwargs)


class TestOpenAIRequest:
    """Tests for request construction."""

    @pytest.mark.asyncio
    async def test_posts_to_chat_completions_with_bearer_key(self):
        """Test URL, auth header and default sampling parameters."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion({"role": "assistant", "content": "Hi"}))

        provider = make_provider(handler, api_base="https://example.test/v1/")
        await provider.chat([Message.user("Hello")])

        assert captured["url"] == "https://example.test/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        assert captured["body"]["model"] == "gpt-4o-mini"
        assert captured["body"]["max_tokens"] == 4096
        assert captured["body"]["temperature"] == 0.7
        assert "tools" not in captured["body"]

    @pytest.mark.asyncio
    async def test_local_provider_omits_authorization(self):
        """Test that keyless local providers send no Authorization header."""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json=completion({"role": "assistant", "content": "ok"}))

        provider = make_provider(handler, api_key="", api_base="http://localhost:11434/v1", is_local=True)
        await provider.chat([Message.user("Hello")])

        assert captured["auth"] is None

    def test_missing_key_for_remote_provider_raises(self):
        """Test that a remote provider needs an API key."""
        with pytest.raises(ValueError, match="API key is required"):
            OpenAIProvider(api_key="")

    def test_history_and_tools_are_flat(self):
        """Test that tool calls and tool replies keep their flat fields."""
        provider = make_provider(lambda request: httpx.Response(200))
        raw = '{"path": "notes.txt"}'
        messages = [
            Message.system("sys"),
            Message.user("read notes"),
            Message.assistant("", [ToolCall.create("call_1", "read_file", raw)]),
            Message.tool("hello", tool_call_id="call_1", name="read_file"),
        ]
        tools = [
            ToolDefinition(
                function=ToolFunction(
                    name="read_file",
                    description="Read a file",
                    parameters=ToolParameters(
                        properties={"path": ToolProperty(description="File path")},
                        required=["path"],
                    ),
                )
            )
        ]

        request = provider.build_request(messages, tools, model="gpt-4o", max_tokens=100, temperature=0.0)

        assert request["model"] == "gpt-4o"
        assert request["temperature"] == 0.0
        assert [m["role"] for m in request["messages"]] == ["system", "user", "assistant", "tool"]
        assert request["messages"][2]["tool_calls"] == [
            {"id": "call_1", "type": "function", "function": {"name": "read_file", "arguments": raw}}
        ]
        assert request["messages"][3]["tool_call_id"] == "call_1"
        assert request["messages"][3]["name"] == "read_file"
        assert "tool_call_id" not in request["messages"][1]
        assert request["tools"][0]["function"]["parameters"] == {
            "type": "object",
            "properties": {"path": {"type": "string", "description": "File path"}},
            "required": ["path"],
        }


class TestOpenAIResponse:
    """Tests for response parsing."""

    @pytest.mark.asyncio
    async def test_text_response_with_usage(self):
        """Test plain text and token usage."""
        body = completion({"role": "assistant", "content": "Hi"}, {"prompt_tokens": 12, "completion_tokens": 3})
        provider = make_provider(lambda request: httpx.Response(200, json=body))

        response = await provider.chat([Message.user("Hello")])

        assert response.content == "Hi"
        assert response.tool_calls is None
        assert response.input_tokens == 12
        assert response.output_tokens == 3

    def test_tool_calls_keep_raw_arguments(self):
        """Test that argument strings are passed through untouched."""
        raw = '{"command":  "ls -la"}'
        body = completion(
            {
                "role": "assistant",
                "content": None,
                "tool_calls": [{"id": "call_9", "type": "function", "function": {"name": "exec", "arguments": raw}}],
            }
        )

        response = make_provider(lambda request: httpx.Response(200)).parse_response(body)

        assert response.content == ""
        assert response.has_tool_calls
        assert response.tool_calls[0].id == "call_9"
        assert response.tool_calls[0].function.name == "exec"
        assert response.tool_calls[0].function.arguments == raw

    def test_object_arguments_are_encoded(self):
        """Test that object-valued arguments are turned into a JSON string."""
        body = completion(
            {
                "role": "assistant",
                "tool_calls": [{"id": "c", "function": {"name": "exec", "arguments": {"command": "pwd"}}}],
            }
        )

        response = make_provider(lambda request: httpx.Response(200)).parse_response(body)

        assert json.loads(response.tool_calls[0].function.arguments) == {"command": "pwd"}

    def test_missing_usage_and_null_tool_calls(self):
        """Test tolerance of absent usage and explicit null tool_calls."""
        body = completion({"role": "assistant", "content": "ok", "tool_calls": None})

        response = make_provider(lambda request: httpx.Response(200)).parse_response(body)

        assert response.tool_calls is None
        assert response.input_tokens == 0
        assert response.output_tokens == 0

    def test_missing_choices_raises(self):
        """Test that a body without choices is a provider error."""
        with pytest.raises(ProviderError, match="Malformed response"):
            make_provider(lambda request: httpx.Response(200)).parse_response({"choices": []})


class TestOpenAIErrors:
    """Tests for error propagation."""

    @pytest.mark.asyncio
    async def test_error_status_carries_code_and_body(self):
        """Test that non-2xx responses raise with status and body."""
        provider = make_provider(lambda request: httpx.Response(429, text="slow down"))

        with pytest.raises(ProviderError) as exc_info:
            await provider.chat([Message.user("Hello")])

        assert exc_info.value.status_code == 429
        assert exc_info.value.body == "slow down"
        assert "429" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_invalid_json_body(self):
        """Test that an unparseable body is a provider error."""
        provider = make_provider(lambda request: httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderError, match="not valid JSON"):
            await provider.chat([Message.user("Hello")])

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        """Test that connection failures are wrapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        provider = make_provider(handler)

        with pytest.raises(ProviderError, match="connection refused"):
            await provider.chat([Message.user("Hello")])
