"""LLM-related data models and types (provider-agnostic)."""

from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, Field, model_validator


class MessageRole(StrEnum):
    """Role of a message in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallFunction(BaseModel):
    """Function half of a tool call.

    ``arguments`` is the raw JSON-encoded string as the provider sent it.
    Each tool parses its own arguments.
    """

    name: str
    arguments: str = "{}"


class ToolCall(BaseModel):
    """A tool invocation requested by the assistant."""

    id: str
    type: Literal["function"] = "function"
    function: ToolCallFunction

    @classmethod
    def create(cls, id: str, name: str, arguments: str = "{}") -> "ToolCall":
        """Build a tool call from its flat parts."""
        return cls(id=id, function=ToolCallFunction(name=name, arguments=arguments))


class Message(BaseModel):
    """A message in a conversation."""

    role: MessageRole
    content: str = ""
    tool_call_id: str | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None

    @model_validator(mode="after")
    def check_role_fields(self) -> "Message":
        """Keep tool linkage fields on the roles that own them."""
        if self.role != MessageRole.TOOL and (self.tool_call_id is not None or self.name is not None):
            raise ValueError("tool_call_id and name are only allowed on tool messages")
        if self.role != MessageRole.ASSISTANT and self.tool_calls:
            raise ValueError("tool_calls are only allowed on assistant messages")
        return self

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolCall] | None = None) -> "Message":
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls or None)

    @classmethod
    def tool(cls, content: str, tool_call_id: str, name: str) -> "Message":
        return cls(role=MessageRole.TOOL, content=content, tool_call_id=tool_call_id, name=name)


class ToolProperty(BaseModel):
    """A single parameter in a tool schema."""

    type: str = "string"
    description: str = ""
    enum: list[str] | None = None


class ToolParameters(BaseModel):
    """JSON-Schema-like object describing tool parameters."""

    type: Literal["object"] = "object"
    properties: dict[str, ToolProperty] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)


class ToolFunction(BaseModel):
    """Function half of a tool definition."""

    name: str
    description: str
    parameters: ToolParameters = Field(default_factory=ToolParameters)


class ToolDefinition(BaseModel):
    """Complete tool definition for LLM."""

    type: Literal["function"] = "function"
    function: ToolFunction

    @property
    def name(self) -> str:
        return self.function.name


@dataclass
class ChatResponse:
    """Provider-agnostic response from a chat call."""

    content: str = ""
    tool_calls: list[ToolCall] | None = None
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def has_tool_calls(self) -> bool:
        """True when the model asked for at least one tool invocation."""
        return bool(self.tool_calls)


@dataclass
class AgentResult:
    """Result from executing one agent turn."""

    response: str = ""
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    tool_calls_count: int = 0
