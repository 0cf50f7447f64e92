"""Agent loop: bounded rounds of inference and tool execution for one session."""

import asyncio
from collections.abc import Iterable

from clawagent.clients.base import LLMProvider
from clawagent.models.llm import AgentResult, Message, ToolCall
from clawagent.services.config import AgentConfig
from clawagent.services.memory import Memory
from clawagent.tools.base import Tool
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)

MAX_ITERATIONS_MESSAGE = "Maximum tool iterations reached. Please try simplifying your request."
TOOL_CALL_HINT = "When you need to use a tool, return a tool call. You may call multiple tools in a single response."


class AgentLoop:
    """Drives one conversation turn against a provider and a set of tools."""

    def __init__(
        self,
        provider: LLMProvider,
        memory: Memory,
        tools: Iterable[Tool] | None = None,
        config: AgentConfig | None = None,
    ):
        """Initialize the agent loop.

        Args:
            provider: LLM backend used for every inference round
            memory: Store for session history and system prompt sections
            tools: Tools the model may call; a ToolsRegistry works as well
            config: Model, sampling and iteration settings
        """
        self.provider = provider
        self.memory = memory
        self.tools = tools if tools is not None else []
        self.config = config or AgentConfig()

    async def run(
        self,
        session_id: str,
        user_message: str,
        cancel_event: asyncio.Event | None = None,
    ) -> AgentResult:
        """Process one user message until the model answers in plain text.

        Args:
            session_id: Session whose history is read and appended to
            user_message: Text sent by the user
            cancel_event: Set it to stop the turn before the next inference round

        Returns:
            Final response text with token and tool call totals for the turn

        Raises:
            asyncio.CancelledError: If cancel_event is set at the top of a round
            ProviderError: If the provider call fails
        """
        tools = {tool.name: tool for tool in self.tools}
        definitions = [tool.get_definition() for tool in tools.values()]

        messages = await self.memory.get_messages(session_id)
        if not messages:
            system_prompt = await self.build_system_prompt(list(tools.values()))
            await self._append(session_id, messages, Message.system(system_prompt))

        await self._append(session_id, messages, Message.user(user_message))

        result = AgentResult(response="")
        max_iterations = self.config.max_tool_iterations
        logger.info(f"Starting turn for session {session_id} with {len(tools)} tools, max iterations: {max_iterations}")

        for iteration in range(1, max_iterations + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Turn cancelled for session {session_id} before round {iteration}")
                raise asyncio.CancelledError()

            logger.debug(f"Agent loop round {iteration}/{max_iterations} with {len(messages)} messages")
            response = await self.provider.chat(
                messages,
                tools=definitions or None,
                model=self.config.model,
                max_tokens=self.config.max_tokens,
                temperature=self.config.temperature,
            )
            result.total_input_tokens += response.input_tokens
            result.total_output_tokens += response.output_tokens

            if not response.has_tool_calls:
                await self._append(session_id, messages, Message.assistant(response.content))
                result.response = response.content
                logger.info(
                    f"Turn completed for session {session_id} in {iteration} rounds, "
                    f"{result.tool_calls_count} tool calls"
                )
                return result

            logger.info(f"Model requested {len(response.tool_calls)} tool calls")
            # A tool round is stored only once every call has its reply
            round_messages = [Message.assistant(response.content, response.tool_calls)]
            for tool_call in response.tool_calls:
                result.tool_calls_count += 1
                output = await self._execute_tool(tools, tool_call)
                round_messages.append(Message.tool(output, tool_call_id=tool_call.id, name=tool_call.function.name))

            for message in round_messages:
                await self._append(session_id, messages, message)

        logger.warning(f"Agent loop reached max iterations ({max_iterations}) for session {session_id}")
        result.response = MAX_ITERATIONS_MESSAGE
        return result

    async def clear_session(self, session_id: str) -> None:
        """Drop the stored history of a session."""
        await self.memory.clear_session(session_id)

    async def build_system_prompt(self, tools: list[Tool]) -> str:
        """Compose the bootstrap system prompt from memory sections and tools."""
        parts = []

        for heading, content in (
            ("Identity", await self.memory.get_identity()),
            ("Personality", await self.memory.get_soul()),
            ("Guidelines", await self.memory.get_agents()),
            ("User Profile", await self.memory.get_user()),
            ("Long-term Memory", await self.memory.get_memory()),
        ):
            if content:
                parts.append(f"# {heading}\n{content}")

        parts.append(f"# Workspace\nCurrent working directory: {self.config.workspace}")

        if tools:
            tool_lines = "\n".join(f"- {tool.name}: {tool.description}" for tool in tools)
            parts.append(f"# Available Tools\n{tool_lines}")

        tools_guide = await self.memory.get_tools()
        if tools_guide:
            parts.append(f"# Tools Guide\n{tools_guide}")

        parts.append(TOOL_CALL_HINT)
        return "\n\n".join(parts)

    async def _append(self, session_id: str, messages: list[Message], message: Message) -> None:
        messages.append(message)
        await self.memory.add_message(session_id, message)

    async def _execute_tool(self, tools: dict[str, Tool], tool_call: ToolCall) -> str:
        tool_name = tool_call.function.name
        tool = tools.get(tool_name)
        if tool is None:
            logger.error(f"Unknown tool requested: {tool_name}")
            return f"Error: unknown tool '{tool_name}'"

        logger.debug(f"Executing tool: {tool_name} with arguments: {tool_call.function.arguments}")
        try:
            output = await tool.execute(tool_call.function.arguments)
        except Exception as e:
            logger.error(f"Tool {tool_name} failed: {e}")
            return f"Error: {e!s}"

        logger.debug(f"Tool {tool_name} returned: {output[:100]}")
        return output
