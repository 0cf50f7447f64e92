"""Tools registry for managing agent tools."""

from collections.abc import Iterator
from pathlib import Path

from clawagent.clients.base import LLMProvider
from clawagent.models.llm import ToolDefinition
from clawagent.services.config import AgentConfig
from clawagent.services.skills import SkillStore
from clawagent.tools.base import Tool
from clawagent.tools.files import ListDirTool, ReadFileTool, WriteFileTool
from clawagent.tools.shell import ShellTool
from clawagent.tools.skill import SkillTool
from clawagent.utils.logging import get_logger

logger = get_logger(__name__)


class ToolsRegistry:
    """Name-keyed set of tools available to the agent."""

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register_tool(tool)

    def register_tool(self, tool: Tool) -> None:
        """Register a new tool in the registry.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name}")
        self._tools[tool.name] = tool

    def get_tool(self, name: str) -> Tool | None:
        """Get a tool by exact name."""
        return self._tools.get(name)

    def get_definitions(self) -> list[ToolDefinition]:
        """Get definitions for every registered tool, in registration order."""
        return [tool.get_definition() for tool in self._tools.values()]

    def get_tool_names(self) -> list[str]:
        """Get list of all registered tool names."""
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        """Check if a tool is registered."""
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)


def create_builtin_tools(workspace: str | Path) -> list[Tool]:
    """Create the built-in file and shell tools bound to a workspace."""
    return [
        ReadFileTool(workspace),
        WriteFileTool(workspace),
        ListDirTool(workspace),
        ShellTool(workspace),
    ]


async def build_tools_registry(
    config: AgentConfig,
    provider: LLMProvider,
    skill_store: SkillStore | None = None,
) -> ToolsRegistry:
    """Build a registry with the built-in tools plus one tool per stored skill."""
    registry = ToolsRegistry(create_builtin_tools(config.workspace))

    if skill_store is None:
        return registry

    for skill in await skill_store.list_skills():
        tool = SkillTool(skill, provider, config)
        if registry.has_tool(tool.name):
            logger.warning(f"Skipping skill '{skill.name}': tool name {tool.name} is already registered")
            continue
        registry.register_tool(tool)

    logger.info(f"Tools registry ready with {len(registry)} tools: {', '.join(registry.get_tool_names())}")
    return registry
