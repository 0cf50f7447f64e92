"""Tools for the agent."""

from clawagent.tools.base import Tool, ToolInputError
from clawagent.tools.registry import ToolsRegistry, build_tools_registry, create_builtin_tools

__all__ = ["Tool", "ToolInputError", "ToolsRegistry", "build_tools_registry", "create_builtin_tools"]
