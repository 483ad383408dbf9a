"""
Tool registry: name lookup, LLM definitions and guarded execution.
"""

from typing import Any

import structlog

from ..llm.base import ToolDefinition
from .base import Tool, ToolResult

logger = structlog.get_logger()


class ToolRegistry:
    """Tools available to one agent process."""

    def __init__(self, tools: list[Tool] | None = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool
        logger.debug("Tool registered", tool_name=tool.name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        """Tool definitions for the LLM."""
        return [
            ToolDefinition(
                name=tool.name,
                description=tool.description,
                parameters=tool.get_parameters_schema(),
            )
            for tool in self._tools.values()
        ]

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool by name.

        Handler failures come back as unsuccessful results so the model
        can see and react to them. Cancellation still propagates.
        """
        tool = self.get(name)
        if tool is None:
            return ToolResult(success=False, error=f"Tool '{name}' not found")

        try:
            logger.info("Executing tool", tool_name=name)
            result = await tool.execute(**arguments)
            logger.info("Tool executed", tool_name=name, success=result.success)
            return result
        except Exception as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return ToolResult(success=False, error=str(e))
