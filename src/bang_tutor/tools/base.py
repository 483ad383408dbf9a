"""
Base classes for agent tools.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine


@dataclass
class ToolResult:
    """Result from a tool execution."""

    success: bool
    output: str = ""
    data: Any = None
    error: str | None = None


@dataclass
class ToolParameter:
    """Definition of a tool parameter.

    ``schema`` carries extra JSON Schema keywords (``items``,
    ``properties``, ``minimum`` ...) for structured parameters.
    """

    name: str
    param_type: str  # string, number, integer, boolean, array, object
    description: str
    required: bool = True
    enum: list[str] | None = None
    schema: dict[str, Any] = field(default_factory=dict)


@dataclass
class Tool:
    """A tool backed by an async handler function."""

    name: str
    description: str
    parameters: list[ToolParameter]
    handler: Callable[..., Coroutine[Any, Any, ToolResult]]

    def get_parameters_schema(self) -> dict[str, Any]:
        """Convert parameters to JSON Schema format."""
        properties = {}
        required = []

        for param in self.parameters:
            prop: dict[str, Any] = {
                "type": param.param_type,
                "description": param.description,
            }
            if param.enum:
                prop["enum"] = param.enum
            prop.update(param.schema)

            properties[param.name] = prop

            if param.required:
                required.append(param.name)

        return {
            "type": "object",
            "properties": properties,
            "required": required,
        }

    async def execute(self, **kwargs: Any) -> ToolResult:
        return await self.handler(**kwargs)
