"""
Tools module for agent capabilities.
"""

from .base import Tool, ToolParameter, ToolResult
from .content_tool import create_content_tools
from .registry import ToolRegistry
from .sm2_tool import create_sm2_tool

__all__ = [
    "Tool",
    "ToolParameter",
    "ToolResult",
    "ToolRegistry",
    "create_content_tools",
    "create_sm2_tool",
]
