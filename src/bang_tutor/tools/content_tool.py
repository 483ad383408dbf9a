"""
Content tools - read and write the student's language files.

All access goes through ContentStore, so the agent can only touch the six
named artifacts and the session logs of the active topic.
"""

import logging

from ..content.store import LANG_FILES, ContentStore
from .base import Tool, ToolParameter, ToolResult

logger = logging.getLogger(__name__)


def create_content_tools(store: ContentStore, topic: str) -> list[Tool]:
    """Create file tools bound to one topic directory."""

    async def read_file_tool(name: str) -> ToolResult:
        try:
            content = store.read_file(topic, name)
        except ValueError as e:
            return ToolResult(success=False, error=str(e))
        if content is None:
            return ToolResult(success=True, output=f"{name} does not exist yet.")
        return ToolResult(success=True, output=content)

    async def write_file_tool(name: str, content: str) -> ToolResult:
        try:
            store.write_file(topic, name, content)
        except ValueError as e:
            return ToolResult(success=False, error=str(e))
        return ToolResult(success=True, output=f"Wrote {len(content)} characters to {name}")

    async def list_session_logs_tool() -> ToolResult:
        names = store.list_session_files(topic)
        return ToolResult(success=True, output="\n".join(names) or "No session logs yet.", data=names)

    async def write_session_log_tool(content: str) -> ToolResult:
        filename = store.next_session_filename(topic)
        store.write_session_file(topic, filename, content)
        logger.info(f"Wrote session log {topic}/sessions/{filename}")
        return ToolResult(success=True, output=f"Wrote sessions/{filename}", data=filename)

    name_param = ToolParameter(
        name="name",
        param_type="string",
        description="Which language file",
        enum=list(LANG_FILES),
    )

    return [
        Tool(
            name="read_file",
            description="Read one of the student's language files for the current language.",
            parameters=[name_param],
            handler=read_file_tool,
        ),
        Tool(
            name="write_file",
            description="Replace the full contents of one of the student's language files.",
            parameters=[
                name_param,
                ToolParameter(name="content", param_type="string", description="New file contents (markdown)"),
            ],
            handler=write_file_tool,
        ),
        Tool(
            name="list_session_logs",
            description="List previous session log files, oldest first.",
            parameters=[],
            handler=list_session_logs_tool,
        ),
        Tool(
            name="write_session_log",
            description="Write the log for this session to the next free dated session file.",
            parameters=[
                ToolParameter(name="content", param_type="string", description="Session log (markdown)"),
            ],
            handler=write_session_log_tool,
        ),
    ]
