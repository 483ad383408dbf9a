"""
Agent module - the session bridge between the client and the tutor agent.

Includes:
- SessionManager: Lifecycle of the single live tutoring session
- InputFeeder: Ordered input stream into the agent process
- ToolCallRegistry: Correlates client answers with suspended tool calls
- OutputConsumer: Forwards and persists agent narration
- AgentProcess: LLM-backed agent process with a tool loop
"""

from .channel import ClientChannel
from .consumer import OutputConsumer
from .context import SessionContext
from .feeder import InputFeeder
from .process import (
    AgentProcess,
    AgentProcessHandle,
    NarrationUnit,
    ProcessConfig,
    ProcessFactory,
    ResultUnit,
    ToolUseUnit,
    llm_process_factory,
)
from .session import SessionManager
from .tool_calls import PendingToolCall, PresentationKind, ToolCallRegistry

__all__ = [
    "AgentProcess",
    "AgentProcessHandle",
    "ClientChannel",
    "InputFeeder",
    "NarrationUnit",
    "OutputConsumer",
    "PendingToolCall",
    "PresentationKind",
    "ProcessConfig",
    "ProcessFactory",
    "ResultUnit",
    "SessionContext",
    "SessionManager",
    "ToolCallRegistry",
    "ToolUseUnit",
    "llm_process_factory",
]
