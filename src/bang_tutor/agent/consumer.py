"""
Output consumer - drains an agent process's output stream.

Narration is forwarded to the client and appended to the transcript.
Turn results clear the thinking indicator and surface failures. Tool use
needs no handling here: presentation tools notify the client from inside
their own handlers.
"""

import asyncio
from uuid import uuid4

import structlog

from ..content.store import ContentStore
from ..errors import AgentStreamError
from ..models import MessageRole
from ..store import TranscriptStore
from .channel import ClientChannel
from .context import SessionContext
from .process import NarrationUnit, ResultUnit, ToolUseUnit

logger = structlog.get_logger()


class OutputConsumer:
    """Classifies output units of one session's agent process."""

    def __init__(
        self,
        context: SessionContext,
        channel: ClientChannel,
        store: TranscriptStore,
        content: ContentStore,
    ):
        self.context = context
        self.channel = channel
        self.store = store
        self.content = content

    async def consume(self) -> None:
        """Run until the stream ends. Never raises except on cancellation."""
        ctx = self.context
        try:
            async for unit in ctx.handle.stream():
                if ctx.closed:
                    break
                if isinstance(unit, NarrationUnit):
                    await self._on_narration(unit)
                elif isinstance(unit, ToolUseUnit):
                    logger.debug("Agent tool use", tool=unit.name, tool_use_id=unit.tool_call_id)
                elif isinstance(unit, ResultUnit):
                    await self._on_result(unit)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = AgentStreamError(str(e))
            logger.error(
                "Error in agent stream",
                session_id=ctx.session_id,
                error=str(error),
                exc_info=True,
            )
            await self.channel.set_thinking(False)
            await self.channel.error(AgentStreamError.client_message)
        finally:
            logger.info("Agent stream finished", session_id=ctx.session_id)

    async def _on_narration(self, unit: NarrationUnit) -> None:
        ctx = self.context
        if not unit.text.strip():
            return

        message_id = str(uuid4())
        await self.store.append_message(ctx.session_id, MessageRole.ASSISTANT, unit.text, message_id)
        await self.channel.send({
            "type": "assistant_text",
            "text": unit.text,
            "messageId": message_id,
            "onboarded": self.content.is_onboarded(ctx.topic),
        })

        if self.channel.thinking and not ctx.calls.has_pending:
            await self.channel.set_thinking(False)

    async def _on_result(self, unit: ResultUnit) -> None:
        await self.channel.set_thinking(False)
        if unit.success:
            return

        logger.error(
            "Agent turn ended with error",
            session_id=self.context.session_id,
            errors=unit.errors,
        )
        await self.channel.error(f"Agent error: {', '.join(unit.errors) or 'unknown error'}")
