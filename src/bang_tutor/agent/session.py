"""
Session management for the tutor.

The SessionManager owns the single live agent process and drives the
session lifecycle: start, resume/reconnect, chat, end and discard.
"""

import asyncio
from typing import Any

import structlog

from ..content.git import GitCommitter, commit_message
from ..content.store import ContentStore
from ..errors import AgentStreamError, CommitFailure, NoActiveSession
from ..llm import LLMMessage
from ..models import Message, MessageRole, Session
from ..store import TranscriptStore
from .channel import ClientChannel, ClientSink
from .consumer import OutputConsumer
from .context import SessionContext
from .feeder import InputFeeder
from .process import ProcessFactory, ProcessConfig
from .prompts import PRIMING_INSTRUCTION, RESUME_NOTE, WRAP_UP_INSTRUCTION, build_system_prompt, decorate
from .tool_calls import ToolCallRegistry
from .tools import build_tutor_tools

logger = structlog.get_logger()

SAVED_SUMMARY = "Session saved."
DISCARDED_SUMMARY = "Session discarded."


def replay_history(messages: list[Message]) -> list[LLMMessage]:
    """Working context for a resumed process: priming, then the transcript.

    Consecutive messages with the same role are merged so the providers
    see strictly alternating turns.
    """
    history = [LLMMessage(role="user", content=PRIMING_INSTRUCTION)]
    for message in messages:
        if history[-1].role == message.role:
            history[-1].content = f"{history[-1].content}\n\n{message.text}"
        else:
            history.append(LLMMessage(role=message.role, content=message.text))
    return history


class SessionManager:
    """Lifecycle state machine for the one live tutoring session."""

    def __init__(
        self,
        store: TranscriptStore,
        content: ContentStore,
        process_factory: ProcessFactory,
        committer: GitCommitter | None = None,
        channel: ClientChannel | None = None,
        native_language: str = "en",
        tool_call_timeout: float | None = None,
    ):
        self.store = store
        self.content = content
        self.process_factory = process_factory
        self.committer = committer
        self.channel = channel or ClientChannel()
        self.native_language = native_language
        self.tool_call_timeout = tool_call_timeout
        self.target_language_mode = False

        self._context: SessionContext | None = None
        self._closing_context: SessionContext | None = None
        self.closing: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def context(self) -> SessionContext | None:
        return self._context

    @property
    def active(self) -> bool:
        return self._context is not None

    def attach(self, sink: ClientSink) -> None:
        self.channel.attach(sink)

    def detach(self, sink: ClientSink | None = None) -> None:
        self.channel.detach(sink)

    def _set_mode(self, target_language_mode: bool | None) -> None:
        if target_language_mode is not None:
            self.target_language_mode = target_language_mode

    def _decorate(self, text: str, topic: str) -> str:
        return decorate(text, topic, self.target_language_mode, self.native_language)

    async def _present(self, event: dict[str, Any]) -> None:
        await self.channel.set_thinking(False)
        await self.channel.send(event)

    def _open_context(self, record: Session, history: list[LLMMessage] | None = None) -> SessionContext:
        language = self.content.read_context(record.topic)
        system_prompt = build_system_prompt(language, self.native_language)
        if history:
            system_prompt = f"{system_prompt}\n\n{RESUME_NOTE}"

        inputs = InputFeeder()
        calls = ToolCallRegistry(presenter=self._present)
        tools = build_tutor_tools(calls, self.content, record.topic, timeout=self.tool_call_timeout)
        handle = self.process_factory(ProcessConfig(
            topic=record.topic,
            system_prompt=system_prompt,
            inputs=inputs,
            tools=tools,
            history=history or [],
        ))

        ctx = SessionContext(
            session_id=record.id,
            topic=record.topic,
            handle=handle,
            inputs=inputs,
            calls=calls,
        )
        self._context = ctx

        consumer = OutputConsumer(ctx, self.channel, self.store, self.content)
        ctx.consumer_task = asyncio.create_task(consumer.consume(), name=f"consumer-{record.id}")
        return ctx

    async def _teardown(self, ctx: SessionContext) -> None:
        ctx.calls.abandon()
        ctx.close()
        if ctx.consumer_task is not None:
            await asyncio.wait([ctx.consumer_task])
        await self.store.deactivate_session(ctx.session_id)

    async def _supersede(self) -> None:
        """Close every live or closing context before a new one opens."""
        for ctx in (self._context, self._closing_context):
            if ctx is not None:
                logger.info("Superseding session", session_id=ctx.session_id, topic=ctx.topic)
                await self._teardown(ctx)
        self._context = None
        self._closing_context = None

    async def _resume(self, record: Session) -> SessionContext:
        messages = await self.store.list_messages(record.id)
        ctx = self._open_context(record, history=replay_history(messages))
        logger.info(
            "Resumed session",
            session_id=record.id,
            topic=record.topic,
            replayed=len(messages),
        )
        return ctx

    async def start_session(self, topic: str, target_language_mode: bool | None = None) -> str:
        """Start a fresh session for ``topic``, superseding any live one."""
        async with self._lock:
            self._set_mode(target_language_mode)
            await self._supersede()
            await self.store.deactivate_all()
            record = await self.store.create_session(topic)

            try:
                self.content.ensure_topic_dir(topic)
                ctx = self._open_context(record)
                await self.channel.send({"type": "session_started", "sessionId": record.id, "topic": topic})
                await self.channel.set_thinking(True, force=True)
                ctx.inputs.enqueue(self._decorate(PRIMING_INSTRUCTION, topic))
            except Exception:
                logger.error("Failed to start session", session_id=record.id, topic=topic, exc_info=True)
                if self._context is not None:
                    await self._teardown(self._context)
                    self._context = None
                else:
                    await self.store.deactivate_session(record.id)
                await self.channel.set_thinking(False)
                raise

            logger.info("Started session", session_id=record.id, topic=topic)
            return record.id

    async def resume_or_reconnect(self, target_language_mode: bool | None = None) -> bool:
        """Re-attach to the live process, or rebuild one from the active record."""
        async with self._lock:
            self._set_mode(target_language_mode)
            if self._context is not None or self._closing_context is not None:
                logger.info("Client re-attached to live session")
                return True

            record = await self.store.get_active_session()
            if record is None:
                return False

            await self._resume(record)
            return True

    async def resume_session(self, session_id: str) -> bool:
        """Make an older session the active one and rebuild its process."""
        async with self._lock:
            if self._context is not None and self._context.session_id == session_id:
                return True

            if await self.store.get_session(session_id) is None:
                logger.warning("Cannot resume unknown session", session_id=session_id)
                return False

            await self._supersede()
            record = await self.store.activate_session(session_id)
            if record is None:
                return False

            await self._resume(record)
            return True

    async def chat(
        self,
        text: str,
        message_id: str | None = None,
        target_language_mode: bool | None = None,
    ) -> None:
        async with self._lock:
            ctx = self._context
            if ctx is None:
                raise NoActiveSession()
            if ctx.consumer_task is not None and ctx.consumer_task.done():
                # Nothing reads the agent's output any more
                await self.channel.set_thinking(False)
                raise AgentStreamError("Agent stream ended. Start a new session or end this one.")

            self._set_mode(target_language_mode)
            await self.channel.set_thinking(True, force=True)
            await self.store.append_message(ctx.session_id, MessageRole.USER, text, message_id)
            ctx.inputs.enqueue(self._decorate(text, ctx.topic))

    async def end_session(self, discard: bool = False) -> None:
        """End the live session.

        A discard closes the process at once and never commits. A graceful
        end lets the agent run its wrap-up turn, then commits in the
        background so tool answers can still arrive meanwhile.
        """
        async with self._lock:
            ctx = self._context
            wrapping_up = self._closing_context

            if discard or (ctx is None and wrapping_up is None):
                for live in (ctx, wrapping_up):
                    if live is not None:
                        live.discarded = True
                        await self._teardown(live)
                        logger.info("Discarded session", session_id=live.session_id)
                if ctx is None and wrapping_up is None:
                    await self.store.deactivate_all()
                self._context = None
                self._closing_context = None
                await self.channel.set_thinking(False)
                await self.channel.send({"type": "session_ended", "summary": DISCARDED_SUMMARY})
                return

            if ctx is None:
                logger.info("Session is already wrapping up", session_id=wrapping_up.session_id)
                return

            self._context = None
            self._closing_context = ctx
            await self.channel.set_thinking(True, force=True)
            ctx.inputs.enqueue(self._decorate(WRAP_UP_INSTRUCTION, ctx.topic))
            ctx.inputs.close()
            self.closing = asyncio.create_task(self._finalise(ctx), name=f"finalise-{ctx.session_id}")
            logger.info("Ending session", session_id=ctx.session_id)

    async def _finalise(self, ctx: SessionContext) -> None:
        superseded = False
        try:
            if ctx.consumer_task is not None:
                await asyncio.wait([ctx.consumer_task])
            if ctx.discarded:
                logger.info("Session was discarded during wrap-up", session_id=ctx.session_id)
                return
            superseded = ctx.closed
            ctx.close()
            await self.store.deactivate_session(ctx.session_id)

            if self.committer is not None:
                try:
                    outcome = await self.committer.commit_and_push(commit_message(ctx.topic))
                    logger.info(
                        "Session content committed",
                        session_id=ctx.session_id,
                        committed=outcome.committed,
                        pushed=outcome.pushed,
                    )
                except CommitFailure as e:
                    logger.error("Failed to commit session content", session_id=ctx.session_id, error=str(e))
        except Exception as e:
            logger.error("Failed to finalise session", session_id=ctx.session_id, error=str(e), exc_info=True)
        finally:
            if self._closing_context is ctx:
                self._closing_context = None

        if superseded:
            logger.info("Session was superseded during wrap-up", session_id=ctx.session_id)
            return

        await self.channel.set_thinking(False)
        await self.channel.send({"type": "session_ended", "summary": SAVED_SUMMARY})

    async def resolve_tool_call(self, tool_call_id: str, answer: Any) -> bool:
        for ctx in (self._context, self._closing_context):
            if ctx is not None and ctx.calls.resolve(tool_call_id, answer):
                await self.channel.set_thinking(True)
                return True
        logger.warning("No pending tool call for answer", tool_call_id=tool_call_id)
        return False

    async def get_state(self) -> dict[str, Any]:
        """The ``state`` envelope the client re-synchronises from."""
        ctx = self._context or self._closing_context
        record = None
        if ctx is not None:
            record = await self.store.get_session(ctx.session_id)
        if record is None:
            record = await self.store.get_active_session()

        messages = await self.store.list_messages(record.id) if record is not None else []
        topic = record.topic if record is not None else None
        return {
            "type": "state",
            "messages": [message.to_wire() for message in messages],
            "sessionActive": record is not None,
            "sessionId": record.id if record is not None else None,
            "topic": topic,
            "onboarded": self.content.is_onboarded(topic) if topic else False,
        }

    async def shutdown(self) -> None:
        """Close any live process without committing."""
        if self.closing is not None and not self.closing.done():
            self.closing.cancel()
        for ctx in (self._context, self._closing_context):
            if ctx is not None:
                ctx.calls.abandon()
                ctx.close()
        self._context = None
        self._closing_context = None
        logger.info("Session manager shut down")
