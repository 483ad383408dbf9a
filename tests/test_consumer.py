"""
Tests for the output consumer.
"""

import pytest

from bang_tutor.agent import ClientChannel, NarrationUnit, OutputConsumer, ResultUnit, SessionContext, ToolUseUnit
from bang_tutor.agent.feeder import InputFeeder
from bang_tutor.agent.tool_calls import PresentationKind, ToolCallRegistry


class ScriptedHandle:
    """Handle whose stream yields a fixed list of units."""

    def __init__(self, units, on_unit=None):
        self.units = units
        self.on_unit = on_unit
        self.closed = False

    def send(self, text):
        pass

    async def stream(self):
        for unit in self.units:
            if isinstance(unit, Exception):
                raise unit
            yield unit
            if self.on_unit is not None:
                self.on_unit(unit)

    def close(self):
        self.closed = True


async def _consume(store, content, client, units, thinking=True, on_unit=None):
    record = await store.create_session("es")
    handle = ScriptedHandle(units, on_unit)
    ctx = SessionContext(
        session_id=record.id,
        topic="es",
        handle=handle,
        inputs=InputFeeder(),
        calls=ToolCallRegistry(),
    )
    channel = ClientChannel()
    channel.attach(client.send)
    channel.thinking = thinking
    await OutputConsumer(ctx, channel, store, content).consume()
    return ctx, channel


@pytest.mark.asyncio
async def test_narration_forwarded_and_persisted(store, content, client):
    """Test that narration reaches the client and the transcript."""
    ctx, channel = await _consume(store, content, client, [NarrationUnit("¡Hola!"), ResultUnit()])

    text = client.of_type("assistant_text")[0]
    assert text["text"] == "¡Hola!"
    assert text["onboarded"] is False
    assert client.events[1] == {"type": "agent_thinking", "thinking": False}
    assert channel.thinking is False

    messages = await store.list_messages(ctx.session_id)
    assert [(m.role, m.text, m.message_id) for m in messages] == [("assistant", "¡Hola!", text["messageId"])]


@pytest.mark.asyncio
async def test_thinking_kept_while_tool_call_pending(store, content, client):
    """Test that narration does not clear thinking while a call waits."""
    record = await store.create_session("es")
    calls = ToolCallRegistry()
    calls.register(PresentationKind.OPTIONS, {"options": []})
    ctx = SessionContext(record.id, "es", ScriptedHandle([NarrationUnit("Pick one")]), InputFeeder(), calls)
    channel = ClientChannel()
    channel.attach(client.send)
    channel.thinking = True

    await OutputConsumer(ctx, channel, store, content).consume()

    assert client.types() == ["assistant_text"]
    assert channel.thinking is True


@pytest.mark.asyncio
async def test_tool_use_is_not_forwarded(store, content, client):
    """Test that tool use units are informational only."""
    await _consume(store, content, client, [ToolUseUnit("compute_sm2", "tu_1")], thinking=False)

    assert client.events == []


@pytest.mark.asyncio
async def test_failed_result(store, content, client):
    """Test that a failed turn clears thinking and reports the errors."""
    await _consume(store, content, client, [ResultUnit(success=False, errors=["overloaded", "retry later"])])

    assert client.events == [
        {"type": "agent_thinking", "thinking": False},
        {"type": "error", "message": "Agent error: overloaded, retry later"},
    ]


@pytest.mark.asyncio
async def test_stream_exception_is_contained(store, content, client):
    """Test that a stream error becomes one client error."""
    await _consume(store, content, client, [NarrationUnit("partial"), RuntimeError("socket closed")])

    assert client.of_type("error") == [{"type": "error", "message": "Agent stream error"}]


@pytest.mark.asyncio
async def test_output_after_close_is_dropped(store, content, client):
    """Test that units from a closed context never reach the client."""
    holder = {}

    def close_after_first(unit):
        holder["ctx"].close()

    record = await store.create_session("es")
    handle = ScriptedHandle([NarrationUnit("first"), NarrationUnit("straggler")], close_after_first)
    ctx = SessionContext(record.id, "es", handle, InputFeeder(), ToolCallRegistry())
    holder["ctx"] = ctx
    channel = ClientChannel()
    channel.attach(client.send)

    await OutputConsumer(ctx, channel, store, content).consume()

    assert [e["text"] for e in client.of_type("assistant_text")] == ["first"]
    assert handle.closed is True


@pytest.mark.asyncio
async def test_blank_narration_is_skipped(store, content, client):
    """Test that whitespace-only narration is neither sent nor stored."""
    ctx, _ = await _consume(store, content, client, [NarrationUnit("  \n"), ResultUnit()], thinking=False)

    assert client.events == []
    assert await store.list_messages(ctx.session_id) == []
