"""
Tests for tool call correlation.
"""

import asyncio
import re
from unittest.mock import AsyncMock

import pytest

from bang_tutor.agent.tool_calls import (
    PresentationKind,
    ToolCallRegistry,
    new_tool_call_id,
)
from bang_tutor.errors import ToolCallTimeout


def test_tool_call_ids_are_unique():
    """Test id format and uniqueness."""
    ids = [new_tool_call_id() for _ in range(200)]

    assert len(set(ids)) == 200
    assert all(re.fullmatch(r"tc_\d+_[0-9a-z]+", i) for i in ids)


@pytest.mark.asyncio
async def test_register_and_resolve():
    """Test that an answer reaches the waiting call exactly once."""
    registry = ToolCallRegistry()
    call = registry.register(PresentationKind.OPTIONS, {"prompt": "Pick", "options": []})

    assert registry.has_pending
    assert registry.pending_ids == [call.id]

    assert registry.resolve(call.id, {"id": "practice"}) is True
    assert await registry.wait(call) == {"id": "practice"}
    assert not registry.has_pending

    # A second answer for the same id is stale
    assert registry.resolve(call.id, {"id": "other"}) is False


def test_resolve_unknown_id_is_noop():
    """Test that unknown ids are ignored without raising."""
    registry = ToolCallRegistry()

    assert registry.resolve("tc_999_zzz", {"answer": 1}) is False


@pytest.mark.asyncio
async def test_present_sends_event_with_tool_call_id():
    """Test the presentation event shape."""
    presenter = AsyncMock()
    registry = ToolCallRegistry(presenter=presenter)
    call = registry.register(PresentationKind.EXERCISE, {"exercise": {"id": "e1", "type": "translation"}})

    await registry.present(call)

    presenter.assert_awaited_once_with({
        "type": "exercise",
        "exercise": {"id": "e1", "type": "translation"},
        "toolCallId": call.id,
    })


@pytest.mark.asyncio
async def test_request_round_trip():
    """Test register, present and wait with a client answering."""
    registry = ToolCallRegistry()

    async def answer(event):
        registry.resolve(event["toolCallId"], {"answer": "el perro"})

    registry.set_presenter(answer)

    result = await registry.request(PresentationKind.EXERCISE, {"exercise": {"id": "e1"}})

    assert result == {"answer": "el perro"}
    assert not registry.has_pending


@pytest.mark.asyncio
async def test_out_of_order_answers():
    """Test two pending calls resolved in reverse order."""
    registry = ToolCallRegistry()
    first = registry.register(PresentationKind.OPTIONS, {"options": ["a"]})
    second = registry.register(PresentationKind.OPTIONS, {"options": ["b"]})

    waiting_first = asyncio.create_task(registry.wait(first))
    waiting_second = asyncio.create_task(registry.wait(second))
    await asyncio.sleep(0)

    assert registry.resolve(second.id, "B") is True
    assert registry.resolve(first.id, "A") is True

    assert await waiting_first == "A"
    assert await waiting_second == "B"


@pytest.mark.asyncio
async def test_wait_timeout_removes_entry():
    """Test the opt-in timeout."""
    registry = ToolCallRegistry()
    call = registry.register(PresentationKind.OPTIONS, {"options": []})

    with pytest.raises(ToolCallTimeout):
        await registry.wait(call, timeout=0.01)

    assert registry.get(call.id) is None
    assert registry.resolve(call.id, "late") is False


@pytest.mark.asyncio
async def test_abandon_clears_and_cancels():
    """Test that abandon drops every entry without resolving it."""
    registry = ToolCallRegistry()
    call = registry.register(PresentationKind.EXERCISE, {"exercise": {}})
    waiting = asyncio.create_task(registry.wait(call))
    await asyncio.sleep(0)

    assert registry.abandon() == 1
    assert not registry.has_pending
    with pytest.raises(asyncio.CancelledError):
        await waiting
    assert registry.resolve(call.id, "late") is False
