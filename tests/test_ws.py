"""
Tests for the HTTP endpoints and the WebSocket transport.
"""

import pytest
from fastapi.testclient import TestClient

from bang_tutor.agent import NarrationUnit, ResultUnit
from bang_tutor.api.app import create_app
from bang_tutor.config import Settings


@pytest.fixture
def app(tmp_path, fake_factory):
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'bang.db'}",
        content_root=str(tmp_path / "data"),
        git_enabled=False,
    )
    return create_app(settings, process_factory=fake_factory)


@pytest.fixture
def http(app):
    with TestClient(app) as client:
        yield client


def receive_until(ws, event_type):
    """Read events until one of ``event_type`` arrives; return them all."""
    events = []
    while True:
        event = ws.receive_json()
        events.append(event)
        if event["type"] == event_type:
            return events


def test_health(http):
    """Test health check endpoint."""
    response = http.get("/api/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["session_active"] is False
    assert data["git_enabled"] is False


def test_initial_state(http):
    """Test get_state with no session."""
    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "get_state"})
        state = ws.receive_json()

    assert state["type"] == "state"
    assert state["sessionActive"] is False
    assert state["messages"] == []


def test_malformed_message_keeps_connection(http):
    """Test that bad payloads are reported and the socket survives."""
    with http.websocket_connect("/ws") as ws:
        ws.send_text("{not json")
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

        ws.send_json({"type": "teleport"})
        assert ws.receive_json() == {"type": "error", "message": "Invalid message format"}

        ws.send_json({"type": "get_state"})
        assert ws.receive_json()["type"] == "state"


def test_chat_without_session(http):
    """Test that chat before new_session is reported."""
    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "chat", "text": "Hola"})

        assert ws.receive_json() == {
            "type": "error",
            "message": "No active session. Start a new session first.",
        }


def test_session_flow(http):
    """Test start, chat and the session history endpoints."""
    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "new_session", "topic": "es"})
        events = receive_until(ws, "assistant_text")

        assert events[0]["type"] == "session_started"
        assert events[1] == {"type": "agent_thinking", "thinking": True}
        assert events[-1]["text"] == "reply 1"
        session_id = events[0]["sessionId"]

        ws.send_json({"type": "chat", "text": "Hola", "messageId": "m-1"})
        events = receive_until(ws, "assistant_text")

        assert {"type": "agent_thinking", "thinking": True} in events
        assert events[-1]["text"] == "reply 2"

    sessions = http.get("/api/sessions").json()["sessions"]
    assert [s["id"] for s in sessions] == [session_id]
    assert sessions[0]["isActive"] is True

    messages = http.get(f"/api/sessions/{session_id}/messages").json()["messages"]
    assert [m["text"] for m in messages] == ["reply 1", "Hola", "reply 2"]
    assert messages[1]["id"] == "m-1"


def test_unknown_session_messages(http):
    """Test 404 for an unknown session."""
    assert http.get("/api/sessions/nope/messages").status_code == 404


def test_reconnect_restores_transcript(http):
    """Test that a new connection re-synchronises from durable state."""
    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "new_session", "topic": "es"})
        receive_until(ws, "assistant_text")
        ws.send_json({"type": "chat", "text": "Hola"})
        receive_until(ws, "assistant_text")

    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "reconnect"})
        state = receive_until(ws, "state")[-1]

    assert state["sessionActive"] is True
    assert [m["text"] for m in state["messages"]] == ["reply 1", "Hola", "reply 2"]
    assert [m["role"] for m in state["messages"]] == ["assistant", "user", "assistant"]


def test_tool_response_resumes_agent(http, fake_factory):
    """Test the exercise round trip over the socket."""

    async def script(process, text):
        if text.startswith("Practice"):
            result = await process.tools.execute("present_exercise", {
                "exercise": {"id": "e1", "type": "translation", "prompt": "Translate", "nativeText": "The cat"},
            })
            yield NarrationUnit(f"You wrote {result.data['answer']}")
        yield ResultUnit()

    fake_factory.script = script

    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "new_session", "topic": "es"})
        receive_until(ws, "session_started")
        ws.send_json({"type": "chat", "text": "Practice"})

        exercise = receive_until(ws, "exercise")[-1]
        assert exercise["exercise"]["nativeText"] == "The cat"

        ws.send_json({"type": "tool_response", "toolCallId": exercise["toolCallId"], "data": {"answer": "El gato"}})
        events = receive_until(ws, "assistant_text")

        assert events[-1]["text"] == "You wrote El gato"


def test_resume_unknown_session(http):
    """Test resuming an id that does not exist."""
    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "resume_session", "sessionId": "nope"})

        assert ws.receive_json() == {"type": "error", "message": "Session not found: nope"}


def test_discard_over_socket(http):
    """Test end_session with discard."""
    with http.websocket_connect("/ws") as ws:
        ws.send_json({"type": "new_session", "lang": "fr"})
        receive_until(ws, "assistant_text")
        ws.send_json({"type": "end_session", "discard": True})

        events = receive_until(ws, "session_ended")
        assert events[-1]["summary"] == "Session discarded."

        ws.send_json({"type": "get_state"})
        assert receive_until(ws, "state")[-1]["sessionActive"] is False
