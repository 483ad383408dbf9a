"""
WebSocket transport for the session bridge.

One message at a time is parsed and dispatched to the SessionManager.
Every failure is reported to the client as an ``error`` event; the
connection itself always survives a bad message.
"""

from typing import Any, Awaitable, Callable

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..agent import SessionManager
from ..errors import BridgeError
from ..protocol import (
    ChatMessage,
    ClientMessage,
    EndSessionMessage,
    GetStateMessage,
    NewSessionMessage,
    ReconnectMessage,
    ResumeSessionMessage,
    ToolResponseMessage,
    error_event,
    parse_client_message,
)

logger = structlog.get_logger()

router = APIRouter()

Reply = Callable[[dict[str, Any]], Awaitable[None]]


async def dispatch(manager: SessionManager, message: ClientMessage, reply: Reply) -> None:
    """Route one validated client message to the session manager."""
    if isinstance(message, GetStateMessage):
        await reply(await manager.get_state())

    elif isinstance(message, NewSessionMessage):
        await manager.start_session(message.topic, message.target_language_mode)

    elif isinstance(message, ChatMessage):
        await manager.chat(message.text, message.message_id, message.target_language_mode)

    elif isinstance(message, EndSessionMessage):
        await manager.end_session(discard=message.discard)

    elif isinstance(message, ResumeSessionMessage):
        if not await manager.resume_session(message.session_id):
            await reply(error_event(f"Session not found: {message.session_id}"))
            return
        await reply(await manager.get_state())

    elif isinstance(message, ReconnectMessage):
        resumed = await manager.resume_or_reconnect(message.target_language_mode)
        logger.info("Client reconnect", resumed=resumed)
        await reply(await manager.get_state())

    elif isinstance(message, ToolResponseMessage):
        await manager.resolve_tool_call(message.tool_call_id, message.data)


async def handle_client_message(manager: SessionManager, raw: str | bytes, reply: Reply) -> None:
    """Parse and dispatch one raw message, reporting any failure to the client."""
    try:
        message = parse_client_message(raw)
        await dispatch(manager, message, reply)
    except BridgeError as e:
        logger.warning("Bridge error", error_type=type(e).__name__, error=str(e))
        await reply(error_event(e.client_message))
    except Exception as e:
        logger.error("Error handling client message", error=str(e), exc_info=True)
        await reply(error_event(str(e) or "Internal error"))


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Single client connection to the tutor."""
    manager: SessionManager = websocket.app.state.session_manager
    await websocket.accept()

    sink = websocket.send_json
    manager.attach(sink)
    logger.info("Client connected")

    try:
        while True:
            raw = await websocket.receive_text()
            await handle_client_message(manager, raw, sink)
    except WebSocketDisconnect as e:
        logger.info("Client disconnected", code=e.code)
    finally:
        manager.detach(sink)
