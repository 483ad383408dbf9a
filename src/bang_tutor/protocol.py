"""
Wire protocol between the client and the session bridge.

Client messages are JSON objects discriminated by ``type``. Field names on
the wire are camelCase; the models expose snake_case attributes.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import MalformedMessage


class ClientMessage(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class GetStateMessage(ClientMessage):
    type: Literal["get_state"]


class NewSessionMessage(ClientMessage):
    type: Literal["new_session"]
    topic: str = Field(
        min_length=1,
        pattern=r"^[A-Za-z][A-Za-z0-9_-]{0,31}$",
        validation_alias=AliasChoices("topic", "lang"),
    )
    target_language_mode: bool | None = Field(default=None, alias="targetLanguageMode")


class ChatMessage(ClientMessage):
    type: Literal["chat"]
    text: str = Field(min_length=1)
    message_id: str | None = Field(default=None, alias="messageId")
    target_language_mode: bool | None = Field(default=None, alias="targetLanguageMode")


class EndSessionMessage(ClientMessage):
    type: Literal["end_session"]
    discard: bool = False


class ResumeSessionMessage(ClientMessage):
    type: Literal["resume_session"]
    session_id: str = Field(min_length=1, alias="sessionId")


class ReconnectMessage(ClientMessage):
    type: Literal["reconnect"]
    target_language_mode: bool | None = Field(default=None, alias="targetLanguageMode")


class ToolResponseMessage(ClientMessage):
    type: Literal["tool_response"]
    tool_call_id: str = Field(min_length=1, alias="toolCallId")
    data: Any = None


AnyClientMessage = Annotated[
    Union[
        GetStateMessage,
        NewSessionMessage,
        ChatMessage,
        EndSessionMessage,
        ResumeSessionMessage,
        ReconnectMessage,
        ToolResponseMessage,
    ],
    Field(discriminator="type"),
]

_client_message_adapter = TypeAdapter(AnyClientMessage)


def parse_client_message(raw: str | bytes | dict[str, Any]) -> ClientMessage:
    """Parse and validate one client message.

    Raises:
        MalformedMessage: the payload is not JSON or matches no message type.
    """
    try:
        if isinstance(raw, (str, bytes)):
            raw = json.loads(raw)
        return _client_message_adapter.validate_python(raw)
    except (ValueError, ValidationError) as e:
        raise MalformedMessage() from e


def error_event(message: str) -> dict[str, Any]:
    return {"type": "error", "message": message}
