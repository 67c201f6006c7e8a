"""
Inbound event definitions.

Every line a client sends is validated here into one of a closed set of
event variants, discriminated by the ``type`` field, before it reaches the
chat server.
"""

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from common.constants import MAX_ALIAS_LENGTH, MAX_CHANNEL_NAME, MessageTypes
from common.errors import InvalidEvent


class InboundEvent(BaseModel):
    """Base class for all client events."""
    model_config = ConfigDict(
        frozen=True,
        extra='forbid',
        populate_by_name=True,
    )


class RegisterEvent(InboundEvent):
    type: Literal['register']
    alias: str = Field(min_length=1, max_length=MAX_ALIAS_LENGTH)
    password: str = Field(min_length=1)
    invite_code: str = Field(alias='inviteCode')

    @field_validator('alias')
    @classmethod
    def alias_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError('alias must not be blank')
        return value


class LoginEvent(InboundEvent):
    type: Literal['login']
    alias: str = Field(min_length=1, max_length=MAX_ALIAS_LENGTH)
    password: str


class JoinedEvent(InboundEvent):
    type: Literal['joined']


class SwitchChannelEvent(InboundEvent):
    type: Literal['switchChannel']
    channel: str = Field(min_length=1, max_length=MAX_CHANNEL_NAME)


class ChatMessageEvent(InboundEvent):
    type: Literal['chatMessage']
    channel: str = Field(min_length=1, max_length=MAX_CHANNEL_NAME)
    body: str = Field(min_length=1)


class TypingStartEvent(InboundEvent):
    type: Literal['typingStart']
    channel: str = Field(min_length=1, max_length=MAX_CHANNEL_NAME)


class TypingStopEvent(InboundEvent):
    type: Literal['typingStop']


Event = Annotated[
    Union[
        RegisterEvent,
        LoginEvent,
        JoinedEvent,
        SwitchChannelEvent,
        ChatMessageEvent,
        TypingStartEvent,
        TypingStopEvent,
    ],
    Field(discriminator='type'),
]

_event_adapter = TypeAdapter(Event)

EVENT_TYPES = frozenset({
    MessageTypes.REGISTER,
    MessageTypes.LOGIN,
    MessageTypes.JOINED,
    MessageTypes.SWITCH_CHANNEL,
    MessageTypes.CHAT_MESSAGE,
    MessageTypes.TYPING_START,
    MessageTypes.TYPING_STOP,
})


def parse_event(raw: Dict[str, Any]) -> InboundEvent:
    """Validate a decoded JSON object into an event variant.

    Raises InvalidEvent with a short description of the first problem.
    """
    if not isinstance(raw, dict):
        raise InvalidEvent("Event must be a JSON object")

    msg_type = raw.get('type')
    if not isinstance(msg_type, str) or msg_type not in EVENT_TYPES:
        raise InvalidEvent(f"Unknown event type: {msg_type!r}")

    try:
        return _event_adapter.validate_python(raw)
    except ValidationError as e:
        first = e.errors()[0]
        location = '.'.join(str(part) for part in first['loc'][1:]) or 'event'
        raise InvalidEvent(f"Invalid {msg_type} event: {location}: {first['msg']}") from e
