"""Domain events decoded from inbound dispatch packets.

The event set is closed: ``ReadyEvent``, ``ErrorEvent``, ``UnknownEvent``.
``decode_event`` is pure — same inputs, same event, no I/O.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

READY = "READY"
ERROR = "ERROR"
DEFAULT_ERROR_MESSAGE = "Unknown error"


class User(BaseModel):
    """The account logged into the desktop app."""

    model_config = {"frozen": True}

    id: str
    username: str
    discriminator: str | None = None
    global_name: str | None = None
    avatar: str | None = None
    bot: bool = False
    flags: int = 0
    premium_type: int = 0


class ReadyConfig(BaseModel):
    """Environment info sent alongside READY."""

    model_config = {"frozen": True}

    cdn_host: str | None = None
    api_endpoint: str | None = None
    environment: str | None = None


class ReadyEvent(BaseModel):
    model_config = {"frozen": True, "populate_by_name": True}

    version: int = Field(default=1, alias="v")
    user: User
    config: ReadyConfig = Field(default_factory=ReadyConfig)


class ErrorEvent(BaseModel):
    model_config = {"frozen": True}

    code: int | None = None
    message: str = DEFAULT_ERROR_MESSAGE

    @field_validator("message", mode="before")
    @classmethod
    def _default_null_message(cls, value: object) -> object:
        return DEFAULT_ERROR_MESSAGE if value is None else value


class UnknownEvent(BaseModel):
    """Any event without a mapping. Callers drop it silently."""

    model_config = {"frozen": True}

    name: str
    data: dict[str, Any] = Field(default_factory=dict)


DomainEvent = ReadyEvent | ErrorEvent | UnknownEvent


def decode_event(name: str, payload: dict[str, Any] | None) -> DomainEvent:
    """Map a dispatch event name and payload to a domain event."""
    data = payload or {}
    if name == READY:
        return ReadyEvent.model_validate(data)
    if name == ERROR:
        return ErrorEvent.model_validate(data)
    return UnknownEvent(name=name, data=data)
