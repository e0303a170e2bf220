"""Typed packets carried inside frames.

Packets know their opcode, their direction, and how to render their body.
Direction is checked by the sender (``Connection.send``), not here, so a
clientbound packet can still be constructed, e.g. for tests or acks.
"""

from __future__ import annotations

import os
import uuid
from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, Field, ValidationError

from presenceipc.domain.presence import Presence
from presenceipc.errors import PacketError
from presenceipc.protocol.codec import TextCodec
from presenceipc.protocol.frame import Frame, Opcode, encode_frame

PROTOCOL_VERSION = 1
SET_ACTIVITY = "SET_ACTIVITY"


class PacketDirection(StrEnum):
    SERVERBOUND = "serverbound"  # client -> desktop app
    CLIENTBOUND = "clientbound"  # desktop app -> client


class Packet(BaseModel, ABC):
    """Base for all packets."""

    model_config = {"frozen": True}

    opcode: ClassVar[Opcode]

    direction: PacketDirection

    @abstractmethod
    def to_body(self) -> dict[str, Any]:
        """Return the JSON object carried in this packet's frame body."""

    def encode(self, codec: TextCodec) -> bytes:
        """Render the full frame (header + body) for this packet."""
        body = codec.encode(self.to_body()).encode("utf-8")
        return encode_frame(self.opcode, body)


class HandshakePacket(Packet):
    """Mandatory first packet; identifies the application."""

    opcode: ClassVar[Opcode] = Opcode.HANDSHAKE

    direction: PacketDirection = PacketDirection.SERVERBOUND
    client_id: str
    version: int = PROTOCOL_VERSION

    def to_body(self) -> dict[str, Any]:
        return {"v": self.version, "client_id": self.client_id}


class DispatchPacket(Packet):
    """Generic command/event frame.

    Inbound dispatches carry ``evt`` for events, or echo ``cmd`` with the
    command's result in ``data``.
    """

    opcode: ClassVar[Opcode] = Opcode.FRAME

    direction: PacketDirection = PacketDirection.CLIENTBOUND
    cmd: str | None = None
    event: str | None = None
    data: dict[str, Any] | None = None
    args: dict[str, Any] | None = None
    nonce: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @property
    def is_activity_ack(self) -> bool:
        return self.event is None and self.cmd == SET_ACTIVITY

    def to_body(self) -> dict[str, Any]:
        body = {
            "cmd": self.cmd,
            "args": self.args,
            "evt": self.event,
            "data": self.data,
            "nonce": self.nonce,
        }
        return {k: v for k, v in body.items() if v is not None}

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> DispatchPacket:
        return cls(
            cmd=body.get("cmd"),
            event=body.get("evt"),
            data=body.get("data"),
            args=body.get("args"),
            nonce=body.get("nonce"),
            raw=body,
        )


class SetActivityPacket(Packet):
    """``SET_ACTIVITY`` command, or the desktop app's acknowledgment of one."""

    opcode: ClassVar[Opcode] = Opcode.FRAME

    direction: PacketDirection = PacketDirection.SERVERBOUND
    presence: Presence | None = None
    pid: int = Field(default_factory=os.getpid)
    nonce: str = Field(default_factory=lambda: str(uuid.uuid4()))

    def to_body(self) -> dict[str, Any]:
        activity = self.presence.to_native() if self.presence is not None else None
        return {
            "cmd": SET_ACTIVITY,
            "args": {"pid": self.pid, "activity": activity},
            "nonce": self.nonce,
        }

    @classmethod
    def from_ack(cls, packet: DispatchPacket) -> SetActivityPacket:
        """Reclassify an inbound ``SET_ACTIVITY`` dispatch."""
        presence = Presence.from_native(packet.data) if packet.data else None
        return cls(
            direction=PacketDirection.CLIENTBOUND,
            presence=presence,
            nonce=packet.nonce or "",
        )


class ClosePacket(Packet):
    opcode: ClassVar[Opcode] = Opcode.CLOSE

    direction: PacketDirection = PacketDirection.CLIENTBOUND
    code: int | None = None
    message: str = ""

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.code is not None:
            body["code"] = self.code
        return body


class PingPacket(Packet):
    opcode: ClassVar[Opcode] = Opcode.PING

    direction: PacketDirection = PacketDirection.CLIENTBOUND
    data: dict[str, Any] = Field(default_factory=dict)

    def to_body(self) -> dict[str, Any]:
        return self.data


class PongPacket(Packet):
    opcode: ClassVar[Opcode] = Opcode.PONG

    direction: PacketDirection = PacketDirection.SERVERBOUND
    data: dict[str, Any] = Field(default_factory=dict)

    def to_body(self) -> dict[str, Any]:
        return self.data


def _decode_body(frame: Frame, codec: TextCodec) -> dict[str, Any]:
    if not frame.body:
        return {}
    try:
        return codec.decode(frame.body.decode("utf-8"))
    except ValueError as exc:
        msg = f"Undecodable body for opcode {frame.opcode}: {exc}"
        raise PacketError(msg) from exc


def packet_from_frame(frame: Frame, codec: TextCodec) -> Packet:
    """Reconstruct the inbound packet a frame carries.

    Raises:
        PacketError: unknown opcode, or a body the codec cannot decode.
    """
    body = _decode_body(frame, codec)
    inbound = PacketDirection.CLIENTBOUND
    try:
        if frame.opcode == Opcode.FRAME:
            return DispatchPacket.from_body(body)
        if frame.opcode == Opcode.CLOSE:
            return ClosePacket(code=body.get("code"), message=body.get("message") or "")
        if frame.opcode == Opcode.PING:
            return PingPacket(data=body)
        if frame.opcode == Opcode.PONG:
            return PongPacket(direction=inbound, data=body)
        if frame.opcode == Opcode.HANDSHAKE:
            return HandshakePacket(
                direction=inbound,
                client_id=str(body.get("client_id", "")),
                version=body.get("v", PROTOCOL_VERSION),
            )
    except ValidationError as exc:
        msg = f"Malformed packet for opcode {frame.opcode}: {exc}"
        raise PacketError(msg) from exc
    msg = f"Unknown opcode {frame.opcode}"
    raise PacketError(msg)
