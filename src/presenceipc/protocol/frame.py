"""Binary frame envelope for the IPC socket.

Wire layout, little-endian:

    opcode(u32) | length(u32) | body(length bytes, UTF-8 JSON)

No maximum body size is enforced here.
"""

from __future__ import annotations

import logging
import struct
from enum import IntEnum
from typing import NamedTuple, Protocol

from presenceipc.errors import StreamClosedError, TruncatedFrameError

logger = logging.getLogger(__name__)

HEADER = struct.Struct("<II")
HEADER_SIZE = HEADER.size


class Opcode(IntEnum):
    """Frame opcodes understood by the desktop app."""

    HANDSHAKE = 0
    FRAME = 1
    CLOSE = 2
    PING = 3
    PONG = 4


class Readable(Protocol):
    def read(self, n: int) -> bytes: ...


class Frame(NamedTuple):
    opcode: int
    body: bytes


def encode_frame(opcode: int, body: bytes) -> bytes:
    """Prefix *body* with the 8-byte header."""
    return HEADER.pack(int(opcode), len(body)) + body


def _read_exact(stream: Readable, n: int, part: str, *, at_boundary: bool) -> bytes:
    buf = bytearray()
    while len(buf) < n:
        chunk = stream.read(n - len(buf))
        if not chunk:
            if at_boundary and not buf:
                raise StreamClosedError
            raise TruncatedFrameError(part, n, len(buf))
        buf.extend(chunk)
    return bytes(buf)


def decode_frame(stream: Readable) -> Frame:
    """Block until one whole frame has been read from *stream*.

    Raises:
        StreamClosedError: end of stream before any header byte.
        TruncatedFrameError: end of stream inside the header or body.
    """
    header = _read_exact(stream, HEADER_SIZE, "header", at_boundary=True)
    opcode, length = HEADER.unpack(header)
    body = _read_exact(stream, length, "body", at_boundary=False) if length else b""
    logger.debug("Decoded frame opcode=%d length=%d", opcode, length)
    return Frame(opcode, body)
