"""Exception taxonomy for the IPC client.

``connect``/``disconnect``/``send`` raise these synchronously. The receive
loop never raises to the caller; it turns terminal conditions into a
``CLOSED`` transition plus one ``on_disconnect`` hook call.
"""

from __future__ import annotations


class IpcError(Exception):
    """Base class for every error raised by presenceipc."""


class ConnectionError(IpcError):  # noqa: A001
    """The transport could not be opened, or a write to it failed."""


class DisconnectionError(IpcError):
    """Closing the transport reported a failure.

    Non-fatal: the connection has already moved to ``CLOSED``.
    """


class InvalidStateError(IpcError):
    """The operation is not valid in the connection's current state."""


class DirectionError(IpcError):
    """A clientbound packet was handed to the sender."""


class PacketError(IpcError):
    """A frame body could not be turned into a packet."""


class FrameError(IpcError):
    """A frame could not be read from the stream."""


class StreamClosedError(FrameError):
    """The stream ended cleanly at a frame boundary."""

    def __init__(self, msg: str = "Connection closed") -> None:
        super().__init__(msg)


class TruncatedFrameError(FrameError):
    """The stream ended part-way through a frame header or body."""

    def __init__(self, part: str, expected: int, received: int) -> None:
        self.part = part
        self.expected = expected
        self.received = received
        super().__init__(
            f"Stream closed mid-{part}: expected {expected} bytes, received {received}"
        )
