"""Byte-stream transport interface.

The platform socket/pipe lives outside this package; anything with this
shape can carry the protocol. ``read`` returns up to *n* bytes and
``b""`` at end of stream, like ``socket.recv``. Failures surface as
``OSError``.
"""

from __future__ import annotations

import threading
from typing import Protocol


class Transport(Protocol):
    def connect(self) -> None: ...

    def read(self, n: int) -> bytes: ...

    def write(self, data: bytes) -> None: ...

    def close(self) -> None: ...


class MemoryTransport:
    """In-memory duplex stream.

    Bytes given to ``feed`` are what the remote side "sent"; everything the
    client writes is appended to ``written``. ``close`` wakes any blocked
    reader, which then sees end of stream.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._inbound = bytearray()
        self._eof = False
        self._closed = False
        self.connected = False
        self.written: list[bytes] = []
        self.connect_calls = 0
        self.close_calls = 0

    def connect(self) -> None:
        with self._cond:
            self.connect_calls += 1
            self.connected = True
            self._closed = False

    def read(self, n: int) -> bytes:
        with self._cond:
            while not self._inbound and not (self._eof or self._closed):
                self._cond.wait()
            if self._closed:
                return b""
            chunk = bytes(self._inbound[:n])
            del self._inbound[:n]
            return chunk

    def write(self, data: bytes) -> None:
        with self._cond:
            if self._closed or not self.connected:
                msg = "Transport is not open"
                raise BrokenPipeError(msg)
            self.written.append(bytes(data))
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self.close_calls += 1
            self._closed = True
            self.connected = False
            self._cond.notify_all()

    # --- remote side ---

    def feed(self, data: bytes) -> None:
        """Make *data* available to the reader."""
        with self._cond:
            self._inbound.extend(data)
            self._cond.notify_all()

    def feed_eof(self) -> None:
        """Remote side closed; the reader drains what is buffered, then sees EOF."""
        with self._cond:
            self._eof = True
            self._cond.notify_all()

    def wait_for_writes(self, count: int, timeout: float = 2.0) -> bool:
        """Block until at least *count* frames were written."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self.written) >= count, timeout)
