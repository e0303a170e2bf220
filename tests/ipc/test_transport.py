"""Tests for the in-memory transport used in place of a platform socket."""

from __future__ import annotations

import threading

import pytest

from presenceipc.ipc.transport import MemoryTransport


class TestMemoryTransport:
    def test_read_returns_fed_bytes(self) -> None:
        transport = MemoryTransport()
        transport.connect()
        transport.feed(b"abcdef")
        assert transport.read(4) == b"abcd"
        assert transport.read(4) == b"ef"

    def test_eof_after_drain(self) -> None:
        transport = MemoryTransport()
        transport.connect()
        transport.feed(b"ab")
        transport.feed_eof()
        assert transport.read(10) == b"ab"
        assert transport.read(10) == b""

    def test_close_unblocks_reader(self) -> None:
        transport = MemoryTransport()
        transport.connect()
        result: list[bytes] = []
        reader = threading.Thread(target=lambda: result.append(transport.read(8)))
        reader.start()
        transport.close()
        reader.join(timeout=2)
        assert not reader.is_alive()
        assert result == [b""]

    def test_write_records_frames(self) -> None:
        transport = MemoryTransport()
        transport.connect()
        transport.write(b"x")
        assert transport.written == [b"x"]
        assert transport.wait_for_writes(1, timeout=0.1)

    def test_write_after_close_fails(self) -> None:
        transport = MemoryTransport()
        transport.connect()
        transport.close()
        with pytest.raises(OSError):
            transport.write(b"x")
        assert transport.close_calls == 1
