"""Shared pytest fixtures and test helpers for presenceipc tests."""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable, Generator
from typing import Any

import pytest

from presenceipc.config.settings import IpcSettings
from presenceipc.domain.lifecycle import SENDABLE_STATES
from presenceipc.ipc.connection import Connection
from presenceipc.ipc.transport import MemoryTransport
from presenceipc.plugins.hookspecs import hookimpl
from presenceipc.protocol.frame import HEADER, Opcode, encode_frame

APP_ID = "123456789012345678"
TEST_PID = 4242

READY_DATA: dict[str, Any] = {
    "v": 1,
    "config": {
        "cdn_host": "cdn.example.com",
        "api_endpoint": "//api.example.com",
        "environment": "production",
    },
    "user": {
        "id": "1045800378228281345",
        "username": "tester",
        "discriminator": "0",
        "global_name": "Tester",
        "avatar": None,
        "bot": False,
        "flags": 0,
        "premium_type": 0,
    },
}


# ---------------------------------------------------------------------------
# Recording listener
# ---------------------------------------------------------------------------


class RecordingListener:
    """Listener that records every hook call."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self.ready = threading.Event()
        self.disconnected = threading.Event()

    @hookimpl
    def on_ready(self, event: Any) -> None:
        self.calls.append(("ready", event))
        self.ready.set()

    @hookimpl
    def on_packet(self, packet: Any) -> None:
        self.calls.append(("packet", packet))

    @hookimpl
    def on_disconnect(self, reason: str) -> None:
        self.calls.append(("disconnect", reason))
        self.disconnected.set()

    @property
    def packets(self) -> list[Any]:
        return [arg for name, arg in self.calls if name == "packet"]

    @property
    def reasons(self) -> list[str]:
        return [arg for name, arg in self.calls if name == "disconnect"]


# ---------------------------------------------------------------------------
# Wire helpers
# ---------------------------------------------------------------------------


class Wire:
    """Builds inbound frames and decodes the frames the client wrote."""

    @staticmethod
    def frame(opcode: int, body: dict[str, Any]) -> bytes:
        return encode_frame(opcode, json.dumps(body).encode("utf-8"))

    def dispatch(self, event: str, data: dict[str, Any] | None = None) -> bytes:
        return self.frame(
            Opcode.FRAME,
            {"cmd": "DISPATCH", "evt": event, "data": data, "nonce": None},
        )

    def command(self, cmd: str, data: dict[str, Any] | None, nonce: str = "n-1") -> bytes:
        return self.frame(Opcode.FRAME, {"cmd": cmd, "evt": None, "data": data, "nonce": nonce})

    def ready(self) -> bytes:
        return self.dispatch("READY", READY_DATA)

    @staticmethod
    def decode(raw: bytes) -> tuple[int, dict[str, Any]]:
        opcode, length = HEADER.unpack(raw[: HEADER.size])
        body = raw[HEADER.size :]
        assert len(body) == length
        return opcode, json.loads(body.decode("utf-8"))

    def written(self, transport: MemoryTransport) -> list[tuple[int, dict[str, Any]]]:
        return [self.decode(raw) for raw in list(transport.written)]


@pytest.fixture
def wire() -> Wire:
    return Wire()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Poll *predicate* until it is true or *timeout* elapses."""

    def _wait(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.005)
        return predicate()

    return _wait


# ---------------------------------------------------------------------------
# Connection fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings() -> IpcSettings:
    """Settings with a fixed pid and a short join timeout."""
    return IpcSettings(
        protocol={"pid": TEST_PID},
        connection={"join_timeout": 2.0},
    )


@pytest.fixture
def transport() -> MemoryTransport:
    return MemoryTransport()


@pytest.fixture
def listener() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def connection(
    transport: MemoryTransport,
    settings: IpcSettings,
    listener: RecordingListener,
) -> Generator[Connection]:
    """Unconnected client wired to the memory transport and recording listener."""
    conn = Connection(
        APP_ID,
        transport_factory=lambda: transport,
        settings=settings,
        listener=listener,
    )
    try:
        yield conn
    finally:
        if conn.state in SENDABLE_STATES:
            conn.disconnect()
