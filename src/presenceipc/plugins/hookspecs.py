"""Pluggy hook specifications for connection listeners.

A listener implements any subset of these hooks with ``@hookimpl``;
hooks it does not implement are simply not called. All hooks run
synchronously on the connection's receive thread, so a slow hook delays
processing of the next frame.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from presenceipc.domain.events import ReadyEvent
    from presenceipc.protocol.packets import Packet

PROJECT_NAME = "presenceipc"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class ListenerHookSpec:
    """Hook specifications for a connection listener."""

    @hookspec
    def on_ready(self, event: ReadyEvent) -> None:
        """Called once the desktop app has dispatched READY."""

    @hookspec
    def on_packet(self, packet: Packet) -> None:
        """Called for every inbound packet, in wire order."""

    @hookspec
    def on_disconnect(self, reason: str) -> None:
        """Called once when the connection closes, for any reason."""
