"""Single-slot listener registration and hook dispatch.

A connection has at most one listener. Setting a new one unregisters the
previous one. The manager holds a plain reference and never closes or
otherwise manages the listener.

INVARIANT: Listener failures are warnings, never errors.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import pluggy

from presenceipc.plugins.hookspecs import PROJECT_NAME, ListenerHookSpec

if TYPE_CHECKING:
    from presenceipc.domain.events import ReadyEvent
    from presenceipc.protocol.packets import Packet

logger = logging.getLogger(__name__)


class ListenerManager:
    """Owns the pluggy manager that relays hooks to the current listener."""

    def __init__(self) -> None:
        self._pm = pluggy.PluginManager(PROJECT_NAME)
        self._pm.add_hookspecs(ListenerHookSpec)
        self._listener: object | None = None

    @property
    def listener(self) -> object | None:
        return self._listener

    def set_listener(self, listener: object | None) -> None:
        """Replace the current listener; ``None`` clears the slot."""
        previous = self._listener
        if previous is not None:
            self._pm.unregister(previous)
            logger.debug("Unregistered listener: %s", previous.__class__.__name__)
        self._listener = None
        if listener is not None:
            self._pm.register(listener, name=f"listener-{id(listener)}")
            self._listener = listener
            logger.debug("Registered listener: %s", listener.__class__.__name__)

    def notify_ready(self, event: ReadyEvent) -> None:
        self._call("on_ready", event=event)

    def notify_packet(self, packet: Packet) -> None:
        self._call("on_packet", packet=packet)

    def notify_disconnect(self, reason: str) -> None:
        self._call("on_disconnect", reason=reason)

    def _call(self, hook_name: str, **kwargs: Any) -> None:
        if self._listener is None:
            return
        hook_fn = getattr(self._pm.hook, hook_name)
        try:
            hook_fn(**kwargs)
        except Exception:
            logger.warning("Listener hook %s failed", hook_name, exc_info=True)
