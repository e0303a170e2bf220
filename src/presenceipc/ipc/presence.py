"""Pending-presence slot and the SET_ACTIVITY flush rules.

The connection decides which operation applies from its state:
``queue`` while not ready, ``apply`` once ready. ``flush`` runs once when
READY arrives. Callers hold the connection lock around every call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from presenceipc.domain.presence import Presence
from presenceipc.protocol.packets import SetActivityPacket

logger = logging.getLogger(__name__)


class PresenceManager:
    """Holds at most one pending presence and sends it as SetActivity."""

    def __init__(self, send: Callable[[SetActivityPacket], None], *, pid: int) -> None:
        self._send = send
        self._pid = pid
        self._pending: Presence | None = None

    @property
    def pending(self) -> Presence | None:
        return self._pending

    def queue(self, value: Presence | None) -> None:
        """Store *value* for the next flush, replacing anything pending."""
        self._pending = value

    def apply(self, value: Presence | None) -> SetActivityPacket | None:
        """Send *value* now and clear the pending slot.

        An empty or ``None`` value only clears the slot; nothing is sent.
        """
        if value is None or value.is_empty():
            self._pending = None
            return None
        packet = SetActivityPacket(presence=value, pid=self._pid)
        self._send(packet)
        self._pending = None
        return packet

    def flush(self) -> SetActivityPacket | None:
        """Send the pending value, if any."""
        pending = self._pending
        if pending is None:
            return None
        logger.debug("Flushing pending presence")
        return self.apply(pending)

    def clear(self) -> SetActivityPacket:
        """Ask the desktop app to drop the activity."""
        packet = SetActivityPacket(presence=None, pid=self._pid)
        self._send(packet)
        self._pending = None
        return packet
