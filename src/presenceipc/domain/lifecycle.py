"""Connection lifecycle states and the transitions between them.

    DISCONNECTED -> CONNECTING -> CONNECTED -> CLOSED

Ready is a sub-state of CONNECTED, tracked separately by the connection.
A closed connection may connect again.
"""

from __future__ import annotations

from enum import StrEnum


class ConnectionState(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


CONNECTION_TRANSITIONS: dict[str, list[str]] = {
    "disconnected": ["connecting"],
    # Back to disconnected when the handshake cannot be written.
    "connecting": ["connected", "closed", "disconnected"],
    "connected": ["closed"],
    "closed": ["connecting"],
}

# States from which send() may write.
SENDABLE_STATES = frozenset({ConnectionState.CONNECTING, ConnectionState.CONNECTED})


def is_valid_transition(
    current: str,
    target: str,
    transitions: dict[str, list[str]] = CONNECTION_TRANSITIONS,
) -> bool:
    """Check if transitioning from *current* to *target* is allowed."""
    allowed = transitions.get(current, [])
    return target in allowed
