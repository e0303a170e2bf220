"""Connection layer — state machine, presence flushing, transport interface.

This layer ties the protocol and domain layers to a byte-stream transport.
It is the only layer that starts threads or performs I/O.
"""

from presenceipc.ipc.connection import Connection
from presenceipc.ipc.transport import MemoryTransport, Transport

__all__ = ["Connection", "MemoryTransport", "Transport"]
