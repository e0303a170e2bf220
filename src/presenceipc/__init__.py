"""presenceipc — rich-presence client for the desktop app's local IPC socket."""

from presenceipc.domain.events import ErrorEvent, ReadyEvent, UnknownEvent
from presenceipc.domain.lifecycle import ConnectionState
from presenceipc.domain.presence import Presence
from presenceipc.ipc.connection import Connection
from presenceipc.plugins.hookspecs import hookimpl

__version__ = "0.1.0"

__all__ = [
    "Connection",
    "ConnectionState",
    "ErrorEvent",
    "Presence",
    "ReadyEvent",
    "UnknownEvent",
    "__version__",
    "hookimpl",
]
