"""Extension layer — connection listeners via pluggy.

INVARIANT: Listener failures are warnings, never errors.
"""

from presenceipc.plugins.hookspecs import hookimpl
from presenceipc.plugins.manager import ListenerManager

__all__ = ["ListenerManager", "hookimpl"]
