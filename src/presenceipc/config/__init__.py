from presenceipc.config.logging import configure_logging, session_context
from presenceipc.config.settings import IpcSettings

__all__ = ["IpcSettings", "configure_logging", "session_context"]
