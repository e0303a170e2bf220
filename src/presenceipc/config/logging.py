"""structlog configuration for presenceipc.

Two output modes, picked from ``IpcSettings.log_json``:
- Human (default): colored console output to stderr
- JSON: Structured JSON lines to stderr

The library itself only logs through stdlib ``logging``; applications call
``configure_logging`` once if they want the structured output. Records
emitted by a receive thread carry ``application_id`` and ``session``
through ``session_context``.
"""

from __future__ import annotations

import logging
import sys
from contextlib import AbstractContextManager
from typing import Any

import structlog

from presenceipc.config.settings import IpcSettings


def configure_logging(settings: IpcSettings | None = None) -> None:
    """Configure structlog processors and output routing.

    ``settings.verbose`` enables DEBUG for the ``presenceipc`` loggers
    (WARNING+ otherwise); ``settings.log_json`` selects the JSON renderer.
    Settings are loaded from env/TOML when omitted.
    """
    if settings is None:
        settings = IpcSettings.load()
    ipc_level = logging.DEBUG if settings.verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    logging.getLogger("presenceipc").setLevel(ipc_level)


def session_context(application_id: str, session: int) -> AbstractContextManager[Any]:
    """Bind the session's identity to every record logged inside the block.

    The binding is a contextvar, so it only covers the current thread.
    """
    return structlog.contextvars.bound_contextvars(
        application_id=application_id,
        session=session,
    )
