"""Domain layer — presence, events, and connection lifecycle.

This layer depends only on stdlib and pydantic.
It must never import from protocol, ipc, plugins, or config.
"""
