"""Structured-text codec for frame bodies."""

from __future__ import annotations

import json
from typing import Any, Protocol


class TextCodec(Protocol):
    def encode(self, value: dict[str, Any]) -> str: ...

    def decode(self, text: str) -> dict[str, Any]: ...


class JsonCodec:
    """Compact JSON, the body format the desktop app speaks."""

    def encode(self, value: dict[str, Any]) -> str:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)

    def decode(self, text: str) -> dict[str, Any]:
        value = json.loads(text)
        if not isinstance(value, dict):
            msg = f"Expected a JSON object, got {type(value).__name__}"
            raise ValueError(msg)
        return value
