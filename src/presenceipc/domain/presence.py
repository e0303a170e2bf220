"""Rich-presence value object.

``Presence`` serializes to the ``activity`` object carried by a
``SET_ACTIVITY`` command. Unset fields are omitted from the wire form.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

MAX_BUTTONS = 2


class Timestamps(BaseModel):
    """Unix epoch milliseconds."""

    model_config = {"frozen": True}

    start: int | None = None
    end: int | None = None


class Assets(BaseModel):
    model_config = {"frozen": True}

    large_image: str | None = None
    large_text: str | None = None
    small_image: str | None = None
    small_text: str | None = None


class Party(BaseModel):
    """Party id plus ``(current, max)`` size."""

    model_config = {"frozen": True}

    id: str | None = None
    size: tuple[int, int] | None = None


class Secrets(BaseModel):
    model_config = {"frozen": True}

    join: str | None = None
    spectate: str | None = None
    match: str | None = None


class Button(BaseModel):
    """A clickable link. Acks echo only the label, so ``url`` may be absent."""

    model_config = {"frozen": True}

    label: str
    url: str | None = None


class Presence(BaseModel):
    """What the desktop app should display for this application."""

    model_config = {"frozen": True}

    state: str | None = None
    details: str | None = None
    timestamps: Timestamps | None = None
    assets: Assets | None = None
    party: Party | None = None
    secrets: Secrets | None = None
    buttons: list[Button] | None = Field(default=None, max_length=MAX_BUTTONS)
    instance: bool | None = None

    @field_validator("buttons", mode="before")
    @classmethod
    def _labels_to_buttons(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{"label": item} if isinstance(item, str) else item for item in value]
        return value

    def is_empty(self) -> bool:
        """True when no field carries a value."""
        return not self.to_native()

    def to_native(self) -> dict[str, Any]:
        """Wire form for ``args.activity``."""
        return self.model_dump(mode="json", exclude_none=True)

    @classmethod
    def from_native(cls, data: dict[str, Any]) -> Presence:
        """Build from an activity object echoed back by the desktop app."""
        return cls.model_validate(data)
