"""Tests for dispatch event decoding."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from presenceipc.domain.events import (
    ErrorEvent,
    ReadyEvent,
    UnknownEvent,
    decode_event,
)

READY_PAYLOAD = {
    "v": 1,
    "config": {
        "cdn_host": "cdn.example.com",
        "api_endpoint": "//api.example.com",
        "environment": "production",
    },
    "user": {
        "id": "1045800378228281345",
        "username": "tester",
        "discriminator": "0",
        "global_name": "Tester",
        "avatar": None,
        "avatar_decoration_data": None,
        "bot": False,
        "flags": 32,
        "premium_type": 0,
    },
}


class TestDecodeReady:
    def test_parses_sub_structures(self) -> None:
        event = decode_event("READY", READY_PAYLOAD)
        assert isinstance(event, ReadyEvent)
        assert event.version == 1
        assert event.user.id == "1045800378228281345"
        assert event.user.username == "tester"
        assert event.user.flags == 32
        assert event.config.environment == "production"
        assert event.config.cdn_host == "cdn.example.com"

    def test_missing_config_uses_defaults(self) -> None:
        event = decode_event("READY", {"user": {"id": "1", "username": "u"}})
        assert isinstance(event, ReadyEvent)
        assert event.config.api_endpoint is None

    def test_missing_user_is_invalid(self) -> None:
        with pytest.raises(ValidationError):
            decode_event("READY", {"v": 1})

    def test_is_pure(self) -> None:
        assert decode_event("READY", READY_PAYLOAD) == decode_event("READY", READY_PAYLOAD)


class TestDecodeError:
    def test_message_and_code(self) -> None:
        event = decode_event("ERROR", {"code": 4000, "message": "boom"})
        assert event == ErrorEvent(code=4000, message="boom")

    def test_missing_payload(self) -> None:
        event = decode_event("ERROR", None)
        assert isinstance(event, ErrorEvent)
        assert event.message == "Unknown error"

    def test_null_message_uses_default(self) -> None:
        event = decode_event("ERROR", {"code": 4000, "message": None})
        assert event == ErrorEvent(code=4000, message="Unknown error")


class TestDecodeUnknown:
    @pytest.mark.parametrize("name", ["ACTIVITY_JOIN", "GUILD_STATUS", "ready", ""])
    def test_unmapped_names(self, name: str) -> None:
        event = decode_event(name, {"x": 1})
        assert event == UnknownEvent(name=name, data={"x": 1})
