"""Tests for the JSON body codec."""

import pytest

from presenceipc.protocol.codec import JsonCodec


class TestJsonCodec:
    def test_compact_output(self) -> None:
        assert JsonCodec().encode({"v": 1, "client_id": "9"}) == '{"v":1,"client_id":"9"}'

    def test_non_ascii_kept(self) -> None:
        text = JsonCodec().encode({"state": "Café"})
        assert "Café" in text
        assert JsonCodec().decode(text) == {"state": "Café"}

    def test_rejects_non_object(self) -> None:
        with pytest.raises(ValueError, match="Expected a JSON object"):
            JsonCodec().decode("[1]")

    def test_invalid_json(self) -> None:
        with pytest.raises(ValueError):
            JsonCodec().decode("{")
