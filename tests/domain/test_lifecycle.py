"""Tests for connection states and transitions."""

from presenceipc.domain.lifecycle import (
    CONNECTION_TRANSITIONS,
    SENDABLE_STATES,
    ConnectionState,
    is_valid_transition,
)


class TestConnectionState:
    def test_members(self) -> None:
        assert {s.value for s in ConnectionState} == {
            "disconnected",
            "connecting",
            "connected",
            "closed",
        }

    def test_every_state_has_transitions(self) -> None:
        assert set(CONNECTION_TRANSITIONS) == {s.value for s in ConnectionState}

    def test_forward_path(self) -> None:
        assert is_valid_transition("disconnected", "connecting")
        assert is_valid_transition("connecting", "connected")
        assert is_valid_transition("connected", "closed")

    def test_reconnect_only_from_closed(self) -> None:
        assert is_valid_transition("closed", "connecting")
        assert not is_valid_transition("connected", "connecting")

    def test_no_shortcuts(self) -> None:
        assert not is_valid_transition("disconnected", "connected")
        assert not is_valid_transition("closed", "connected")
        assert not is_valid_transition("connected", "disconnected")

    def test_enum_members_work_as_keys(self) -> None:
        assert is_valid_transition(ConnectionState.CONNECTED, ConnectionState.CLOSED)

    def test_sendable_states(self) -> None:
        assert SENDABLE_STATES == {ConnectionState.CONNECTING, ConnectionState.CONNECTED}
