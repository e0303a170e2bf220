"""Connection state machine and receive loop.

``Connection`` owns the transport for one session at a time. The caller's
thread runs ``connect``/``disconnect``/``send`` and the presence setters;
a single daemon thread per session reads frames and drives the listener.

State, transport, and pending presence are only touched under ``_lock``.
Listener hooks run on the receive thread outside the lock, in wire order.
Every session ends with exactly one ``on_disconnect`` call, and
``disconnect()`` joins the receive thread, so no hook fires after it
returns (unless it was called from a hook).
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from types import TracebackType

from pydantic import ValidationError

from presenceipc import errors
from presenceipc.config.logging import session_context
from presenceipc.config.settings import IpcSettings
from presenceipc.domain.events import ErrorEvent, ReadyEvent, UnknownEvent, decode_event
from presenceipc.domain.lifecycle import SENDABLE_STATES, ConnectionState, is_valid_transition
from presenceipc.domain.presence import Presence
from presenceipc.ipc.presence import PresenceManager
from presenceipc.ipc.transport import Transport
from presenceipc.plugins.manager import ListenerManager
from presenceipc.protocol.codec import JsonCodec, TextCodec
from presenceipc.protocol.frame import decode_frame
from presenceipc.protocol.packets import (
    ClosePacket,
    DispatchPacket,
    HandshakePacket,
    Packet,
    PacketDirection,
    PingPacket,
    PongPacket,
    SetActivityPacket,
    packet_from_frame,
)

logger = logging.getLogger(__name__)

CLIENT_CLOSE_REASON = "Disconnected by client"


class Connection:
    """A client session with the desktop app's IPC socket.

    Presence set before ``connect()`` (or before READY) is held pending and
    sent once, right after READY is dispatched.

    Parameters:
        application_id: The application's id; sent in the handshake.
        transport_factory: Returns a fresh, unopened transport per session.
        settings: Protocol and thread settings; loaded from env if omitted.
        codec: Body codec, JSON by default.
        listener: Initial listener (see :mod:`presenceipc.plugins.hookspecs`).
    """

    def __init__(
        self,
        application_id: str | int,
        *,
        transport_factory: Callable[[], Transport],
        settings: IpcSettings | None = None,
        codec: TextCodec | None = None,
        listener: object | None = None,
    ) -> None:
        self._application_id = str(application_id)
        self._transport_factory = transport_factory
        self._settings = settings if settings is not None else IpcSettings.load()
        self._codec: TextCodec = codec if codec is not None else JsonCodec()

        self._lock = threading.RLock()
        self._state = ConnectionState.DISCONNECTED
        self._transport: Transport | None = None
        self._thread: threading.Thread | None = None
        self._session = 0
        self._ready = False

        self._presence = PresenceManager(self.send, pid=self._settings.pid)
        self._listeners = ListenerManager()
        self._listeners.set_listener(listener)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def application_id(self) -> str:
        return self._application_id

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    @property
    def is_ready(self) -> bool:
        """Whether READY has been seen in the current session."""
        return self._ready

    @property
    def listener(self) -> object | None:
        return self._listeners.listener

    @listener.setter
    def listener(self, listener: object | None) -> None:
        self._listeners.set_listener(listener)

    @property
    def presence(self) -> Presence | None:
        """The presence still waiting to be sent, if any."""
        return self._presence.pending

    @presence.setter
    def presence(self, value: Presence | None) -> None:
        self.set_presence(value)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def connect(self) -> None:
        """Open the transport, send the handshake, and start receiving.

        Raises:
            InvalidStateError: already connecting or connected.
            ConnectionError: the transport could not be opened, or the
                handshake could not be written. The connection is left
                unconnected.
        """
        with self._lock:
            if self._state not in (ConnectionState.DISCONNECTED, ConnectionState.CLOSED):
                msg = f"Cannot connect while {self._state}"
                raise errors.InvalidStateError(msg)

            try:
                transport = self._transport_factory()
                transport.connect()
            except OSError as exc:
                msg = f"Could not open IPC transport: {exc}"
                raise errors.ConnectionError(msg) from exc

            self._session += 1
            self._transport = transport
            self._ready = False
            self._set_state(ConnectionState.CONNECTING)
            try:
                self.send(
                    HandshakePacket(
                        client_id=self._application_id,
                        version=self._settings.protocol.version,
                    )
                )
            except errors.ConnectionError:
                self._transport = None
                self._set_state(ConnectionState.DISCONNECTED)
                _close_quietly(transport)
                raise

            self._set_state(ConnectionState.CONNECTED)
            self._thread = threading.Thread(
                target=self._receive_loop,
                args=(transport, self._session),
                name=self._settings.connection.thread_name,
                daemon=True,
            )
            self._thread.start()

    def disconnect(self) -> None:
        """Close the transport and wait for the receive thread to finish.

        Raises:
            InvalidStateError: not connecting or connected.
            DisconnectionError: closing the transport failed. The connection
                is ``CLOSED`` regardless.
        """
        with self._lock:
            if self._state not in SENDABLE_STATES:
                msg = f"Cannot disconnect while {self._state}"
                raise errors.InvalidStateError(msg)
            transport, thread = self._detach()
        self._shutdown(transport, thread)

    def _detach(self) -> tuple[Transport | None, threading.Thread | None]:
        """Move to ``CLOSED`` and hand back the session's transport and thread.

        Must be called with ``_lock`` held.
        """
        transport = self._transport
        thread = self._thread
        self._transport = None
        self._thread = None
        self._ready = False
        self._set_state(ConnectionState.CLOSED)
        return transport, thread

    def _shutdown(
        self, transport: Transport | None, thread: threading.Thread | None
    ) -> None:
        close_error: OSError | None = None
        if transport is not None:
            try:
                transport.close()
            except OSError as exc:
                close_error = exc

        if thread is not None and thread is not threading.current_thread():
            thread.join(self._settings.connection.join_timeout)
            if thread.is_alive():
                logger.warning(
                    "Receive thread did not stop within %ss",
                    self._settings.connection.join_timeout,
                )

        if close_error is not None:
            msg = f"Failed to close IPC transport: {close_error}"
            raise errors.DisconnectionError(msg) from close_error

    def send(self, packet: Packet) -> None:
        """Encode *packet* into a frame and write it.

        Raises:
            DirectionError: *packet* is clientbound.
            InvalidStateError: not connecting or connected.
            ConnectionError: the write failed.
        """
        if packet.direction is PacketDirection.CLIENTBOUND:
            msg = f"Cannot send clientbound packet {type(packet).__name__}"
            raise errors.DirectionError(msg)

        with self._lock:
            transport = self._transport
            if self._state not in SENDABLE_STATES or transport is None:
                msg = f"Cannot send while {self._state}"
                raise errors.InvalidStateError(msg)
            data = packet.encode(self._codec)
            try:
                transport.write(data)
            except OSError as exc:
                msg = f"Failed to write {type(packet).__name__}: {exc}"
                raise errors.ConnectionError(msg) from exc
        logger.debug("Sent %s (%d bytes)", type(packet).__name__, len(data))

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    def set_presence(self, value: Presence | None) -> None:
        """Send *value* now if READY was seen, otherwise hold it pending."""
        with self._lock:
            if self._ready and self._state is ConnectionState.CONNECTED:
                self._presence.apply(value)
            else:
                self._presence.queue(value)

    def clear_presence(self) -> None:
        """Drop any pending presence and, once ready, clear the displayed one."""
        with self._lock:
            if self._ready and self._state is ConnectionState.CONNECTED:
                self._presence.clear()
            else:
                self._presence.queue(None)

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> Connection:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        # The remote side may have closed the session already.
        with self._lock:
            if self._state not in SENDABLE_STATES:
                return
            transport, thread = self._detach()
        self._shutdown(transport, thread)

    # ------------------------------------------------------------------
    # Receive loop
    # ------------------------------------------------------------------

    def _receive_loop(self, transport: Transport, session: int) -> None:
        with session_context(self._application_id, session):
            reason = self._run_session(transport, session)
            logger.debug("Receive loop for session %d ended: %s", session, reason)
            self._listeners.notify_disconnect(reason)

    def _run_session(self, transport: Transport, session: int) -> str:
        """Process frames until a terminal condition; return its reason."""
        while True:
            try:
                frame = decode_frame(transport)
                packet = packet_from_frame(frame, self._codec)
                packet, terminal = self._handle_packet(packet)
            except errors.StreamClosedError as exc:
                if not self._close_session(transport, session):
                    return CLIENT_CLOSE_REASON
                return str(exc)
            except (errors.FrameError, errors.PacketError, OSError) as exc:
                if not self._close_session(transport, session):
                    return CLIENT_CLOSE_REASON
                logger.warning("Closing connection: %s", exc)
                return str(exc)

            self._listeners.notify_packet(packet)
            if terminal is not None:
                self._close_session(transport, session)
                return terminal

    def _handle_packet(self, packet: Packet) -> tuple[Packet, str | None]:
        """React to one inbound packet.

        Returns the packet to forward to the listener (after reclassifying
        activity acks) and a disconnect reason if the session must end.
        """
        if isinstance(packet, DispatchPacket):
            if packet.event is not None:
                try:
                    event = decode_event(packet.event, packet.data)
                except ValidationError as exc:
                    msg = f"Malformed {packet.event} event: {exc}"
                    raise errors.PacketError(msg) from exc
                if isinstance(event, ReadyEvent):
                    self._on_ready(event)
                elif isinstance(event, ErrorEvent):
                    logger.warning("Desktop app reported error %s: %s", event.code, event.message)
                    return packet, event.message
                elif isinstance(event, UnknownEvent):
                    logger.debug("Ignoring event %s", event.name)
            elif packet.is_activity_ack:
                try:
                    return SetActivityPacket.from_ack(packet), None
                except ValidationError:
                    logger.warning("Unparseable activity ack", exc_info=True)
        elif isinstance(packet, PingPacket):
            self._send_quietly(PongPacket(data=packet.data))
        elif isinstance(packet, ClosePacket):
            return packet, packet.message or f"Closed by desktop app (code {packet.code})"
        elif isinstance(packet, (PongPacket, HandshakePacket)):
            pass
        else:
            logger.debug("Unhandled packet type %s", type(packet).__name__)
        return packet, None

    def _on_ready(self, event: ReadyEvent) -> None:
        with self._lock:
            self._ready = True
        logger.debug("Ready as %s", event.user.username)
        self._listeners.notify_ready(event)
        with self._lock:
            if self._state is not ConnectionState.CONNECTED:
                return
            try:
                self._presence.flush()
            except errors.IpcError:
                logger.warning("Failed to flush pending presence", exc_info=True)

    def _send_quietly(self, packet: Packet) -> None:
        try:
            self.send(packet)
        except errors.IpcError:
            logger.warning("Failed to send %s", type(packet).__name__, exc_info=True)

    def _close_session(self, transport: Transport, session: int) -> bool:
        """Close *session* from the receive thread.

        Returns False when the caller already closed it.
        """
        with self._lock:
            if session != self._session or self._state is ConnectionState.CLOSED:
                return False
            self._detach()
        _close_quietly(transport)
        return True

    def _set_state(self, target: ConnectionState) -> None:
        if not is_valid_transition(self._state, target):
            msg = f"Invalid transition {self._state} -> {target}"
            raise errors.InvalidStateError(msg)
        logger.debug("Connection state %s -> %s", self._state, target)
        self._state = target


def _close_quietly(transport: Transport) -> None:
    try:
        transport.close()
    except OSError:
        logger.warning("Failed to close IPC transport", exc_info=True)
