# rgbclient/runtime/connection.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from rgbclient.interfaces.connection_listener import ConnectionListener
from rgbclient.model.command import Command
from rgbclient.protocol import ProtocolError, decode_frame
from rgbclient.runtime.state import ConnectionErrorKind, ConnectionState
from rgbclient.transport.base import Transport
from rgbclient.transport.errors import TransportError
from rgbclient.transport.tcp import TCPTransport

TransportFactory = Callable[[str, int], Transport]


class Connection:
    """
    One attempt at a server connection: dial, then decode frames until failure or stop.

    Responsibilities:
      - own exactly one transport for its lifetime
      - report state changes, errors and commands to the registered listener
      - observe cooperative cancellation via request_stop()

    Every failure is terminal for the instance; retrying is the supervisor's job.
    """

    def __init__(
        self,
        host: str,
        port: int,
        *,
        generation: int = 0,
        connect_timeout_s: float = 10.0,
        transport_factory: Optional[TransportFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.host = host
        self.port = int(port)
        self.generation = int(generation)
        self._connect_timeout_s = float(connect_timeout_s)
        self._transport_factory = transport_factory or self._default_transport
        self._log = logger or logging.getLogger(__name__)

        self._listener: Optional[ConnectionListener] = None
        self._listener_lock = threading.RLock()

        self._stop_event = threading.Event()

        # Guards _transport and _state; abort() from request_stop() must not race the
        # publication of a freshly-dialed transport.
        self._lock = threading.Lock()
        self._transport: Optional[Transport] = None
        self._state = ConnectionState.IDLE

    def _default_transport(self, host: str, port: int) -> Transport:
        return TCPTransport(host, port, connect_timeout_s=self._connect_timeout_s)

    # ---------------- Public API ----------------
    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._state

    @property
    def is_stop_requested(self) -> bool:
        return self._stop_event.is_set()

    def set_listener(self, listener: Optional[ConnectionListener]) -> None:
        """Replace the listener; waits for any in-progress callback to return."""
        with self._listener_lock:
            self._listener = listener

    def request_stop(self) -> None:
        """Idempotent; safe from any thread, before or during run()."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()
        self._log.debug("CONNECTION_STOP_REQUESTED gen=%d %s:%d", self.generation, self.host, self.port)

        with self._lock:
            transport = self._transport
            if transport is not None:
                try:
                    transport.abort()
                except Exception:
                    self._log.exception("CONNECTION_ABORT_FAILED gen=%d", self.generation)

    def run(self) -> None:
        """Worker body. Runs the connect/read state machine once."""
        if self._stop_event.is_set():
            self._log.debug("CONNECTION_CANCELLED_BEFORE_DIAL gen=%d", self.generation)
            return

        self._set_state(ConnectionState.CONNECTING)
        self._log.info("CONNECTION_DIAL gen=%d host=%s port=%d", self.generation, self.host, self.port)

        try:
            transport = self._transport_factory(self.host, self.port)
            transport.open()
        except Exception as e:
            self._set_state(ConnectionState.CLOSED)
            self._log.warning("CONNECTION_DIAL_FAILED gen=%d err=%s", self.generation, e)
            self._emit_error(ConnectionErrorKind.ESTABLISHMENT, str(e) or type(e).__name__)
            return

        with self._lock:
            cancelled = self._stop_event.is_set()
            if cancelled:
                self._state = ConnectionState.CLOSED
            else:
                self._transport = transport
                self._state = ConnectionState.CONNECTED

        if cancelled:
            self._log.debug("CONNECTION_CANCELLED_AFTER_DIAL gen=%d", self.generation)
            self._close_quietly(transport)
            return

        self._log.info("CONNECTION_ESTABLISHED gen=%d host=%s port=%d", self.generation, self.host, self.port)
        self._emit("connection_state_changed", True)

        try:
            self._read_loop(transport)
        finally:
            with self._lock:
                self._transport = None
                self._state = ConnectionState.CLOSED
            self._close_quietly(transport)
            self._log.info("CONNECTION_CLOSED gen=%d", self.generation)
            self._emit("connection_state_changed", False)

    # ---------------- Internal ----------------
    def _read_loop(self, transport: Transport) -> None:
        while not self._stop_event.is_set():
            try:
                command = decode_frame(transport)
            except ProtocolError as e:
                self._log.warning("CONNECTION_PROTOCOL_ERROR gen=%d err=%s", self.generation, e)
                self._emit_error(ConnectionErrorKind.PROTOCOL, str(e))
                return
            except (TransportError, OSError) as e:
                if self._stop_event.is_set():
                    # abort() from request_stop() unblocked the read
                    return
                self._log.warning("CONNECTION_READ_ERROR gen=%d err=%s", self.generation, e)
                self._emit_error(ConnectionErrorKind.READ, str(e))
                return

            self._log.debug("COMMAND_RECEIVED gen=%d %s", self.generation, command)
            self._emit_command(command)

    def _set_state(self, state: ConnectionState) -> None:
        with self._lock:
            self._state = state

    def _emit_error(self, kind: ConnectionErrorKind, message: str) -> None:
        self._emit("connection_error", kind, message)

    def _emit_command(self, command: Command) -> None:
        self._emit("command_received", command)

    def _emit(self, event: str, *args) -> None:
        with self._listener_lock:
            listener = self._listener
            if listener is None:
                return
            try:
                getattr(listener, event)(self, *args)
            except Exception:
                self._log.exception("LISTENER_CALLBACK_ERROR gen=%d event=%s", self.generation, event)

    def _close_quietly(self, transport: Transport) -> None:
        try:
            transport.close()
        except Exception:
            pass

    def __repr__(self) -> str:
        return f"Connection(gen={self.generation}, {self.host}:{self.port}, state={self.state.value})"
