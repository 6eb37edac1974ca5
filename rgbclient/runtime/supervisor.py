# rgbclient/runtime/supervisor.py
from __future__ import annotations

import logging
import threading
import uuid
from typing import Callable, Optional, Tuple

from rgbclient.core.command_log import DEFAULT_CAPACITY, CommandLog
from rgbclient.interfaces.command_consumer import CommandConsumer
from rgbclient.model.command import Command
from rgbclient.runtime._internal.connection_worker import ConnectionWorker
from rgbclient.runtime.connection import Connection
from rgbclient.runtime.state import ConnectionErrorKind, SupervisorStatus

ConnectionFactory = Callable[[str, int, int], Connection]  # (host, port, generation)
Target = Tuple[str, int]


class ConnectionSupervisor:
    """
    Keeps at most one live Connection that tracks the desired target and readiness.

    Inputs (set_target, notify_ready, notify_unready, restart) may arrive on any
    thread and are serialized. Retries only happen in response to an input; a failed
    connection is dropped and stays dropped until the next input arrives.

    Decoded commands from the current connection are appended to the command log
    before being forwarded to the attached consumer.
    """

    def __init__(
        self,
        *,
        command_log: Optional[CommandLog] = None,
        history_size: int = DEFAULT_CAPACITY,
        connect_timeout_s: float = 10.0,
        connection_factory: Optional[ConnectionFactory] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._log = logger or logging.getLogger(__name__)
        self.command_log = command_log if command_log is not None else CommandLog(history_size)
        self._connect_timeout_s = float(connect_timeout_s)
        self._connection_factory = connection_factory or self._default_connection_factory

        # Serializes external inputs.
        self._input_lock = threading.RLock()
        # Guards the tracked connection and status fields; never held while calling out.
        self._lock = threading.Lock()
        # Orders log appends and consumer delivery against attach()/detach().
        self._deliver_lock = threading.RLock()

        self._ready = False
        self._target: Optional[Target] = None

        self._connection: Optional[Connection] = None
        self._worker: Optional[ConnectionWorker] = None
        self._generation = 0
        self._connected = False
        self._last_error: Optional[str] = None

        self._consumer: Optional[CommandConsumer] = None
        self._listener = _SupervisorListener(self)

    def _default_connection_factory(self, host: str, port: int, generation: int) -> Connection:
        return Connection(
            host,
            port,
            generation=generation,
            connect_timeout_s=self._connect_timeout_s,
        )

    # ---------------- Inputs ----------------
    def set_target(self, host: str, port: int) -> None:
        with self._input_lock:
            self._target = (str(host), int(port))
            self._log.info("SUPERVISOR_TARGET host=%s port=%d", host, int(port))
            self._reconcile_locked()

    def notify_ready(self) -> None:
        with self._input_lock:
            self._ready = True
            self._log.debug("SUPERVISOR_READY")
            self._reconcile_locked()

    def notify_unready(self) -> None:
        with self._input_lock:
            self._ready = False
            self._log.debug("SUPERVISOR_UNREADY")
            self._reconcile_locked()

    def reconcile(self) -> None:
        with self._input_lock:
            self._reconcile_locked()

    def restart(self) -> None:
        """Unconditionally drop the current connection, then reconcile."""
        with self._input_lock:
            self._log.info("SUPERVISOR_RESTART")
            self._stop_current("restart")
            self._reconcile_locked()

    def shutdown(self, timeout_s: Optional[float] = 2.0) -> None:
        with self._input_lock:
            self._ready = False
            worker = self._stop_current("shutdown")
        if worker is not None and worker.is_alive() and worker is not threading.current_thread():
            worker.join(timeout=timeout_s)

    # ---------------- Consumer ----------------
    def attach(self, consumer: CommandConsumer, since_id: Optional[uuid.UUID] = None) -> int:
        """
        Deliver every logged command after `since_id`, then install `consumer` for live
        delivery. Returns the number of replayed commands.
        """
        with self._deliver_lock:
            backlog = self.command_log.commands_since(since_id)
            self._consumer = consumer
            for command in backlog:
                self._call_consumer(consumer, "on_command_received", command)

        self._log.info("CONSUMER_ATTACHED since=%s replayed=%d", since_id, len(backlog))
        return len(backlog)

    def detach(self) -> None:
        with self._deliver_lock:
            self._consumer = None
        self._log.info("CONSUMER_DETACHED")

    def commands_since(self, command_id: Optional[uuid.UUID]) -> list[Command]:
        return self.command_log.commands_since(command_id)

    def status(self) -> SupervisorStatus:
        with self._lock:
            return SupervisorStatus(
                ready=self._ready,
                target=self._target,
                connected=self._connected,
                generation=self._generation,
                last_error=self._last_error,
            )

    @property
    def connection(self) -> Optional[Connection]:
        with self._lock:
            return self._connection

    # ---------------- Internal ----------------
    def _reconcile_locked(self) -> None:
        if not self._ready or self._target is None:
            self._stop_current("not_ready" if not self._ready else "no_target")
            return

        target = self._target
        with self._lock:
            current = self._connection

        if (
            current is not None
            and (current.host, current.port) == target
            and not current.is_stop_requested
        ):
            self._log.debug("SUPERVISOR_CONNECTION_IN_FLIGHT gen=%d", current.generation)
            return

        self._stop_current("retarget")
        self._start_connection(target)

    def _start_connection(self, target: Target) -> None:
        host, port = target
        with self._lock:
            self._generation += 1
            generation = self._generation

        connection = self._connection_factory(host, port, generation)
        connection.set_listener(self._listener)
        worker = ConnectionWorker(connection)

        with self._lock:
            self._connection = connection
            self._worker = worker
            self._connected = False
            self._last_error = None

        self._log.info("SUPERVISOR_CONNECTION_START gen=%d host=%s port=%d", generation, host, port)
        worker.start()

    def _stop_current(self, reason: str) -> Optional[ConnectionWorker]:
        with self._lock:
            connection = self._connection
            worker = self._worker
            was_connected = self._connected
            self._connection = None
            self._worker = None
            self._connected = False

        if connection is None:
            return None

        self._log.info("SUPERVISOR_CONNECTION_STOP gen=%d reason=%s", connection.generation, reason)
        connection.request_stop()
        connection.set_listener(None)

        if was_connected:
            self._forward("on_connection_state_changed", False)
        return worker

    def _is_current(self, connection: Connection) -> bool:
        # caller holds self._lock
        return self._connection is not None and self._connection.generation == connection.generation

    def _on_state_changed(self, connection: Connection, connected: bool) -> None:
        with self._lock:
            if not self._is_current(connection):
                self._log.debug("STALE_STATE_EVENT gen=%d connected=%s", connection.generation, connected)
                return
            self._connected = connected
            if not connected:
                self._connection = None
                self._worker = None

        self._forward("on_connection_state_changed", connected)

    def _on_error(self, connection: Connection, kind: ConnectionErrorKind, message: str) -> None:
        with self._lock:
            if not self._is_current(connection):
                self._log.debug("STALE_ERROR_EVENT gen=%d kind=%s", connection.generation, kind.value)
                return
            was_connected = self._connected
            self._last_error = f"{kind.value}: {message}"
            self._connection = None
            self._worker = None
            self._connected = False

        self._log.warning("CONNECTION_ERROR gen=%d kind=%s msg=%s", connection.generation, kind.value, message)
        self._forward("on_connection_error", kind, message)
        if was_connected:
            self._forward("on_connection_state_changed", False)

    def _on_command(self, connection: Connection, command: Command) -> None:
        with self._deliver_lock:
            with self._lock:
                current = self._is_current(connection)
            if not current:
                self._log.debug("STALE_COMMAND_DROPPED gen=%d id=%s", connection.generation, command.id)
                return

            self.command_log.append(command)
            consumer = self._consumer
            if consumer is not None:
                self._call_consumer(consumer, "on_command_received", command)

    def _forward(self, event: str, *args) -> None:
        with self._deliver_lock:
            consumer = self._consumer
            if consumer is not None:
                self._call_consumer(consumer, event, *args)

    def _call_consumer(self, consumer: CommandConsumer, event: str, *args) -> None:
        try:
            getattr(consumer, event)(*args)
        except Exception:
            self._log.exception("CONSUMER_CALLBACK_ERROR event=%s", event)


class _SupervisorListener:
    """ConnectionListener that routes connection events back into the supervisor."""

    def __init__(self, supervisor: ConnectionSupervisor):
        self._supervisor = supervisor

    def connection_state_changed(self, connection: Connection, connected: bool) -> None:
        self._supervisor._on_state_changed(connection, connected)

    def connection_error(self, connection: Connection, kind: ConnectionErrorKind, message: str) -> None:
        self._supervisor._on_error(connection, kind, message)

    def command_received(self, connection: Connection, command: Command) -> None:
        self._supervisor._on_command(connection, command)
