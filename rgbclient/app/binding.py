# rgbclient/app/binding.py
from __future__ import annotations

import logging
import threading
import uuid
from typing import Optional

from rgbclient.interfaces.command_consumer import CommandConsumer
from rgbclient.model.command import Command
from rgbclient.runtime.state import ConnectionErrorKind
from rgbclient.runtime.supervisor import ConnectionSupervisor


class ConsumerBinding:
    """
    Attaches a consumer to a supervisor and remembers the last command it saw,
    so a later attach() resumes exactly where delivery stopped.
    """

    def __init__(
        self,
        supervisor: ConnectionSupervisor,
        consumer: CommandConsumer,
        *,
        last_id: Optional[uuid.UUID] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._supervisor = supervisor
        self._consumer = consumer
        self._log = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._last_id = last_id
        self._attached = False

    @property
    def last_id(self) -> Optional[uuid.UUID]:
        with self._lock:
            return self._last_id

    @property
    def attached(self) -> bool:
        with self._lock:
            return self._attached

    def attach(self) -> int:
        with self._lock:
            if self._attached:
                return 0
            self._attached = True
            cursor = self._last_id
        return self._supervisor.attach(self, since_id=cursor)

    def detach(self) -> None:
        with self._lock:
            if not self._attached:
                return
            self._attached = False
        self._supervisor.detach()

    # CommandConsumer
    def on_connection_state_changed(self, connected: bool) -> None:
        self._consumer.on_connection_state_changed(connected)

    def on_connection_error(self, kind: ConnectionErrorKind, message: str) -> None:
        self._consumer.on_connection_error(kind, message)

    def on_command_received(self, command: Command) -> None:
        self._consumer.on_command_received(command)
        with self._lock:
            self._last_id = command.id
