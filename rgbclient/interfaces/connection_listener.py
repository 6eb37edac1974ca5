# rgbclient/interfaces/connection_listener.py
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rgbclient.model.command import Command
    from rgbclient.runtime.connection import Connection
    from rgbclient.runtime.state import ConnectionErrorKind


class ConnectionListener(Protocol):
    """
    Receives events from a single Connection.

    Callbacks run synchronously on the connection's worker thread; a slow
    listener stalls the read loop, so hand long work off elsewhere.
    """
    def connection_state_changed(self, connection: "Connection", connected: bool) -> None: ...
    def connection_error(self, connection: "Connection", kind: "ConnectionErrorKind", message: str) -> None: ...
    def command_received(self, connection: "Connection", command: "Command") -> None: ...
