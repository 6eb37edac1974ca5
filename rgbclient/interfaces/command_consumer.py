# rgbclient/interfaces/command_consumer.py
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from rgbclient.model.command import Command
    from rgbclient.runtime.state import ConnectionErrorKind


class CommandConsumer(Protocol):
    """Display-side receiver attached to a ConnectionSupervisor."""
    def on_connection_state_changed(self, connected: bool) -> None: ...
    def on_connection_error(self, kind: "ConnectionErrorKind", message: str) -> None: ...
    def on_command_received(self, command: "Command") -> None: ...
