# rgbclient/core/command_log.py
from __future__ import annotations

import threading
import uuid
from collections import deque
from typing import Deque, List, Optional

from rgbclient.model.command import Command

DEFAULT_CAPACITY = 1000


class CommandLog:
    """
    Bounded, ordered log of delivered commands.

    Appending past capacity evicts the oldest entry. Reads return snapshot lists,
    never live views, so callers can iterate without holding the lock.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._capacity = int(capacity)
        self._commands: Deque[Command] = deque(maxlen=self._capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)

    def append(self, command: Command) -> None:
        with self._lock:
            self._commands.append(command)

    def commands_since(self, command_id: Optional[uuid.UUID]) -> List[Command]:
        """
        Every command strictly after `command_id`.

        An unknown or evicted cursor (or None) yields the whole buffer.
        """
        with self._lock:
            snapshot = list(self._commands)

        if command_id is not None:
            for i, cmd in enumerate(snapshot):
                if cmd.id == command_id:
                    return snapshot[i + 1:]

        return snapshot

    def last_id(self) -> Optional[uuid.UUID]:
        with self._lock:
            return self._commands[-1].id if self._commands else None
