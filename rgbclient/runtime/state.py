# rgbclient/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ConnectionState(str, Enum):
    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    CLOSED = "CLOSED"


class ConnectionErrorKind(str, Enum):
    """Terminal failure classes reported by a Connection."""
    ESTABLISHMENT = "ESTABLISHMENT"  # dial failed
    READ = "READ"                    # I/O failure after connect
    PROTOCOL = "PROTOCOL"            # malformed frame


@dataclass(frozen=True)
class SupervisorStatus:
    """
    A snapshot of the supervisor state, safe to share across threads.
    """
    ready: bool
    target: Optional[Tuple[str, int]]
    connected: bool
    generation: int
    last_error: Optional[str] = None
