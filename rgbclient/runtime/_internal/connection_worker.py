# rgbclient/runtime/_internal/connection_worker.py
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rgbclient.runtime.connection import Connection

_log = logging.getLogger(__name__)


class ConnectionWorker(threading.Thread):
    """Thread that runs one Connection to completion."""

    def __init__(self, connection: "Connection"):
        super().__init__(name=f"rgbclient-connection-{connection.generation}", daemon=True)
        self.connection = connection

    def run(self) -> None:
        try:
            self.connection.run()
        except Exception:
            _log.exception("CONNECTION_WORKER_EXCEPTION gen=%d", self.connection.generation)

    def stop(self) -> None:
        self.connection.request_stop()
