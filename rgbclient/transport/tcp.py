# rgbclient/transport/tcp.py
from __future__ import annotations

import socket
from typing import Optional

from .base import Transport
from .errors import TransportIOError, TransportOpenError


class TCPTransport(Transport):
    """
    TCP client transport.

    The connect is bounded by connect_timeout_s; once connected the socket is blocking
    so read(n) waits until data arrives, the peer hangs up, or abort() is called.
    """

    def __init__(self, host: str, port: int, connect_timeout_s: float = 10.0):
        self.host = host
        self.port = int(port)
        self.connect_timeout_s = connect_timeout_s
        self.sock: Optional[socket.socket] = None

    def open(self) -> None:
        try:
            sock = socket.create_connection((self.host, self.port), timeout=self.connect_timeout_s)
        except (OSError, UnicodeError, ValueError) as e:
            # UnicodeError: IDNA encoding of the host failed; ValueError: embedded NUL
            self.sock = None
            raise TransportOpenError(f"connect to {self.host}:{self.port} failed: {e}") from None

        sock.settimeout(None)
        self.sock = sock

    def close(self) -> None:
        if self.sock is not None:
            try:
                self.sock.close()
            except OSError:
                pass
            finally:
                self.sock = None

    def abort(self) -> None:
        sock = self.sock
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            # already disconnected
            pass

    def is_open(self) -> bool:
        return self.sock is not None

    def read(self, n: int) -> bytes:
        sock = self.sock
        if sock is None:
            raise TransportIOError("read while transport not open")

        try:
            return sock.recv(n)
        except OSError as e:
            raise TransportIOError(f"TCP read failed: {e}") from None

