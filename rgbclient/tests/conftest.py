from __future__ import annotations

import threading
import time

import pytest

from rgbclient.runtime.connection import Connection
from rgbclient.runtime.supervisor import ConnectionSupervisor
from rgbclient.transport.base import Transport
from rgbclient.transport.errors import TransportIOError, TransportOpenError


class FeedTransport(Transport):
    """In-memory transport; tests push server bytes with feed()."""

    def __init__(self, host: str, port: int, open_error: Exception | None = None):
        self.host = host
        self.port = port
        self._open_error = open_error
        self._buf = bytearray()
        self._cond = threading.Condition()
        self._aborted = False
        self._eof = False
        self.opened = threading.Event()

    def open(self) -> None:
        if self._open_error is not None:
            raise self._open_error
        self.opened.set()

    def feed(self, data: bytes) -> None:
        with self._cond:
            self._buf.extend(data)
            self._cond.notify_all()

    def hang_up(self) -> None:
        with self._cond:
            self._eof = True
            self._cond.notify_all()

    def abort(self) -> None:
        with self._cond:
            self._aborted = True
            self._cond.notify_all()

    def close(self) -> None:
        self.abort()

    @property
    def aborted(self) -> bool:
        with self._cond:
            return self._aborted

    def read(self, n: int) -> bytes:
        with self._cond:
            ready = self._cond.wait_for(lambda: self._buf or self._aborted or self._eof, timeout=5.0)
            if self._buf:
                chunk = bytes(self._buf[:n])
                del self._buf[:n]
                return chunk
            if self._aborted or not ready:
                raise TransportIOError("socket shut down")
            return b""


class TransportRegistry:
    """Transport factory that remembers every transport it created."""

    def __init__(self):
        self.created: list[FeedTransport] = []
        self.refuse: set[tuple[str, int]] = set()
        self.open_errors: dict[tuple[str, int], Exception] = {}
        self._lock = threading.Lock()

    def __call__(self, host: str, port: int) -> FeedTransport:
        err = TransportOpenError("connection refused") if (host, port) in self.refuse else None
        err = self.open_errors.get((host, port), err)
        t = FeedTransport(host, port, open_error=err)
        with self._lock:
            self.created.append(t)
        return t

    def last(self) -> FeedTransport:
        with self._lock:
            return self.created[-1]


def _wait_until(pred, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if pred():
            return True
        time.sleep(0.005)
    return pred()


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def transports() -> TransportRegistry:
    return TransportRegistry()


@pytest.fixture
def supervisor(transports):
    created: list[Connection] = []

    def factory(host, port, generation):
        c = Connection(host, port, generation=generation, transport_factory=transports)
        created.append(c)
        return c

    sup = ConnectionSupervisor(history_size=100, connection_factory=factory)
    sup.created_connections = created
    yield sup
    sup.shutdown()
