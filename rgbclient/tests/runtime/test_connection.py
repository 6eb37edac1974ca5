from __future__ import annotations

import io
import struct
import threading

from rgbclient.model import Instruction
from rgbclient.runtime.connection import Connection
from rgbclient.runtime.state import ConnectionErrorKind, ConnectionState
from rgbclient.transport.base import Transport
from rgbclient.transport.errors import TransportIOError, TransportOpenError


class FakeTransport(Transport):
    def __init__(self, data: bytes = b"", *, open_error=None, block_at_end: bool = False, on_open=None):
        self._buf = io.BytesIO(data)
        self._open_error = open_error
        self._block_at_end = block_at_end
        self._on_open = on_open
        self._aborted = threading.Event()
        self.opened = False
        self.close_called = 0
        self.abort_called = 0

    def open(self) -> None:
        if self._open_error is not None:
            raise self._open_error
        self.opened = True
        if self._on_open is not None:
            self._on_open()

    def close(self) -> None:
        self.close_called += 1
        self._aborted.set()

    def abort(self) -> None:
        self.abort_called += 1
        self._aborted.set()

    def read(self, n: int) -> bytes:
        chunk = self._buf.read(n)
        if chunk:
            return chunk
        if self._block_at_end:
            self._aborted.wait(5.0)
            raise TransportIOError("socket shut down")
        return b""


class RecordingListener:
    def __init__(self):
        self.events = []
        self.connected = threading.Event()

    def connection_state_changed(self, connection, connected):
        self.events.append(("state", connected))
        if connected:
            self.connected.set()

    def connection_error(self, connection, kind, message):
        self.events.append(("error", kind, message))

    def command_received(self, connection, command):
        self.events.append(("command", command))


def _conn(transport: FakeTransport, listener=None) -> Connection:
    c = Connection("server", 4444, generation=7, transport_factory=lambda h, p: transport)
    if listener is not None:
        c.set_listener(listener)
    return c


def test_stop_before_run_emits_nothing_and_does_not_dial():
    dialed = []
    c = Connection("server", 4444, transport_factory=lambda h, p: dialed.append((h, p)))
    lis = RecordingListener()
    c.set_listener(lis)

    c.request_stop()
    c.run()

    assert lis.events == []
    assert dialed == []
    assert c.state is ConnectionState.IDLE


def test_establishment_failure_reports_error_only():
    t = FakeTransport(open_error=TransportOpenError("connection refused"))
    lis = RecordingListener()
    c = _conn(t, lis)

    c.run()

    assert lis.events == [("error", ConnectionErrorKind.ESTABLISHMENT, "connection refused")]
    assert c.state is ConnectionState.CLOSED


def test_commands_then_server_hangup():
    data = bytes([2, 10, 20, 30]) + bytes([1]) + struct.pack(">hhh", -5, 0, 300)
    t = FakeTransport(data)
    lis = RecordingListener()
    c = _conn(t, lis)

    c.run()

    kinds = [e[0] for e in lis.events]
    assert kinds == ["state", "command", "command", "error", "state"]
    assert lis.events[0] == ("state", True)
    assert lis.events[1][1].instruction is Instruction.ABSOLUTE
    assert (lis.events[2][1].r, lis.events[2][1].g, lis.events[2][1].b) == (-5, 0, 300)
    assert lis.events[3][1] is ConnectionErrorKind.READ
    assert lis.events[4] == ("state", False)
    assert t.close_called >= 1
    assert c.state is ConnectionState.CLOSED


def test_protocol_error_closes_connection():
    t = FakeTransport(bytes([2, 1, 2, 3, 9, 2, 1, 1, 1]))
    lis = RecordingListener()
    c = _conn(t, lis)

    c.run()

    assert [e[0] for e in lis.events] == ["state", "command", "error", "state"]
    assert lis.events[2] == ("error", ConnectionErrorKind.PROTOCOL, "invalid instruction code: 9")
    assert lis.events[3] == ("state", False)
    assert t.close_called >= 1


def test_stop_after_connected_emits_single_disconnect_and_no_error():
    t = FakeTransport(block_at_end=True)
    lis = RecordingListener()
    c = _conn(t, lis)

    def on_connected(connection, connected):
        RecordingListener.connection_state_changed(lis, connection, connected)
        if connected:
            connection.request_stop()

    lis.connection_state_changed = on_connected
    c.run()

    assert lis.events == [("state", True), ("state", False)]


def test_stop_from_other_thread_unblocks_pending_read():
    t = FakeTransport(block_at_end=True)
    lis = RecordingListener()
    c = _conn(t, lis)

    th = threading.Thread(target=c.run)
    th.start()
    assert lis.connected.wait(2.0)

    c.request_stop()
    c.request_stop()
    th.join(timeout=2.0)

    assert not th.is_alive()
    assert lis.events == [("state", True), ("state", False)]
    assert t.abort_called == 1


def test_stop_racing_the_dial_closes_without_events():
    holder = {}
    t = FakeTransport(on_open=lambda: holder["conn"].request_stop())
    lis = RecordingListener()
    c = _conn(t, lis)
    holder["conn"] = c

    c.run()

    assert lis.events == []
    assert t.close_called == 1
    assert c.state is ConnectionState.CLOSED


def test_listener_exception_does_not_stop_read_loop():
    t = FakeTransport(bytes([2, 1, 1, 1, 2, 2, 2, 2]))
    lis = RecordingListener()
    c = _conn(t, lis)
    seen = []

    def flaky(connection, command):
        seen.append(command)
        if len(seen) == 1:
            raise RuntimeError("boom")

    lis.command_received = flaky
    c.run()

    assert len(seen) == 2
    assert lis.events[-1] == ("state", False)


def test_no_listener_still_runs_to_completion():
    t = FakeTransport(bytes([2, 1, 1, 1]))
    c = _conn(t)

    c.run()

    assert c.state is ConnectionState.CLOSED
    assert t.close_called >= 1


def test_callbacks_receive_connection_with_generation():
    t = FakeTransport(bytes([2, 1, 1, 1]))
    received = []

    class L(RecordingListener):
        def command_received(self, connection, command):
            received.append(connection.generation)

    c = _conn(t, L())
    c.run()

    assert received == [7]


def test_unexpected_open_exception_is_establishment_error():
    t = FakeTransport(open_error=UnicodeError("label too long"))
    lis = RecordingListener()
    c = _conn(t, lis)

    c.run()

    assert lis.events == [("error", ConnectionErrorKind.ESTABLISHMENT, "label too long")]
    assert c.state is ConnectionState.CLOSED


def test_transport_factory_failure_is_establishment_error():
    def factory(host, port):
        raise ValueError()

    c = Connection("server", 4444, transport_factory=factory)
    lis = RecordingListener()
    c.set_listener(lis)

    c.run()

    assert lis.events == [("error", ConnectionErrorKind.ESTABLISHMENT, "ValueError")]


def test_overlong_host_name_reports_establishment_error():
    c = Connection("a" * 64 + ".example", 4444, connect_timeout_s=1.0)
    lis = RecordingListener()
    c.set_listener(lis)

    c.run()

    assert len(lis.events) == 1
    assert lis.events[0][:2] == ("error", ConnectionErrorKind.ESTABLISHMENT)
    assert c.state is ConnectionState.CLOSED
