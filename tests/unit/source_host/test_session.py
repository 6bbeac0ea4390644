import threading
import time
from unittest.mock import MagicMock

import pytest

from common.errors import CapacityExceeded, ConnectionClosed
from common.protocol import MessageType
from source_host.session import ClientSession


def wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class BlockingConnection:
    """Connection whose send blocks until released, like a peer that stopped reading."""

    def __init__(self):
        self.peer = ('test', 0)
        self.release = threading.Event()
        self.sent = []
        self.closed = False

    def send(self, msg_type, session_id, payload=b''):
        self.release.wait()
        if self.closed:
            raise ConnectionClosed("closed")
        self.sent.append((msg_type, session_id, payload))

    def close(self):
        self.closed = True
        self.release.set()


def test_messages_are_written_in_order():
    connection = MagicMock()
    session = ClientSession(4, connection, queue_size=8)
    session.start()

    session.send(MessageType.SCREEN_INFO, b"info")
    session.send_frame(b"frame-1")
    session.send_frame(b"frame-2")

    assert wait_for(lambda: connection.send.call_count == 3)
    assert [c.args for c in connection.send.call_args_list] == [
        (MessageType.SCREEN_INFO, 4, b"info"),
        (MessageType.SCREEN_FRAME, 4, b"frame-1"),
        (MessageType.SCREEN_FRAME, 4, b"frame-2"),
    ]
    session.close()


def test_full_queue_raises_without_blocking():
    connection = BlockingConnection()
    session = ClientSession(1, connection, queue_size=2)
    session.start()

    session.send_frame(b"taken by writer")
    assert wait_for(lambda: session._outbound.empty())
    session.send_frame(b"queued 1")
    session.send_frame(b"queued 2")

    start = time.monotonic()
    with pytest.raises(CapacityExceeded):
        session.send_frame(b"overflow")
    assert time.monotonic() - start < 0.5

    session.close()
    session.join(timeout=2)
    assert not session.alive


def test_send_after_close_raises():
    session = ClientSession(1, MagicMock())
    session.close()
    with pytest.raises(ConnectionClosed):
        session.send_frame(b"x")


def test_close_is_idempotent_and_stops_writer():
    connection = MagicMock()
    session = ClientSession(1, connection)
    session.start()
    session.close()
    session.close()
    session.join(timeout=2)
    assert not session._writer.is_alive()
    connection.close.assert_called_once()


def test_write_failure_closes_session():
    connection = MagicMock()
    connection.send.side_effect = BrokenPipeError("peer gone")
    session = ClientSession(2, connection)
    session.start()

    session.send_frame(b"frame")

    assert wait_for(lambda: not session.alive)
    connection.close.assert_called_once()
