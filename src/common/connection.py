import logging
import socket
import threading

from .errors import ConnectionClosed, EndOfStream
from .protocol import Message, encode_message, read_message

logger = logging.getLogger(__name__)


class Connection:
    """
    One live TCP stream.

    ``send`` may be called from any thread; a lock keeps whole messages from
    interleaving. ``receive`` belongs to a single reader loop. ``close`` is
    idempotent and releases any thread blocked in ``send`` or ``receive``.
    """

    def __init__(self, sock, peer=None):
        self.sock = sock
        self.peer = peer
        self._write_lock = threading.Lock()
        self._closed = threading.Event()
        try:
            self.sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
        except (OSError, AttributeError):
            # Not a TCP socket (e.g. a socketpair in tests)
            pass

    @classmethod
    def connect(cls, host, port, timeout=None):
        sock = socket.create_connection((host, port), timeout=timeout)
        # Blocking mode from here on, the timeout only bounds the connect
        sock.settimeout(None)
        return cls(sock, (host, port))

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def send(self, msg_type, session_id: int, payload: bytes = b''):
        data = encode_message(msg_type, session_id, payload)
        with self._write_lock:
            if self._closed.is_set():
                raise ConnectionClosed(f"Connection to {self.peer} is closed")
            try:
                self.sock.sendall(data)
            except OSError:
                if self._closed.is_set():
                    raise ConnectionClosed(f"Connection to {self.peer} is closed")
                raise

    def receive(self) -> Message:
        if self._closed.is_set():
            raise ConnectionClosed(f"Connection to {self.peer} is closed")
        try:
            return read_message(self.sock)
        except (OSError, EndOfStream):
            # A local shutdown looks like EOF to recv
            if self._closed.is_set():
                raise ConnectionClosed(f"Connection to {self.peer} is closed")
            raise

    def close(self):
        if self._closed.is_set():
            return
        self._closed.set()
        try:
            # shutdown wakes threads blocked in recv/sendall, close alone may not
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self.sock.close()
        except OSError as e:
            logger.debug(f"Error closing socket for {self.peer}: {e}")
