import logging
import queue
import threading

from common.errors import CapacityExceeded, ConnectionClosed, FramingError
from common.protocol import MessageType

logger = logging.getLogger(__name__)

_STOP = object()


class ClientSession:
    """
    One connected viewer on the source side.

    Outbound messages go through a bounded queue drained by a dedicated
    writer thread, which is the only writer of the socket. A full queue means
    the viewer is not keeping up and ``send`` raises ``CapacityExceeded``
    instead of blocking the caller.
    """

    def __init__(self, session_id, connection, queue_size=8):
        self.session_id = session_id
        self.connection = connection
        self._outbound = queue.Queue(maxsize=queue_size)
        self._alive = threading.Event()
        self._alive.set()
        self._writer = None

    @property
    def alive(self):
        return self._alive.is_set()

    @property
    def peer(self):
        return self.connection.peer

    def start(self):
        self._writer = threading.Thread(
            target=self._drain_outbound,
            name=f"session-{self.session_id}-writer",
            daemon=True,
        )
        self._writer.start()

    def send(self, msg_type, payload=b''):
        if not self.alive:
            raise ConnectionClosed(f"Session {self.session_id} is closed")
        try:
            self._outbound.put_nowait((msg_type, payload))
        except queue.Full:
            raise CapacityExceeded(
                f"Session {self.session_id} has {self._outbound.maxsize} messages pending"
            ) from None

    def send_frame(self, frame_data):
        self.send(MessageType.SCREEN_FRAME, frame_data)

    def _drain_outbound(self):
        while True:
            item = self._outbound.get()
            if item is _STOP or not self.alive:
                break
            msg_type, payload = item
            try:
                self.connection.send(msg_type, self.session_id, payload)
            except ConnectionClosed:
                break
            except FramingError as e:
                logger.error(f"Session {self.session_id}: not sending {msg_type.name}: {e}")
                continue
            except OSError as e:
                logger.error(f"Error sending to session {self.session_id}: {e}")
                break
        # A dead writer means a dead session; the reader sees the shutdown too
        self.close()

    def close(self):
        if not self._alive.is_set():
            return
        self._alive.clear()
        self.connection.close()
        try:
            self._outbound.put_nowait(_STOP)
        except queue.Full:
            # The writer is unblocked by the closed socket and checks alive
            pass

    def join(self, timeout=None):
        if self._writer is not None and self._writer is not threading.current_thread():
            self._writer.join(timeout)
