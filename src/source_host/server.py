# Source host: accepts viewers, broadcasts the screen, injects their input

import logging
import socket
import threading

from common.config import config
from common.errors import ConnectionClosed, EndOfStream, FramingError
from common.connection import Connection
from common.protocol import MessageType, pack_screen_info
from .broadcaster import FrameBroadcaster
from .dispatcher import InputDispatcher
from .session import ClientSession
from .session_registry import SessionRegistry

logger = logging.getLogger(__name__)


class RemoteDesktopServer:
    def __init__(self, host=None, port=None, fps=None, jpeg_quality=None,
                 send_queue_size=None, capturer=None, input_sink=None):
        self.host = host if host is not None else config.host.host
        self.port = port if port is not None else config.host.port
        self.fps = fps or config.host.fps
        self.jpeg_quality = jpeg_quality or config.host.jpeg_quality
        self.send_queue_size = send_queue_size or config.host.send_queue_size

        if capturer is None:
            from .screen_capture import ScreenCapturer
            capturer = ScreenCapturer(config.host.monitor)
        if input_sink is None:
            # pynput needs a display, so only load it when injecting for real
            from .input_sink import InputSink
            input_sink = InputSink()

        self.capturer = capturer
        self.capture_region = capturer.region
        self.registry = SessionRegistry()
        self.dispatcher = InputDispatcher(input_sink)
        self.broadcaster = FrameBroadcaster(
            self.registry,
            capturer.capture_frame,
            fps=self.fps,
            jpeg_quality=self.jpeg_quality,
        )

        self.server_socket = None
        self.running = False
        self._stop_event = threading.Event()
        self._threads = []
        self._client_threads = {}
        self._client_threads_lock = threading.Lock()

    @property
    def address(self):
        """The bound (host, port); the port is real even when configured as 0."""
        return self.server_socket.getsockname()[:2] if self.server_socket else None

    def start(self, broadcast=True):
        # Failing to bind is the only fatal error, let it propagate
        self.server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            self.server_socket.bind((self.host, self.port))
            self.server_socket.listen(5)
        except OSError:
            self.server_socket.close()
            self.server_socket = None
            raise

        self.running = True
        self._stop_event.clear()
        host, port = self.address
        logger.info(f"Remote desktop server listening on {host}:{port}")
        logger.info(f"Screen size: {self.capture_region.width}x{self.capture_region.height}")

        accept_thread = threading.Thread(target=self._accept_connections, name="accept", daemon=True)
        accept_thread.start()
        self._threads.append(accept_thread)

        if broadcast:
            broadcast_thread = threading.Thread(
                target=self.broadcaster.run, args=(self._stop_event,), name="broadcast", daemon=True
            )
            broadcast_thread.start()
            self._threads.append(broadcast_thread)

    def _accept_connections(self):
        while self.running:
            try:
                conn, addr = self.server_socket.accept()
            except OSError as e:
                if self.running:
                    logger.error(f"Error accepting connections: {e}")
                break

            connection = Connection(conn, addr)
            session = self.registry.register(lambda session_id: self._open_session(session_id, connection))
            logger.info(f"Client connected from {addr} - Session ID: {session.session_id}")

            thread = threading.Thread(
                target=self._handle_client,
                args=(session,),
                name=f"session-{session.session_id}-reader",
                daemon=True,
            )
            with self._client_threads_lock:
                self._client_threads[session.session_id] = thread
            thread.start()

    def _open_session(self, session_id, connection):
        session = ClientSession(session_id, connection, self.send_queue_size)
        # Queued before the session is visible to the broadcaster, so it goes out first
        session.send(MessageType.SCREEN_INFO, pack_screen_info(*self.capture_region))
        session.start()
        return session

    def _handle_client(self, session):
        session_id = session.session_id
        try:
            while self.running and session.alive:
                message = session.connection.receive()
                try:
                    if not self.dispatcher.dispatch(session_id, message):
                        break
                except FramingError as e:
                    logger.warning(f"Session {session_id}: dropping malformed message: {e}")
        except EndOfStream:
            logger.info(f"Client disconnected - Session ID: {session_id}")
        except ConnectionClosed:
            logger.debug(f"Session {session_id} closed locally")
        except FramingError as e:
            logger.error(f"Session {session_id}: unrecoverable framing error: {e}")
        except OSError as e:
            logger.error(f"Client error (Session {session_id}): {e}")
        finally:
            self._remove_session(session)
            with self._client_threads_lock:
                self._client_threads.pop(session_id, None)

    def _remove_session(self, session):
        # Closed before it leaves the registry, so nothing is written after unregister returns
        session.close()
        self.registry.unregister(session.session_id)
        logger.info(f"Removed session {session.session_id} ({session.peer})")

    def stop(self, timeout=2.0):
        if not self.running:
            return
        self.running = False
        self._stop_event.set()

        if self.server_socket:
            try:
                self.server_socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self.server_socket.close()

        for session in self.registry.close_all():
            session.join(timeout)

        with self._client_threads_lock:
            client_threads = list(self._client_threads.values())
        for thread in self._threads + client_threads:
            thread.join(timeout)
        self._threads = []
        logger.info("Server stopped.")
