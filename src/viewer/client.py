# Viewer: receives the remote screen, sends local input

import logging
import threading

from common.config import config
from common.connection import Connection
from common.errors import ConnectionClosed, EndOfStream, FramingError
from common.frame_codec import decode_frame
from common.protocol import (
    MessageType,
    pack_key,
    pack_mouse_click,
    pack_mouse_move,
    unpack_screen_info,
)

logger = logging.getLogger(__name__)


class ViewerClient:
    def __init__(self, server_host=None, server_port=None,
                 on_screen_info=None, on_frame=None, on_disconnect=None):
        self.server_host = server_host or config.viewer.server_host
        self.server_port = server_port or config.viewer.server_port
        self.on_screen_info = on_screen_info
        self.on_frame = on_frame
        self.on_disconnect = on_disconnect

        self.connection = None
        self.session_id = 0
        self.remote_size = None
        self.connected = False
        self._receiver = None
        self._state_lock = threading.Lock()

    def connect(self, timeout=None):
        timeout = timeout if timeout is not None else config.viewer.connect_timeout
        self.connection = Connection.connect(self.server_host, self.server_port, timeout=timeout)
        self.connected = True
        logger.info(f"Connected to server: {self.server_host}:{self.server_port}")

        self._receiver = threading.Thread(target=self._receive_messages, name="viewer-receiver", daemon=True)
        self._receiver.start()

    def _receive_messages(self):
        try:
            while self.connected:
                message = self.connection.receive()
                try:
                    self._handle_message(message)
                except FramingError as e:
                    logger.warning(f"Dropping malformed message: {e}")
        except EndOfStream:
            logger.info("Server disconnected")
        except ConnectionClosed:
            pass
        except (OSError, FramingError) as e:
            if self.connected:
                logger.error(f"Connection error: {e}")
        finally:
            self._close(notify=True)

    def _handle_message(self, message):
        kind = message.kind
        if kind == MessageType.SCREEN_INFO:
            width, height = unpack_screen_info(message.payload)
            self.session_id = message.session_id
            self.remote_size = (width, height)
            logger.info(f"Remote screen size: {width}x{height} (session {self.session_id})")
            if self.on_screen_info:
                self.on_screen_info(width, height)
        elif kind == MessageType.SCREEN_FRAME:
            image = decode_frame(message.payload)
            if image is None:
                logger.warning(f"Could not decode frame of {message.length} bytes")
                return
            if self.on_frame:
                self.on_frame(image)
        elif kind is None:
            logger.warning(f"Unknown message type: 0x{message.type_byte:02x}")
        else:
            logger.warning(f"Ignoring unexpected {kind.name} from server")

    def _send(self, msg_type, payload=b''):
        if not self.connected:
            return False
        try:
            self.connection.send(msg_type, self.session_id, payload)
            return True
        except ConnectionClosed:
            return False
        except OSError as e:
            logger.error(f"Error sending {msg_type.name}: {e}")
            self._close(notify=True)
            return False

    def send_mouse_move(self, x, y):
        return self._send(MessageType.MOUSE_MOVE, pack_mouse_move(x, y))

    def send_mouse_click(self, button, pressed):
        return self._send(MessageType.MOUSE_CLICK, pack_mouse_click(button, pressed))

    def send_key_press(self, key_code):
        return self._send(MessageType.KEY_PRESS, pack_key(key_code))

    def send_key_release(self, key_code):
        return self._send(MessageType.KEY_RELEASE, pack_key(key_code))

    def disconnect(self):
        """Tells the server we are leaving (best effort) and closes the connection."""
        if not self.connected:
            return
        try:
            self.connection.send(MessageType.DISCONNECT, self.session_id)
        except (ConnectionClosed, OSError):
            # The socket is going away regardless
            pass
        self._close(notify=True)
        if self._receiver is not None and self._receiver is not threading.current_thread():
            self._receiver.join(timeout=2)
        logger.info("Disconnected from server")

    def _close(self, notify=False):
        with self._state_lock:
            was_connected = self.connected
            self.connected = False
        if self.connection is not None:
            self.connection.close()
        if was_connected and notify and self.on_disconnect:
            self.on_disconnect()
