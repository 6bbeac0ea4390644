# Routes inbound viewer messages to the input sink

import logging

from common.protocol import (
    MessageType,
    unpack_key,
    unpack_mouse_click,
    unpack_mouse_move,
)

logger = logging.getLogger(__name__)


class InputDispatcher:
    def __init__(self, input_sink):
        self.input_sink = input_sink

    def dispatch(self, session_id, message):
        """
        Applies one message. Returns False when the session should end.

        Raises FramingError for a malformed payload; the caller drops the
        message and keeps reading.
        """
        kind = message.kind

        if kind is None:
            logger.warning(f"Session {session_id}: unrecognized message type 0x{message.type_byte:02x} "
                           f"({message.length} bytes skipped)")
        elif kind == MessageType.DISCONNECT:
            logger.info(f"Session {session_id} requested disconnect")
            return False
        elif kind == MessageType.MOUSE_MOVE:
            x, y = unpack_mouse_move(message.payload)
            self._inject(session_id, "move_to", x, y)
        elif kind == MessageType.MOUSE_CLICK:
            button, pressed = unpack_mouse_click(message.payload)
            self._inject(session_id, "set_button", button, pressed)
        elif kind == MessageType.KEY_PRESS:
            self._inject(session_id, "set_key", unpack_key(message.payload), True)
        elif kind == MessageType.KEY_RELEASE:
            self._inject(session_id, "set_key", unpack_key(message.payload), False)
        else:
            logger.warning(f"Session {session_id}: ignoring {kind.name} sent by viewer")
        return True

    def _inject(self, session_id, action, *args):
        try:
            getattr(self.input_sink, action)(*args)
        except Exception as e:
            # A rejected key or button must not cost the viewer its session
            logger.error(f"Session {session_id}: input injection failed for {action}{args}: {e}")
