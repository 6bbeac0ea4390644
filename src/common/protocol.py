# Message definitions, binary framing

import enum
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from .errors import EndOfStream, FramingError

# [type:1][length:4][session_id:4], network byte order
HEADER = struct.Struct('>BIi')
HEADER_SIZE = HEADER.size

MAX_PAYLOAD_SIZE = 32 * 1024 * 1024

_SCREEN_INFO = struct.Struct('>ii')
_MOUSE_MOVE = struct.Struct('>ii')
_MOUSE_CLICK = struct.Struct('>iB')
_KEY = struct.Struct('>i')


class MessageType(enum.IntEnum):
    SCREEN_INFO = 0x00   # source -> viewer: capture dimensions
    SCREEN_FRAME = 0x01  # source -> viewer: JPEG frame
    MOUSE_MOVE = 0x02    # viewer -> source
    MOUSE_CLICK = 0x03   # viewer -> source
    KEY_PRESS = 0x04     # viewer -> source
    KEY_RELEASE = 0x05   # viewer -> source
    DISCONNECT = 0x09    # viewer -> source


_KNOWN_TYPES = {t.value: t for t in MessageType}


@dataclass(frozen=True)
class Message:
    type_byte: int
    session_id: int
    payload: bytes = b''

    @property
    def kind(self) -> Optional[MessageType]:
        """The decoded message type, or None for an unrecognized type byte."""
        return _KNOWN_TYPES.get(self.type_byte)

    @property
    def length(self) -> int:
        return len(self.payload)


def encode_message(msg_type, session_id: int, payload: bytes = b'') -> bytes:
    """Builds the 9-byte header followed by the payload."""
    payload = bytes(payload)
    if len(payload) > MAX_PAYLOAD_SIZE:
        raise FramingError(f"Payload too large: {len(payload)} bytes")
    return HEADER.pack(int(msg_type), len(payload), session_id) + payload


def recv_all(sock, n: int) -> bytes:
    """Receives exactly n bytes from a socket, or raises EndOfStream."""
    data = bytearray()
    while len(data) < n:
        packet = sock.recv(n - len(data))
        if not packet:
            raise EndOfStream(f"Stream closed after {len(data)} of {n} bytes")
        data.extend(packet)
    return bytes(data)


def read_message(sock) -> Message:
    """
    Blocks until one complete message has been read from the socket.

    Unknown type bytes are not an error here: the declared payload is still
    consumed so the stream stays framed, and the caller sees ``kind is None``.
    """
    header = recv_all(sock, HEADER_SIZE)
    type_byte, length, session_id = HEADER.unpack(header)
    if length > MAX_PAYLOAD_SIZE:
        raise FramingError(f"Declared payload length {length} exceeds {MAX_PAYLOAD_SIZE}")
    payload = recv_all(sock, length) if length else b''
    return Message(type_byte, session_id, payload)


def _unpack(layout: struct.Struct, payload: bytes, name: str):
    if len(payload) != layout.size:
        raise FramingError(f"{name} payload must be {layout.size} bytes, got {len(payload)}")
    return layout.unpack(payload)


def pack_screen_info(width: int, height: int) -> bytes:
    return _SCREEN_INFO.pack(width, height)


def unpack_screen_info(payload: bytes) -> Tuple[int, int]:
    return _unpack(_SCREEN_INFO, payload, 'SCREEN_INFO')


def pack_mouse_move(x: int, y: int) -> bytes:
    return _MOUSE_MOVE.pack(x, y)


def unpack_mouse_move(payload: bytes) -> Tuple[int, int]:
    return _unpack(_MOUSE_MOVE, payload, 'MOUSE_MOVE')


def pack_mouse_click(button: int, pressed: bool) -> bytes:
    return _MOUSE_CLICK.pack(button, 1 if pressed else 0)


def unpack_mouse_click(payload: bytes) -> Tuple[int, bool]:
    button, pressed = _unpack(_MOUSE_CLICK, payload, 'MOUSE_CLICK')
    return button, pressed != 0


def pack_key(key_code: int) -> bytes:
    return _KEY.pack(key_code)


def unpack_key(payload: bytes) -> int:
    return _unpack(_KEY, payload, 'KEY')[0]
