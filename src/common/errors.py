# Error taxonomy shared by the source host and the viewer


class ProtocolError(Exception):
    """Base class for session/transport failures."""


class FramingError(ProtocolError):
    """A header or payload does not match the wire layout."""


class EndOfStream(ProtocolError):
    """The peer closed the stream before a full message arrived."""


class ConnectionClosed(ProtocolError):
    """The connection was closed locally."""


class CapacityExceeded(ProtocolError):
    """A session's outbound queue is full; the peer is not keeping up."""
