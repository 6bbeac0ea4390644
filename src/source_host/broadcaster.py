# Periodic capture -> encode -> fan-out to every session

import logging
import threading
import time

from common.errors import CapacityExceeded, ConnectionClosed
from common.frame_codec import encode_frame

logger = logging.getLogger(__name__)


class FrameBroadcaster:
    def __init__(self, registry, capture, encode=encode_frame, fps=10, jpeg_quality=50):
        self.registry = registry
        self.capture = capture
        self.encode = encode
        self.period = 1.0 / fps
        self.jpeg_quality = jpeg_quality
        self.frames_sent = 0

    def tick(self):
        """Captures and encodes one frame and queues it on every live session."""
        sessions = self.registry.snapshot()
        if not sessions:
            return None

        frame = self.capture()
        if frame is None:
            return None
        frame_data = self.encode(frame, self.jpeg_quality)
        if frame_data is None:
            return None

        for session in sessions:
            try:
                session.send_frame(frame_data)
            except CapacityExceeded as e:
                logger.warning(f"Dropping stalled session {session.session_id}: {e}")
                self._drop(session)
            except ConnectionClosed:
                self._drop(session)
        self.frames_sent += 1
        return frame_data

    def _drop(self, session):
        # Closed before it leaves the registry, so nothing is written after unregister returns
        session.close()
        self.registry.unregister(session.session_id)

    def run(self, stop_event: threading.Event):
        logger.info(f"Broadcasting at {1.0 / self.period:g} FPS")
        while not stop_event.is_set():
            start_time = time.monotonic()
            try:
                self.tick()
            except Exception as e:
                # Capture/encode failures skip this frame, the loop keeps going
                logger.exception(f"Error in broadcast tick: {e}")

            elapsed = time.monotonic() - start_time
            stop_event.wait(max(0.0, self.period - elapsed))
        logger.info("Broadcast loop stopped")
