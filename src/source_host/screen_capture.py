# Screen capture of the source display

import logging
from typing import NamedTuple

import cv2
import mss
import mss.exception
import numpy as np

logger = logging.getLogger(__name__)


class CaptureRegion(NamedTuple):
    width: int
    height: int


class ScreenCapturer:
    def __init__(self, monitor_index=1):
        self.sct = mss.mss()
        # monitors[0] is the combined virtual screen, individual monitors start at 1
        if len(self.sct.monitors) > monitor_index:
            self.monitor = self.sct.monitors[monitor_index]
        else:
            self.monitor = self.sct.monitors[0]

        self.capture_area = {
            "top": self.monitor["top"],
            "left": self.monitor["left"],
            "width": self.monitor["width"],
            "height": self.monitor["height"],
        }
        if "id" in self.monitor:
            self.capture_area["mon"] = self.monitor["id"]

        # Fixed for the lifetime of the host
        self.region = CaptureRegion(self.monitor["width"], self.monitor["height"])

    def capture_frame(self):
        """Captures a single frame of the capture region as a BGR array."""
        try:
            sct_img = self.sct.grab(self.capture_area)
            img = np.array(sct_img)
            # MSS captures in BGRA, the JPEG encoder wants BGR
            return cv2.cvtColor(img, cv2.COLOR_BGRA2BGR)
        except mss.exception.ScreenShotError as e:
            logger.error(f"Screen capture error: {e}")
            return None

    def close(self):
        self.sct.close()
