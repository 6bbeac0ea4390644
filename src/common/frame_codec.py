# JPEG encode/decode for screen frames

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def encode_frame(frame, quality=50):
    """Compresses a BGR frame to JPEG bytes. Returns None if OpenCV refuses it."""
    ok, img_encoded = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        logger.error("JPEG encoding failed")
        return None
    return img_encoded.tobytes()


def decode_frame(data):
    """Decodes JPEG bytes to a BGR frame, or None if the data is not an image."""
    if not data:
        return None
    np_arr = np.frombuffer(data, np.uint8)
    return cv2.imdecode(np_arr, cv2.IMREAD_COLOR)
