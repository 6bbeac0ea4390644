# OpenCV window showing the remote screen and capturing local input

import logging
import threading

import cv2
import numpy as np

from common.config import config
from .coords import letterbox, map_to_remote

logger = logging.getLogger(__name__)

# cv2 mouse event -> (wire button id, pressed)
MOUSE_BUTTON_EVENTS = {
    cv2.EVENT_LBUTTONDOWN: (1, True),
    cv2.EVENT_LBUTTONUP: (1, False),
    cv2.EVENT_MBUTTONDOWN: (2, True),
    cv2.EVENT_MBUTTONUP: (2, False),
    cv2.EVENT_RBUTTONDOWN: (3, True),
    cv2.EVENT_RBUTTONUP: (3, False),
}


def render_canvas(image, panel_size):
    """Draws the image letterboxed on a black canvas of panel_size (width, height)."""
    width, height = panel_size
    canvas = np.zeros((height, width, 3), dtype=np.uint8)
    if image is None:
        return canvas

    image_height, image_width = image.shape[:2]
    box = letterbox(panel_size, (image_width, image_height))
    scaled = cv2.resize(image, (box.scaled_width, box.scaled_height), interpolation=cv2.INTER_AREA)
    canvas[box.offset_y:box.offset_y + box.scaled_height,
           box.offset_x:box.offset_x + box.scaled_width] = scaled
    return canvas


def key_to_code(key):
    """Virtual key code of a pynput key, or None when the platform gives none."""
    vk = getattr(key, 'vk', None)
    if vk is None and hasattr(key, 'value'):
        vk = getattr(key.value, 'vk', None)
    return vk


class ViewerWindow:
    def __init__(self, client, title=None, size=None, refresh_interval=None, forward_keyboard=None):
        self.client = client
        self.title = title or config.viewer.window_title
        self.size = size or (config.viewer.window_width, config.viewer.window_height)
        self.refresh_interval = refresh_interval or config.viewer.refresh_interval
        self.forward_keyboard = (config.viewer.forward_keyboard
                                 if forward_keyboard is None else forward_keyboard)

        self.latest_frame = None
        self.frame_lock = threading.Lock()
        self.status = "Connecting..."
        self.running = False
        self.keyboard_listener = None
        # Keys are forwarded only while the window has focus: a click inside the
        # canvas gives it focus, the pointer leaving the canvas takes it away
        self.active = False
        self._pressed_keys = set()
        # Size of the last canvas shown; mouse callback coordinates are in this space
        self._canvas_size = self.size

        client.on_screen_info = self._on_screen_info
        client.on_frame = self._on_frame
        client.on_disconnect = self._on_disconnect

    def _on_screen_info(self, width, height):
        self.status = f"Connected - Remote screen: {width}x{height}"

    def _on_frame(self, image):
        with self.frame_lock:
            self.latest_frame = image

    def _on_disconnect(self):
        self.status = "Disconnected"

    def _on_mouse(self, event, x, y, flags, param):
        if event in MOUSE_BUTTON_EVENTS and MOUSE_BUTTON_EVENTS[event][1]:
            self.active = True
        elif event == cv2.EVENT_MOUSEMOVE and self._at_edge(x, y):
            self.active = False

        remote_x, remote_y = map_to_remote((x, y), self._canvas_size, self.client.remote_size)
        if event == cv2.EVENT_MOUSEMOVE:
            self.client.send_mouse_move(remote_x, remote_y)
        elif event in MOUSE_BUTTON_EVENTS:
            button, pressed = MOUSE_BUTTON_EVENTS[event]
            self.client.send_mouse_click(button, pressed)

    def _at_edge(self, x, y):
        width, height = self._canvas_size
        return x <= 0 or y <= 0 or x >= width - 1 or y >= height - 1

    def _on_key_press(self, key):
        if not self.active:
            return
        key_code = key_to_code(key)
        if key_code is not None:
            self._pressed_keys.add(key_code)
            self.client.send_key_press(key_code)
        else:
            logger.debug(f"No key code for {key}, not forwarded")

    def _on_key_release(self, key):
        key_code = key_to_code(key)
        # A key pressed while focused is still released remotely after focus is lost
        if key_code is None or key_code not in self._pressed_keys:
            return
        self._pressed_keys.discard(key_code)
        self.client.send_key_release(key_code)

    def _start_keyboard_listener(self):
        # pynput needs a display, import only when the window actually runs
        from pynput import keyboard
        self.keyboard_listener = keyboard.Listener(on_press=self._on_key_press, on_release=self._on_key_release)
        self.keyboard_listener.start()
        logger.info("Started keyboard listener.")

    def _panel_size(self):
        try:
            _, _, width, height = cv2.getWindowImageRect(self.title)
        except cv2.error:
            return self.size
        if width <= 0 or height <= 0:
            return self.size
        return width, height

    def run(self):
        """Runs the display loop on the calling thread until the window is closed."""
        cv2.namedWindow(self.title, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(self.title, *self.size)
        cv2.setMouseCallback(self.title, self._on_mouse)
        if self.forward_keyboard:
            self._start_keyboard_listener()

        self.running = True
        shown_status = None
        wait_ms = max(1, int(self.refresh_interval * 1000))
        try:
            while self.running:
                with self.frame_lock:
                    frame = self.latest_frame
                panel_size = self._panel_size()
                cv2.imshow(self.title, render_canvas(frame, panel_size))
                self._canvas_size = panel_size

                if self.status != shown_status:
                    cv2.setWindowTitle(self.title, f"{self.title} - {self.status}")
                    shown_status = self.status

                cv2.waitKey(wait_ms)
                if cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1:
                    self.active = False
                    break
        finally:
            self.close()

    def close(self):
        self.running = False
        self.active = False
        if self.keyboard_listener:
            self.keyboard_listener.stop()
            self.keyboard_listener = None
        self.client.disconnect()
        cv2.destroyAllWindows()
