# Input injection into the source host

from pynput.keyboard import Controller as KeyboardController, KeyCode
from pynput.mouse import Controller as MouseController, Button

BUTTONS = {
    1: Button.left,
    2: Button.middle,
    3: Button.right,
}


def button_from_id(button_id):
    """Maps a wire button id to a pynput button; unknown ids fall back to left."""
    return BUTTONS.get(button_id, Button.left)


class InputSink:
    def __init__(self):
        self.keyboard_controller = KeyboardController()
        self.mouse_controller = MouseController()

    def move_to(self, x, y):
        self.mouse_controller.position = (x, y)

    def set_button(self, button_id, pressed):
        button = button_from_id(button_id)
        if pressed:
            self.mouse_controller.press(button)
        else:
            self.mouse_controller.release(button)

    def set_key(self, key_code, down):
        # Key codes on the wire are platform virtual key codes
        key = KeyCode.from_vk(key_code)
        if down:
            self.keyboard_controller.press(key)
        else:
            self.keyboard_controller.release(key)
