# Mapping between the letterboxed viewer panel and the remote capture region

from typing import NamedTuple, Optional, Tuple


class Letterbox(NamedTuple):
    scaled_width: int
    scaled_height: int
    offset_x: int
    offset_y: int


def letterbox(panel_size, remote_size) -> Letterbox:
    """Scales the remote image uniformly to fit the panel and centres it."""
    panel_width, panel_height = panel_size
    remote_width, remote_height = remote_size
    # scale = min(pw/rw, ph/rh), in integers so floor(dim * scale) is exact
    if panel_width * remote_height <= panel_height * remote_width:
        scaled_width = panel_width
        scaled_height = remote_height * panel_width // remote_width
    else:
        scaled_width = remote_width * panel_height // remote_height
        scaled_height = panel_height
    scaled_width = max(1, scaled_width)
    scaled_height = max(1, scaled_height)
    return Letterbox(
        scaled_width,
        scaled_height,
        (panel_width - scaled_width) // 2,
        (panel_height - scaled_height) // 2,
    )


def map_to_remote(point, panel_size, remote_size: Optional[Tuple[int, int]]) -> Tuple[int, int]:
    """
    Converts a point on the panel to remote screen coordinates.

    Points in the black bars are clamped to the nearest image edge. Without a
    known remote size the point is passed through unchanged.
    """
    x, y = point
    if not remote_size or remote_size[0] <= 0 or remote_size[1] <= 0:
        return x, y
    if panel_size[0] <= 0 or panel_size[1] <= 0:
        return x, y

    box = letterbox(panel_size, remote_size)
    adjusted_x = min(max(x - box.offset_x, 0), box.scaled_width - 1)
    adjusted_y = min(max(y - box.offset_y, 0), box.scaled_height - 1)
    return (
        adjusted_x * remote_size[0] // box.scaled_width,
        adjusted_y * remote_size[1] // box.scaled_height,
    )
