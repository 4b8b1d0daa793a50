"""
Per-tick input handling.

Input is polled, not subscribed to: once per tick the app takes a snapshot
of what is currently held down (InputState) and apply_input() turns it
into viewport transitions. Held keys and buttons act on every tick they
stay down. Only reset, quit, fullscreen, debug and screenshot are
edge-triggered, true on the single tick their key went down.
"""

from dataclasses import dataclass

from .viewport import PanDirection


@dataclass(frozen=True)
class InputState:
    """Snapshot of the input devices for one control tick."""

    cursor: tuple = (0, 0)

    # Level-triggered (held)
    left_button: bool = False
    right_button: bool = False
    pan_left: bool = False
    pan_right: bool = False
    pan_up: bool = False
    pan_down: bool = False
    more_iterations: bool = False
    fewer_iterations: bool = False

    # Wheel movement accumulated during this tick, positive = away from user
    scroll: float = 0.0

    # Edge-triggered
    reset: bool = False
    quit: bool = False
    toggle_fullscreen: bool = False
    toggle_debug: bool = False
    screenshot: bool = False


def _scroll_zoom(controller, state, scroll_zoom):
    zoom_in = state.scroll > 0
    if scroll_zoom == 'cursor':
        point = controller.cursor_location(*state.cursor)
        if zoom_in:
            controller.zoom_toward(point)
        else:
            controller.zoom_away_from(point)
    elif scroll_zoom == 'center':
        controller.zoom_about_center(zoom_in)
    elif zoom_in:
        controller.zoom_in()
    else:
        controller.zoom_out()


def apply_input(controller, state, scroll_zoom='anchor'):
    """
    Apply one tick of input to a ViewportController.

    Args:
        controller: The ViewportController to drive
        state: InputState for this tick
        scroll_zoom: What the wheel zooms around:
            'anchor' - the top-left corner (plain zoom_in/zoom_out)
            'cursor' - the point under the cursor
            'center' - the center of the view
    """
    # Click to zoom in on the cursor
    if state.left_button:
        controller.zoom_toward(controller.cursor_location(*state.cursor))

    if state.pan_left:
        controller.pan(PanDirection.LEFT)
    if state.pan_right:
        controller.pan(PanDirection.RIGHT)
    if state.pan_up:
        controller.pan(PanDirection.UP)
    if state.pan_down:
        controller.pan(PanDirection.DOWN)

    if state.more_iterations:
        controller.increase_max_iterations()
    if state.fewer_iterations:
        controller.decrease_max_iterations()

    if state.scroll:
        _scroll_zoom(controller, state, scroll_zoom)

    if state.right_button:
        controller.zoom_out()

    if state.reset:
        controller.reset()
