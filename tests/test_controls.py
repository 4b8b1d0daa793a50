import math

import pytest

from mandelbrot_viewer.config import ViewerConfig
from mandelbrot_viewer.controls import InputState, apply_input
from mandelbrot_viewer.viewport import ViewportController


@pytest.fixture
def controller():
    c = ViewportController(ViewerConfig().validate())
    c.mark_clean()
    return c


def test_idle_tick_changes_nothing(controller):
    before = controller.viewport
    apply_input(controller, InputState(cursor=(10, 10)))
    assert controller.viewport == before
    assert not controller.dirty


def test_left_button_zooms_toward_cursor(controller):
    point = controller.cursor_location(400, 300)
    zoom = controller.viewport.zoom

    apply_input(controller, InputState(cursor=(400, 300), left_button=True))

    assert controller.viewport.zoom == pytest.approx(zoom * 1.1)
    after = controller.cursor_location(400, 300)
    assert after.re == pytest.approx(point.re)
    assert after.im == pytest.approx(point.im)
    assert controller.dirty


def test_held_button_keeps_zooming_every_tick(controller):
    zoom = controller.viewport.zoom
    state = InputState(cursor=(300, 200), left_button=True)
    for _ in range(3):
        apply_input(controller, state)
    assert controller.viewport.zoom == pytest.approx(zoom * 1.1 ** 3)


def test_right_button_zooms_out(controller):
    zoom = controller.viewport.zoom
    apply_input(controller, InputState(right_button=True))
    assert controller.viewport.zoom == pytest.approx(zoom / 1.1)


def test_pan_keys(controller):
    before = controller.viewport
    step = 10.0 / before.zoom
    apply_input(controller, InputState(pan_right=True, pan_down=True))
    after = controller.viewport
    assert after.r_min == pytest.approx(before.r_min + step)
    assert after.i_min == pytest.approx(before.i_min + step)


def test_opposite_pan_keys_cancel(controller):
    before = controller.viewport
    apply_input(controller, InputState(pan_left=True, pan_right=True,
                                       pan_up=True, pan_down=True))
    assert controller.viewport.r_min == pytest.approx(before.r_min)
    assert controller.viewport.i_min == pytest.approx(before.i_min)


def test_iteration_keys(controller):
    apply_input(controller, InputState(more_iterations=True))
    assert controller.viewport.max_iterations == 261
    apply_input(controller, InputState(fewer_iterations=True))
    assert controller.viewport.max_iterations == 256


def test_scroll_anchor_zooms_about_corner(controller):
    before = controller.viewport
    apply_input(controller, InputState(cursor=(300, 200), scroll=1.0), 'anchor')
    assert controller.viewport.r_min == before.r_min
    assert controller.viewport.i_min == before.i_min
    assert controller.viewport.zoom == pytest.approx(before.zoom * 1.1)

    apply_input(controller, InputState(scroll=-2.0), 'anchor')
    assert controller.viewport.zoom == pytest.approx(before.zoom)


@pytest.mark.parametrize("scroll", [1.0, -1.0])
def test_scroll_cursor_keeps_point_under_cursor(controller, scroll):
    point = controller.cursor_location(100, 350)
    apply_input(controller, InputState(cursor=(100, 350), scroll=scroll), 'cursor')
    after = controller.cursor_location(100, 350)
    assert after.re == pytest.approx(point.re)
    assert after.im == pytest.approx(point.im)


@pytest.mark.parametrize("scroll", [1.0, -1.0])
def test_scroll_center_keeps_center(controller, scroll):
    center = controller.viewport.center
    apply_input(controller, InputState(cursor=(5, 5), scroll=scroll), 'center')
    assert controller.viewport.center.re == pytest.approx(center.re)
    assert controller.viewport.center.im == pytest.approx(center.im)


def test_reset_applies_after_other_input(controller):
    default = controller.default_viewport
    apply_input(controller, InputState(cursor=(50, 50), left_button=True,
                                       pan_left=True, more_iterations=True, reset=True))
    assert controller.viewport == default
    assert controller.dirty


def test_app_level_flags_do_not_touch_viewport(controller):
    before = controller.viewport
    apply_input(controller, InputState(quit=True, toggle_debug=True,
                                       toggle_fullscreen=True, screenshot=True))
    assert controller.viewport == before
    assert not controller.dirty


def assert_valid(viewport):
    assert math.isfinite(viewport.r_max) and math.isfinite(viewport.i_max)
    assert viewport.r_max > viewport.r_min
    assert viewport.i_max > viewport.i_min
    assert viewport.zoom > 0


@pytest.mark.parametrize("state, scroll_zoom", [
    (InputState(cursor=(300, 200), scroll=1.0), 'anchor'),
    (InputState(cursor=(300, 200), scroll=1.0), 'cursor'),
    (InputState(cursor=(300, 200), left_button=True), 'anchor'),
    (InputState(cursor=(17, 389), left_button=True), 'anchor'),
    (InputState(cursor=(300, 200), right_button=True), 'anchor'),
    (InputState(cursor=(300, 200), scroll=-1.0), 'center'),
])
def test_input_held_for_thousands_of_ticks(controller, state, scroll_zoom):
    for _ in range(2000):
        controller.mark_clean()
        apply_input(controller, state, scroll_zoom)
        assert controller.dirty
    assert_valid(controller.viewport)


def test_zoom_in_stops_at_float_resolution(controller):
    for _ in range(2000):
        controller.zoom_in()
    limit = controller.viewport
    assert_valid(limit)

    controller.mark_clean()
    controller.zoom_in()
    assert controller.viewport == limit
    assert controller.dirty

    controller.zoom_out()
    assert controller.viewport.zoom < limit.zoom


def test_zoom_out_stops_before_overflow():
    controller = ViewportController(ViewerConfig(zoom_factor=1e6).validate())
    for _ in range(200):
        apply_input(controller, InputState(cursor=(300, 200), right_button=True))
    assert_valid(controller.viewport)

    controller.reset()
    for _ in range(200):
        apply_input(controller, InputState(cursor=(300, 200), left_button=True))
    assert_valid(controller.viewport)
