import pytest

from mandelbrot_viewer.config import ConfigError, ViewerConfig
from mandelbrot_viewer.viewport import (
    ComplexPoint,
    PanDirection,
    Viewport,
    ViewportController,
    interpolate,
    to_complex,
)


@pytest.fixture
def config():
    return ViewerConfig().validate()


@pytest.fixture
def controller(config):
    return ViewportController(config)


def test_interpolate():
    assert interpolate(0.0, 10.0, 0.25) == 2.5
    assert interpolate(3.0, 7.0, 0.0) == 3.0
    assert interpolate(3.0, 7.0, 1.0) == 7.0


def test_default_viewport(controller):
    v = controller.viewport
    assert v.r_min == -2.0
    assert v.i_min == -1.0
    assert v.zoom == pytest.approx(200.0)
    assert v.r_max == pytest.approx(1.0)
    # Square pixels: vertical extent follows from the scale
    assert v.i_max == pytest.approx(1.0)
    assert v.max_iterations == 256
    assert controller.dirty


def test_corner_pixels_map_to_bounds(config, controller):
    v = controller.viewport
    assert to_complex(0, 0, v) == ComplexPoint(v.r_min, v.i_min)

    far = to_complex(config.width - 1, config.height - 1, v)
    pixel = 1.0 / v.zoom
    assert far.re == pytest.approx(v.r_max - pixel)
    assert far.im == pytest.approx(v.i_max - pixel)


@pytest.mark.parametrize("kwargs", [
    dict(r_min=0.0, r_max=0.0, i_min=0.0, i_max=1.0, zoom=1.0, max_iterations=1),
    dict(r_min=1.0, r_max=0.0, i_min=0.0, i_max=1.0, zoom=1.0, max_iterations=1),
    dict(r_min=0.0, r_max=1.0, i_min=1.0, i_max=1.0, zoom=1.0, max_iterations=1),
    dict(r_min=0.0, r_max=1.0, i_min=0.0, i_max=1.0, zoom=0.0, max_iterations=1),
    dict(r_min=0.0, r_max=1.0, i_min=0.0, i_max=1.0, zoom=-2.0, max_iterations=1),
    dict(r_min=0.0, r_max=1.0, i_min=0.0, i_max=1.0, zoom=1.0, max_iterations=0),
    dict(r_min=float('nan'), r_max=1.0, i_min=0.0, i_max=1.0, zoom=1.0, max_iterations=1),
])
def test_viewport_rejects_degenerate_state(kwargs):
    with pytest.raises(ConfigError):
        Viewport(**kwargs)


def test_viewport_is_immutable(controller):
    with pytest.raises(AttributeError):
        controller.viewport.zoom = 5.0


def test_zoom_in_then_out_restores_zoom(controller):
    start = controller.viewport.zoom
    controller.zoom_in()
    assert controller.viewport.zoom == pytest.approx(start * 1.1)
    controller.zoom_out()
    assert controller.viewport.zoom == pytest.approx(start)


def test_zoom_keeps_corner_and_derives_far_bound(config, controller):
    controller.zoom_in()
    v = controller.viewport
    assert v.r_min == -2.0
    assert v.r_max == pytest.approx(v.r_min + config.width / v.zoom)
    assert v.i_max == pytest.approx(v.i_min + config.height / v.zoom)


@pytest.mark.parametrize("direction, d_re, d_im", [
    (PanDirection.LEFT, -1, 0),
    (PanDirection.RIGHT, 1, 0),
    (PanDirection.UP, 0, -1),
    (PanDirection.DOWN, 0, 1),
])
def test_pan_moves_both_bounds(controller, direction, d_re, d_im):
    before = controller.viewport
    distance = 10.0 / before.zoom
    controller.pan(direction)
    after = controller.viewport

    assert after.r_min == pytest.approx(before.r_min + d_re * distance)
    assert after.r_max == pytest.approx(before.r_max + d_re * distance)
    assert after.i_min == pytest.approx(before.i_min + d_im * distance)
    assert after.i_max == pytest.approx(before.i_max + d_im * distance)
    assert after.zoom == before.zoom


def test_pan_distance_shrinks_with_zoom(controller):
    controller.zoom_in()
    before = controller.viewport
    controller.pan(PanDirection.RIGHT)
    assert controller.viewport.r_min - before.r_min == pytest.approx(10.0 / before.zoom)


def test_pan_rejects_unknown_direction(controller):
    with pytest.raises(ValueError):
        controller.pan('sideways')


@pytest.mark.parametrize("pixel", [(0, 0), (150, 100), (599, 399), (300, 200)])
def test_zoom_toward_keeps_cursor_point_fixed(controller, pixel):
    point = controller.cursor_location(*pixel)
    start_zoom = controller.viewport.zoom

    controller.zoom_toward(point)

    after = controller.cursor_location(*pixel)
    assert after.re == pytest.approx(point.re)
    assert after.im == pytest.approx(point.im)
    assert controller.viewport.zoom == pytest.approx(start_zoom * 1.1)


def test_zoom_toward_interpolates_all_bounds(controller):
    before = controller.viewport
    point = controller.cursor_location(150, 100)
    controller.zoom_toward(point)
    after = controller.viewport

    t = 1.0 / 1.1
    assert after.r_min == pytest.approx(interpolate(point.re, before.r_min, t))
    assert after.r_max == pytest.approx(interpolate(point.re, before.r_max, t))
    assert after.i_min == pytest.approx(interpolate(point.im, before.i_min, t))
    assert after.i_max == pytest.approx(interpolate(point.im, before.i_max, t))


def test_zoom_away_from_undoes_zoom_toward(controller):
    before = controller.viewport
    point = controller.cursor_location(420, 77)
    controller.zoom_toward(point)
    controller.zoom_away_from(point)
    after = controller.viewport

    for name in ('r_min', 'r_max', 'i_min', 'i_max', 'zoom'):
        assert getattr(after, name) == pytest.approx(getattr(before, name))


@pytest.mark.parametrize("zoom_in", [True, False])
def test_zoom_about_center_keeps_center(controller, zoom_in):
    center = controller.viewport.center
    controller.zoom_about_center(zoom_in)
    after = controller.viewport.center
    assert after.re == pytest.approx(center.re)
    assert after.im == pytest.approx(center.im)


def test_iteration_steps(controller):
    controller.increase_max_iterations()
    assert controller.viewport.max_iterations == 261
    controller.decrease_max_iterations()
    controller.decrease_max_iterations()
    assert controller.viewport.max_iterations == 251


def test_iterations_never_drop_below_one_step():
    controller = ViewportController(ViewerConfig(max_iterations=12).validate())
    controller.decrease_max_iterations()
    assert controller.viewport.max_iterations == 7
    controller.decrease_max_iterations()
    assert controller.viewport.max_iterations == 5
    controller.decrease_max_iterations()
    assert controller.viewport.max_iterations == 5


def test_every_transition_marks_dirty(controller):
    point = ComplexPoint(-0.5, 0.0)
    transitions = [
        controller.zoom_in,
        controller.zoom_out,
        lambda: controller.pan(PanDirection.UP),
        lambda: controller.zoom_toward(point),
        lambda: controller.zoom_away_from(point),
        controller.zoom_about_center,
        controller.increase_max_iterations,
        controller.decrease_max_iterations,
        controller.reset,
    ]
    for transition in transitions:
        controller.mark_clean()
        assert not controller.dirty
        transition()
        assert controller.dirty


def test_reset_restores_exact_default(controller):
    default = controller.viewport
    controller.zoom_toward(controller.cursor_location(123, 45))
    controller.pan(PanDirection.LEFT)
    controller.pan(PanDirection.DOWN)
    controller.zoom_out()
    controller.increase_max_iterations()
    controller.zoom_about_center(False)

    controller.reset()

    assert controller.viewport == default
    controller.reset()
    assert controller.viewport == default
