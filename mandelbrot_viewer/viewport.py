"""
Viewport state and the transitions that move it around the complex plane.

The scale (`zoom`, pixels per plane unit) and the top-left corner
(`r_min`, `i_min`) are the authoritative state. The far corner
(`r_max`, `i_max`) is re-derived from them on every transition so the
bounds always describe exactly what is on screen.
"""

import enum
import logging
import math
from collections import namedtuple
from dataclasses import dataclass, replace

from .config import ConfigError


logger = logging.getLogger(__name__)

ComplexPoint = namedtuple('ComplexPoint', ['re', 'im'])


class PanDirection(enum.Enum):
    LEFT = 'left'
    RIGHT = 'right'
    UP = 'up'
    DOWN = 'down'


def interpolate(start, end, t):
    """Linear interpolation: t=0 gives start, t=1 gives end."""
    return start + (end - start) * t


@dataclass(frozen=True)
class Viewport:
    """A point-in-time view of the complex plane. Never mutated in place."""

    r_min: float
    r_max: float
    i_min: float
    i_max: float
    zoom: float
    max_iterations: int

    def __post_init__(self):
        for name in ('r_min', 'r_max', 'i_min', 'i_max', 'zoom'):
            if not math.isfinite(getattr(self, name)):
                raise ConfigError(f"viewport {name} must be finite, got {getattr(self, name)}")
        if self.r_max <= self.r_min:
            raise ConfigError(f"viewport r_max ({self.r_max}) must exceed r_min ({self.r_min})")
        if self.i_max <= self.i_min:
            raise ConfigError(f"viewport i_max ({self.i_max}) must exceed i_min ({self.i_min})")
        if self.zoom <= 0:
            raise ConfigError(f"viewport zoom must be positive, got {self.zoom}")
        if self.max_iterations < 1:
            raise ConfigError(
                f"viewport max_iterations must be at least 1, got {self.max_iterations}"
            )

    @classmethod
    def anchored(cls, r_min, i_min, zoom, max_iterations, width, height):
        """Build a viewport from its corner and scale, deriving the far corner."""
        return cls(
            r_min=r_min,
            r_max=r_min + width / zoom,
            i_min=i_min,
            i_max=i_min + height / zoom,
            zoom=zoom,
            max_iterations=max_iterations,
        )

    @property
    def center(self):
        return ComplexPoint((self.r_min + self.r_max) / 2, (self.i_min + self.i_max) / 2)


def to_complex(x, y, viewport):
    """Map pixel (x, y) to its point on the complex plane."""
    return ComplexPoint(x / viewport.zoom + viewport.r_min,
                        y / viewport.zoom + viewport.i_min)


class ViewportController:
    """
    Owns the current Viewport and applies interaction transitions to it.

    Every transition swaps in a new Viewport and sets `dirty`; the frame
    renderer clears the flag once it has drawn the new state.

    Usage:
        controller = ViewportController(config)
        controller.zoom_toward(controller.cursor_location(mx, my))
        if controller.dirty:
            ...
    """

    def __init__(self, config):
        """
        Args:
            config: A validated ViewerConfig
        """
        self.width = config.width
        self.height = config.height
        self.zoom_factor = config.zoom_factor
        self.pan_factor = config.pan_factor
        self.iteration_step = config.iteration_step

        self.default_viewport = config.default_viewport()
        self.viewport = self.default_viewport
        self.dirty = True

    def _update(self, r_min=None, i_min=None, zoom=None, max_iterations=None):
        v = self.viewport
        r_min = v.r_min if r_min is None else r_min
        i_min = v.i_min if i_min is None else i_min
        zoom = v.zoom if zoom is None else zoom
        self.dirty = True
        if not self._representable(r_min, i_min, zoom):
            # Past what a double can resolve: hold the current view.
            logger.debug("Viewport limit reached at zoom %g, ignoring transition", v.zoom)
            return
        self.viewport = Viewport.anchored(
            r_min, i_min, zoom,
            v.max_iterations if max_iterations is None else max_iterations,
            self.width, self.height
        )

    def _representable(self, r_min, i_min, zoom):
        """True if the corner and scale give a finite, non-collapsed view."""
        if not (math.isfinite(r_min) and math.isfinite(i_min)):
            return False
        if not (math.isfinite(zoom) and zoom > 0):
            return False
        r_max = r_min + self.width / zoom
        i_max = i_min + self.height / zoom
        return (math.isfinite(r_max) and math.isfinite(i_max)
                and r_max > r_min and i_max > i_min)

    def mark_clean(self):
        self.dirty = False

    def cursor_location(self, x, y):
        """Plane coordinate under window pixel (x, y)."""
        return to_complex(x, y, self.viewport)

    def zoom_in(self):
        self._update(zoom=self.viewport.zoom * self.zoom_factor)

    def zoom_out(self):
        self._update(zoom=self.viewport.zoom / self.zoom_factor)

    def _zoom_about(self, point, factor):
        # Shrink (or grow) the corner's distance to `point` by the same ratio
        # as the scale change, so `point` stays at the same pixel.
        v = self.viewport
        t = 1.0 / factor
        self._update(
            r_min=interpolate(point.re, v.r_min, t),
            i_min=interpolate(point.im, v.i_min, t),
            zoom=v.zoom * factor,
        )

    def zoom_toward(self, point):
        """Zoom in one step keeping `point` under the cursor."""
        self._zoom_about(point, self.zoom_factor)

    def zoom_away_from(self, point):
        """Zoom out one step keeping `point` under the cursor."""
        self._zoom_about(point, 1.0 / self.zoom_factor)

    def zoom_about_center(self, zoom_in=True):
        factor = self.zoom_factor if zoom_in else 1.0 / self.zoom_factor
        self._zoom_about(self.viewport.center, factor)

    def pan(self, direction):
        """
        Shift the view by pan_factor / zoom plane units.

        Args:
            direction: A PanDirection
        """
        v = self.viewport
        distance = self.pan_factor / v.zoom
        if direction is PanDirection.LEFT:
            self._update(r_min=v.r_min - distance)
        elif direction is PanDirection.RIGHT:
            self._update(r_min=v.r_min + distance)
        elif direction is PanDirection.UP:
            self._update(i_min=v.i_min - distance)
        elif direction is PanDirection.DOWN:
            self._update(i_min=v.i_min + distance)
        else:
            raise ValueError(f"not a pan direction: {direction!r}")

    def increase_max_iterations(self):
        self._update(max_iterations=self.viewport.max_iterations + self.iteration_step)

    def decrease_max_iterations(self):
        """Lower the cap by one step, never below a single step."""
        current = self.viewport.max_iterations
        if current <= self.iteration_step:
            self.dirty = True
            return
        self._update(max_iterations=max(current - self.iteration_step, self.iteration_step))

    def reset(self):
        self.viewport = self.default_viewport
        self.dirty = True
