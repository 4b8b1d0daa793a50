"""
Startup configuration for the Mandelbrot viewer.

Settings come from three places, later ones winning:
- the defaults on ViewerConfig
- an optional settings.json file
- command line overrides

Everything is validated once, before the window opens, so a bad value
never reaches the render pass.
"""

import json
import logging
import math
import os
from dataclasses import dataclass, fields
from typing import Optional

from .colormaps import DEFAULT_PALETTE, PALETTES


logger = logging.getLogger(__name__)

COLORING_MODES = ('smooth', 'discrete')
SCROLL_ZOOM_MODES = ('anchor', 'cursor', 'center')
RENDER_STRATEGIES = ('threads', 'parallel', 'serial')


class ConfigError(ValueError):
    """Raised when a configuration value would produce a degenerate view."""


def load_settings(path):
    """
    Load settings from a JSON file.

    A missing, unreadable or unparsable file is not fatal: a warning is logged and an
    empty dict is returned so the defaults apply.

    Args:
        path: Path to the JSON settings file

    Returns:
        dict of setting name -> value

    Raises:
        ConfigError if the file holds something other than a JSON object
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            settings = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Could not load settings from %s: %s", path, e)
        return {}
    if not isinstance(settings, dict):
        raise ConfigError(
            f"settings file {path} must contain a JSON object, "
            f"got {type(settings).__name__}"
        )
    return settings


@dataclass
class ViewerConfig:
    """All startup parameters of the viewer. Immutable once the app starts."""

    width: int = 600
    height: int = 400

    # Default view bounds in the complex plane
    r_min: float = -2.0
    r_max: float = 1.0
    i_min: float = -1.0
    i_max: float = 1.8

    max_iterations: int = 256
    zoom_factor: float = 1.1
    pan_factor: float = 10.0  # plane units per step at zoom == 1
    iteration_step: int = 5

    palette: str = DEFAULT_PALETTE
    coloring: str = 'smooth'
    scroll_zoom: str = 'anchor'

    strategy: str = 'threads'
    workers: Optional[int] = None  # None = one per CPU
    band_height: int = 16  # rows per unit of work

    fps: int = 60
    show_debug: bool = True
    screenshot_dir: str = '.'

    @classmethod
    def from_settings(cls, settings=None, **overrides):
        """
        Build a validated config from a settings dict plus overrides.

        Overrides that are None are ignored, so argparse results can be
        passed straight through.

        Raises:
            ConfigError on unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        values = dict(settings or {})
        values.update({k: v for k, v in overrides.items() if v is not None})

        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"unknown setting(s): {', '.join(unknown)}")

        config = cls(**values)
        config.validate()
        if 'i_max' in values:
            config._warn_derived_i_max()
        return config

    def _warn_derived_i_max(self):
        # The vertical extent follows from the zoom, so a configured i_max
        # that disagrees with it has no effect on the view.
        derived = self.i_min + self.height / self.initial_zoom
        if not math.isclose(self.i_max, derived, rel_tol=1e-9, abs_tol=1e-12):
            logger.warning(
                "i_max %s is ignored: with width %d, height %d and r span %s "
                "the view ends at i_max %s",
                self.i_max, self.width, self.height, self.r_max - self.r_min, derived
            )

    @property
    def initial_zoom(self):
        """Pixels per plane unit at startup, derived from the real-axis span."""
        return self.width / (self.r_max - self.r_min)

    def default_viewport(self):
        """The Viewport restored by reset()."""
        from .viewport import Viewport
        return Viewport.anchored(
            self.r_min, self.i_min, self.initial_zoom,
            self.max_iterations, self.width, self.height
        )

    def validate(self):
        """
        Check every value, raising ConfigError on the first bad one.

        Returns:
            self, for chaining
        """
        for name in ('width', 'height', 'max_iterations', 'iteration_step',
                     'band_height', 'fps'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
            if value < 1:
                raise ConfigError(f"{name} must be at least 1, got {value}")

        for name in ('r_min', 'r_max', 'i_min', 'i_max', 'zoom_factor', 'pan_factor'):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigError(f"{name} must be finite, got {value}")

        if self.r_max <= self.r_min:
            raise ConfigError(
                f"r_max ({self.r_max}) must be greater than r_min ({self.r_min})"
            )
        if self.i_max <= self.i_min:
            raise ConfigError(
                f"i_max ({self.i_max}) must be greater than i_min ({self.i_min})"
            )
        if self.zoom_factor <= 1:
            raise ConfigError(f"zoom_factor must be greater than 1, got {self.zoom_factor}")
        if self.pan_factor <= 0:
            raise ConfigError(f"pan_factor must be positive, got {self.pan_factor}")

        if self.palette not in PALETTES:
            raise ConfigError(
                f"unknown palette {self.palette!r}, choose from {', '.join(PALETTES)}"
            )
        if self.coloring not in COLORING_MODES:
            raise ConfigError(
                f"unknown coloring {self.coloring!r}, choose from {', '.join(COLORING_MODES)}"
            )
        if self.scroll_zoom not in SCROLL_ZOOM_MODES:
            raise ConfigError(
                f"unknown scroll_zoom {self.scroll_zoom!r}, "
                f"choose from {', '.join(SCROLL_ZOOM_MODES)}"
            )
        if self.strategy not in RENDER_STRATEGIES:
            raise ConfigError(
                f"unknown strategy {self.strategy!r}, "
                f"choose from {', '.join(RENDER_STRATEGIES)}"
            )
        if self.workers is not None and (
                isinstance(self.workers, bool) or not isinstance(self.workers, int)
                or self.workers < 1):
            raise ConfigError(f"workers must be a positive integer, got {self.workers!r}")

        if not isinstance(self.screenshot_dir, str) or not self.screenshot_dir:
            raise ConfigError("screenshot_dir must be a non-empty path")
        if os.path.exists(self.screenshot_dir) and not os.path.isdir(self.screenshot_dir):
            raise ConfigError(f"screenshot_dir {self.screenshot_dir} is not a directory")
        return self
