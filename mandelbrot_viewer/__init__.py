"""
Mandelbrot Set Viewer Package

An interactive Mandelbrot set explorer using Pygame for display and
Numba for JIT-compiled, multi-threaded computation.

Quick Start:
    from mandelbrot_viewer import run
    run()

Or from command line:
    python -m mandelbrot_viewer

Package Structure:
    - viewport.py: Viewport state, pixel -> plane mapping, pan/zoom transitions
    - compute.py: JIT-compiled escape-time and coloring kernels
    - colormaps.py: Palette definitions (Plan9, hot, ocean, forest, etc.)
    - renderer.py: Concurrent full-frame rendering with a frame cache
    - controls.py: Per-tick input snapshot -> viewport transitions
    - config.py: Startup settings and validation
    - app.py: Main application and control loop
    - cli.py: Command line options

Controls:
    - Left mouse (hold): Zoom in toward the cursor
    - Right mouse (hold): Zoom out
    - Scroll: Zoom in/out
    - Arrow keys: Pan
    - = / -: More / fewer iterations
    - Space: Reset to default view
    - Enter: Toggle fullscreen
    - D: Toggle debug overlay
    - S: Save screenshot
    - Q / ESC: Quit
"""

from .colormaps import PALETTES, Palette, get_palette, list_palette_names
from .compute import EscapeResult, evaluate
from .config import ConfigError, ViewerConfig, load_settings
from .controls import InputState, apply_input
from .renderer import FrameRenderer
from .viewport import (
    ComplexPoint,
    PanDirection,
    Viewport,
    ViewportController,
    interpolate,
    to_complex,
)


def run(config=None):
    """Open the viewer window (see app.run)."""
    from .app import run as _run
    _run(config)


__version__ = "1.0.0"
__all__ = [
    "run",
    "ComplexPoint",
    "ConfigError",
    "EscapeResult",
    "FrameRenderer",
    "InputState",
    "PALETTES",
    "Palette",
    "PanDirection",
    "Viewport",
    "ViewerConfig",
    "ViewportController",
    "apply_input",
    "evaluate",
    "get_palette",
    "interpolate",
    "list_palette_names",
    "load_settings",
    "to_complex",
]
