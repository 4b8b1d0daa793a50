"""
Frame renderer: turns a Viewport into a flat RGBA pixel buffer.

The FrameRenderer class handles:
- Splitting the frame into bands of rows and computing them concurrently
- Waiting for every band before the buffer is handed out
- Caching the last frame until the viewport controller marks itself dirty
"""

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, wait

import numpy as np

from .compute import COLORING_IDS, render_rows, render_rows_parallel


logger = logging.getLogger(__name__)


class FrameRenderer:
    """
    Renders full frames of the Mandelbrot set.

    Usage:
        with FrameRenderer(600, 400, get_palette('Plan9')) as renderer:
            buffer = renderer.frame(controller)

    Each call to render() is a fan-out/fan-in pass: every band of rows is
    an independent task writing to its own slice of a fresh buffer, and
    render() only returns once all of them have finished. The Viewport is
    immutable, so nothing needs locking.

    Attributes:
        width, height: Frame dimensions in pixels
        palette: Palette used for coloring
        coloring: 'smooth' or 'discrete'
        strategy: 'threads', 'parallel' or 'serial'
        band_height: Rows per task for the 'threads' strategy
    """

    def __init__(self, width, height, palette, coloring='smooth', strategy='threads',
                 workers=None, band_height=16, inside_color=(0, 0, 0),
                 outside_color=(255, 255, 255)):
        """
        Initialize the renderer.

        Args:
            width, height: Frame dimensions in pixels
            palette: A Palette
            coloring: 'smooth' (HCL blending) or 'discrete' (direct lookup)
            strategy: How rows are distributed:
                'threads' - bands of rows on a thread pool (default)
                'parallel' - a single Numba prange kernel
                'serial' - one kernel call on the calling thread
            workers: Thread pool size (None = one per CPU)
            band_height: Rows per band for the 'threads' strategy
            inside_color: Color of points inside the set
            outside_color: Color of values past the end of the palette
        """
        if coloring not in COLORING_IDS:
            raise ValueError(f"unknown coloring {coloring!r}")
        if strategy not in ('threads', 'parallel', 'serial'):
            raise ValueError(f"unknown render strategy {strategy!r}")
        if band_height < 1:
            raise ValueError(f"band_height must be at least 1, got {band_height}")

        self.width = width
        self.height = height
        self.palette = palette
        self.coloring = coloring
        self.strategy = strategy
        self.band_height = band_height
        self.inside_rgb = np.array(inside_color, dtype=np.uint8)
        self.outside_rgb = np.array(outside_color, dtype=np.uint8)
        self._policy = COLORING_IDS[coloring]

        self.workers = workers or os.cpu_count() or 1
        self._executor = None
        if strategy == 'threads':
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix='render'
            )

        # Last completed frame, handed out again while the view is clean
        self.buffer = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """Shut down the worker pool."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def bands(self):
        """Row ranges (start, stop) covering the frame, one per task."""
        return [
            (start, min(start + self.band_height, self.height))
            for start in range(0, self.height, self.band_height)
        ]

    def _kernel_args(self, viewport):
        return (self.width, viewport.r_min, viewport.i_min, viewport.zoom,
                viewport.max_iterations, self._policy, self.palette.rgb,
                self.palette.hcl, self.inside_rgb, self.outside_rgb)

    def render(self, viewport):
        """
        Compute a complete frame for `viewport`.

        Args:
            viewport: The Viewport to draw; it is not read again after
                this call returns

        Returns:
            Read-only flat uint8 array of length 4 * width * height
            (RGBA, row-major, row 0 at the top)
        """
        started = time.perf_counter()
        out = np.empty(4 * self.width * self.height, dtype=np.uint8)
        args = self._kernel_args(viewport)

        if self.strategy == 'threads':
            if self._executor is None:
                raise RuntimeError("renderer has been closed")
            futures = [
                self._executor.submit(render_rows, start, stop, *args, out)
                for start, stop in self.bands()
            ]
            wait(futures)
            for future in futures:
                # Re-raise anything a band failed with
                future.result()
        elif self.strategy == 'parallel':
            render_rows_parallel(self.height, *args, out)
        else:
            render_rows(0, self.height, *args, out)

        out.flags.writeable = False
        logger.debug(
            "Rendered %dx%d frame (max_iterations=%d, zoom=%g) in %.1f ms",
            self.width, self.height, viewport.max_iterations, viewport.zoom,
            (time.perf_counter() - started) * 1000.0
        )
        return out

    def frame(self, controller):
        """
        Current frame for a ViewportController, rendering only when needed.

        The cached buffer is returned as long as the controller is clean.
        After a fresh render the controller's dirty flag is cleared.
        """
        if self.buffer is None or controller.dirty:
            self.buffer = self.render(controller.viewport)
            controller.mark_clean()
        return self.buffer
