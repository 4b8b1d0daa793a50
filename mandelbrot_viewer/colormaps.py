"""
Palette definitions for Mandelbrot visualization.

Each factory returns a numpy array of shape (N, 3) with RGB values
(uint8). Escape values walk through the palette one entry per
iteration and wrap around at the end, so palettes are kept short
(256 entries) for visible color cycling.

To add a new palette:
1. Define a create_colormap_xxx() function that returns the color array
2. Add it to the PALETTES dictionary at the bottom of this file
"""

from functools import lru_cache

import numpy as np

from .compute import COLORING_IDS, color_of, palette_to_hcl


NUM_COLORS = 256


class Palette:
    """
    An immutable color table plus its precomputed HCL coordinates.

    Attributes:
        name: Registry name
        rgb: (N, 3) uint8 array, read-only
        hcl: (N, 3) float64 array of (hue, chroma, lightness), read-only
    """

    def __init__(self, name, colors):
        rgb = np.array(colors, dtype=np.uint8)
        if rgb.ndim != 2 or rgb.shape[1] != 3 or rgb.shape[0] == 0:
            raise ValueError(f"palette {name!r} must be a non-empty Nx3 array, got shape {rgb.shape}")
        hcl = palette_to_hcl(rgb)
        rgb.flags.writeable = False
        hcl.flags.writeable = False
        self.name = name
        self.rgb = rgb
        self.hcl = hcl

    def __len__(self):
        return self.rgb.shape[0]

    def __repr__(self):
        return f"Palette({self.name!r}, {len(self)} colors)"

    def color_of(self, value, coloring='smooth', inside=(0, 0, 0), outside=(255, 255, 255)):
        """
        Color for a single escape value.

        Args:
            value: Escape value (any float)
            coloring: 'smooth' or 'discrete'
            inside, outside: Colors below / above the palette range (discrete)

        Returns:
            (r, g, b, a) tuple of ints
        """
        r, g, b = color_of(
            float(value), COLORING_IDS[coloring], self.rgb, self.hcl,
            np.array(inside, dtype=np.uint8), np.array(outside, dtype=np.uint8)
        )
        return int(r), int(g), int(b), 255


def create_colormap_plan9():
    """
    The Plan 9 256-color table.

    A 4x4x4 RGB cube where every cube color comes in four brightness
    variants; the achromatic column holds 16 greys.
    """
    colors = np.zeros((256, 3), dtype=np.uint8)
    i = 0
    for r in range(4):
        for v in range(4):
            j = v - r
            for g in range(4):
                for b in range(4):
                    den = max(r, g, b)
                    if den == 0:
                        rgb = (0x11 * v, 0x11 * v, 0x11 * v)
                    else:
                        num = 17 * (4 * den + v)
                        rgb = (r * num // den, g * num // den, b * num // den)
                    colors[i + (j & 0x0f)] = rgb
                    j += 1
            i += 16
    return colors


def create_colormap_hot(size=NUM_COLORS):
    """
    Hot colormap: black -> red -> orange -> yellow -> white.

    Classic "fire" look with good contrast. Uses a power curve
    to spend more time in the bright colors (glow effect).
    """
    t = np.linspace(0.0, 1.0, size) ** 0.8
    colors = np.empty((size, 3), dtype=np.uint8)
    colors[:, 0] = 255 * np.clip(t * 2.5, 0, 1)
    colors[:, 1] = 255 * np.clip((t - 0.4) * 2.5, 0, 1)
    colors[:, 2] = 255 * np.clip((t - 0.7) * 3.3, 0, 1)
    return colors


def create_colormap_ocean(size=NUM_COLORS):
    """Ocean colormap: deep blue -> cyan -> white."""
    t = np.linspace(0.0, 1.0, size)
    colors = np.empty((size, 3), dtype=np.uint8)
    colors[:, 0] = 255 * np.clip((t - 0.5) * 2, 0, 1)
    colors[:, 1] = 255 * t
    colors[:, 2] = 50 + 205 * t
    return colors


def create_colormap_forest(size=NUM_COLORS):
    """Forest colormap: dark green -> lime -> yellow."""
    t = np.linspace(0.0, 1.0, size)
    colors = np.empty((size, 3), dtype=np.uint8)
    colors[:, 0] = 255 * np.clip((t - 0.3) * 1.4, 0, 1)
    colors[:, 1] = 80 + 175 * t
    colors[:, 2] = 255 * np.clip((t - 0.7) * 3.3, 0, 1)
    return colors


def create_colormap_purple(size=NUM_COLORS):
    """Purple colormap: deep purple -> magenta -> pink -> white."""
    t = np.linspace(0.0, 1.0, size)
    colors = np.empty((size, 3), dtype=np.uint8)
    colors[:, 0] = 100 + 155 * t
    colors[:, 1] = 255 * np.clip((t - 0.3) * 1.4, 0, 1)
    colors[:, 2] = 80 + 175 * t
    return colors


def create_colormap_rainbow(size=NUM_COLORS):
    """
    Rainbow colormap: cycles through hues.

    Psychedelic, high-contrast look that shows fine detail.
    Cycles through 5 complete hue rotations.
    """
    colors = np.zeros((size, 3), dtype=np.uint8)
    for i in range(size):
        t = i / (size - 1)
        # HSV to RGB with S=1, V=1
        h = (t * 5) % 1.0

        if h < 1/6:
            colors[i] = [255, int(255 * h * 6), 0]
        elif h < 2/6:
            colors[i] = [int(255 * (2/6 - h) * 6), 255, 0]
        elif h < 3/6:
            colors[i] = [0, 255, int(255 * (h - 2/6) * 6)]
        elif h < 4/6:
            colors[i] = [0, int(255 * (4/6 - h) * 6), 255]
        elif h < 5/6:
            colors[i] = [int(255 * (h - 4/6) * 6), 0, 255]
        else:
            colors[i] = [255, 0, int(255 * (1 - h) * 6)]
    return colors


def create_colormap_grayscale(size=NUM_COLORS):
    """Grayscale colormap: black -> white."""
    v = np.linspace(0, 255, size).astype(np.uint8)
    return np.stack([v, v, v], axis=1)


# Registry of all available palettes.
# Keys are display names, values are factory functions.
PALETTES = {
    'Plan9': create_colormap_plan9,
    'Hot': create_colormap_hot,
    'Ocean': create_colormap_ocean,
    'Forest': create_colormap_forest,
    'Purple': create_colormap_purple,
    'Rainbow': create_colormap_rainbow,
    'Grayscale': create_colormap_grayscale,
}

DEFAULT_PALETTE = 'Plan9'


@lru_cache(maxsize=None)
def get_palette(name):
    """
    Get a palette by name. Palettes are built once per process.

    Args:
        name: Key from PALETTES dictionary

    Returns:
        Palette

    Raises:
        KeyError if name not found
    """
    return Palette(name, PALETTES[name]())


def list_palette_names():
    """Get list of available palette names."""
    return list(PALETTES.keys())
