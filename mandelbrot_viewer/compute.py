"""
Escape-time and coloring kernels using Numba JIT compilation.

This module contains all the performance-critical functions. They handle:
- Escape-time iteration of z² + c with a smooth (fractional) escape measure
- Palette lookup, either discrete or blended in the HCL color space
- Filling rows of an RGBA frame buffer, serially or with prange

All kernels are compiled with nogil=True so bands of rows can be filled
from several threads at once.
"""

import math
from collections import namedtuple

import numpy as np
from numba import jit, prange


ESCAPE_RADIUS = 2.0
ESCAPE_RADIUS_SQ = ESCAPE_RADIUS * ESCAPE_RADIUS
LOG_2 = math.log(2.0)

# Keeps the fractional escape strictly below the next integer
MAX_FRACTION = 1.0 - 1e-9
MIN_LOG2_MODULUS = 1.0 + 1e-12

# Coloring policies understood by the kernels
COLORING_SMOOTH = 0
COLORING_DISCRETE = 1
COLORING_IDS = {'smooth': COLORING_SMOOTH, 'discrete': COLORING_DISCRETE}

# CIE D65 reference white
WHITE_X = 0.95047
WHITE_Y = 1.00000
WHITE_Z = 1.08883

# Below this chroma a color is treated as grey and its hue is ignored
ACHROMATIC_CHROMA = 0.00015


EscapeResult = namedtuple('EscapeResult', ['iterations', 'smooth'])


@jit(nopython=True, nogil=True, cache=True)
def smooth_escape(n, modulus):
    """
    Continuous escape value in [n, n+1) from the escape count and |z|.

    |z| just above the escape radius makes log2|z| approach 1 and its log
    approach 0, so the argument is floored before taking the log.
    """
    log2_modulus = math.log(modulus) / LOG_2
    if log2_modulus < MIN_LOG2_MODULUS:
        log2_modulus = MIN_LOG2_MODULUS
    fraction = 1.0 - math.log(log2_modulus)
    if fraction < 0.0:
        fraction = 0.0
    elif fraction > MAX_FRACTION:
        fraction = MAX_FRACTION
    return n + fraction


@jit(nopython=True, nogil=True, cache=True)
def escape_time(cr, ci, max_iterations):
    """
    Iterate z <- z² + c from z = 0 until |z| > 2 or the cap is reached.

    Args:
        cr, ci: Real and imaginary parts of c
        max_iterations: Iteration cap

    Returns:
        (iterations, smooth). Points that never escape return
        (max_iterations, float(max_iterations)).
    """
    zr = 0.0
    zi = 0.0
    zr2 = 0.0
    zi2 = 0.0
    n = 0
    while zr2 + zi2 <= ESCAPE_RADIUS_SQ and n < max_iterations:
        zi = 2.0 * zr * zi + ci
        zr = zr2 - zi2 + cr
        zr2 = zr * zr
        zi2 = zi * zi
        n += 1

    if n >= max_iterations:
        return max_iterations, float(max_iterations)
    return n, smooth_escape(n, math.sqrt(zr2 + zi2))


def evaluate(c, max_iterations):
    """
    Escape time of a single point.

    Args:
        c: A complex number or anything with .re/.im (e.g. ComplexPoint)
        max_iterations: Iteration cap, at least 1

    Returns:
        EscapeResult(iterations, smooth)
    """
    if max_iterations < 1:
        raise ValueError(f"max_iterations must be at least 1, got {max_iterations}")
    if isinstance(c, complex):
        cr, ci = c.real, c.imag
    else:
        cr, ci = c.re, c.im
    n, smooth = escape_time(float(cr), float(ci), int(max_iterations))
    return EscapeResult(int(n), float(smooth))


# ============================================================================
# Color space conversion (sRGB <-> CIE L*a*b* <-> HCL)
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def _linearize(v):
    if v <= 0.04045:
        return v / 12.92
    return ((v + 0.055) / 1.055) ** 2.4


@jit(nopython=True, nogil=True, cache=True)
def _delinearize(v):
    if v <= 0.0031308:
        return 12.92 * v
    return 1.055 * v ** (1.0 / 2.4) - 0.055


@jit(nopython=True, nogil=True, cache=True)
def _lab_f(t):
    if t > 216.0 / 24389.0:
        return t ** (1.0 / 3.0)
    return t / 3.0 * (29.0 / 6.0) * (29.0 / 6.0) + 4.0 / 29.0


@jit(nopython=True, nogil=True, cache=True)
def _lab_finv(t):
    if t > 6.0 / 29.0:
        return t * t * t
    return 3.0 * (6.0 / 29.0) * (6.0 / 29.0) * (t - 4.0 / 29.0)


@jit(nopython=True, nogil=True, cache=True)
def _to_byte(v):
    if v < 0.0:
        v = 0.0
    elif v > 1.0:
        v = 1.0
    return int(v * 255.0 + 0.5)


@jit(nopython=True, nogil=True, cache=True)
def rgb_to_hcl(r, g, b):
    """
    Convert 8-bit sRGB to HCL (hue in degrees, chroma, lightness in [0, 1]).
    """
    lr = _linearize(r / 255.0)
    lg = _linearize(g / 255.0)
    lb = _linearize(b / 255.0)

    x = 0.4124564 * lr + 0.3575761 * lg + 0.1804375 * lb
    y = 0.2126729 * lr + 0.7151522 * lg + 0.0721750 * lb
    z = 0.0193339 * lr + 0.1191920 * lg + 0.9503041 * lb

    fx = _lab_f(x / WHITE_X)
    fy = _lab_f(y / WHITE_Y)
    fz = _lab_f(z / WHITE_Z)
    l = 1.16 * fy - 0.16
    a = 5.0 * (fx - fy)
    bb = 2.0 * (fy - fz)

    h = math.degrees(math.atan2(bb, a)) % 360.0
    c = math.sqrt(a * a + bb * bb)
    return h, c, l


@jit(nopython=True, nogil=True, cache=True)
def hcl_to_rgb(h, c, l):
    """Convert HCL back to 8-bit sRGB, clamping out-of-gamut channels."""
    hr = math.radians(h)
    a = c * math.cos(hr)
    bb = c * math.sin(hr)

    fy = (l + 0.16) / 1.16
    x = WHITE_X * _lab_finv(fy + a / 5.0)
    y = WHITE_Y * _lab_finv(fy)
    z = WHITE_Z * _lab_finv(fy - bb / 2.0)

    lr = 3.2404542 * x - 1.5371385 * y - 0.4985314 * z
    lg = -0.9692660 * x + 1.8760108 * y + 0.0415560 * z
    lb = 0.0556434 * x - 0.2040259 * y + 1.0572252 * z

    return (_to_byte(_delinearize(lr)),
            _to_byte(_delinearize(lg)),
            _to_byte(_delinearize(lb)))


@jit(nopython=True, nogil=True, cache=True)
def _interp_angle(a0, a1, t):
    # Shortest way around the hue circle
    delta = ((a1 - a0) % 360.0 + 540.0) % 360.0 - 180.0
    return (a0 + t * delta + 360.0) % 360.0


@jit(nopython=True, nogil=True, cache=True)
def blend_hcl(h1, c1, l1, h2, c2, l2, t):
    """Blend two HCL colors by factor t and return 8-bit sRGB."""
    if c1 <= ACHROMATIC_CHROMA and c2 >= ACHROMATIC_CHROMA:
        h1 = h2
    elif c2 <= ACHROMATIC_CHROMA and c1 >= ACHROMATIC_CHROMA:
        h2 = h1
    return hcl_to_rgb(_interp_angle(h1, h2, t), c1 + t * (c2 - c1), l1 + t * (l2 - l1))


@jit(nopython=True, cache=True)
def palette_to_hcl(rgb):
    """
    Precompute HCL coordinates for every palette entry.

    Args:
        rgb: Nx3 array of uint8 colors

    Returns:
        Nx3 float64 array of (hue, chroma, lightness)
    """
    n = rgb.shape[0]
    out = np.empty((n, 3), dtype=np.float64)
    for i in range(n):
        h, c, l = rgb_to_hcl(rgb[i, 0], rgb[i, 1], rgb[i, 2])
        out[i, 0] = h
        out[i, 1] = c
        out[i, 2] = l
    return out


# ============================================================================
# Escape value -> color
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def color_of(value, policy, palette_rgb, palette_hcl, inside_rgb, outside_rgb):
    """
    Map an escape value to an RGB color. Defined for every float input.

    Args:
        value: Escape value (usually the smooth escape measure)
        policy: COLORING_SMOOTH or COLORING_DISCRETE
        palette_rgb: Nx3 uint8 palette
        palette_hcl: Nx3 float64 HCL coordinates of palette_rgb
        inside_rgb, outside_rgb: Colors for values below / above the
            palette range (discrete policy only)

    Returns:
        (r, g, b) ints in [0, 255]
    """
    n = palette_rgb.shape[0]

    if policy == COLORING_DISCRETE:
        if math.isnan(value) or value <= 0.0:
            return int(inside_rgb[0]), int(inside_rgb[1]), int(inside_rgb[2])
        if value > n - 1:
            return int(outside_rgb[0]), int(outside_rgb[1]), int(outside_rgb[2])
        i = int(value)
        return int(palette_rgb[i, 0]), int(palette_rgb[i, 1]), int(palette_rgb[i, 2])

    if not math.isfinite(value):
        return int(palette_rgb[0, 0]), int(palette_rgb[0, 1]), int(palette_rgb[0, 2])

    # Float modulo keeps huge values in range where an int cast would overflow
    t = value % 1.0
    if t >= 1.0:
        t = 0.0
    i = int((value - t) % n)
    if i >= n:
        i -= n
    if t == 0.0:
        return int(palette_rgb[i, 0]), int(palette_rgb[i, 1]), int(palette_rgb[i, 2])
    j = i + 1
    if j == n:
        j = 0
    return blend_hcl(palette_hcl[i, 0], palette_hcl[i, 1], palette_hcl[i, 2],
                     palette_hcl[j, 0], palette_hcl[j, 1], palette_hcl[j, 2], t)


# ============================================================================
# Frame kernels
# ============================================================================

@jit(nopython=True, nogil=True, cache=True)
def _render_row(y, width, r_min, i_min, zoom, max_iterations, policy,
                palette_rgb, palette_hcl, inside_rgb, outside_rgb, out):
    ci = y / zoom + i_min
    offset = 4 * y * width
    for x in range(width):
        cr = x / zoom + r_min
        n, smooth = escape_time(cr, ci, max_iterations)
        if n >= max_iterations:
            r = int(inside_rgb[0])
            g = int(inside_rgb[1])
            b = int(inside_rgb[2])
        else:
            r, g, b = color_of(smooth, policy, palette_rgb, palette_hcl,
                               inside_rgb, outside_rgb)
        k = offset + 4 * x
        out[k] = r
        out[k + 1] = g
        out[k + 2] = b
        out[k + 3] = 255


@jit(nopython=True, nogil=True, cache=True)
def render_rows(row_start, row_stop, width, r_min, i_min, zoom, max_iterations,
                policy, palette_rgb, palette_hcl, inside_rgb, outside_rgb, out):
    """
    Fill rows [row_start, row_stop) of a flat RGBA buffer.

    Only the bytes of those rows are written, so disjoint row ranges can
    be filled concurrently from different threads.

    Args:
        row_start, row_stop: Row range to compute
        width: Frame width in pixels
        r_min, i_min, zoom: Viewport corner and scale
        max_iterations: Iteration cap
        policy: COLORING_SMOOTH or COLORING_DISCRETE
        palette_rgb, palette_hcl: Palette arrays
        inside_rgb, outside_rgb: uint8 colors for the set / out-of-range values
        out: Flat uint8 buffer of length 4 * width * height (modified in place)
    """
    for y in range(row_start, row_stop):
        _render_row(y, width, r_min, i_min, zoom, max_iterations, policy,
                    palette_rgb, palette_hcl, inside_rgb, outside_rgb, out)


@jit(nopython=True, parallel=True, cache=True)
def render_rows_parallel(height, width, r_min, i_min, zoom, max_iterations,
                         policy, palette_rgb, palette_hcl, inside_rgb, outside_rgb, out):
    """Fill a whole frame, one prange iteration per row."""
    for y in prange(height):
        _render_row(y, width, r_min, i_min, zoom, max_iterations, policy,
                    palette_rgb, palette_hcl, inside_rgb, outside_rgb, out)


def warmup_jit(palette):
    """
    Warm up JIT compilation with a tiny frame.

    Call this once at startup to pre-compile the Numba functions,
    avoiding a delay on first actual use.

    Args:
        palette: A Palette to compile the color kernels against
    """
    dummy = np.zeros(4 * 4 * 4, dtype=np.uint8)
    black = np.zeros(3, dtype=np.uint8)
    for policy in (COLORING_SMOOTH, COLORING_DISCRETE):
        render_rows(0, 4, 4, -2.0, -1.0, 2.0, 10, policy,
                    palette.rgb, palette.hcl, black, black, dummy)
        render_rows_parallel(4, 4, -2.0, -1.0, 2.0, 10, policy,
                             palette.rgb, palette.hcl, black, black, dummy)
