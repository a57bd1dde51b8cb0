"""Color conversion: hex parsing and RGB to HSL for the color mask stage."""

import re

import numpy as np

from errors import InvalidColorFormat

_HEX_PAIRS = re.compile(r"^(?:[0-9a-fA-F]{2})+$")


def hex_to_pixel(hex_code: str) -> tuple[int, int, int]:
    """Parse 'rrggbb' (optionally '#'-prefixed, optionally with trailing 'aa').

    Raises:
        InvalidColorFormat: If the string is not 3 or 4 hex digit pairs.
    """
    if not isinstance(hex_code, str):
        raise InvalidColorFormat(
            f"Color must be a hex string, got {type(hex_code).__name__}"
        )
    digits = hex_code[1:] if hex_code.startswith("#") else hex_code
    if not _HEX_PAIRS.match(digits) or len(digits) not in (6, 8):
        raise InvalidColorFormat(f"Invalid hex color: {hex_code!r}")
    r, g, b = (int(digits[i : i + 2], 16) for i in (0, 2, 4))
    return r, g, b


def rgb_to_hsl(r: float, g: float, b: float) -> tuple[float, float, float]:
    """Convert 0-255 RGB to (h, s, l), each in [0, 1].

    Achromatic colors (max == min) get hue = saturation = 0.
    """
    rn, gn, bn = r / 255, g / 255, b / 255
    cmax = max(rn, gn, bn)
    cmin = min(rn, gn, bn)
    lightness = (cmax + cmin) / 2

    if cmax == cmin:
        return 0.0, 0.0, lightness

    delta = cmax - cmin
    if lightness > 0.5:
        sat = delta / (2 - cmax - cmin)
    else:
        sat = delta / (cmax + cmin)

    if cmax == rn:
        hue = (gn - bn) / delta + (6 if gn < bn else 0)
    elif cmax == gn:
        hue = (bn - rn) / delta + 2
    else:
        hue = (rn - gn) / delta + 4
    return hue / 6, sat, lightness


def rgb_to_hsl_array(rgb: np.ndarray) -> np.ndarray:
    """Vectorized rgb_to_hsl over (..., 3) 0-255 values. Returns (..., 3) float64.

    Matches the scalar version exactly, including branch priority
    (red, then green, then blue) when channels tie for the max.
    """
    n = np.asarray(rgb, dtype=np.float64)[..., :3] / 255
    r, g, b = n[..., 0], n[..., 1], n[..., 2]
    cmax = np.maximum(np.maximum(r, g), b)
    cmin = np.minimum(np.minimum(r, g), b)
    lightness = (cmax + cmin) / 2
    delta = cmax - cmin

    chroma = delta > 0
    # Placeholder divisors keep achromatic pixels out of 0/0
    safe_delta = np.where(chroma, delta, 1.0)
    sat_div = np.where(lightness > 0.5, 2 - cmax - cmin, cmax + cmin)
    sat = np.where(chroma, delta / np.where(chroma, sat_div, 1.0), 0.0)

    is_r = chroma & (cmax == r)
    is_g = chroma & ~is_r & (cmax == g)
    is_b = chroma & ~is_r & ~is_g

    hue = np.zeros_like(lightness)
    hue = np.where(is_r, (g - b) / safe_delta + np.where(g < b, 6, 0), hue)
    hue = np.where(is_g, (b - r) / safe_delta + 2, hue)
    hue = np.where(is_b, (r - g) / safe_delta + 4, hue)

    return np.stack([hue / 6, sat, lightness], axis=-1)
