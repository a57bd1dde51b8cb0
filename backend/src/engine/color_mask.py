"""Color mask compositor: restricts sorted pixels to an HSL box.

A sorted pixel is kept where its own color falls inside the box around the
target color. Everywhere else the original pixel at the same index is put
back. The restore is by position, not by value.
"""

from dataclasses import dataclass

import numpy as np

from errors import DimensionMismatch
from pixels.color import hex_to_pixel, rgb_to_hsl, rgb_to_hsl_array


@dataclass(frozen=True)
class MaskRange:
    color: str
    variation: float
    rgb: tuple[int, int, int]
    hsl: tuple[float, float, float]
    min: tuple[float, float, float]
    max: tuple[float, float, float]


def _clamp01(v: float) -> float:
    return min(1.0, max(0.0, v))


def mask_range(color: str, variation: float) -> MaskRange:
    """HSL acceptance box: target ± variation/100 per channel, clamped to [0, 1].

    Raises:
        InvalidColorFormat: If color is not a valid hex string.
    """
    rgb = hex_to_pixel(color)
    hsl = rgb_to_hsl(*rgb)
    v = variation / 100
    return MaskRange(
        color=color,
        variation=variation,
        rgb=rgb,
        hsl=hsl,
        min=tuple(_clamp01(c - v) for c in hsl),
        max=tuple(_clamp01(c + v) for c in hsl),
    )


def in_range(pixel, mr: MaskRange) -> bool:
    """True if every HSL channel of the pixel lies in [min, max]."""
    hsl = rgb_to_hsl(*pixel[:3])
    return all(lo <= c <= hi for c, lo, hi in zip(hsl, mr.min, mr.max))


def in_range_mask(frame: np.ndarray, mr: MaskRange) -> np.ndarray:
    """Boolean (H, W) map of pixels inside the box."""
    hsl = rgb_to_hsl_array(frame[..., :3])
    lo = np.asarray(mr.min)
    hi = np.asarray(mr.max)
    return np.all((hsl >= lo) & (hsl <= hi), axis=-1)


def apply_color_mask(
    sorted_frame: np.ndarray, original_frame: np.ndarray, mr: MaskRange
) -> np.ndarray:
    """Keep in-range sorted pixels, restore the original elsewhere.

    Both frames must share a shape. Returns a new (H, W, 4) uint8 array.
    """
    if sorted_frame.shape != original_frame.shape:
        raise DimensionMismatch(
            f"Sorted shape {sorted_frame.shape} != original {original_frame.shape}"
        )
    keep = in_range_mask(sorted_frame, mr)
    return np.where(keep[..., np.newaxis], sorted_frame, original_frame)
