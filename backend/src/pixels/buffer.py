"""Pixel buffer: immutable RGBA grid addressed by (x, y).

Backed by a read-only (H, W, 4) uint8 array. Every constructor copies its
input, so two buffers never share storage.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from errors import DimensionMismatch

Pixel = tuple[int, int, int, int]

CHANNELS = 4


def _clamp_to_uint8(data) -> np.ndarray:
    """Clamp arbitrary numeric samples into [0, 255] (no wraparound)."""
    arr = np.asarray(data)
    if arr.dtype == np.uint8:
        return arr.copy()
    arr = np.rint(np.nan_to_num(arr.astype(np.float64)))
    return np.clip(arr, 0, 255).astype(np.uint8)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    width: int
    height: int
    frame: np.ndarray

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise DimensionMismatch(
                f"Negative dimensions {self.width}x{self.height}"
            )
        frame = _clamp_to_uint8(self.frame)
        expected = (self.height, self.width, CHANNELS)
        if frame.shape != expected:
            raise DimensionMismatch(
                f"Frame shape {frame.shape}, expected {expected}"
            )
        frame.setflags(write=False)
        object.__setattr__(self, "frame", frame)

    @classmethod
    def from_frame(cls, frame: np.ndarray) -> "PixelBuffer":
        """Wrap an (H, W, 4) array. (H, W, 3) input gets an opaque alpha channel."""
        arr = np.asarray(frame)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise DimensionMismatch(
                f"Expected (H, W, 3) or (H, W, 4) frame, got {arr.shape}"
            )
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=arr.dtype)
            arr = np.concatenate([arr, alpha], axis=2)
        h, w = arr.shape[:2]
        return cls(w, h, arr)

    @classmethod
    def from_flat(cls, data: Iterable[float], width: int, height: int) -> "PixelBuffer":
        """Build from a flat RGBA sample sequence (canvas image-data layout)."""
        arr = data if isinstance(data, np.ndarray) else np.asarray(list(data))
        expected = width * height * CHANNELS
        if arr.ndim != 1 or arr.size != expected:
            raise DimensionMismatch(
                f"Flat buffer has {arr.size} samples, expected {expected} "
                f"for {width}x{height}"
            )
        return cls(width, height, arr.reshape(height, width, CHANNELS))

    @classmethod
    def from_pixels(
        cls, pixels: Sequence[Sequence[float]], width: int, height: int
    ) -> "PixelBuffer":
        """Build from a row-major sequence of (r, g, b, a) pixels."""
        if len(pixels) != width * height:
            raise DimensionMismatch(
                f"Got {len(pixels)} pixels, expected {width * height} "
                f"for {width}x{height}"
            )
        if len(pixels) == 0:
            return cls(width, height, np.zeros((height, width, CHANNELS), np.uint8))
        arr = np.asarray(pixels)
        if arr.ndim != 2 or arr.shape[1] != CHANNELS:
            raise DimensionMismatch(f"Pixels must have {CHANNELS} channels")
        return cls(width, height, arr.reshape(height, width, CHANNELS))

    @property
    def size(self) -> int:
        return self.width * self.height

    def index(self, x: int, y: int) -> int:
        """Row-major pixel index of (x, y)."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"({x}, {y}) outside {self.width}x{self.height}")
        return y * self.width + x

    def pixel(self, x: int, y: int) -> Pixel:
        self.index(x, y)
        return tuple(int(c) for c in self.frame[y, x])

    def pixels(self) -> list[Pixel]:
        return [tuple(int(c) for c in p) for p in self.frame.reshape(-1, CHANNELS)]

    def row(self, y: int) -> np.ndarray:
        return self.frame[y].copy()

    def column(self, x: int) -> np.ndarray:
        return self.frame[:, x].copy()

    def to_flat(self) -> np.ndarray:
        return self.frame.reshape(-1).copy()

    def same_pixels(self, other: "PixelBuffer") -> bool:
        return (
            self.width == other.width
            and self.height == other.height
            and np.array_equal(self.frame, other.frame)
        )
