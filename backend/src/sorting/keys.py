"""Reducers and sort keys.

A reducer maps each pixel of an (N, 4) line to one scalar. By default only
the RGB channels are read; reject_alpha=False folds alpha in as well.
"""

import enum
from typing import Callable

import numpy as np

from errors import UnsupportedSortKey

Reducer = Callable[..., np.ndarray]


def _channels(pixels: np.ndarray, reject_alpha: bool) -> np.ndarray:
    pixels = np.asarray(pixels)
    return pixels[..., :3] if reject_alpha else pixels


def reduce_sum(pixels: np.ndarray, reject_alpha: bool = True) -> np.ndarray:
    return _channels(pixels, reject_alpha).astype(np.int64).sum(axis=-1)


def reduce_avg(pixels: np.ndarray, reject_alpha: bool = True) -> np.ndarray:
    chans = _channels(pixels, reject_alpha)
    return chans.astype(np.int64).sum(axis=-1) / chans.shape[-1]


def reduce_mul(pixels: np.ndarray, reject_alpha: bool = True) -> np.ndarray:
    # 255**4 fits comfortably in int64
    return _channels(pixels, reject_alpha).astype(np.int64).prod(axis=-1)


REDUCERS: dict[str, Reducer] = {
    "sum": reduce_sum,
    "avg": reduce_avg,
    "mul": reduce_mul,
}


class SortKey(enum.Enum):
    SUM = "sum"
    AVG = "avg"
    MUL = "mul"
    RANDOM = "random"

    @classmethod
    def parse(cls, name) -> "SortKey":
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).lower())
        except ValueError:
            raise UnsupportedSortKey(
                f"unsupported sort key {name!r}, expected one of "
                f"{[k.value for k in cls]}"
            ) from None

    @property
    def deterministic(self) -> bool:
        return self is not SortKey.RANDOM


def reduce(pixels: np.ndarray, key: SortKey, reject_alpha: bool = True) -> np.ndarray:
    """Apply a deterministic key's reducer."""
    if not key.deterministic:
        raise ValueError("random key has no reducer")
    return REDUCERS[key.value](pixels, reject_alpha)


def sort_keys(
    pixels: np.ndarray,
    key: SortKey,
    *,
    rng: np.random.Generator | None = None,
    reject_alpha: bool = True,
) -> np.ndarray:
    """Per-pixel sort values for a line. Random keys draw one uniform per pixel."""
    if key is SortKey.RANDOM:
        if rng is None:
            rng = np.random.default_rng()
        return rng.random(len(pixels))
    return reduce(pixels, key, reject_alpha)


def compare(
    a, b, key: SortKey = SortKey.SUM, *, rng=None, reject_alpha: bool = True
) -> float:
    """Comparator form of a key: negative when a sorts before b."""
    if key is SortKey.RANDOM:
        if rng is None:
            rng = np.random.default_rng()
        return float(rng.random() - 0.5)
    pair = np.asarray([a, b])
    va, vb = reduce(pair, key, reject_alpha)
    return float(va - vb)


def sort_order(
    pixels: np.ndarray,
    key: SortKey,
    *,
    rng: np.random.Generator | None = None,
    reject_alpha: bool = True,
) -> np.ndarray:
    """Stable ascending permutation of a line under a key."""
    values = sort_keys(pixels, key, rng=rng, reject_alpha=reject_alpha)
    return np.argsort(values, kind="stable")
