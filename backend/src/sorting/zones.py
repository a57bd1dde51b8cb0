"""Zone segmentation: split a line into runs of similar brightness.

Similarity is always measured with the sum reducer, whatever key the line
is later sorted by. Two neighbours stay in one zone while
|sum(prev) - sum(current)| <= threshold.
"""

import numpy as np

from sorting.keys import reduce_sum


def zone_starts(line: np.ndarray, threshold: float, reject_alpha: bool = True) -> np.ndarray:
    """Start index of every zone in the line. Empty line -> empty array.

    The first zone always starts at 0, so a non-empty line yields at least
    one zone.
    """
    n = len(line)
    if n == 0:
        return np.zeros(0, dtype=np.intp)
    sums = reduce_sum(line, reject_alpha)
    diff = sums[:-1] - sums[1:]
    breaks = np.flatnonzero((diff < -threshold) | (diff > threshold)) + 1
    return np.concatenate([[0], breaks]).astype(np.intp)


def segment(line: np.ndarray, threshold: float, reject_alpha: bool = True) -> list[np.ndarray]:
    """Partition a line into zones. Concatenating the zones gives back the line."""
    line = np.asarray(line)
    starts = zone_starts(line, threshold, reject_alpha)
    if len(starts) == 0:
        return []
    return [zone.copy() for zone in np.split(line, starts[1:])]
