"""Line sorter: sorts one row or column, whole or zone by zone.

Uses a composite ordering instead of a per-zone Python loop: pixels are
stable-sorted by key, then stable-sorted by zone id, which keeps every zone
in place while ordering its contents. Inversion reverses each zone's slice
of the permutation, so zone boundaries survive an inverted sort.
"""

import numpy as np

from sorting.keys import SortKey, sort_keys
from sorting.zones import zone_starts


def sort_line(
    line: np.ndarray,
    threshold: float,
    key: SortKey = SortKey.SUM,
    zones: bool = True,
    invert: bool = False,
    *,
    rng: np.random.Generator | None = None,
    reject_alpha: bool = True,
) -> np.ndarray:
    """Return a sorted copy of an (N, 4) line.

    Args:
        line:         Pixels in line order.
        threshold:    Zone threshold on the sum reducer. Ignored if zones is False.
        key:          Sort key.
        zones:        Sort zone by zone (True) or the whole line as one run.
        invert:       Descending order, applied per zone.
        rng:          Generator for the random key.
        reject_alpha: Exclude alpha from key and zone reducers.
    """
    line = np.asarray(line)
    n = len(line)
    if n == 0:
        return line.copy()

    values = sort_keys(line, key, rng=rng, reject_alpha=reject_alpha)

    if zones:
        starts = zone_starts(line, threshold, reject_alpha)
    else:
        starts = np.zeros(1, dtype=np.intp)
    lengths = np.diff(np.append(starts, n))
    zone_ids = np.repeat(np.arange(len(starts)), lengths)

    # Key first, then zone id: the second stable pass groups zones without
    # disturbing the key order inside each one.
    order = np.argsort(values, kind="stable")
    order = order[np.argsort(zone_ids[order], kind="stable")]

    if invert:
        zone_start = np.repeat(starts, lengths)
        zone_end = zone_start + np.repeat(lengths, lengths) - 1
        positions = np.arange(n)
        order = order[zone_start + zone_end - positions]

    return line[order]
