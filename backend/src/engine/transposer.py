"""Axis transposer: runs a line sorter over every row or column of a frame.

Columns are handled by transposing to a contiguous (W, H, 4) work array,
sorting its rows, and transposing back. Each line reads only its own source
row and writes only its own destination row, so lines can be spread over a
thread pool without locking. "both" is a column pass followed by a row pass,
with the second pass starting only after the first has fully returned.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import numpy as np

from engine.options import Direction
from errors import DimensionMismatch

logger = logging.getLogger(__name__)

# (line, line_index) -> sorted line
LineFn = Callable[[np.ndarray, int], np.ndarray]


def _check_frame(frame: np.ndarray):
    if frame.ndim != 3:
        raise DimensionMismatch(f"Expected (H, W, C) frame, got shape {frame.shape}")


def _sort_lines(work: np.ndarray, line_fn: LineFn, workers: int, axis: str) -> np.ndarray:
    """Sort every row of work into a new array of the same shape."""
    n_lines, length = work.shape[:2]
    out = np.empty_like(work)

    def _task(i: int):
        line = line_fn(work[i], i)
        if line.shape != work[i].shape:
            raise DimensionMismatch(
                f"{axis} {i}: sorted line shape {line.shape}, "
                f"expected {work[i].shape} (length {length})"
            )
        out[i] = line

    if workers <= 1 or n_lines < 2:
        for i in range(n_lines):
            _task(i)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            # list() drains the iterator so worker exceptions propagate
            list(pool.map(_task, range(n_lines)))
    return out


def sort_rows(frame: np.ndarray, line_fn: LineFn, workers: int = 1) -> np.ndarray:
    """Sort each row independently. Returns a new frame."""
    _check_frame(frame)
    return _sort_lines(frame, line_fn, workers, "row")


def sort_cols(frame: np.ndarray, line_fn: LineFn, workers: int = 1) -> np.ndarray:
    """Sort each column independently. Returns a new row-major frame."""
    _check_frame(frame)
    work = np.ascontiguousarray(frame.transpose(1, 0, 2))
    sorted_work = _sort_lines(work, line_fn, workers, "column")
    return np.ascontiguousarray(sorted_work.transpose(1, 0, 2))


def sort_both(
    frame: np.ndarray, col_fn: LineFn, row_fn: LineFn, workers: int = 1
) -> np.ndarray:
    """Columns first, then rows over the column-sorted result."""
    vertical = sort_cols(frame, col_fn, workers)
    return sort_rows(vertical, row_fn, workers)


def apply_direction(
    frame: np.ndarray,
    direction: Direction,
    row_fn: LineFn,
    col_fn: LineFn,
    workers: int = 1,
) -> np.ndarray:
    """Dispatch on direction. Output always has the input's shape."""
    if direction is Direction.HORIZONTAL:
        result = sort_rows(frame, row_fn, workers)
    elif direction is Direction.VERTICAL:
        result = sort_cols(frame, col_fn, workers)
    elif direction is Direction.BOTH:
        result = sort_both(frame, col_fn, row_fn, workers)
    else:
        raise ValueError(f"unknown direction: {direction!r}")

    if result.shape != frame.shape:
        raise DimensionMismatch(
            f"{direction.value} pass returned {result.shape}, expected {frame.shape}"
        )
    logger.debug("%s pass over %dx%d frame done", direction.value, frame.shape[1], frame.shape[0])
    return result
