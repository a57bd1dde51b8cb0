"""Sort pipeline: buffer + options in, original/sorted/masked buffers out.

transform() is pure: it never mutates its input and keeps no state between
calls apart from the rolling timing stats below.

Includes conditional breadcrumbs and rolling timing stats per pass.
"""

import logging
import time
from collections import defaultdict, deque
from dataclasses import dataclass

import numpy as np
import sentry_sdk

from engine.color_mask import apply_color_mask
from engine.determinism import derive_seed, fresh_seed, make_rng
from engine.options import ResolvedOptions, resolve_options
from engine.transposer import apply_direction
from errors import DimensionMismatch, MissingSourceError
from pixels.buffer import PixelBuffer
from security import validate_dimensions
from sorting.keys import SortKey
from sorting.line import sort_line

logger = logging.getLogger(__name__)

# Per-pass timing threshold (milliseconds)
PASS_WARN_MS = 500

# Rolling timing stats per pass ("horizontal", "vertical", "both", "mask")
_pass_timing: dict[str, deque] = defaultdict(lambda: deque(maxlen=100))


def record_timing(pass_name: str, elapsed_ms: float):
    """Record a timing sample for a pass."""
    _pass_timing[pass_name].append(elapsed_ms)


def get_pass_stats() -> dict[str, dict]:
    """Return p50/p95/max per pass."""
    result = {}
    for name, samples in list(_pass_timing.items()):
        s = sorted(samples)
        result[name] = {
            "p50": s[len(s) // 2] if s else 0,
            "p95": s[int(len(s) * 0.95)] if len(s) >= 20 else None,
            "max": max(s) if s else 0,
            "samples": len(s),
        }
    return result


def flush_timing():
    """Clear all timing stats."""
    _pass_timing.clear()


@dataclass(frozen=True, eq=False)
class SortResult:
    original: PixelBuffer
    sorted: PixelBuffer
    masked: PixelBuffer | None = None

    def images(self) -> list[PixelBuffer]:
        """Buffers in display order: original, sorted, then masked if present."""
        images = [self.original, self.sorted]
        if self.masked is not None:
            images.append(self.masked)
        return images


def _capture_with_context(e: Exception, extra: dict):
    """Capture an invariant violation to Sentry with a stable fingerprint."""
    with sentry_sdk.new_scope() as scope:
        scope.set_tag("component", "pixelsort")
        scope.fingerprint = ["pixelsort-invariant", type(e).__name__]
        scope.set_context("transform", extra)
        sentry_sdk.capture_exception(e, scope=scope)


def _line_fn(opts: ResolvedOptions, threshold: float, axis: str, base_seed: int):
    """Bind options for one axis into a (line, index) -> sorted line function."""
    randomized = opts.sort_key is SortKey.RANDOM

    def _sort(line: np.ndarray, index: int) -> np.ndarray:
        rng = make_rng(derive_seed(base_seed, axis, index)) if randomized else None
        return sort_line(
            line,
            threshold,
            opts.sort_key,
            opts.zones,
            opts.invert,
            rng=rng,
            reject_alpha=opts.reject_alpha,
        )

    return _sort


def _timed(pass_name: str, fn, *args):
    sentry_sdk.add_breadcrumb(
        category="pixelsort",
        message=f"Running {pass_name} pass",
        level="info",
    )
    t0 = time.monotonic()
    result = fn(*args)
    elapsed_ms = (time.monotonic() - t0) * 1000
    record_timing(pass_name, elapsed_ms)
    if elapsed_ms > PASS_WARN_MS:
        logger.warning(
            "Pass %s took %.0fms (>%dms warn threshold)",
            pass_name,
            elapsed_ms,
            PASS_WARN_MS,
        )
    else:
        logger.debug("Pass %s took %.1fms", pass_name, elapsed_ms)
    return result


def transform(
    buffer: PixelBuffer | None, options: dict | ResolvedOptions | None = None
) -> SortResult:
    """Sort a buffer and, if the color mask is enabled, composite it.

    Args:
        buffer:  Source pixels. Must be fully loaded before calling.
        options: Raw option dict (see engine.options.PARAMS) or already
                 resolved options.

    Returns:
        SortResult with the untouched original, the sorted buffer, and the
        masked composite when colorMask.enabled is set.

    Raises:
        MissingSourceError: buffer is None.
        InvalidOptionError: Options fail validation (nothing is sorted).
        DimensionMismatch:  Internal line/buffer size invariant broken.
    """
    if buffer is None:
        raise MissingSourceError("no source buffer supplied")

    opts = resolve_options(options)

    errors = validate_dimensions(buffer.width, buffer.height)
    if errors:
        raise ValueError("; ".join(errors))

    base_seed = opts.seed if opts.seed is not None else fresh_seed()
    row_fn = _line_fn(opts, opts.threshold.x, "row", base_seed)
    col_fn = _line_fn(opts, opts.threshold.y, "column", base_seed)

    context = {
        "width": buffer.width,
        "height": buffer.height,
        "direction": opts.direction.value,
        "sort_key": opts.sort_key.value,
        "mask": opts.mask is not None,
        "workers": opts.workers,
    }

    try:
        sorted_frame = _timed(
            opts.direction.value,
            apply_direction,
            buffer.frame,
            opts.direction,
            row_fn,
            col_fn,
            opts.workers,
        )
        sorted_buffer = PixelBuffer(buffer.width, buffer.height, sorted_frame)

        masked = None
        if opts.mask is not None:
            masked_frame = _timed(
                "mask", apply_color_mask, sorted_frame, buffer.frame, opts.mask
            )
            masked = PixelBuffer(buffer.width, buffer.height, masked_frame)
    except DimensionMismatch as e:
        _capture_with_context(e, context)
        logger.error("Pixel sort invariant violated: %s", e)
        raise

    logger.info(
        "Sorted %dx%d buffer (direction=%s, key=%s, mask=%s)",
        buffer.width,
        buffer.height,
        opts.direction.value,
        opts.sort_key.value,
        masked is not None,
    )
    return SortResult(original=buffer, sorted=sorted_buffer, masked=masked)
