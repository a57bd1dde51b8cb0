"""Error kinds raised by the pixel sort engine.

Configuration errors surface from resolve_options() before any buffer is
touched. DimensionMismatch is an internal invariant violation and is never
recovered from inside the engine.
"""


class PixelSortError(Exception):
    """Base class for all engine errors."""


class MissingSourceError(PixelSortError):
    """No source buffer was supplied to the pipeline."""


class InvalidOptionError(PixelSortError, ValueError):
    """An option value failed validation."""


class InvalidColorFormat(InvalidOptionError):
    """Mask color is not a valid hex string."""


class UnsupportedSortKey(InvalidOptionError):
    """sortBy names a key that does not exist. Recoverable: callers fall back to sum."""


class DimensionMismatch(PixelSortError, RuntimeError):
    """A buffer or line does not match its declared width/height."""
