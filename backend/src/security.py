"""Resource caps and PII stripping for the pixel sort engine."""

import json
import numbers
import os
import re

# Buffer size cap (64 megapixels)
MAX_PIXELS = 64 * 1024 * 1024

# Worker thread cap
MAX_WORKERS = 32


def validate_dimensions(width: int, height: int) -> list[str]:
    """Validate buffer dimensions. Returns list of errors (empty = valid)."""
    errors: list[str] = []
    if width < 0 or height < 0:
        errors.append(f"Dimensions must be non-negative, got {width}x{height}")
        return errors
    if width * height > MAX_PIXELS:
        errors.append(
            f"Buffer of {width}x{height} exceeds maximum {MAX_PIXELS} pixels"
        )
    return errors


def validate_workers(workers) -> list[str]:
    """Validate a worker count against MAX_WORKERS. Returns list of errors."""
    errors: list[str] = []
    if isinstance(workers, bool) or not isinstance(workers, numbers.Integral):
        errors.append(f"'workers' must be an int, got {workers!r}")
    elif workers < 1:
        errors.append(f"'workers' must be >= 1, got {workers}")
    elif workers > MAX_WORKERS:
        errors.append(f"'workers' {workers} exceeds maximum {MAX_WORKERS}")
    return errors


# --- PII stripping for Sentry and crash dumps ---

_HOME = os.path.expanduser("~")
_USERNAME = os.path.basename(_HOME)
_PATH_PATTERN = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\Users\\[^\\\s]+")
_SENSITIVE_KEYS = {"token", "auth", "secret", "password", "dsn"}


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips home paths, usernames and secrets.

    Also used to sanitize crash dumps.
    """
    event_str = json.dumps(event, default=str)
    event_str = event_str.replace(_HOME, "<HOME>")
    if _USERNAME:
        event_str = event_str.replace(_USERNAME, "<USER>")
    event_str = _PATH_PATTERN.sub("<REDACTED_PATH>", event_str)
    event = json.loads(event_str)

    _scrub_dict(event.get("extra", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event
