"""Seeded determinism for the random sort key.

Every line gets its own generator derived from (seed, axis, line index), so
random ordering is reproducible for a fixed seed and does not depend on how
lines are spread across worker threads.
"""

import hashlib
import secrets

import numpy as np


def derive_seed(seed: int, axis: str, line_index: int) -> int:
    """Derive a per-line seed. Same inputs = same output, always."""
    key = f"{seed}:{axis}:{line_index}"
    return int(hashlib.sha256(key.encode()).hexdigest()[:16], 16)


def make_rng(seed: int) -> np.random.Generator:
    """Create a seeded RNG from a derived seed."""
    return np.random.default_rng(seed)


def fresh_seed() -> int:
    """Base seed for a transform run without an explicit seed."""
    return secrets.randbits(63)
