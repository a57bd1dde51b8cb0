"""Shared fixtures: synthetic frames and pipeline state reset."""

import numpy as np
import pytest

from pixels.buffer import PixelBuffer


def _gradient_frame(width=64, height=48):
    """Asymmetric RGBA gradient: red runs along x, blue along y."""
    frame = np.zeros((height, width, 4), dtype=np.uint8)
    frame[:, :, 0] = np.linspace(0, 255, width, dtype=np.uint8)[np.newaxis, :]
    frame[:, :, 1] = 128
    frame[:, :, 2] = np.linspace(255, 0, height, dtype=np.uint8)[:, np.newaxis]
    frame[:, :, 3] = 255
    return frame


def _random_frame(width=64, height=48, seed=42):
    rng = np.random.default_rng(seed)
    frame = rng.integers(0, 256, (height, width, 4), dtype=np.uint8)
    frame[:, :, 3] = 255
    return frame


@pytest.fixture
def gradient_buffer():
    return PixelBuffer.from_frame(_gradient_frame())


@pytest.fixture
def random_buffer():
    return PixelBuffer.from_frame(_random_frame())


@pytest.fixture
def random_line():
    rng = np.random.default_rng(7)
    line = rng.integers(0, 256, (200, 4), dtype=np.uint8)
    line[:, 3] = 255
    return line


@pytest.fixture(autouse=True)
def _reset_pass_timing():
    """Clear rolling timing stats before and after each test."""
    from engine.pipeline import flush_timing

    flush_timing()
    yield
    flush_timing()
