"""Tests for pixels.color: hex parsing and RGB→HSL."""

import numpy as np
import pytest

from errors import InvalidColorFormat
from pixels.color import hex_to_pixel, rgb_to_hsl, rgb_to_hsl_array

pytestmark = pytest.mark.smoke


def test_hex_white():
    assert hex_to_pixel("ffffff") == (255, 255, 255)


def test_hex_mixed_case_and_hash():
    assert hex_to_pixel("#01336A") == (1, 51, 106)


def test_hex_with_alpha_pair():
    assert hex_to_pixel("01336a80") == (1, 51, 106)


@pytest.mark.parametrize("bad", ["", "fff", "12345", "abcd", "1234567", "gggggg", "#"])
def test_hex_invalid(bad):
    with pytest.raises(InvalidColorFormat):
        hex_to_pixel(bad)


def test_hex_not_a_string():
    with pytest.raises(InvalidColorFormat):
        hex_to_pixel(0xFFFFFF)


def test_hsl_white_is_exact():
    assert rgb_to_hsl(255, 255, 255) == (0, 0, 1)


def test_hsl_black():
    assert rgb_to_hsl(0, 0, 0) == (0, 0, 0)


def test_hsl_gray_is_achromatic():
    h, s, l = rgb_to_hsl(128, 128, 128)
    assert h == 0
    assert s == 0
    assert l == pytest.approx(128 / 255)


def test_hsl_primaries():
    assert rgb_to_hsl(255, 0, 0) == pytest.approx((0.0, 1.0, 0.5))
    assert rgb_to_hsl(0, 255, 0) == pytest.approx((1 / 3, 1.0, 0.5))
    assert rgb_to_hsl(0, 0, 255) == pytest.approx((2 / 3, 1.0, 0.5))


def test_hsl_red_max_green_below_blue_wraps():
    h, _, _ = rgb_to_hsl(255, 0, 128)
    assert 0 <= h < 1
    assert h == pytest.approx(1 - (128 / 255) / 6)


def test_hsl_light_branch():
    _, s, l = rgb_to_hsl(255, 128, 128)
    assert l > 0.5
    assert s == pytest.approx(1.0)


def test_hsl_red_green_tie_uses_red_branch():
    h, _, _ = rgb_to_hsl(200, 200, 10)
    assert h == pytest.approx(1 / 6)


def test_array_matches_scalar():
    rng = np.random.default_rng(3)
    rgb = rng.integers(0, 256, (500, 3))
    rgb[:10] = [[v, v, v] for v in range(0, 250, 25)]  # achromatic rows
    rgb[10] = [200, 200, 10]
    out = rgb_to_hsl_array(rgb)
    expected = np.array([rgb_to_hsl(*map(int, px)) for px in rgb])
    np.testing.assert_allclose(out, expected, rtol=0, atol=1e-12)


def test_array_ignores_alpha_and_keeps_shape():
    frame = np.zeros((2, 3, 4), dtype=np.uint8)
    frame[..., 3] = 255
    out = rgb_to_hsl_array(frame)
    assert out.shape == (2, 3, 3)
    np.testing.assert_array_equal(out, 0.0)


def test_array_range():
    rng = np.random.default_rng(11)
    out = rgb_to_hsl_array(rng.integers(0, 256, (1000, 3)))
    assert out.min() >= 0.0
    assert out.max() <= 1.0
