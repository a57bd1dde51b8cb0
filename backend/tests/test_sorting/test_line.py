"""Tests for sorting.line: whole-line and per-zone sorting, inversion."""

import numpy as np
import pytest

from sorting.keys import SortKey
from sorting.line import sort_line
from sorting.zones import zone_starts

pytestmark = pytest.mark.smoke

DARK = (10, 10, 10, 255)
LIGHT = (50, 50, 50, 255)

# Sums: C=0, D=15, A=300, B=270
C = (0, 0, 0, 255)
D = (5, 5, 5, 255)
A = (100, 100, 100, 255)
B = (90, 90, 90, 255)


def _line(*pixels):
    return np.array(pixels, dtype=np.uint8)


def _tuples(line):
    return [tuple(int(c) for c in p) for p in line]


def test_two_pixel_threshold_zero():
    out = sort_line(_line(DARK, LIGHT), 0, SortKey.SUM, zones=True, invert=False)
    assert _tuples(out) == [DARK, LIGHT]


def test_two_pixel_one_zone():
    out = sort_line(_line(DARK, LIGHT), 200, SortKey.SUM, zones=True, invert=False)
    assert _tuples(out) == [DARK, LIGHT]


def test_two_pixel_one_zone_inverted():
    out = sort_line(_line(DARK, LIGHT), 200, SortKey.SUM, zones=True, invert=True)
    assert _tuples(out) == [LIGHT, DARK]


def test_two_pixel_separate_zones_inverted_unchanged():
    # Single-pixel zones: reversing each one is a no-op
    out = sort_line(_line(DARK, LIGHT), 0, SortKey.SUM, zones=True, invert=True)
    assert _tuples(out) == [DARK, LIGHT]


def test_zones_sorted_independently():
    line = _line(C, D, A, B)
    out = sort_line(line, 40, SortKey.SUM, zones=True)
    assert _tuples(out) == [C, D, B, A]


def test_inversion_is_per_zone():
    line = _line(C, D, A, B)
    out = sort_line(line, 40, SortKey.SUM, zones=True, invert=True)
    assert _tuples(out) == [D, C, A, B]


def test_inversion_whole_line_without_zones():
    line = _line(C, D, A, B)
    assert _tuples(sort_line(line, 40, SortKey.SUM, zones=False)) == [C, D, B, A]
    assert _tuples(sort_line(line, 40, SortKey.SUM, zones=False, invert=True)) == [A, B, D, C]


def test_zones_disabled_ignores_threshold(random_line):
    a = sort_line(random_line, 0, SortKey.SUM, zones=False)
    b = sort_line(random_line, 765, SortKey.SUM, zones=False)
    np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize("key", [SortKey.SUM, SortKey.AVG, SortKey.MUL])
@pytest.mark.parametrize("threshold", [0, 30, 120])
def test_invert_equals_per_zone_reversal(random_line, key, threshold):
    ascending = sort_line(random_line, threshold, key, zones=True)
    inverted = sort_line(random_line, threshold, key, zones=True, invert=True)
    starts = zone_starts(random_line, threshold)
    reversed_zones = [z[::-1] for z in np.split(ascending, starts[1:])]
    np.testing.assert_array_equal(inverted, np.concatenate(reversed_zones))


def test_ties_keep_input_order():
    tied = [(30, 0, 0, 255), (0, 30, 0, 255), (0, 0, 30, 255)]
    out = sort_line(_line(*tied), 0, SortKey.SUM, zones=False)
    assert _tuples(out) == tied
    out_inv = sort_line(_line(*tied), 0, SortKey.SUM, zones=False, invert=True)
    assert _tuples(out_inv) == tied[::-1]


def test_sorting_is_repeatable(random_line):
    a = sort_line(random_line, 50, SortKey.AVG)
    b = sort_line(random_line, 50, SortKey.AVG)
    np.testing.assert_array_equal(a, b)


@pytest.mark.parametrize("zones", [True, False])
def test_output_is_permutation(random_line, zones):
    out = sort_line(random_line, 50, SortKey.MUL, zones=zones, invert=True)
    assert sorted(_tuples(out)) == sorted(_tuples(random_line))


def test_zones_measured_by_sum_not_sort_key():
    # Equal sums (one zone at threshold 0) but very different products
    flat, gray = (0, 0, 90, 255), (30, 30, 30, 255)
    out = sort_line(_line(flat, gray), 0, SortKey.MUL, zones=True, invert=True)
    assert _tuples(out) == [gray, flat]


def test_sorted_zone_contents_ascending(random_line):
    out = sort_line(random_line, 60, SortKey.SUM)
    sums = out[:, :3].astype(int).sum(axis=1)
    starts = zone_starts(random_line, 60)
    for zone in np.split(sums, starts[1:]):
        assert list(zone) == sorted(zone)


def test_random_key_seeded(random_line):
    a = sort_line(random_line, 0, SortKey.RANDOM, zones=False, rng=np.random.default_rng(1))
    b = sort_line(random_line, 0, SortKey.RANDOM, zones=False, rng=np.random.default_rng(1))
    c = sort_line(random_line, 0, SortKey.RANDOM, zones=False, rng=np.random.default_rng(2))
    np.testing.assert_array_equal(a, b)
    assert not np.array_equal(a, c)


def test_alpha_travels_with_pixel():
    line = _line((200, 200, 200, 10), (0, 0, 0, 20), (100, 100, 100, 30))
    out = sort_line(line, 1000, SortKey.SUM)
    assert _tuples(out) == [(0, 0, 0, 20), (100, 100, 100, 30), (200, 200, 200, 10)]


def test_reject_alpha_false_reads_alpha():
    line = _line((10, 10, 10, 200), (20, 20, 20, 0))
    assert _tuples(sort_line(line, 1000, SortKey.SUM)) == _tuples(line)
    flipped = sort_line(line, 1000, SortKey.SUM, reject_alpha=False)
    assert _tuples(flipped) == _tuples(line)[::-1]


def test_empty_line():
    out = sort_line(np.zeros((0, 4), dtype=np.uint8), 10)
    assert out.shape == (0, 4)


def test_input_not_mutated(random_line):
    before = random_line.copy()
    sort_line(random_line, 50, SortKey.SUM, invert=True)
    np.testing.assert_array_equal(random_line, before)
