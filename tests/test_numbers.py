"""Tests for the rounding helpers."""
import pytest

from perpjournal.numbers import percent, round_half_up, round_int


@pytest.mark.parametrize(
    "value, expected",
    [(0.125, 0.13), (-0.125, -0.12), (1.004, 1.0), (-40.0, -40.0), (0.0, 0.0)],
)
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


def test_round_int_rounds_halves_up():
    assert round_int(2.5) == 3
    assert round_int(-2.5) == -2
    assert round_int(2999.4) == 2999


def test_percent():
    assert percent(2, 3) == 66.67
    assert percent(1, 3) == 33.33
    assert percent(5, 0) == 0.0
