"""
Rounding helpers shared by the analytics engine and trade entry.

Halves round toward positive infinity (0.125 -> 0.13, -0.125 -> -0.12),
matching the figures the dashboard has always displayed.
"""
import math

__all__ = ["round_half_up", "round_int", "percent"]


def round_half_up(value: float, digits: int = 2) -> float:
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent(part: float, whole: float) -> float:
    """``part / whole`` as a percentage rounded to 2 decimals; 0 when ``whole`` is 0."""
    if whole == 0:
        return 0.0
    return math.floor(part / whole * 10000 + 0.5) / 100
