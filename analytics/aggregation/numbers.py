"""Rounding helpers shared by the aggregation folds.

Dashboard figures are rounded half-up (2.5 -> 3, -2.5 -> -2), the same way
the frontend rounds, rather than with Python's banker's rounding.
"""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity."""
    return math.floor(value + 0.5)


def round_one_decimal(value: float) -> float:
    """Round to one decimal place, ties toward positive infinity."""
    return round_half_up(value * 10) / 10


def percentage(part: float, total: float) -> int:
    """Integer percentage of ``part`` in ``total`` (0 when total is 0)."""
    if total <= 0:
        return 0
    return round_half_up(part / total * 100)


def percentage_one_decimal(part: float, total: float) -> float:
    """One-decimal percentage of ``part`` in ``total`` (0.0 when total is 0)."""
    if total <= 0:
        return 0.0
    return round_half_up(part / total * 1000) / 10


def mean(values: list[float]) -> float | None:
    """Arithmetic mean, or None for an empty list."""
    if not values:
        return None
    return sum(values) / len(values)
