"""
Utility Functions Module

Safe numeric coercion shared by the engine. Scenario documents and
spreadsheet imports hand us loosely typed numbers; the engine treats them
as best-effort and falls back instead of raising.
"""

import math


def finite_or_none(value):
    """Return value as a finite float, or None if missing or not finite."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def finite_or(value, fallback: float) -> float:
    """Return value as a finite float, else fallback."""
    number = finite_or_none(value)
    return fallback if number is None else number


def first_finite(*values, fallback: float = 0.0) -> float:
    """Return the first finite value in precedence order, else fallback.

    Example:
        >>> first_finite(None, float("nan"), 12.5, 3.0)
        12.5
    """
    for value in values:
        number = finite_or_none(value)
        if number is not None:
            return number
    return fallback
