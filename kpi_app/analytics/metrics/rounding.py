"""Rounding helpers shared by the KPI metrics."""

from __future__ import annotations

import math


def round_half_up(value: float, digits: int = 2) -> float:
    """Round like ``Math.round(value * 10**digits) / 10**digits``.

    Halves round toward positive infinity, unlike the built-in ``round`` which
    rounds halves to even.
    """
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


def percentage(part: int, whole: int, digits: int = 2) -> float:
    """``part / whole * 100`` rounded; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0.0
    return round_half_up(part / whole * 100, digits)
