"""Numeric helpers shared by the fetchers and report builders."""
import math
from typing import Any, Optional


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going toward +infinity (not banker's rounding)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def pct_change(current: float, previous: Optional[float]) -> float:
    """Percent change vs the previous period, one decimal place.

    Returns 0 when there is no previous baseline (0 or None).
    """
    if not previous:
        return 0.0
    # Scale once: x * 100 * 10 drifts off exact halves.
    return math.floor((current - previous) / previous * 1000 + 0.5) / 10


def ratio_pct(numerator: float, denominator: float, digits: int = 1) -> float:
    """numerator / denominator as a percentage; 0 when denominator is 0."""
    if denominator <= 0:
        return 0.0
    return math.floor(numerator / denominator * 10 ** (digits + 2) + 0.5) / 10 ** digits


def safe_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def safe_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
