"""
Common utility functions for the placement backend.

Small numeric helpers shared by the scoring engine and the services.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float]


def round_half_up(value: Number) -> int:
    """
    Round to the nearest integer, with halves rounded up.

    Python's built-in ``round`` uses banker's rounding (``round(62.5) == 62``);
    scores are reported with halves rounded up (62.5 -> 63).
    """
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percentage(part: int, whole: int, default: int = 0) -> int:
    """
    Integer percentage of ``part`` over ``whole``, halves rounded up.

    Args:
        part: Points or items obtained
        whole: Points or items available
        default: Value returned when ``whole`` is zero

    Returns:
        ``round_half_up(100 * part / whole)`` or ``default``
    """
    if whole == 0:
        return default
    # Integer arithmetic keeps exact halves exact: floor((200p + w) / 2w).
    return (200 * part + whole) // (2 * whole)


def safe_divide(numerator: Number, denominator: Number, default: Number = 0) -> float:
    """
    Divide two numbers, returning ``default`` when the denominator is zero.
    """
    if denominator == 0:
        return default
    return numerator / denominator
