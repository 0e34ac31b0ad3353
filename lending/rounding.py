"""
rounding.py - Integer Rounding to a Precision

Pure helpers that round non-negative integer amounts to a multiple of a
given precision (e.g. ACCURACY_FACTOR). No floating point is involved.

    round_down(10_9999, 10_000) == 10_0000
    round_up(10_0001, 10_000)   == 11_0000
    round_math(10_4999, 10_000) == 10_0000   (half up)
    round_math(10_5000, 10_000) == 11_0000
"""

from __future__ import annotations


def _check_precision(precision: int) -> None:
    if precision <= 0:
        raise ValueError(f"precision must be positive, got {precision}")


def round_down(value: int, precision: int) -> int:
    """Round value down to a multiple of precision."""
    _check_precision(precision)
    return value // precision * precision


def round_up(value: int, precision: int) -> int:
    """Round value up to a multiple of precision."""
    _check_precision(precision)
    return -(-value // precision) * precision


def round_math(value: int, precision: int) -> int:
    """
    Round value to the nearest multiple of precision, halves rounding up.

    This is the rounding used for outstanding balances shown to borrowers.
    """
    _check_precision(precision)
    return (value + precision // 2) // precision * precision
