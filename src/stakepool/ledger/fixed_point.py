# src/stakepool/ledger/fixed_point.py
from __future__ import annotations

from typing import Any

from stakepool.ledger.constants import AMOUNT_BITS, PRECISION
from stakepool.runtime.errors import ArithmeticOverflow


def checked_uint(value: Any, *, bits: int = AMOUNT_BITS, field: str = "value") -> int:
    """Narrow `value` to an unsigned integer of `bits` bits or raise.

    bool is rejected even though it is an int subclass.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ArithmeticOverflow("not_an_integer", {"field": field, "type": type(value).__name__})
    if value < 0:
        raise ArithmeticOverflow("negative_value", {"field": field, "value": int(value)})
    if value >> int(bits):
        raise ArithmeticOverflow("value_exceeds_bits", {"field": field, "bits": int(bits)})
    return int(value)


def mul_div(a: int, b: int, denominator: int) -> int:
    """Return floor(a * b / denominator) for non-negative operands.

    Floor and truncation toward zero coincide here because negatives are
    rejected.
    """
    if a < 0 or b < 0:
        raise ArithmeticOverflow("negative_operand", {"a": int(a), "b": int(b)})
    if denominator <= 0:
        raise ArithmeticOverflow("non_positive_denominator", {"denominator": int(denominator)})
    return (int(a) * int(b)) // int(denominator)


def scale_down(amount: int, per_unit: int) -> int:
    """amount * per_unit / PRECISION, truncated."""
    return mul_div(amount, per_unit, PRECISION)
