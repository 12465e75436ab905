"""Guard predicates for the accrual engine.

Each returns True iff the operation may proceed. They are evaluated against
the PRE-state, except the balance guards, which must see the
post-materialization balance (unrealized interest counts as redeemable).
"""

from __future__ import annotations

from .math import MAX_AMOUNT


def is_uint(value: object) -> bool:
    """Unsigned integer within the `[0, MAX_AMOUNT]` domain (bools rejected)."""
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_AMOUNT


def is_address(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def guard_set_global_rate(current_rate: int, new_rate: int) -> bool:
    """Strict decrease only; equal values are rejected."""
    return new_rate < current_rate


def guard_covers(balance: int, amount: int) -> bool:
    return amount <= balance


def guard_allowance(allowance: int, amount: int) -> bool:
    # An allowance of MAX_AMOUNT is unlimited.
    return allowance == MAX_AMOUNT or amount <= allowance
