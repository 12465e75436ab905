"""Pure arithmetic for the accrual engine.

Every function is stateless and operates on plain Python ints.

Rounding is explicit: balances use `//` (floor) on non-negative operands, so
the accrued balance is truncated toward zero. No remainder is tracked; the
next materialization recomputes from the larger principal and the reset
timestamp, which absorbs sub-unit interest once a full unit is crossed.
"""

from __future__ import annotations

# Fixed-point scale of interest rates (rate units = fraction per second).
PRECISION: int = 10**18

# Full-balance sentinel, also the upper bound of every amount/rate parameter.
MAX_AMOUNT: int = 2**256 - 1

# 5e-8 per second, roughly 158% simple interest per year.
DEFAULT_GLOBAL_RATE: int = 5 * 10**10


def accrual_factor(locked_rate: int, elapsed: int) -> int:
    """Growth factor scaled by PRECISION: ``PRECISION + rate * elapsed``."""
    return PRECISION + locked_rate * elapsed


def accrued_balance(principal: int, locked_rate: int, last_sync: int, now: int) -> int:
    """Principal plus simple interest since ``last_sync``, truncated.

    ``principal * (PRECISION + rate * (now - last_sync)) // PRECISION``
    """
    if now < last_sync:
        raise ValueError(f"now ({now}) precedes last_sync ({last_sync})")
    return (principal * accrual_factor(locked_rate, now - last_sync)) // PRECISION


def pending_interest(principal: int, locked_rate: int, last_sync: int, now: int) -> int:
    """Unrealized interest: accrued balance minus stored principal."""
    return accrued_balance(principal, locked_rate, last_sync, now) - principal


def resolve_amount(amount: int, full_balance: int) -> int:
    """Substitute the caller's full balance for the ``MAX_AMOUNT`` sentinel."""
    return full_balance if amount == MAX_AMOUNT else amount
