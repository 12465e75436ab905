"""`accrual`: lazy, per-account simple-interest token ledger.

Balances grow linearly at each account's locked rate; interest is folded into
stored principal only when an account is touched by mint, burn or transfer:
- integer-only arithmetic with explicit truncation,
- immutable records (frozen dataclasses) committed all-or-nothing,
- fail-closed guards and invariant checks before every commit.

Public API:
- `InterestLedger(access=..., initial_rate=..., clock=...)`
- `InterestLedger.step(command) -> StepResult`
- `InterestLedger.step_or_raise(command) -> StepResult` (raises on rejection)
"""

from .engine import Authority, InterestLedger, wall_clock
from .errors import (
    ClockRegression,
    CustodyTransferFailed,
    InsufficientAllowance,
    InsufficientBalance,
    LedgerError,
    LedgerInvariantError,
    LedgerParamError,
    RateIncreaseRejected,
    ReentrantCall,
    ReplayedMessage,
    Unauthorized,
)
from .math import DEFAULT_GLOBAL_RATE, MAX_AMOUNT, PRECISION
from .types import Action, Command, Effect, Event, StepResult

__all__ = [
    "InterestLedger",
    "Authority",
    "wall_clock",
    "Action",
    "Command",
    "Effect",
    "Event",
    "StepResult",
    "PRECISION",
    "MAX_AMOUNT",
    "DEFAULT_GLOBAL_RATE",
    "LedgerError",
    "RateIncreaseRejected",
    "InsufficientBalance",
    "InsufficientAllowance",
    "Unauthorized",
    "CustodyTransferFailed",
    "ReentrantCall",
    "ReplayedMessage",
    "LedgerParamError",
    "ClockRegression",
    "LedgerInvariantError",
]
