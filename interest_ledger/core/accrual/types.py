"""Data types for the accrual engine.

All types are frozen dataclasses (immutable).

Units/conventions:
- amounts are integer token units (18 decimals by default),
- rates are per-second fractions scaled by `PRECISION` (1e18),
- timestamps are integer seconds.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, unique


@unique
class Action(Enum):
    """One member per ledger command."""
    SET_GLOBAL_RATE = "set_global_rate"
    MINT = "mint"
    BURN = "burn"
    TRANSFER = "transfer"
    APPROVE = "approve"
    TRANSFER_FROM = "transfer_from"


@unique
class Event(Enum):
    """Observable notifications emitted after a committed mutation."""
    GLOBAL_RATE_CHANGED = "GlobalRateChanged"
    INTEREST_MATERIALIZED = "InterestMaterialized"
    MINTED = "Minted"
    BURNED = "Burned"
    TRANSFERRED = "Transferred"
    APPROVED = "Approved"


@dataclass(frozen=True)
class Command:
    """Parameters for a ledger command. Unused fields default to ""/0."""

    action: Action
    caller: str = ""
    account: str = ""       # mint/burn target, transfer sender, approve owner
    recipient: str = ""     # transfer / transfer_from
    spender: str = ""       # approve / transfer_from
    amount: int = 0
    new_rate: int = 0       # set_global_rate


@dataclass(frozen=True)
class Effect:
    """Post-commit observable. `amount` is the resolved amount moved."""

    event: Event
    timestamp: int
    account: str = ""
    counterparty: str = ""
    amount: int = 0
    rate: int = 0


@dataclass(frozen=True)
class StepResult:
    """Result of a single `step()` call."""

    accepted: bool
    effects: tuple[Effect, ...] = ()
    value: int | bool | None = None
    rejection: str | None = None
