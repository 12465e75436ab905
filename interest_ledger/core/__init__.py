"""
Core ledger algorithms
"""

from .accrual import (
    Action,
    Command,
    Effect,
    Event,
    InterestLedger,
    StepResult,
    DEFAULT_GLOBAL_RATE,
    MAX_AMOUNT,
    PRECISION,
)

__all__ = [
    "Action",
    "Command",
    "Effect",
    "Event",
    "InterestLedger",
    "StepResult",
    "DEFAULT_GLOBAL_RATE",
    "MAX_AMOUNT",
    "PRECISION",
]
