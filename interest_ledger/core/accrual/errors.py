"""Exception types for the accrual engine and its collaborators.

Every error carries a stable ``code``; ``step()`` in ``engine.py`` turns a
raised error into ``StepResult.rejection`` using it.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Base class. All ledger errors abort with no partial state change."""

    code = "ledger_error"


class RateIncreaseRejected(LedgerError):
    """Raised when a global rate update is not a strict decrease."""

    code = "rate_increase_rejected"

    def __init__(self, current: int, proposed: int) -> None:
        self.current = current
        self.proposed = proposed
        super().__init__(f"global rate can only decrease: current={current} proposed={proposed}")


class InsufficientBalance(LedgerError):
    """Raised when an amount exceeds the post-materialization balance."""

    code = "insufficient_balance"

    def __init__(self, account: str, balance: int, requested: int) -> None:
        self.account = account
        self.balance = balance
        self.requested = requested
        super().__init__(f"insufficient balance for {account}: balance={balance} requested={requested}")


class InsufficientAllowance(LedgerError):
    code = "insufficient_allowance"

    def __init__(self, owner: str, spender: str, allowance: int, requested: int) -> None:
        self.owner = owner
        self.spender = spender
        self.allowance = allowance
        self.requested = requested
        super().__init__(
            f"insufficient allowance {owner}->{spender}: allowance={allowance} requested={requested}"
        )


class Unauthorized(LedgerError):
    """Raised when the caller lacks the capability for an operation."""

    code = "unauthorized"


class CustodyTransferFailed(LedgerError):
    """Raised when the vault's base-asset release does not succeed."""

    code = "custody_transfer_failed"


class ReentrantCall(LedgerError):
    code = "reentrant_call"


class ReplayedMessage(LedgerError):
    code = "replayed_message"


class LedgerParamError(LedgerError):
    """Raised when a parameter is outside its domain (type, sign, bound)."""

    code = "param_domain"


class ClockRegression(LedgerError):
    """Raised when the clock returns a timestamp below one already observed."""

    code = "clock_regression"


class LedgerInvariantError(LedgerError):
    """Raised when a post-state violates one or more invariants."""

    code = "invariant"

    def __init__(self, violations: list[str]) -> None:
        self.violations = violations
        super().__init__(f"invariant violations: {', '.join(violations)}")
