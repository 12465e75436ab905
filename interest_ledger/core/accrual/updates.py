"""Record transition functions for the accrual engine.

Pure functions over `AccountRecord`; the engine commits their results.
Updates are implemented via `dataclasses.replace()` on frozen dataclasses.

Ordering contract: `materialize()` must run on every record before its
principal is read or written by any other transition.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ...state.accounts import AccountRecord
from .math import accrued_balance, pending_interest, resolve_amount


@dataclass(frozen=True)
class Materialized:
    """A record after folding unrealized interest into principal."""

    record: AccountRecord
    interest: int


@dataclass(frozen=True)
class TransferPlan:
    """Post-records of a transfer, not yet committed."""

    sender: AccountRecord
    recipient: AccountRecord
    amount: int
    sender_interest: int
    recipient_interest: int
    rate_inherited: bool


def balance_at(record: AccountRecord, now: int) -> int:
    return accrued_balance(record.principal, record.locked_rate, record.last_sync, now)


def materialize(record: AccountRecord, now: int) -> Materialized:
    """Mint the unrealized interest as principal and reset the accrual clock.

    Idempotent at a fixed `now`: the second call yields `interest == 0`.
    """
    delta = pending_interest(record.principal, record.locked_rate, record.last_sync, now)
    return Materialized(
        record=replace(record, principal=record.principal + delta, last_sync=now),
        interest=delta,
    )


def relock(record: AccountRecord, rate: int) -> AccountRecord:
    return replace(record, locked_rate=rate)


def credit(record: AccountRecord, amount: int) -> AccountRecord:
    return replace(record, principal=record.principal + amount)


def debit(record: AccountRecord, amount: int) -> AccountRecord:
    if amount > record.principal:
        raise ValueError(f"debit {amount} exceeds principal {record.principal}")
    return replace(record, principal=record.principal - amount)


def apply_mint(record: AccountRecord, amount: int, global_rate: int, now: int) -> Materialized:
    """Materialize, relock to the current global rate, then add `amount`.

    The relock happens on every mint, top-ups included.
    """
    m = materialize(record, now)
    return Materialized(record=credit(relock(m.record, global_rate), amount), interest=m.interest)


def plan_transfer(
    sender: AccountRecord,
    recipient: AccountRecord,
    amount: int,
    now: int,
    *,
    self_transfer: bool = False,
) -> TransferPlan:
    """Compose a transfer between two accounts with independent locked rates.

    `amount` may be the MAX_AMOUNT sentinel; the returned plan carries the
    resolved amount. Balance coverage is the caller's guard; this function
    raises ValueError if the debit is not covered.
    """
    ms = materialize(sender, now)
    if self_transfer:
        resolved = resolve_amount(amount, ms.record.principal)
        moved = credit(debit(ms.record, resolved), resolved)
        return TransferPlan(
            sender=moved,
            recipient=moved,
            amount=resolved,
            sender_interest=ms.interest,
            recipient_interest=0,
            rate_inherited=False,
        )

    mr = materialize(recipient, now)
    resolved = resolve_amount(amount, ms.record.principal)

    # Empty recipients take the sender's rate rather than the global rate.
    inherited = mr.record.principal == 0
    recipient_rec = relock(mr.record, ms.record.locked_rate) if inherited else mr.record

    return TransferPlan(
        sender=debit(ms.record, resolved),
        recipient=credit(recipient_rec, resolved),
        amount=resolved,
        sender_interest=ms.interest,
        recipient_interest=mr.interest,
        rate_inherited=inherited,
    )
