"""Invariant checkers for the accrual engine.

Record invariants are evaluated on every record a mutation touches, before the
mutation is committed; ledger invariants on the post-commit globals. Each
registry maps an invariant id to a predicate; `check_*` return the list of
violated ids (empty = all pass).

`audit_table()` re-checks every stored record plus supply conservation. It is
O(accounts) and meant for audits and tests, not for the per-operation path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Mapping

from ...state.accounts import AccountRecord, AccountTable


@dataclass(frozen=True)
class RecordContext:
    now: int
    initial_rate: int
    touched: bool = True


@dataclass(frozen=True)
class LedgerContext:
    global_rate: int
    initial_rate: int
    total_principal: int


def inv_last_sync_not_from_future(r: AccountRecord, ctx: RecordContext) -> bool:
    return r.last_sync <= ctx.now


def inv_rate_within_ceiling(r: AccountRecord, ctx: RecordContext) -> bool:
    # The global rate only decreases, so no assigned rate can exceed the first one.
    return r.locked_rate <= ctx.initial_rate


def inv_synced_when_touched(r: AccountRecord, ctx: RecordContext) -> bool:
    if not ctx.touched:
        return True
    return r.last_sync == ctx.now


def inv_global_rate_monotone(g: LedgerContext) -> bool:
    return 0 <= g.global_rate <= g.initial_rate


def inv_total_principal_nonneg(g: LedgerContext) -> bool:
    return g.total_principal >= 0


RECORD_INVARIANTS: dict[str, Callable[[AccountRecord, RecordContext], bool]] = {
    "inv_last_sync_not_from_future": inv_last_sync_not_from_future,
    "inv_rate_within_ceiling": inv_rate_within_ceiling,
    "inv_synced_when_touched": inv_synced_when_touched,
}

LEDGER_INVARIANTS: dict[str, Callable[[LedgerContext], bool]] = {
    "inv_global_rate_monotone": inv_global_rate_monotone,
    "inv_total_principal_nonneg": inv_total_principal_nonneg,
}


def check_records(records: Mapping[str, AccountRecord], ctx: RecordContext) -> list[str]:
    """Return `"<inv_id>:<address>"` for every violated record invariant."""
    return [
        f"{inv_id}:{address}"
        for address, record in sorted(records.items())
        for inv_id, check_fn in RECORD_INVARIANTS.items()
        if not check_fn(record, ctx)
    ]


def check_ledger(ctx: LedgerContext) -> list[str]:
    return [inv_id for inv_id, check_fn in LEDGER_INVARIANTS.items() if not check_fn(ctx)]


def audit_table(table: AccountTable, *, now: int, global_rate: int, initial_rate: int, total_principal: int) -> list[str]:
    violations = check_records(
        dict(table.items()),
        RecordContext(now=now, initial_rate=initial_rate, touched=False),
    )
    violations += check_ledger(
        LedgerContext(global_rate=global_rate, initial_rate=initial_rate, total_principal=total_principal)
    )
    if table.total_principal() != total_principal:
        violations.append("inv_supply_conservation")
    return violations
