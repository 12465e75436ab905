"""`InterestLedger`: the lazy-accrual token ledger.

Every mutating operation follows the same pipeline:

1. Validate parameter domains.
2. Check authorization with the access-control collaborator (mint/burn/rate).
3. Read the clock once; reject regressions.
4. Materialize pending interest on every touched record, then evaluate guards
   against the post-materialization balances.
5. Build the post-records purely (`updates.py`) and check invariants.
6. Commit all records together and emit effects.

Any failure before step 6 leaves the ledger untouched. `atomic()` extends the
all-or-nothing guarantee over several operations (journal + rollback).

`step(command)` is the command-style entry point: it returns a `StepResult`
instead of raising. `step_or_raise(command)` raises the `LedgerError`.
"""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Mapping, Protocol

from ...logs import log_event
from ...state.accounts import AccountRecord, AccountTable
from .errors import (
    ClockRegression,
    InsufficientAllowance,
    InsufficientBalance,
    LedgerError,
    LedgerInvariantError,
    LedgerParamError,
    RateIncreaseRejected,
    Unauthorized,
)
from .guards import guard_allowance, guard_covers, guard_set_global_rate, is_address, is_uint
from .invariants import LedgerContext, RecordContext, audit_table, check_ledger, check_records
from .math import DEFAULT_GLOBAL_RATE, MAX_AMOUNT, resolve_amount
from .types import Action, Command, Effect, Event, StepResult
from .updates import apply_mint, balance_at, debit, materialize, plan_transfer

logger = logging.getLogger(__name__)

Clock = Callable[[], int]
Listener = Callable[[Effect], None]
AllowanceKey = tuple[str, str]


class Authority(Protocol):
    """Access-control collaborator consulted before privileged operations."""

    def is_admin(self, caller: str) -> bool: ...

    def can_mint_and_burn(self, caller: str) -> bool: ...


def wall_clock() -> int:
    return int(time.time())


@dataclass
class _Undo:
    records: dict[str, AccountRecord | None]
    global_rate: int
    total_principal: int
    last_now: int
    allowances: dict[AllowanceKey, int | None] = field(default_factory=dict)


class InterestLedger:
    """Per-account simple-interest ledger with a strictly decreasing global rate."""

    def __init__(
        self,
        *,
        access: Authority,
        initial_rate: int = DEFAULT_GLOBAL_RATE,
        clock: Clock | None = None,
        name: str = "Interest Ledger Token",
        symbol: str = "ILT",
        decimals: int = 18,
    ) -> None:
        _require_uint("initial_rate", initial_rate)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self._access = access
        self._clock: Clock = clock or wall_clock
        self._accounts = AccountTable()
        self._allowances: dict[AllowanceKey, int] = {}
        self._global_rate = initial_rate
        self._initial_rate = initial_rate
        self._total_principal = 0
        self._last_now = 0
        self._listeners: list[Listener] = []
        self._journal: list[_Undo] | None = None
        self._pending: list[Effect] | None = None
        self._capture: list[Effect] | None = None

    @classmethod
    def from_state(
        cls,
        *,
        access: Authority,
        initial_rate: int,
        global_rate: int,
        records: Mapping[str, AccountRecord],
        allowances: Mapping[AllowanceKey, int] | None = None,
        clock: Clock | None = None,
        **metadata,
    ) -> "InterestLedger":
        """Rebuild a ledger from persisted records; fails closed on any violation."""
        ledger = cls(access=access, initial_rate=initial_rate, clock=clock, **metadata)
        _require_uint("global_rate", global_rate)
        ledger._global_rate = global_rate
        for address, record in records.items():
            _require_address("address", address)
            ledger._accounts.put(address, record)
        for (owner, spender), amount in (allowances or {}).items():
            _require_address("owner", owner)
            _require_address("spender", spender)
            _require_uint("allowance", amount)
            ledger._allowances[(owner, spender)] = amount
        ledger._total_principal = ledger._accounts.total_principal()
        ledger._last_now = max((r.last_sync for _a, r in ledger._accounts.items()), default=0)
        violations = ledger.audit()
        if violations:
            raise LedgerInvariantError(violations)
        return ledger

    # -- Queries ---------------------------------------------------------------

    def balance_of(self, account: str) -> int:
        """Principal plus interest accrued since the last materialization.

        Read-only: never moves the account's accrual clock.
        """
        return balance_at(self._accounts.get(account), self._now())

    def principal_of(self, account: str) -> int:
        return self._accounts.get(account).principal

    def get_global_rate(self) -> int:
        return self._global_rate

    def get_user_rate(self, account: str) -> int:
        return self._accounts.get(account).locked_rate

    def last_sync_of(self, account: str) -> int:
        return self._accounts.get(account).last_sync

    def record(self, account: str) -> AccountRecord:
        return self._accounts.get(account)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def total_supply(self) -> int:
        """Sum of stored principals (interest not yet materialized excluded)."""
        return self._total_principal

    def total_balance(self) -> int:
        """Sum of accrued balances at the current time. O(accounts)."""
        now = self._now()
        return sum(balance_at(r, now) for _a, r in self._accounts.items())

    @property
    def initial_rate(self) -> int:
        return self._initial_rate

    def accounts(self) -> list[str]:
        return self._accounts.addresses()

    def iter_records(self) -> Iterator[tuple[str, AccountRecord]]:
        return iter(sorted(self._accounts.items()))

    def iter_allowances(self) -> Iterator[tuple[AllowanceKey, int]]:
        return iter(sorted(self._allowances.items()))

    def audit(self) -> list[str]:
        """Full-table invariant check. Returns violated ids (empty = ok)."""
        return audit_table(
            self._accounts,
            now=self._now(),
            global_rate=self._global_rate,
            initial_rate=self._initial_rate,
            total_principal=self._total_principal,
        )

    # -- Monitoring ------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for committed effects. Returns an unsubscribe callable."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -- Mutations -------------------------------------------------------------

    def set_global_rate(self, new_rate: int, *, caller: str) -> None:
        _require_uint("new_rate", new_rate)
        if not self._access.is_admin(caller):
            raise Unauthorized(f"{caller!r} may not set the global rate")
        if not guard_set_global_rate(self._global_rate, new_rate):
            raise RateIncreaseRejected(self._global_rate, new_rate)
        now = self._now()
        effect = Effect(event=Event.GLOBAL_RATE_CHANGED, timestamp=now, account=caller, rate=new_rate)
        self._commit(now, {}, [effect], global_rate=new_rate)

    def mint(self, account: str, amount: int, *, caller: str) -> None:
        """Materialize, lock the current global rate, then add `amount`."""
        _require_address("account", account)
        _require_uint("amount", amount)
        self._require_minter(caller)
        now = self._now()
        before = self._accounts.get(account)
        m = apply_mint(before, amount, self._global_rate, now)
        effects = self._interest_effects(now, (account, before, m.interest))
        effects.append(
            Effect(
                event=Event.MINTED,
                timestamp=now,
                account=account,
                counterparty=caller,
                amount=amount,
                rate=m.record.locked_rate,
            )
        )
        self._commit(now, {account: m.record}, effects)

    def burn(self, account: str, amount: int, *, caller: str) -> int:
        """Materialize, then remove `amount` from the post-materialization balance.

        `MAX_AMOUNT` burns the full balance as of this call's timestamp.
        Returns the amount burned.
        """
        _require_address("account", account)
        _require_uint("amount", amount)
        self._require_minter(caller)
        now = self._now()
        before = self._accounts.get(account)
        m = materialize(before, now)
        amount = resolve_amount(amount, m.record.principal)
        if not guard_covers(m.record.principal, amount):
            raise InsufficientBalance(account, m.record.principal, amount)
        effects = self._interest_effects(now, (account, before, m.interest))
        effects.append(
            Effect(
                event=Event.BURNED,
                timestamp=now,
                account=account,
                counterparty=caller,
                amount=amount,
                rate=before.locked_rate,
            )
        )
        self._commit(now, {account: debit(m.record, amount)}, effects)
        return amount

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        """Move `amount` (or the full balance for MAX_AMOUNT) from sender to recipient."""
        self._transfer(sender, recipient, amount)
        return True

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        _require_address("owner", owner)
        _require_address("spender", spender)
        _require_uint("amount", amount)
        now = self._now()
        effect = Effect(event=Event.APPROVED, timestamp=now, account=owner, counterparty=spender, amount=amount)
        self._commit(now, {}, [effect], allowances={(owner, spender): amount})
        return True

    def transfer_from(self, spender: str, sender: str, recipient: str, amount: int) -> bool:
        """Allowance-gated transfer. A MAX_AMOUNT allowance is never decremented."""
        _require_address("spender", spender)
        self._transfer(sender, recipient, amount, spender=spender)
        return True

    def _transfer(self, sender: str, recipient: str, amount: int, *, spender: str | None = None) -> None:
        _require_address("sender", sender)
        _require_address("recipient", recipient)
        _require_uint("amount", amount)
        now = self._now()
        s_before = self._accounts.get(sender)
        r_before = self._accounts.get(recipient)

        balance = balance_at(s_before, now)
        resolved = resolve_amount(amount, balance)
        if not guard_covers(balance, resolved):
            raise InsufficientBalance(sender, balance, resolved)

        allowance_updates: dict[AllowanceKey, int] = {}
        if spender is not None:
            key = (sender, spender)
            current = self._allowances.get(key, 0)
            if not guard_allowance(current, resolved):
                raise InsufficientAllowance(sender, spender, current, resolved)
            if current != MAX_AMOUNT:
                allowance_updates[key] = current - resolved

        self_transfer = sender == recipient
        plan = plan_transfer(s_before, r_before, amount, now, self_transfer=self_transfer)
        records = {sender: plan.sender} if self_transfer else {sender: plan.sender, recipient: plan.recipient}

        effects = self._interest_effects(
            now,
            (sender, s_before, plan.sender_interest),
            (recipient, r_before, plan.recipient_interest),
        )
        effects.append(
            Effect(
                event=Event.TRANSFERRED,
                timestamp=now,
                account=sender,
                counterparty=recipient,
                amount=plan.amount,
                rate=plan.recipient.locked_rate,
            )
        )
        self._commit(now, records, effects, allowances=allowance_updates)
        if plan.rate_inherited:
            log_event(
                logger,
                "rate_inherited",
                level=logging.DEBUG,
                account=recipient,
                source=sender,
                rate=plan.recipient.locked_rate,
            )

    # -- Command entry points --------------------------------------------------

    def step(self, command: Command) -> StepResult:
        """Execute one command; rejections are returned, not raised.

        Effects are reported only for commands executed outside `atomic()`;
        inside a unit of work they are deferred until it commits.
        """
        try:
            return self.step_or_raise(command)
        except LedgerError as exc:
            log_event(logger, "rejected", level=logging.DEBUG, action=command.action.value, code=exc.code)
            return StepResult(accepted=False, rejection=f"{exc.code}:{exc}")

    def step_or_raise(self, command: Command) -> StepResult:
        handler = _DISPATCH.get(command.action)
        if handler is None:
            raise LedgerParamError(f"unknown action: {command.action}")
        captured: list[Effect] = []
        outer, self._capture = self._capture, captured
        try:
            value = handler(self, command)
        finally:
            self._capture = outer
        return StepResult(accepted=True, effects=tuple(captured), value=value)

    # -- Units of work ---------------------------------------------------------

    @contextmanager
    def atomic(self) -> Iterator["InterestLedger"]:
        """Group several operations into one all-or-nothing unit of work.

        On any exception every commit made inside the block is undone and the
        exception propagates. Effects are emitted only once the block exits
        cleanly. Nested blocks join the outermost one.
        """
        if self._journal is not None:
            yield self
            return
        journal: list[_Undo] = []
        pending: list[Effect] = []
        self._journal, self._pending = journal, pending
        try:
            yield self
        except BaseException:
            self._journal = self._pending = None
            self._rollback(journal)
            log_event(logger, "rolled_back", level=logging.WARNING, commits=len(journal))
            raise
        self._journal = self._pending = None
        for effect in pending:
            self._dispatch(effect)

    # -- Internals -------------------------------------------------------------

    def _require_minter(self, caller: str) -> None:
        if not self._access.can_mint_and_burn(caller):
            raise Unauthorized(f"{caller!r} lacks the mint/burn role")

    def _now(self) -> int:
        now = self._clock()
        if not isinstance(now, int) or isinstance(now, bool) or now < 0:
            raise LedgerParamError(f"clock returned an invalid timestamp: {now!r}")
        if now < self._last_now:
            raise ClockRegression(f"clock went backwards: {now} < {self._last_now}")
        return now

    def _interest_effects(self, now: int, *touched: tuple[str, AccountRecord, int]) -> list[Effect]:
        return [
            Effect(
                event=Event.INTEREST_MATERIALIZED,
                timestamp=now,
                account=address,
                amount=interest,
                rate=before.locked_rate,
            )
            for address, before, interest in touched
            if interest > 0
        ]

    def _commit(
        self,
        now: int,
        records: dict[str, AccountRecord],
        effects: list[Effect],
        *,
        global_rate: int | None = None,
        allowances: Mapping[AllowanceKey, int] | None = None,
    ) -> None:
        rate = self._global_rate if global_rate is None else global_rate
        total = self._total_principal + sum(
            rec.principal - self._accounts.get(address).principal for address, rec in records.items()
        )
        violations = check_records(records, RecordContext(now=now, initial_rate=self._initial_rate))
        violations += check_ledger(
            LedgerContext(global_rate=rate, initial_rate=self._initial_rate, total_principal=total)
        )
        if total > MAX_AMOUNT:
            violations.append("inv_total_principal_bounded")
        if violations:
            raise LedgerInvariantError(violations)

        allowances = allowances or {}
        if self._journal is not None:
            self._journal.append(
                _Undo(
                    records={address: self._accounts.peek(address) for address in records},
                    global_rate=self._global_rate,
                    total_principal=self._total_principal,
                    last_now=self._last_now,
                    allowances={key: self._allowances.get(key) for key in allowances},
                )
            )

        for address, rec in records.items():
            self._accounts.put(address, rec)
        for key, amount in allowances.items():
            self._allowances[key] = amount
        self._global_rate = rate
        self._total_principal = total
        self._last_now = now

        for effect in effects:
            if self._pending is not None:
                self._pending.append(effect)
            else:
                self._dispatch(effect)

    def _rollback(self, journal: list[_Undo]) -> None:
        for undo in reversed(journal):
            for address, previous in undo.records.items():
                self._accounts.restore(address, previous)
            for key, previous_amount in undo.allowances.items():
                if previous_amount is None:
                    self._allowances.pop(key, None)
                else:
                    self._allowances[key] = previous_amount
            self._global_rate = undo.global_rate
            self._total_principal = undo.total_principal
            self._last_now = undo.last_now

    def _dispatch(self, effect: Effect) -> None:
        log_event(
            logger,
            effect.event.value,
            timestamp=effect.timestamp,
            account=effect.account,
            counterparty=effect.counterparty,
            amount=effect.amount,
            rate=effect.rate,
        )
        if self._capture is not None:
            self._capture.append(effect)
        for listener in list(self._listeners):
            listener(effect)

    def __repr__(self) -> str:
        return (
            f"InterestLedger({self.symbol}, accounts={len(self._accounts)}, "
            f"global_rate={self._global_rate}, total_supply={self._total_principal})"
        )


def _require_uint(name: str, value: object) -> None:
    if not is_uint(value):
        raise LedgerParamError(f"{name} must be an int in [0, 2**256-1]: {value!r}")


def _require_address(name: str, value: object) -> None:
    if not is_address(value):
        raise LedgerParamError(f"{name} must be a non-empty str: {value!r}")


# -- Command dispatch ------------------------------------------------------------

def _cmd_set_global_rate(ledger: InterestLedger, c: Command) -> None:
    ledger.set_global_rate(c.new_rate, caller=c.caller)


def _cmd_mint(ledger: InterestLedger, c: Command) -> None:
    ledger.mint(c.account, c.amount, caller=c.caller)


def _cmd_burn(ledger: InterestLedger, c: Command) -> int:
    return ledger.burn(c.account, c.amount, caller=c.caller)


def _cmd_transfer(ledger: InterestLedger, c: Command) -> bool:
    return ledger.transfer(c.account, c.recipient, c.amount)


def _cmd_approve(ledger: InterestLedger, c: Command) -> bool:
    return ledger.approve(c.account, c.spender, c.amount)


def _cmd_transfer_from(ledger: InterestLedger, c: Command) -> bool:
    return ledger.transfer_from(c.spender, c.account, c.recipient, c.amount)


_DISPATCH: dict[Action, Callable[[InterestLedger, Command], int | bool | None]] = {
    Action.SET_GLOBAL_RATE: _cmd_set_global_rate,
    Action.MINT: _cmd_mint,
    Action.BURN: _cmd_burn,
    Action.TRANSFER: _cmd_transfer,
    Action.APPROVE: _cmd_approve,
    Action.TRANSFER_FROM: _cmd_transfer_from,
}
