"""
Custody vault: base asset in, interest-bearing tokens out.

The vault is an imperative shell around the ledger:
- `deposit` mints 1:1 with the base asset received (locking the current
  global rate for the depositor),
- `redeem` burns before releasing the base asset, and both happen inside one
  `InterestLedger.atomic()` unit of work: a failed release undoes the burn,
- `fund_rewards` adds the base-asset liquidity that backs accrued interest.

Every external asset call is a potential re-entry point; a re-entrant
deposit/redeem raises `ReentrantCall`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from ..core.accrual import InterestLedger
from ..core.accrual.errors import CustodyTransferFailed, LedgerParamError, ReentrantCall
from ..core.accrual.guards import is_address, is_uint
from ..logs import log_event
from ..state.balances import AssetBook

logger = logging.getLogger(__name__)

DEFAULT_VAULT_ADDRESS = "vault"


class CustodyVault:
    def __init__(self, ledger: InterestLedger, assets: AssetBook, *, address: str = DEFAULT_VAULT_ADDRESS) -> None:
        if not is_address(address):
            raise LedgerParamError(f"vault address must be a non-empty str: {address!r}")
        self._ledger = ledger
        self._assets = assets
        self._address = address
        self._entered = False

    @property
    def address(self) -> str:
        return self._address

    @property
    def ledger(self) -> InterestLedger:
        return self._ledger

    def get_global_rate(self) -> int:
        """Rate a deposit made now would lock."""
        return self._ledger.get_global_rate()

    def reserves(self) -> int:
        return self._assets.get(self._address)

    def deposit(self, user: str, amount: int) -> None:
        _require(user, amount)
        with self._non_reentrant():
            with self._ledger.atomic():
                self._ledger.mint(user, amount, caller=self._address)
                if not self._assets.transfer(user, self._address, amount):
                    raise CustodyTransferFailed(f"could not take {amount} from {user!r}")
        log_event(logger, "deposit", user=user, amount=amount, rate=self._ledger.get_user_rate(user))

    def redeem(self, user: str, amount: int) -> int:
        """Burn then release. `MAX_AMOUNT` redeems the full accrued balance.

        Returns the amount of base asset released.
        """
        _require(user, amount)
        with self._non_reentrant():
            with self._ledger.atomic():
                amount = self._ledger.burn(user, amount, caller=self._address)
                if not self._assets.transfer(self._address, user, amount):
                    log_event(
                        logger,
                        "redeem_release_failed",
                        level=logging.WARNING,
                        user=user,
                        amount=amount,
                        reserves=self.reserves(),
                    )
                    raise CustodyTransferFailed(f"could not release {amount} to {user!r}")
        log_event(logger, "redeem", user=user, amount=amount)
        return amount

    def fund_rewards(self, funder: str, amount: int) -> None:
        _require(funder, amount)
        if not self._assets.transfer(funder, self._address, amount):
            raise CustodyTransferFailed(f"could not take {amount} from {funder!r}")
        log_event(logger, "rewards_funded", funder=funder, amount=amount, reserves=self.reserves())

    @contextmanager
    def _non_reentrant(self) -> Iterator[None]:
        if self._entered:
            raise ReentrantCall("vault operation already in progress")
        self._entered = True
        try:
            yield
        finally:
            self._entered = False


def _require(user: str, amount: int) -> None:
    if not is_address(user):
        raise LedgerParamError(f"user must be a non-empty str: {user!r}")
    if not is_uint(amount):
        raise LedgerParamError(f"amount must be an int in [0, 2**256-1]: {amount!r}")
