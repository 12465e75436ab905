"""
Owner + role gate for the ledger's privileged operations.

One owner administers the ledger (global rate changes) and grants or revokes
the mint/burn role. Vaults and bridge relays are the intended role holders.
"""

from __future__ import annotations

import logging
from typing import Set

from ..core.accrual.errors import LedgerParamError, Unauthorized
from ..logs import log_event

logger = logging.getLogger(__name__)

MINT_AND_BURN_ROLE = "MINT_AND_BURN_ROLE"


class AccessControl:
    """Implements the `Authority` protocol consumed by `InterestLedger`."""

    def __init__(self, owner: str) -> None:
        if not isinstance(owner, str) or not owner.strip():
            raise LedgerParamError(f"owner must be a non-empty str: {owner!r}")
        self._owner = owner
        self._minters: Set[str] = set()

    @property
    def owner(self) -> str:
        return self._owner

    def is_admin(self, caller: str) -> bool:
        return caller == self._owner

    def can_mint_and_burn(self, caller: str) -> bool:
        return caller in self._minters

    def members(self) -> list[str]:
        return sorted(self._minters)

    def grant_mint_and_burn_role(self, account: str, *, caller: str) -> None:
        self._require_owner(caller)
        if not isinstance(account, str) or not account.strip():
            raise LedgerParamError(f"account must be a non-empty str: {account!r}")
        self._minters.add(account)
        log_event(logger, "role_granted", role=MINT_AND_BURN_ROLE, account=account)

    def revoke_mint_and_burn_role(self, account: str, *, caller: str) -> None:
        self._require_owner(caller)
        self._minters.discard(account)
        log_event(logger, "role_revoked", role=MINT_AND_BURN_ROLE, account=account)

    def transfer_ownership(self, new_owner: str, *, caller: str) -> None:
        self._require_owner(caller)
        if not isinstance(new_owner, str) or not new_owner.strip():
            raise LedgerParamError(f"new_owner must be a non-empty str: {new_owner!r}")
        previous, self._owner = self._owner, new_owner
        log_event(logger, "ownership_transferred", previous=previous, owner=new_owner)

    def _require_owner(self, caller: str) -> None:
        if caller != self._owner:
            raise Unauthorized(f"{caller!r} is not the owner")
