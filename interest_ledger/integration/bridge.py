"""
Cross-ledger relay: burn on the source ledger, mint on the destination.

The two legs are independent and non-atomic. The relay only guarantees that
each sent message is delivered at most once; reconciling a message that is
never delivered is the operator's concern.

`BridgeMessage.source_rate` records the sender's locked rate for monitoring.
The destination mint locks the destination's current global rate.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Set

from ..core.accrual import InterestLedger
from ..core.accrual.errors import LedgerParamError, ReplayedMessage
from ..core.accrual.guards import is_address, is_uint
from ..logs import log_event

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BridgeMessage:
    nonce: int
    sender: str
    receiver: str
    amount: int
    source_rate: int


class BridgeRelay:
    """Operator-driven relay; `operator` must hold the mint/burn role on both ledgers."""

    def __init__(self, source: InterestLedger, destination: InterestLedger, *, operator: str) -> None:
        self._source = source
        self._destination = destination
        self._operator = operator
        self._next_nonce = 1
        self._outbox: Dict[int, BridgeMessage] = {}
        self._delivered: Set[int] = set()

    def send(self, sender: str, receiver: str, amount: int) -> BridgeMessage:
        """Burn on the source ledger. `MAX_AMOUNT` bridges the full balance."""
        if not is_address(receiver):
            raise LedgerParamError(f"receiver must be a non-empty str: {receiver!r}")
        if not is_uint(amount):
            raise LedgerParamError(f"amount must be an int in [0, 2**256-1]: {amount!r}")
        source_rate = self._source.get_user_rate(sender)
        amount = self._source.burn(sender, amount, caller=self._operator)

        message = BridgeMessage(
            nonce=self._next_nonce,
            sender=sender,
            receiver=receiver,
            amount=amount,
            source_rate=source_rate,
        )
        self._next_nonce += 1
        self._outbox[message.nonce] = message
        log_event(logger, "bridge_sent", nonce=message.nonce, sender=sender, receiver=receiver, amount=amount)
        return message

    def deliver(self, message: BridgeMessage) -> None:
        """Mint on the destination ledger, at most once per nonce."""
        if message.nonce in self._delivered:
            raise ReplayedMessage(f"message {message.nonce} already delivered")
        if self._outbox.get(message.nonce) != message:
            raise LedgerParamError(f"message {message.nonce} was not sent by this relay")
        self._destination.mint(message.receiver, message.amount, caller=self._operator)
        self._delivered.add(message.nonce)
        del self._outbox[message.nonce]
        log_event(logger, "bridge_delivered", nonce=message.nonce, receiver=message.receiver, amount=message.amount)

    def pending(self) -> list[BridgeMessage]:
        """Sent but not yet delivered, in nonce order."""
        return [self._outbox[n] for n in sorted(self._outbox)]
