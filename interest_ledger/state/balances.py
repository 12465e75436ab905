"""
Single-asset balance book for the base asset held in custody.

Implements AssetBook[Address] -> Amount
"""

from typing import Dict

from .accounts import Address, Amount


class AssetBook:
    """
    Balance book mapping address -> amount of the base asset.

    `transfer()` reports success as a bool instead of raising, the way an
    external asset contract signals the outcome of a call; callers decide
    how to fail.
    """

    def __init__(self):
        self._balances: Dict[Address, Amount] = {}

    def get(self, address: Address) -> Amount:
        """Get balance for address. Returns 0 if not found."""
        return self._balances.get(address, 0)

    def set(self, address: Address, amount: Amount) -> None:
        """
        Set balance for address.

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep the book sparse
            self._balances.pop(address, None)
        else:
            self._balances[address] = amount

    def add(self, address: Address, delta: Amount) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(address)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(address, new_balance)

    def transfer(self, src: Address, dst: Address, amount: Amount) -> bool:
        """Move `amount` from src to dst. Returns False (and changes nothing) if src is short."""
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        if self.get(src) < amount:
            return False
        self.add(src, -amount)
        self.add(dst, amount)
        return True

    def total(self) -> Amount:
        return sum(self._balances.values())

    def __repr__(self) -> str:
        return f"AssetBook({len(self._balances)} entries)"
