"""
Per-account accrual records.

Implements AccountTable[Address] -> AccountRecord
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Tuple


# Type aliases
Address = str  # opaque account identifier (hex address, name, ...)
Amount = int  # Non-negative integer (arbitrary precision)
Rate = int  # Per-second rate scaled by PRECISION
Timestamp = int  # Seconds


@dataclass(frozen=True)
class AccountRecord:
    """Stored state of one account.

    `principal` excludes interest accrued since `last_sync`; `locked_rate` is
    the rate assigned by the most recent deposit or zero-balance transfer-in.
    """

    principal: Amount = 0
    locked_rate: Rate = 0
    last_sync: Timestamp = 0

    def __post_init__(self) -> None:
        for name in ("principal", "locked_rate", "last_sync"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")


EMPTY_RECORD = AccountRecord()


class AccountTable:
    """
    Keyed storage mapping address -> AccountRecord.

    Unlike a sparse balance table, records are never deleted: an account whose
    principal drops to zero keeps its locked rate and last sync timestamp.
    Callers that hash or serialize must sort keys explicitly.
    """

    def __init__(self) -> None:
        self._records: Dict[Address, AccountRecord] = {}

    def get(self, address: Address) -> AccountRecord:
        """Get the record for `address`. Unknown addresses read as all-zero."""
        return self._records.get(address, EMPTY_RECORD)

    def put(self, address: Address, record: AccountRecord) -> None:
        if not isinstance(record, AccountRecord):
            raise TypeError(f"expected AccountRecord, got {type(record).__name__}")
        self._records[address] = record

    def restore(self, address: Address, record: AccountRecord | None) -> None:
        """Reinstate a previous record; `None` means the address was never stored."""
        if record is None:
            self._records.pop(address, None)
        else:
            self.put(address, record)

    def peek(self, address: Address) -> AccountRecord | None:
        """Stored record or None, distinguishing unknown from all-zero."""
        return self._records.get(address)

    def __contains__(self, address: object) -> bool:
        return address in self._records

    def __len__(self) -> int:
        return len(self._records)

    def items(self) -> Iterator[Tuple[Address, AccountRecord]]:
        return iter(list(self._records.items()))

    def addresses(self) -> list[Address]:
        return sorted(self._records)

    def total_principal(self) -> Amount:
        return sum(r.principal for r in self._records.values())

    def __repr__(self) -> str:
        return f"AccountTable({len(self._records)} accounts)"
