"""
Ledger snapshot encoding.

Goals:
- Deterministic JSON serialization for persistence and hashing.
- Round-trippable into an `InterestLedger` (records, allowances, rates).
- Explicit versioning.

Persisted layout: one record per account `{principal, locked_rate,
last_sync}` plus the global `{global_rate}`; `initial_rate` and allowances
ride along so a restored ledger enforces the same ceilings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from ..core.accrual import Authority, InterestLedger
from ..core.accrual.engine import Clock
from ..state.accounts import AccountRecord
from ..state.canonical import canonical_json_bytes, domain_sep_bytes, sha256_hex


LEDGER_SNAPSHOT_VERSION = 1


def _require_str(value: Any, *, name: str, max_len: int = 4096) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{name} must be a string")
    if not value:
        raise ValueError(f"{name} must be non-empty")
    if len(value) > max_len:
        raise ValueError(f"{name} too large")
    return value


def _require_int(value: Any, *, name: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0:
        raise ValueError(f"{name} must be non-negative")
    return int(value)


@dataclass(frozen=True)
class LedgerSnapshot:
    """
    Deterministic, versioned snapshot of an `InterestLedger`.

    The commitment is *not* included inside `data` to avoid self-reference.
    """

    version: int
    data: Dict[str, Any]

    def canonical_bytes(self) -> bytes:
        return canonical_json_bytes(self.data)

    def commitment_hex(self) -> str:
        payload = domain_sep_bytes("ledger_snapshot", version=self.version) + self.canonical_bytes()
        return sha256_hex(payload)


def snapshot_from_ledger(ledger: InterestLedger, *, version: int = LEDGER_SNAPSHOT_VERSION) -> LedgerSnapshot:
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")

    accounts = [
        {
            "address": address,
            "principal": int(record.principal),
            "locked_rate": int(record.locked_rate),
            "last_sync": int(record.last_sync),
        }
        for address, record in ledger.iter_records()
    ]
    allowances = [
        {"owner": owner, "spender": spender, "amount": int(amount)}
        for (owner, spender), amount in ledger.iter_allowances()
    ]

    data: Dict[str, Any] = {
        "version": int(version),
        "name": ledger.name,
        "symbol": ledger.symbol,
        "decimals": int(ledger.decimals),
        "global_rate": int(ledger.get_global_rate()),
        "initial_rate": int(ledger.initial_rate),
        "accounts": accounts,
        "allowances": allowances,
    }
    return LedgerSnapshot(version=version, data=data)


def ledger_from_snapshot(
    snapshot: Mapping[str, Any],
    *,
    access: Authority,
    clock: Clock | None = None,
) -> InterestLedger:
    """Rebuild a ledger. Duplicate addresses and malformed entries fail closed."""
    if not isinstance(snapshot, Mapping):
        raise TypeError("snapshot must be a mapping")
    version = _require_int(snapshot.get("version"), name="version")
    if version != LEDGER_SNAPSHOT_VERSION:
        raise ValueError(f"unsupported snapshot version: {version}")

    records: Dict[str, AccountRecord] = {}
    for entry in snapshot.get("accounts") or []:
        if not isinstance(entry, Mapping):
            raise TypeError("account entry must be a mapping")
        address = _require_str(entry.get("address"), name="address")
        if address in records:
            raise ValueError(f"duplicate account in snapshot: {address}")
        records[address] = AccountRecord(
            principal=_require_int(entry.get("principal"), name="principal"),
            locked_rate=_require_int(entry.get("locked_rate"), name="locked_rate"),
            last_sync=_require_int(entry.get("last_sync"), name="last_sync"),
        )

    allowances: Dict[tuple[str, str], int] = {}
    for entry in snapshot.get("allowances") or []:
        if not isinstance(entry, Mapping):
            raise TypeError("allowance entry must be a mapping")
        key = (_require_str(entry.get("owner"), name="owner"), _require_str(entry.get("spender"), name="spender"))
        if key in allowances:
            raise ValueError(f"duplicate allowance in snapshot: {key}")
        allowances[key] = _require_int(entry.get("amount"), name="allowance")

    return InterestLedger.from_state(
        access=access,
        initial_rate=_require_int(snapshot.get("initial_rate"), name="initial_rate"),
        global_rate=_require_int(snapshot.get("global_rate"), name="global_rate"),
        records=records,
        allowances=allowances,
        clock=clock,
        name=_require_str(snapshot.get("name"), name="name"),
        symbol=_require_str(snapshot.get("symbol"), name="symbol"),
        decimals=_require_int(snapshot.get("decimals"), name="decimals"),
    )


def state_root(ledger: InterestLedger) -> str:
    """Commitment over the ledger's persisted state (0x-prefixed sha256 hex)."""
    return snapshot_from_ledger(ledger).commitment_hex()
