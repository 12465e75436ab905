"""Tests for interest_ledger/integration/snapshot.py."""

import json

import pytest

from interest_ledger.core.accrual import DEFAULT_GLOBAL_RATE, LedgerInvariantError, RateIncreaseRejected
from interest_ledger.integration.snapshot import (
    LEDGER_SNAPSHOT_VERSION,
    ledger_from_snapshot,
    snapshot_from_ledger,
    state_root,
)

R = DEFAULT_GLOBAL_RATE


@pytest.fixture
def populated(ledger, clock):
    ledger.mint("alice", 100, caller="minter")
    ledger.set_global_rate(R // 2, caller="admin")
    clock.advance(50)
    ledger.transfer("alice", "bob", 40)
    ledger.approve("alice", "carol", 9)
    return ledger


class TestSnapshot:
    def test_layout(self, populated, clock):
        data = snapshot_from_ledger(populated).data
        assert data["version"] == LEDGER_SNAPSHOT_VERSION
        assert data["global_rate"] == R // 2
        assert data["initial_rate"] == R
        assert [a["address"] for a in data["accounts"]] == ["alice", "bob"]
        assert data["accounts"][1] == {"address": "bob", "principal": 40, "locked_rate": R, "last_sync": clock.now}
        assert data["allowances"] == [{"owner": "alice", "spender": "carol", "amount": 9}]

    def test_canonical_bytes_are_json(self, populated):
        snap = snapshot_from_ledger(populated)
        assert json.loads(snap.canonical_bytes()) == snap.data
        assert b" " not in snap.canonical_bytes().replace(b"Interest Ledger Token", b"")

    def test_state_root_stable_and_sensitive(self, populated):
        root = state_root(populated)
        assert root.startswith("0x") and len(root) == 66
        assert state_root(populated) == root
        populated.transfer("bob", "alice", 1)
        assert state_root(populated) != root

    def test_state_root_ignores_time_passing(self, populated, clock):
        root = state_root(populated)
        clock.advance(10_000)
        assert state_root(populated) == root

    def test_invalid_version(self, populated):
        with pytest.raises(ValueError):
            snapshot_from_ledger(populated, version=0)


class TestRestore:
    def test_round_trip(self, populated, access, clock):
        data = snapshot_from_ledger(populated).data
        restored = ledger_from_snapshot(data, access=access, clock=clock)
        assert state_root(restored) == state_root(populated)
        assert restored.balance_of("bob") == populated.balance_of("bob")
        assert restored.allowance("alice", "carol") == 9
        assert restored.total_supply() == populated.total_supply()

    def test_restored_ledger_keeps_rate_monotone(self, populated, access, clock):
        restored = ledger_from_snapshot(snapshot_from_ledger(populated).data, access=access, clock=clock)
        with pytest.raises(RateIncreaseRejected):
            restored.set_global_rate(R // 2, caller="admin")

    def test_duplicate_account_rejected(self, populated, access, clock):
        data = snapshot_from_ledger(populated).data
        data["accounts"].append(dict(data["accounts"][0]))
        with pytest.raises(ValueError, match="duplicate"):
            ledger_from_snapshot(data, access=access, clock=clock)

    def test_bad_types_rejected(self, populated, access, clock):
        data = snapshot_from_ledger(populated).data
        data["accounts"][0]["principal"] = "100"
        with pytest.raises(TypeError):
            ledger_from_snapshot(data, access=access, clock=clock)

    def test_rate_above_ceiling_fails_closed(self, populated, access, clock):
        data = snapshot_from_ledger(populated).data
        data["accounts"][0]["locked_rate"] = R + 1
        with pytest.raises(LedgerInvariantError):
            ledger_from_snapshot(data, access=access, clock=clock)

    def test_unsupported_version(self, access):
        with pytest.raises(ValueError):
            ledger_from_snapshot({"version": 99}, access=access)
