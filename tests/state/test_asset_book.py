"""Tests for interest_ledger/state/balances.py."""

import pytest

from interest_ledger.state.balances import AssetBook


class TestAssetBook:
    def test_default_zero(self):
        assert AssetBook().get("a") == 0

    def test_set_zero_removes(self):
        b = AssetBook()
        b.set("a", 5)
        b.set("a", 0)
        assert b.total() == 0
        assert repr(b) == "AssetBook(0 entries)"

    def test_set_negative_rejected(self):
        with pytest.raises(ValueError):
            AssetBook().set("a", -1)

    def test_add(self):
        b = AssetBook()
        b.add("a", 10)
        b.add("a", -4)
        assert b.get("a") == 6
        with pytest.raises(ValueError):
            b.add("a", -7)

    def test_transfer_success(self):
        b = AssetBook()
        b.set("a", 10)
        assert b.transfer("a", "b", 4) is True
        assert (b.get("a"), b.get("b")) == (6, 4)
        assert b.total() == 10

    def test_transfer_short_changes_nothing(self):
        b = AssetBook()
        b.set("a", 3)
        assert b.transfer("a", "b", 4) is False
        assert (b.get("a"), b.get("b")) == (3, 0)

    def test_transfer_negative_rejected(self):
        with pytest.raises(ValueError):
            AssetBook().transfer("a", "b", -1)
