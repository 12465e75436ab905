"""Tests for interest_ledger/integration/vault.py: custody around the ledger."""

import pytest

from interest_ledger.core.accrual import (
    DEFAULT_GLOBAL_RATE,
    MAX_AMOUNT,
    CustodyTransferFailed,
    InsufficientBalance,
    InterestLedger,
    LedgerParamError,
    ReentrantCall,
    Unauthorized,
)
from interest_ledger.integration.vault import CustodyVault
from interest_ledger.state.balances import AssetBook

ADMIN = "admin"
TOKEN = 10**18
R = DEFAULT_GLOBAL_RATE


@pytest.fixture
def assets() -> AssetBook:
    book = AssetBook()
    book.set("alice", 100 * TOKEN)
    book.set("treasury", 10 * TOKEN)
    return book


@pytest.fixture
def vault(ledger, access, assets) -> CustodyVault:
    v = CustodyVault(ledger, assets)
    access.grant_mint_and_burn_role(v.address, caller=ADMIN)
    return v


class TestDeposit:
    def test_mints_one_to_one_at_global_rate(self, vault, ledger, assets):
        vault.deposit("alice", 100 * TOKEN)
        assert ledger.balance_of("alice") == 100 * TOKEN
        assert ledger.get_user_rate("alice") == R
        assert assets.get("alice") == 0
        assert vault.reserves() == 100 * TOKEN

    def test_locks_rate_current_at_deposit(self, vault, ledger):
        ledger.set_global_rate(R // 4, caller=ADMIN)
        assert vault.get_global_rate() == R // 4
        vault.deposit("alice", TOKEN)
        assert ledger.get_user_rate("alice") == R // 4

    def test_failed_pull_rolls_back_mint(self, vault, ledger, effects):
        with pytest.raises(CustodyTransferFailed):
            vault.deposit("alice", 101 * TOKEN)
        assert "alice" not in ledger.accounts()
        assert ledger.total_supply() == 0
        assert effects == []

    def test_requires_role(self, ledger, assets):
        v = CustodyVault(ledger, assets, address="rogue")
        with pytest.raises(Unauthorized):
            v.deposit("alice", TOKEN)
        assert assets.get("alice") == 100 * TOKEN

    def test_bad_params(self, vault):
        with pytest.raises(LedgerParamError):
            vault.deposit("", 1)
        with pytest.raises(LedgerParamError):
            vault.deposit("alice", -1)


class TestRedeem:
    def test_full_redeem_pays_interest_from_rewards(self, vault, ledger, assets, clock):
        vault.fund_rewards("treasury", TOKEN)
        vault.deposit("alice", 100 * TOKEN)
        clock.advance(1_000)

        released = vault.redeem("alice", MAX_AMOUNT)

        assert released == 100 * TOKEN + 5 * 10**15
        assert assets.get("alice") == released
        assert ledger.balance_of("alice") == 0
        assert vault.reserves() == 101 * TOKEN - released

    def test_partial_redeem(self, vault, ledger, assets):
        vault.deposit("alice", 100 * TOKEN)
        assert vault.redeem("alice", 40 * TOKEN) == 40 * TOKEN
        assert ledger.principal_of("alice") == 60 * TOKEN
        assert assets.get("alice") == 40 * TOKEN

    def test_failed_release_restores_record(self, vault, ledger, clock, effects):
        vault.deposit("alice", 100 * TOKEN)
        clock.advance(1_000)
        before = ledger.record("alice")
        effects.clear()

        # Interest is owed but no rewards were funded.
        with pytest.raises(CustodyTransferFailed):
            vault.redeem("alice", MAX_AMOUNT)

        assert ledger.record("alice") == before
        assert ledger.principal_of("alice") == 100 * TOKEN
        assert vault.reserves() == 100 * TOKEN
        assert effects == []

    def test_redeem_more_than_balance(self, vault, ledger):
        vault.deposit("alice", TOKEN)
        with pytest.raises(InsufficientBalance):
            vault.redeem("alice", 2 * TOKEN)


class TestFundRewards:
    def test_moves_assets(self, vault, assets):
        vault.fund_rewards("treasury", 4 * TOKEN)
        assert vault.reserves() == 4 * TOKEN
        assert assets.get("treasury") == 6 * TOKEN

    def test_short_funder(self, vault):
        with pytest.raises(CustodyTransferFailed):
            vault.fund_rewards("treasury", 11 * TOKEN)


class _ReenteringBook(AssetBook):
    def __init__(self):
        super().__init__()
        self.vault = None

    def transfer(self, src, dst, amount):
        if self.vault is not None:
            self.vault.deposit(src, amount)
        return super().transfer(src, dst, amount)


class TestReentrancy:
    def test_reentrant_deposit_rejected_and_rolled_back(self, ledger, access):
        book = _ReenteringBook()
        book.set("alice", TOKEN)
        v = CustodyVault(ledger, book)
        access.grant_mint_and_burn_role(v.address, caller=ADMIN)
        book.vault = v

        with pytest.raises(ReentrantCall):
            v.deposit("alice", TOKEN)

        assert ledger.total_supply() == 0
        assert book.get("alice") == TOKEN

        # the guard is released after the failure
        book.vault = None
        v.deposit("alice", TOKEN)
        assert ledger.balance_of("alice") == TOKEN


class TestRedeemWithMovingClock:
    def test_full_redeem_leaves_nothing_behind(self, access, ticking_clock):
        ledger = InterestLedger(access=access, clock=ticking_clock)
        book = AssetBook()
        book.set("alice", 100 * TOKEN)
        book.set("treasury", TOKEN)
        v = CustodyVault(ledger, book)
        access.grant_mint_and_burn_role(v.address, caller=ADMIN)
        v.fund_rewards("treasury", TOKEN)
        v.deposit("alice", 100 * TOKEN)

        released = v.redeem("alice", MAX_AMOUNT)

        # burn happens one tick after the mint
        assert released == 100 * TOKEN + 100 * TOKEN * R // 10**18
        assert ledger.principal_of("alice") == 0
        assert book.get("alice") == released
        assert v.reserves() == 101 * TOKEN - released
