import pytest

from interest_ledger.core.accrual import DEFAULT_GLOBAL_RATE, InterestLedger
from interest_ledger.integration.access import AccessControl

ADMIN = "admin"
MINTER = "minter"
T0 = 1_000


class ManualClock:
    """Deterministic clock; tests move time with `advance()`."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


class TickingClock(ManualClock):
    """Moves one second forward on every read."""

    def __call__(self) -> int:
        self.now += 1
        return self.now


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def ticking_clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def access() -> AccessControl:
    a = AccessControl(ADMIN)
    a.grant_mint_and_burn_role(MINTER, caller=ADMIN)
    return a


@pytest.fixture
def ledger(access, clock) -> InterestLedger:
    return InterestLedger(access=access, initial_rate=DEFAULT_GLOBAL_RATE, clock=clock)


@pytest.fixture
def effects(ledger) -> list:
    seen: list = []
    ledger.subscribe(seen.append)
    return seen
