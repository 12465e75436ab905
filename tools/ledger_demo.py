#!/usr/bin/env python3
"""Offline walkthrough: deposit, accrue, lower the rate, gift a balance, redeem."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from interest_ledger.core.accrual import MAX_AMOUNT
from interest_ledger.integration import CustodyVault, build_ledger, load_config, state_root
from interest_ledger.logs import configure_logging
from interest_ledger.state import AssetBook


class _ManualClock:
    def __init__(self, start: int) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--config", type=Path, default=ROOT / "config" / "ledger.yaml")
    ap.add_argument("--deposit", type=int, default=10**18)
    ap.add_argument("--elapsed", type=int, default=3600, help="seconds between deposit and transfer")
    args = ap.parse_args(argv)

    config = load_config(args.config)
    configure_logging(config.log_level)

    clock = _ManualClock(1_700_000_000)
    ledger, access = build_ledger(config, clock=clock)
    assets = AssetBook()
    vault = CustodyVault(ledger, assets)
    access.grant_mint_and_burn_role(vault.address, caller=config.owner)

    assets.set("alice", args.deposit)
    assets.set("treasury", args.deposit)
    vault.fund_rewards("treasury", args.deposit)
    vault.deposit("alice", args.deposit)

    clock.now += args.elapsed
    accrued = ledger.balance_of("alice")
    ledger.set_global_rate(ledger.get_global_rate() // 2, caller=config.owner)
    ledger.transfer("alice", "bob", MAX_AMOUNT)
    released = vault.redeem("bob", MAX_AMOUNT)

    print(
        json.dumps(
            {
                "accrued_after_elapsed": accrued,
                "bob_rate": ledger.get_user_rate("bob"),
                "global_rate": ledger.get_global_rate(),
                "released_to_bob": released,
                "vault_reserves": vault.reserves(),
                "state_root": state_root(ledger),
            },
            indent=2,
        )
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
