"""
Collaborators around the ledger core: access control, custody vault, bridge
relay, configuration and snapshots.
"""

from .access import MINT_AND_BURN_ROLE, AccessControl
from .bridge import BridgeMessage, BridgeRelay
from .config import LedgerConfig, build_ledger, load_config
from .snapshot import LedgerSnapshot, ledger_from_snapshot, snapshot_from_ledger, state_root
from .vault import CustodyVault

__all__ = [
    "MINT_AND_BURN_ROLE",
    "AccessControl",
    "BridgeMessage",
    "BridgeRelay",
    "CustodyVault",
    "LedgerConfig",
    "LedgerSnapshot",
    "build_ledger",
    "ledger_from_snapshot",
    "load_config",
    "snapshot_from_ledger",
    "state_root",
]
