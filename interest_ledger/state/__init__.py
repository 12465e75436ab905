"""
State storage for the interest ledger
"""

from .accounts import AccountRecord, AccountTable
from .balances import AssetBook

__all__ = [
    "AccountRecord",
    "AccountTable",
    "AssetBook",
]
