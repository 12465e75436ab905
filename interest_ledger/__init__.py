"""
Interest-bearing ledger token with lazy per-account accrual.
"""

__version__ = "0.1.0"
