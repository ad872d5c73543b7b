"""
Bookkeeping Engine

A double-entry bookkeeping ledger: chart of accounts, tax-aware journal
entries, running balances and the derived financial statements, computed
with Decimal arithmetic as pure functions over caller-owned data.
"""

__version__ = "1.0.0"
