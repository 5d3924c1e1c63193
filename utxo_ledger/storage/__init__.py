"""
UTXOLedger - Storage Package
==============================
Ledger persistence.
"""

from utxo_ledger.storage.db import LedgerDatabase, LedgerStore

__all__ = [
    "LedgerDatabase",
    "LedgerStore",
]
