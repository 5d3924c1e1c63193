"""
UTXOLedger - API Package
==========================
REST API for ledger interaction.
"""

from utxo_ledger.api.rest_api import create_app

__all__ = [
    "create_app",
]
