"""
UTXOLedger - Block Ledger Index
=================================
Append-only ledger of value-transfer blocks with per-address balances
and exact rollback.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Core imports
from utxo_ledger.config import LedgerSettings, get_settings
from utxo_ledger.domain.ledger import LedgerController
from utxo_ledger.domain.models import Block, InputRef, Output, Transaction
from utxo_ledger.domain.results import Accepted, ErrorKind, Rejected
from utxo_ledger.storage.db import LedgerDatabase

__all__ = [
    # Version
    "__version__",
    
    # Core
    "LedgerController",
    "LedgerDatabase",
    "LedgerSettings",
    "get_settings",
    
    # Models
    "Block",
    "InputRef",
    "Output",
    "Transaction",
    
    # Results
    "Accepted",
    "ErrorKind",
    "Rejected",
]
