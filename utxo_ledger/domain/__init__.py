"""
UTXOLedger - Domain Package
=============================
Ledger ingestion, validation and rollback engine.
"""

from utxo_ledger.domain.models import (
    Block,
    InputRef,
    Output,
    ResolvedOutput,
    Transaction,
)
from utxo_ledger.domain.results import (
    Accepted,
    ErrorKind,
    LedgerResult,
    Rejected,
)
from utxo_ledger.domain.validation import BlockValidator
from utxo_ledger.domain.state import StateTransitionApplier, compute_balance_deltas
from utxo_ledger.domain.rollback import RollbackEngine, rebuild_balances
from utxo_ledger.domain.ledger import LedgerController

__all__ = [
    # Models
    "Block",
    "InputRef",
    "Output",
    "ResolvedOutput",
    "Transaction",
    
    # Results
    "Accepted",
    "ErrorKind",
    "LedgerResult",
    "Rejected",
    
    # Engine
    "BlockValidator",
    "StateTransitionApplier",
    "compute_balance_deltas",
    "RollbackEngine",
    "rebuild_balances",
    "LedgerController",
]
