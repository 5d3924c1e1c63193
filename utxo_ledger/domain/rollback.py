"""
UTXOLedger - Rollback Engine
==============================
Reverts the ledger to an earlier height.

Blocks above the target are deleted and the balance table is rebuilt
from scratch by replaying every surviving transaction in ledger order.
There is no undo log: the result is always identical to replaying the
surviving chain from genesis.
"""

from typing import Dict, Iterable

from utxo_ledger.constants import GENESIS_HEIGHT
from utxo_ledger.domain.models import Transaction
from utxo_ledger.domain.results import Accepted, ErrorKind, LedgerResult, Rejected
from utxo_ledger.domain.state import compute_balance_deltas
from utxo_ledger.domain.utxo import UTXOView
from utxo_ledger.logging_setup import get_logger, PerformanceLogger


logger = get_logger("rollback")


def rebuild_balances(transactions: Iterable[Transaction]) -> Dict[str, int]:
    """
    Balances obtained by replaying history from an empty mapping.
    
    Args:
        transactions: Live transactions, ascending height then position
    
    Returns:
        dict: address -> balance
    """
    return compute_balance_deltas(transactions, UTXOView())


class RollbackEngine:
    """
    Rollback engine.
    
    Examples:
        >>> engine = RollbackEngine()
        >>> with database.session_scope() as store:
        ...     result = engine.rollback(1, store)
        >>> result.value["height"]
        1
    """
    
    def rollback(self, target_height: int, store) -> LedgerResult:
        """
        Roll the ledger back to target_height.
        
        Args:
            target_height: Height to keep (0 = empty ledger)
            store: LedgerStore of the current unit of work
        
        Returns:
            Accepted(summary) or Rejected(InvalidRollbackTarget)
        """
        head = store.max_height()
        
        if (
            not isinstance(target_height, int)
            or isinstance(target_height, bool)
            or not GENESIS_HEIGHT <= target_height <= head
        ):
            return Rejected(
                ErrorKind.INVALID_ROLLBACK_TARGET,
                details={"height": target_height, "head": head}
            )
        
        if target_height == head:
            return Accepted(value={
                "previous_height": head,
                "height": head,
                "removed_blocks": 0,
                "addresses": store.balance_count(),
            })
        
        with PerformanceLogger(logger, f"rollback(from={head}, to={target_height})"):
            removed = store.delete_blocks_above(target_height)
            balances = rebuild_balances(store.list_live_transactions_ordered())
            store.replace_all_balances(balances)
        
        logger.info(
            "Balances rebuilt",
            extra_data={
                "from_height": head,
                "to_height": target_height,
                "removed_blocks": removed,
                "addresses": len(balances)
            }
        )
        
        return Accepted(value={
            "previous_height": head,
            "height": target_height,
            "removed_blocks": removed,
            "addresses": len(balances),
        })


__all__ = [
    "rebuild_balances",
    "RollbackEngine",
]
