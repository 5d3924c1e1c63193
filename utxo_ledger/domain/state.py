"""
UTXOLedger - State Transition
===============================
Balance deltas implied by transactions, and their application.

The same arithmetic serves block ingestion (deltas applied to the
stored balances) and rollback replay (deltas accumulated from an empty
mapping).
"""

from typing import Dict, Iterable, Optional

from utxo_ledger.domain.models import Block, Transaction
from utxo_ledger.domain.utxo import UTXOView
from utxo_ledger.errors import DatabaseCorruptionError
from utxo_ledger.logging_setup import get_logger


logger = get_logger("state")


def compute_balance_deltas(
    transactions: Iterable[Transaction],
    view: UTXOView,
    deltas: Optional[Dict[str, int]] = None
) -> Dict[str, int]:
    """
    Accumulate balance deltas, transaction by transaction.
    
    For each transaction: debit the address of every resolved input by
    its value, then credit every output's address (an address credited
    for the first time gets an entry, even with value 0).
    
    Args:
        transactions: Transactions in ledger order
        view: Resolver of spent outputs
        deltas: Mapping to accumulate into (new if None)
    
    Returns:
        dict: address -> signed delta
    
    Raises:
        DatabaseCorruptionError: If an input cannot be resolved
    """
    deltas = {} if deltas is None else deltas
    
    for tx in transactions:
        for ref in tx.inputs:
            resolved = view.resolve(ref)
            if resolved is None:
                raise DatabaseCorruptionError(
                    f"Input {ref} of transaction {tx.id} does not resolve",
                    code="UNRESOLVABLE_HISTORY",
                    details={"tx_id": tx.id, "ref_tx_id": ref.tx_id, "index": ref.index}
                )
            deltas[resolved.address] = deltas.get(resolved.address, 0) - resolved.value
        
        for output in tx.outputs:
            deltas[output.address] = deltas.get(output.address, 0) + output.value
        
        view.add_outputs(tx)
    
    return deltas


class StateTransitionApplier:
    """
    Applies an accepted block to the store.
    
    Must run inside the same store transaction as validation: the block
    rows and every balance change commit together or not at all.
    """
    
    def apply(self, block: Block, store) -> Dict[str, int]:
        """
        Persist the block and apply its balance deltas.
        
        Args:
            block: Block accepted by the validator
            store: LedgerStore of the current unit of work
        
        Returns:
            dict: Applied deltas (address -> signed amount)
        """
        # Resolve before recording: recorded inputs mark outputs as spent
        deltas = compute_balance_deltas(block.transactions, UTXOView(store))
        
        store.record_block(block)
        store.apply_balance_deltas(deltas)
        
        logger.debug(
            "Block applied",
            extra_data={"height": block.height, "addresses": len(deltas)}
        )
        
        return deltas


__all__ = [
    "compute_balance_deltas",
    "StateTransitionApplier",
]
