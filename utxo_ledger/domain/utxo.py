"""
UTXOLedger - UTXO View
========================
Resolution of InputRefs while a sequence of transactions is processed.

A UTXOView layers, on top of a backend resolver (the live store, or
nothing when replaying history from genesis):
- outputs created by transactions already processed through the view
- outputs already consumed through the view

so that an input may spend an output of an earlier transaction in the
same block, and the same output can never be spent twice.

When transaction ids repeat, the earliest transaction carrying an id
owns its output references: an output already recorded in the backend,
spent or not, is never shadowed by a later transaction of the view.
Ingestion and replay from genesis therefore resolve every input alike.
"""

from __future__ import annotations
from typing import Dict, Optional, Protocol, Set, Tuple

from utxo_ledger.domain.models import InputRef, ResolvedOutput, Transaction
from utxo_ledger.logging_setup import get_logger


logger = get_logger("utxo")


OutputKey = Tuple[str, int]


class OutputResolver(Protocol):
    """Anything able to resolve a live, unspent output"""
    
    def output_exists(self, tx_id: str, index: int) -> bool:
        ...
    
    def resolve_output(self, tx_id: str, index: int) -> Optional[ResolvedOutput]:
        ...


class EmptyResolver:
    """Backend with no recorded outputs (replay from genesis)"""
    
    def output_exists(self, tx_id: str, index: int) -> bool:
        return False
    
    def resolve_output(self, tx_id: str, index: int) -> Optional[ResolvedOutput]:
        return None


class UTXOView:
    """
    Spend-tracking view over an output resolver.
    
    Attributes:
        backend: Resolver for outputs recorded before this view
    
    Examples:
        >>> view = UTXOView(EmptyResolver())
        >>> view.add_outputs(Transaction("tx1", [], [Output("addr1", 10)]))
        >>> view.resolve(InputRef("tx1", 0))
        ResolvedOutput(address='addr1', value=10)
        >>> view.resolve(InputRef("tx1", 0)) is None  # already spent
        True
    """
    
    def __init__(self, backend: Optional[OutputResolver] = None):
        self.backend = backend or EmptyResolver()
        self._pending: Dict[OutputKey, ResolvedOutput] = {}
        self._spent: Set[OutputKey] = set()
    
    def resolve(self, ref: InputRef) -> Optional[ResolvedOutput]:
        """
        Resolve and consume an output reference.
        
        Args:
            ref: Input reference
        
        Returns:
            ResolvedOutput, or None if unknown or already spent
        """
        key = ref.key
        if key in self._spent:
            return None
        
        resolved = self.backend.resolve_output(ref.tx_id, ref.index)
        if resolved is None:
            resolved = self._pending.get(key)
        
        if resolved is None:
            return None
        
        self._spent.add(key)
        return resolved
    
    def add_outputs(self, tx: Transaction) -> None:
        """Make the outputs of a processed transaction spendable"""
        for index, output in enumerate(tx.outputs):
            key = (tx.id, index)
            # first transaction carrying an id keeps its outputs
            if key in self._pending or self.backend.output_exists(tx.id, index):
                continue
            self._pending[key] = ResolvedOutput(address=output.address, value=output.value)
    
    @property
    def spent_count(self) -> int:
        return len(self._spent)


__all__ = [
    "OutputKey",
    "OutputResolver",
    "EmptyResolver",
    "UTXOView",
]
