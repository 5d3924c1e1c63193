"""
UTXOLedger - Block Validation
===============================
Side-effect-free acceptance decision for candidate blocks.

Validation Rules (first failure wins):
1. Sequential height: block.height == head + 1
2. Value conservation: every input resolves to a live, unspent output,
   and total resolved input value == total output value over the block.
   A block without any input is an issuance block and mints its outputs.
3. Identity: block.id == sha256(height + concatenated tx ids)
"""

from typing import List, Union

# Internal imports
from utxo_ledger.domain.models import Block, ResolvedOutput
from utxo_ledger.domain.results import Accepted, ErrorKind, LedgerResult, Rejected
from utxo_ledger.domain.utxo import OutputResolver, UTXOView
from utxo_ledger.logging_setup import get_logger, PerformanceLogger


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("validation")


ResolvedInputs = List[List[ResolvedOutput]]


# ============================================================================
# BLOCK VALIDATION
# ============================================================================

class BlockValidator:
    """
    Block validator.
    
    Reads through the resolver only; never writes. On acceptance the
    result value is the resolved inputs, one list per transaction.
    
    Examples:
        >>> validator = BlockValidator()
        >>> with database.session_scope() as store:
        ...     result = validator.validate(store.max_height(), block, store)
        >>> result.ok
        True
    """
    
    def validate(
        self,
        current_head: int,
        block: Block,
        resolver: OutputResolver
    ) -> LedgerResult:
        """
        Validate a candidate block against the current chain head.
        
        Args:
            current_head: Height of the highest live block (0 if none)
            block: Candidate block
            resolver: Live output resolver (the store)
        
        Returns:
            Accepted(resolved inputs) or Rejected(kind)
        """
        with PerformanceLogger(logger, f"validate_block(height={block.height})"):
            result = self._validate(current_head, block, resolver)
        
        if not result.ok:
            logger.info(
                "Block rejected",
                extra_data={
                    "height": block.height,
                    "kind": result.kind.value,
                    **result.details
                }
            )
        
        return result
    
    def _validate(self, current_head: int, block: Block, resolver: OutputResolver) -> LedgerResult:
        # 1. Sequential height
        expected_height = current_head + 1
        if block.height != expected_height:
            return Rejected(
                ErrorKind.SEQUENTIAL_HEIGHT_VIOLATION,
                details={"expected": expected_height, "got": block.height}
            )
        
        # 2. Value conservation
        resolved = self._resolve_inputs(block, resolver)
        if isinstance(resolved, Rejected):
            return resolved
        
        input_sum = sum(r.value for tx_inputs in resolved for r in tx_inputs)
        output_sum = block.total_output_value()
        if block.has_inputs() and input_sum != output_sum:
            return Rejected(
                ErrorKind.IMBALANCED_TRANSACTION,
                details={"input_sum": input_sum, "output_sum": output_sum}
            )
        
        # 3. Identity
        expected_id = block.compute_expected_id()
        if block.id != expected_id:
            return Rejected(
                ErrorKind.INVALID_BLOCK_ID,
                details={"expected": expected_id, "got": block.id}
            )
        
        return Accepted(value=resolved)
    
    def _resolve_inputs(
        self,
        block: Block,
        resolver: OutputResolver
    ) -> Union[ResolvedInputs, Rejected]:
        view = UTXOView(resolver)
        resolved: ResolvedInputs = []
        
        for tx in block.transactions:
            tx_inputs = []
            for ref in tx.inputs:
                output = view.resolve(ref)
                if output is None:
                    return Rejected(
                        ErrorKind.UNRESOLVED_INPUT,
                        details={"tx_id": tx.id, "ref_tx_id": ref.tx_id, "index": ref.index}
                    )
                tx_inputs.append(output)
            
            resolved.append(tx_inputs)
            view.add_outputs(tx)
        
        return resolved


__all__ = [
    "BlockValidator",
    "ResolvedInputs",
]
