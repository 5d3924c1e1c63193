"""
UTXOLedger - Ledger Controller
================================
Sequences validation, state transition and rollback under a
single-writer discipline.

Features:
- ingest_block: validate then apply, in one store transaction
- rollback_to: delete blocks above a height and rebuild balances
- get_balance: read-only lookup
- Store failures abort the unit of work and surface as StoreFailure
"""

from __future__ import annotations
import threading
from typing import Optional, TYPE_CHECKING

# Internal imports
from utxo_ledger.config import LedgerSettings
from utxo_ledger.domain.models import Block
from utxo_ledger.domain.results import Accepted, ErrorKind, LedgerResult, Rejected
from utxo_ledger.domain.rollback import RollbackEngine
from utxo_ledger.domain.state import StateTransitionApplier
from utxo_ledger.domain.validation import BlockValidator
from utxo_ledger.errors import StorageError
from utxo_ledger.logging_setup import get_logger, PerformanceLogger, AuditLogger

if TYPE_CHECKING:
    from utxo_ledger.storage.db import LedgerDatabase


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("ledger")


# ============================================================================
# LEDGER CONTROLLER
# ============================================================================

class LedgerController:
    """
    Ledger controller.
    
    The only component allowed to move the chain head. Mutating
    operations hold a lock from the height check through the commit, so
    two ingestions can never both see the same head.
    
    Attributes:
        database: Ledger database
        config: Ledger configuration
        validator: Block validator
        applier: State transition applier
        rollback_engine: Rollback engine
    
    Thread Safety:
        - ingest_block / rollback_to serialized by an RLock
        - get_balance / get_head read committed state without the lock
    
    Examples:
        >>> controller = LedgerController(database, config)
        >>> controller.ingest_block(block).ok
        True
        >>> controller.get_balance("addr1").value
        10
    """
    
    def __init__(
        self,
        database: LedgerDatabase,
        config: Optional[LedgerSettings] = None,
        validator: Optional[BlockValidator] = None,
        applier: Optional[StateTransitionApplier] = None,
        rollback_engine: Optional[RollbackEngine] = None,
    ):
        self.database = database
        self.config = config
        
        self.validator = validator or BlockValidator()
        self.applier = applier or StateTransitionApplier()
        self.rollback_engine = rollback_engine or RollbackEngine()
        
        self._lock = threading.RLock()
        
        self.audit_logger: Optional[AuditLogger] = None
        if config is not None and config.audit_log_enabled:
            self.audit_logger = AuditLogger(config.log_dir)
        
        if config is not None:
            logger.set_context(node=config.node_name)
        
        logger.info(
            "Ledger controller initialized",
            extra_data={"head": self.get_head()}
        )
    
    # ========================================================================
    # INGESTION
    # ========================================================================
    
    def ingest_block(self, block: Block) -> LedgerResult:
        """
        Validate and, on acceptance, apply a block.
        
        Args:
            block: Candidate block
        
        Returns:
            Accepted({"height", "block_id", "deltas"}) or Rejected(kind);
            a rejection leaves the ledger untouched
        """
        with self._lock:
            with PerformanceLogger(logger, f"ingest_block(height={block.height})"):
                try:
                    with self.database.session_scope() as store:
                        head = store.max_height()
                        
                        result = self.validator.validate(head, block, store)
                        if not result.ok:
                            return result
                        
                        deltas = self.applier.apply(block, store)
                
                except StorageError as e:
                    return self._store_failure("ingest_block", e, height=block.height)
        
        if self.audit_logger:
            self.audit_logger.log_block_accepted(
                block.height,
                block.id,
                len(block.transactions)
            )
        
        logger.info(
            "Block accepted",
            extra_data={
                "height": block.height,
                "block_id": block.id[:16] + "...",
                "tx_count": len(block.transactions)
            }
        )
        
        return Accepted(value={
            "height": block.height,
            "block_id": block.id,
            "deltas": deltas,
        })
    
    # ========================================================================
    # ROLLBACK
    # ========================================================================
    
    def rollback_to(self, height: int) -> LedgerResult:
        """
        Roll the ledger back to height.
        
        Args:
            height: Target height, 0 <= height <= head
        
        Returns:
            Accepted(summary) or Rejected(InvalidRollbackTarget / StoreFailure)
        """
        with self._lock:
            try:
                with self.database.session_scope() as store:
                    result = self.rollback_engine.rollback(height, store)
            
            except StorageError as e:
                return self._store_failure("rollback_to", e, height=height)
        
        if not result.ok:
            logger.info(
                "Rollback rejected",
                extra_data={"kind": result.kind.value, **result.details}
            )
            return result
        
        summary = result.value
        if summary["removed_blocks"] and self.audit_logger:
            self.audit_logger.log_rollback(
                summary["previous_height"],
                summary["height"],
                summary["removed_blocks"]
            )
        
        logger.info("Rollback completed", extra_data=summary)
        
        return result
    
    # ========================================================================
    # QUERIES
    # ========================================================================
    
    def get_balance(self, address: str) -> LedgerResult:
        """
        Current balance of an address.
        
        Returns:
            Accepted(balance), Rejected(AddressNotFound) for an unseen
            address, or Rejected(StoreFailure)
        """
        try:
            with self.database.session_scope() as store:
                balance = store.get_balance(address)
        except StorageError as e:
            return self._store_failure("get_balance", e, address=address)
        
        if balance is None:
            return Rejected(ErrorKind.ADDRESS_NOT_FOUND, details={"address": address})
        
        return Accepted(value=balance)
    
    def get_head(self) -> int:
        """Current chain head (0 if empty)"""
        with self.database.session_scope() as store:
            return store.max_height()
    
    def get_info(self) -> dict:
        """Head height, block count and address count"""
        with self.database.session_scope() as store:
            return {
                "height": store.max_height(),
                "blocks": store.block_count(),
                "addresses": store.balance_count(),
            }
    
    # ========================================================================
    # INTERNAL
    # ========================================================================
    
    def _store_failure(self, operation: str, error: StorageError, **context) -> Rejected:
        logger.error(
            f"{operation} aborted by store failure",
            extra_data={"error": error.to_dict(), **context},
            exc_info=error
        )
        return Rejected(ErrorKind.STORE_FAILURE, details={"code": error.code})
    
    def close(self) -> None:
        """Release audit log handlers"""
        if self.audit_logger:
            self.audit_logger.close()
    
    def __repr__(self) -> str:
        return f"LedgerController(database={self.database.database_url!r})"


__all__ = [
    "LedgerController",
]
