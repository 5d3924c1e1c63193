"""
UTXOLedger - Database Storage Layer
=====================================
Transactional ledger store on SQLAlchemy.

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Block persistence with full input/output structure
- Live, unspent output resolution
- Cascading deletion above a height
- Ordered replay of surviving history
- Materialized balance table
- One database transaction per unit of work
"""

from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Optional

from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine, delete, event, func, insert, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker

# Internal imports
from utxo_ledger.config import LedgerSettings
from utxo_ledger.constants import GENESIS_HEIGHT, MAX_VALUE
from utxo_ledger.domain.models import (
    Block,
    InputRef,
    Output,
    ResolvedOutput,
    Transaction,
)
from utxo_ledger.errors import (
    DatabaseConnectionError,
    DatabaseError,
)
from utxo_ledger.logging_setup import get_logger
from utxo_ledger.storage.models_orm import (
    Base,
    BalanceORM,
    BlockORM,
    TransactionORM,
    TxInputORM,
    TxOutputORM,
)
from utxo_ledger.storage.migrations import stamp_database


# ============================================================================
# MODULE LOGGER
# ============================================================================

logger = get_logger("storage")


# ============================================================================
# SQLITE SETUP
# ============================================================================

def _enable_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    """Enable foreign keys on every new SQLite connection"""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


# ============================================================================
# STORE (session-bound)
# ============================================================================

class LedgerStore:
    """
    Ledger store operations bound to one database transaction.
    
    Obtained from LedgerDatabase.session_scope(); every call made
    through the same instance commits or rolls back together.
    
    Examples:
        >>> with database.session_scope() as store:
        ...     head = store.max_height()
        ...     store.record_block(block)
    """
    
    def __init__(self, session: Session):
        self.session = session
    
    # ========================================================================
    # CHAIN HEAD
    # ========================================================================
    
    def max_height(self) -> int:
        """
        Height of the highest live block.
        
        Returns:
            int: Height, 0 if no blocks
        """
        height = self.session.scalar(select(func.max(BlockORM.height)))
        return GENESIS_HEIGHT if height is None else height
    
    def block_count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(BlockORM))
    
    # ========================================================================
    # OUTPUT RESOLUTION
    # ========================================================================
    
    def output_exists(self, tx_id: str, index: int) -> bool:
        """
        Whether a live transaction carrying tx_id has an output at index,
        spent or not.
        """
        return bool(self.session.scalar(
            select(
                select(TxOutputORM.pk)
                .join(TransactionORM, TxOutputORM.transaction_pk == TransactionORM.pk)
                .where(TransactionORM.tx_id == tx_id, TxOutputORM.output_index == index)
                .exists()
            )
        ))
    
    def resolve_output(self, tx_id: str, index: int) -> Optional[ResolvedOutput]:
        """
        Resolve an output reference among live transactions.
        
        When several live transactions share tx_id, the earliest one
        (block height, then position) owns the reference.
        
        Args:
            tx_id: Referenced transaction id
            index: Output index
        
        Returns:
            ResolvedOutput, or None if the output does not exist or has
            already been spent by a live input
        """
        row = self.session.execute(
            select(TxOutputORM.address, TxOutputORM.value)
            .join(TransactionORM, TxOutputORM.transaction_pk == TransactionORM.pk)
            .join(BlockORM, TransactionORM.block_height == BlockORM.height)
            .where(TransactionORM.tx_id == tx_id, TxOutputORM.output_index == index)
            .order_by(BlockORM.height, TransactionORM.position)
            .limit(1)
        ).first()
        
        if row is None:
            return None
        
        spent = self.session.scalar(
            select(
                select(TxInputORM.pk)
                .where(
                    TxInputORM.ref_tx_id == tx_id,
                    TxInputORM.ref_output_index == index,
                )
                .exists()
            )
        )
        if spent:
            return None
        
        return ResolvedOutput(address=row.address, value=row.value)
    
    # ========================================================================
    # BLOCK OPERATIONS
    # ========================================================================
    
    def record_block(self, block: Block) -> None:
        """
        Persist a block and all of its transactions.
        
        Args:
            block: Accepted block
        """
        self.session.add(BlockORM(id=block.id, height=block.height))
        
        for position, tx in enumerate(block.transactions):
            self.record_transaction(tx, block.height, position)
        
        self.session.flush()
        
        logger.debug(
            "Block recorded",
            extra_data={
                "height": block.height,
                "block_id": block.id[:16] + "...",
                "tx_count": len(block.transactions)
            }
        )
    
    def record_transaction(self, tx: Transaction, block_height: int, position: int) -> None:
        """Persist one transaction with its literal inputs and outputs"""
        self.session.add(
            TransactionORM(
                tx_id=tx.id,
                block_height=block_height,
                position=position,
                inputs=[
                    TxInputORM(
                        input_index=i,
                        ref_tx_id=ref.tx_id,
                        ref_output_index=ref.index,
                    )
                    for i, ref in enumerate(tx.inputs)
                ],
                outputs=[
                    TxOutputORM(
                        output_index=i,
                        address=output.address,
                        value=output.value,
                    )
                    for i, output in enumerate(tx.outputs)
                ],
            )
        )
    
    def delete_blocks_above(self, height: int) -> int:
        """
        Delete every block above height, with its transactions,
        inputs and outputs.
        
        Args:
            height: Last height to keep
        
        Returns:
            int: Number of removed blocks
        """
        self.session.flush()
        
        doomed_txs = select(TransactionORM.pk).where(TransactionORM.block_height > height)
        
        no_sync = {"synchronize_session": False}
        
        self.session.execute(
            delete(TxInputORM).where(TxInputORM.transaction_pk.in_(doomed_txs)),
            execution_options=no_sync,
        )
        self.session.execute(
            delete(TxOutputORM).where(TxOutputORM.transaction_pk.in_(doomed_txs)),
            execution_options=no_sync,
        )
        self.session.execute(
            delete(TransactionORM).where(TransactionORM.block_height > height),
            execution_options=no_sync,
        )
        result = self.session.execute(
            delete(BlockORM).where(BlockORM.height > height),
            execution_options=no_sync,
        )
        
        self.session.expire_all()
        
        return result.rowcount
    
    def list_live_transactions_ordered(self) -> List[Transaction]:
        """
        Every live transaction, ordered by block height then position.
        
        Returns:
            List[Transaction]: Replay order
        """
        rows = self.session.scalars(
            select(TransactionORM)
            .join(BlockORM, TransactionORM.block_height == BlockORM.height)
            .order_by(BlockORM.height, TransactionORM.position)
            .options(
                selectinload(TransactionORM.inputs),
                selectinload(TransactionORM.outputs),
            )
        ).all()
        
        return [
            Transaction(
                id=row.tx_id,
                inputs=[
                    InputRef(tx_id=inp.ref_tx_id, index=inp.ref_output_index)
                    for inp in row.inputs
                ],
                outputs=[
                    Output(address=out.address, value=out.value)
                    for out in row.outputs
                ],
            )
            for row in rows
        ]
    
    # ========================================================================
    # BALANCE OPERATIONS
    # ========================================================================
    
    def get_balance(self, address: str) -> Optional[int]:
        """
        Current balance of an address.
        
        Returns:
            int: Balance (possibly 0), or None if the address is unseen
        """
        return self.session.scalar(
            select(BalanceORM.value).where(BalanceORM.address == address)
        )
    
    def get_all_balances(self) -> Dict[str, int]:
        rows = self.session.execute(select(BalanceORM.address, BalanceORM.value))
        return {row.address: row.value for row in rows}
    
    def balance_count(self) -> int:
        return self.session.scalar(select(func.count()).select_from(BalanceORM))
    
    def apply_balance_deltas(self, deltas: Mapping[str, int]) -> None:
        """
        Add deltas to balances, creating missing rows at 0 first.
        
        Args:
            deltas: address -> signed amount
        
        Raises:
            DatabaseError: If a balance would leave the storable range
        """
        for address, delta in deltas.items():
            balance = self.session.get(BalanceORM, address)
            if balance is None:
                balance = BalanceORM(address=address, value=0)
                self.session.add(balance)
            value = balance.value + delta
            if not 0 <= value <= MAX_VALUE:
                raise DatabaseError(
                    f"Balance of {address} out of storable range",
                    code="BALANCE_OVERFLOW",
                    details={"address": address, "balance": value}
                )
            balance.value = value
        
        self.session.flush()
    
    def replace_all_balances(self, balances: Mapping[str, int]) -> None:
        """
        Replace the entire balance table.
        
        Args:
            balances: address -> balance
        """
        self.session.flush()
        self.session.execute(
            delete(BalanceORM),
            execution_options={"synchronize_session": "fetch"},
        )
        
        if balances:
            self.session.execute(
                insert(BalanceORM),
                [
                    {"address": address, "value": value}
                    for address, value in balances.items()
                ],
            )


# ============================================================================
# DATABASE CLASS
# ============================================================================

class LedgerDatabase:
    """
    Ledger database: engine, session factory and table provisioning.
    
    One instance is built at startup and passed to the LedgerController.
    
    Attributes:
        database_url: SQLAlchemy URL
        config: Ledger configuration
    
    Examples:
        >>> db = LedgerDatabase("sqlite:///ledger.db")
        >>> with db.session_scope() as store:
        ...     store.max_height()
        0
    """
    
    def __init__(
        self,
        database_url: str,
        config: Optional[LedgerSettings] = None,
        create_tables: bool = True,
    ):
        self.database_url = database_url
        self.config = config
        
        self.engine = self._create_engine()
        self._session_factory = sessionmaker(
            bind=self.engine,
            expire_on_commit=False,
        )
        
        if create_tables:
            self._initialize_database()
        
        logger.info(
            "Database initialized",
            extra_data={"database_url": self.engine.url.render_as_string(hide_password=True)}
        )
    
    @classmethod
    def from_settings(cls, config: LedgerSettings, create_tables: bool = True) -> "LedgerDatabase":
        """Open the database configured in settings"""
        return cls(config.database_url, config=config, create_tables=create_tables)
    
    def _create_engine(self) -> Engine:
        echo = bool(self.config and self.config.db_echo)
        
        try:
            if self.database_url.startswith("sqlite"):
                engine = create_engine(
                    self.database_url,
                    echo=echo,
                    connect_args={"check_same_thread": False, "timeout": 30.0},
                )
                event.listen(engine, "connect", _enable_sqlite_pragmas)
            else:
                engine = create_engine(self.database_url, echo=echo, pool_pre_ping=True)
        except (SQLAlchemyError, ImportError) as e:
            raise DatabaseConnectionError(
                f"Failed to create database engine: {e}",
                code="DB_CONNECTION_FAILED"
            ) from e
        
        return engine
    
    def _initialize_database(self) -> None:
        """Create tables if missing and stamp an unversioned schema at head"""
        try:
            Base.metadata.create_all(self.engine)
            
            with self.engine.connect() as connection:
                revision = MigrationContext.configure(connection).get_current_revision()
            if revision is None:
                stamp_database(self.engine)
            
            logger.info("Database schema initialized")
        
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(
                f"Failed to initialize database: {e}",
                code="DB_INIT_FAILED"
            ) from e
    
    @contextmanager
    def session_scope(self) -> Iterator[LedgerStore]:
        """
        Unit of work: commit on success, roll back on any error.
        
        Raises:
            DatabaseError: Wrapping any SQLAlchemy failure or value overflow
        """
        session = self._session_factory()
        try:
            yield LedgerStore(session)
            session.commit()
        
        except SQLAlchemyError as e:
            session.rollback()
            raise DatabaseError(
                f"Database transaction failed: {e}",
                code="DB_TRANSACTION_FAILED"
            ) from e
        
        except OverflowError as e:
            session.rollback()
            raise DatabaseError(
                f"Value out of storable range: {e}",
                code="DB_VALUE_OVERFLOW"
            ) from e
        
        except BaseException:
            session.rollback()
            raise
        
        finally:
            session.close()
    
    def close(self) -> None:
        """Dispose engine connections"""
        self.engine.dispose()
        logger.info("Database closed")


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "LedgerDatabase",
    "LedgerStore",
]
