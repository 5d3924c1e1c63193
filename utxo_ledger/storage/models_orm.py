"""
UTXOLedger - ORM Models
=========================
SQLAlchemy ORM models of the ledger store.

Tables:
- blocks: one row per live block, keyed by height (ids may collide)
- transactions: owned by a block, ordered by position
- tx_inputs / tx_outputs: full input/output structure, owned by a transaction
- balances: materialized per-address balance cache
"""

from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

from utxo_ledger.constants import MAX_ADDRESS_LENGTH, MAX_ID_LENGTH

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BlockORM(Base):
    """Block ORM model"""
    __tablename__ = 'blocks'
    
    height = Column(Integer, primary_key=True, autoincrement=False)
    id = Column(String(MAX_ID_LENGTH), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    
    # Relationships
    transactions = relationship(
        "TransactionORM",
        back_populates="block",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TransactionORM.position",
    )
    
    # Indexes
    __table_args__ = (
        Index('idx_blocks_id', 'id'),
    )


class TransactionORM(Base):
    """Transaction ORM model"""
    __tablename__ = 'transactions'
    
    pk = Column(Integer, primary_key=True, autoincrement=True)
    tx_id = Column(String(MAX_ID_LENGTH), nullable=False)
    block_height = Column(
        Integer,
        ForeignKey('blocks.height', ondelete='CASCADE'),
        nullable=False,
    )
    position = Column(Integer, nullable=False)
    
    # Relationships
    block = relationship("BlockORM", back_populates="transactions")
    inputs = relationship(
        "TxInputORM",
        back_populates="transaction",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TxInputORM.input_index",
    )
    outputs = relationship(
        "TxOutputORM",
        back_populates="transaction",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TxOutputORM.output_index",
    )
    
    # Indexes
    __table_args__ = (
        Index('idx_transactions_txid', 'tx_id'),
        Index('idx_transactions_block', 'block_height'),
        UniqueConstraint('block_height', 'position', name='uq_transactions_block_position'),
        UniqueConstraint('block_height', 'tx_id', name='uq_transactions_block_txid'),
    )


class TxInputORM(Base):
    """Transaction input (spent output reference) ORM model"""
    __tablename__ = 'tx_inputs'
    
    pk = Column(Integer, primary_key=True, autoincrement=True)
    transaction_pk = Column(
        Integer,
        ForeignKey('transactions.pk', ondelete='CASCADE'),
        nullable=False,
    )
    input_index = Column(Integer, nullable=False)
    ref_tx_id = Column(String(MAX_ID_LENGTH), nullable=False)
    ref_output_index = Column(Integer, nullable=False)
    
    transaction = relationship("TransactionORM", back_populates="inputs")
    
    __table_args__ = (
        Index('idx_tx_inputs_transaction', 'transaction_pk'),
        Index('idx_tx_inputs_ref', 'ref_tx_id', 'ref_output_index'),
    )


class TxOutputORM(Base):
    """Transaction output ORM model"""
    __tablename__ = 'tx_outputs'
    
    pk = Column(Integer, primary_key=True, autoincrement=True)
    transaction_pk = Column(
        Integer,
        ForeignKey('transactions.pk', ondelete='CASCADE'),
        nullable=False,
    )
    output_index = Column(Integer, nullable=False)
    address = Column(String(MAX_ADDRESS_LENGTH), nullable=False)
    value = Column(BigInteger, nullable=False)
    
    transaction = relationship("TransactionORM", back_populates="outputs")
    
    __table_args__ = (
        Index('idx_tx_outputs_address', 'address'),
        UniqueConstraint('transaction_pk', 'output_index', name='uq_tx_outputs_position'),
    )


class BalanceORM(Base):
    """Balance ORM model"""
    __tablename__ = 'balances'
    
    address = Column(String(MAX_ADDRESS_LENGTH), primary_key=True)
    value = Column(BigInteger, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


__all__ = [
    'Base',
    'BlockORM',
    'TransactionORM',
    'TxInputORM',
    'TxOutputORM',
    'BalanceORM',
]
