"""
Initial schema

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-10-19 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic
revision = '001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """
    Create initial database schema for UTXOLedger.
    """
    
    # ========================================================================
    # BLOCKS TABLE
    # ========================================================================
    
    op.create_table(
        'blocks',
        sa.Column('height', sa.Integer(), autoincrement=False, nullable=False),
        sa.Column('id', sa.String(length=256), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('height')
    )
    
    op.create_index('idx_blocks_id', 'blocks', ['id'])
    
    # ========================================================================
    # TRANSACTIONS TABLE
    # ========================================================================
    
    op.create_table(
        'transactions',
        sa.Column('pk', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('tx_id', sa.String(length=256), nullable=False),
        sa.Column('block_height', sa.Integer(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['block_height'], ['blocks.height'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('pk'),
        sa.UniqueConstraint('block_height', 'position', name='uq_transactions_block_position'),
        sa.UniqueConstraint('block_height', 'tx_id', name='uq_transactions_block_txid')
    )
    
    op.create_index('idx_transactions_txid', 'transactions', ['tx_id'])
    op.create_index('idx_transactions_block', 'transactions', ['block_height'])
    
    # ========================================================================
    # INPUTS TABLE
    # ========================================================================
    
    op.create_table(
        'tx_inputs',
        sa.Column('pk', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('transaction_pk', sa.Integer(), nullable=False),
        sa.Column('input_index', sa.Integer(), nullable=False),
        sa.Column('ref_tx_id', sa.String(length=256), nullable=False),
        sa.Column('ref_output_index', sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(['transaction_pk'], ['transactions.pk'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('pk')
    )
    
    op.create_index('idx_tx_inputs_transaction', 'tx_inputs', ['transaction_pk'])
    op.create_index('idx_tx_inputs_ref', 'tx_inputs', ['ref_tx_id', 'ref_output_index'])
    
    # ========================================================================
    # OUTPUTS TABLE
    # ========================================================================
    
    op.create_table(
        'tx_outputs',
        sa.Column('pk', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('transaction_pk', sa.Integer(), nullable=False),
        sa.Column('output_index', sa.Integer(), nullable=False),
        sa.Column('address', sa.String(length=256), nullable=False),
        sa.Column('value', sa.BigInteger(), nullable=False),
        sa.ForeignKeyConstraint(['transaction_pk'], ['transactions.pk'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('pk'),
        sa.UniqueConstraint('transaction_pk', 'output_index', name='uq_tx_outputs_position')
    )
    
    op.create_index('idx_tx_outputs_address', 'tx_outputs', ['address'])
    
    # ========================================================================
    # BALANCES TABLE
    # ========================================================================
    
    op.create_table(
        'balances',
        sa.Column('address', sa.String(length=256), nullable=False),
        sa.Column('value', sa.BigInteger(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('address')
    )


def downgrade() -> None:
    """
    Drop all tables (reverse migration).
    """
    op.drop_table('balances')
    op.drop_table('tx_outputs')
    op.drop_table('tx_inputs')
    op.drop_table('transactions')
    op.drop_table('blocks')
