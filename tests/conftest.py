"""
UTXOLedger - Pytest Configuration
===================================
Fixtures and configuration for testing.
"""

import pytest
from pathlib import Path
import tempfile
import shutil

from fastapi.testclient import TestClient

# Internal imports
from utxo_ledger.api.rest_api import create_app
from utxo_ledger.config import LedgerSettings
from utxo_ledger.domain.ledger import LedgerController
from utxo_ledger.domain.models import Block, InputRef, Output, Transaction
from utxo_ledger.storage.db import LedgerDatabase


# ============================================================================
# CONFIGURATION FIXTURES
# ============================================================================

@pytest.fixture
def temp_data_dir():
    """Temporary data directory"""
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_config(temp_data_dir):
    """Test configuration"""
    return LedgerSettings(
        _env_file=None,
        data_dir=temp_data_dir,
        database_url=f"sqlite:///{temp_data_dir / 'test.db'}",
        log_dir=temp_data_dir / "logs",
        log_to_file=False,
    )


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

@pytest.fixture
def test_database(test_config):
    """Test database"""
    db = LedgerDatabase.from_settings(test_config)
    yield db
    db.close()


# ============================================================================
# LEDGER FIXTURES
# ============================================================================

@pytest.fixture
def controller(test_config, test_database):
    """Ledger controller per test"""
    ledger = LedgerController(test_database, test_config)
    yield ledger
    ledger.close()


@pytest.fixture
def client(controller, test_config):
    """API test client"""
    with TestClient(create_app(controller, test_config)) as test_client:
        yield test_client


# ============================================================================
# HELPER FIXTURES
# ============================================================================

@pytest.fixture
def make_tx():
    """
    Transaction factory.
    
    make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr3", 6)])
    """
    def _make_tx(tx_id, inputs=(), outputs=()):
        return Transaction(
            id=tx_id,
            inputs=[InputRef(ref_tx, index) for ref_tx, index in inputs],
            outputs=[Output(address, value) for address, value in outputs],
        )
    return _make_tx


@pytest.fixture
def make_block():
    """Block factory carrying the correct id"""
    def _make_block(height, transactions):
        return Block.build(height, transactions)
    return _make_block


@pytest.fixture
def genesis_block(make_tx, make_block):
    """Height 1: addr1=10, addr2=5"""
    return make_block(1, [make_tx("tx1", outputs=[("addr1", 10), ("addr2", 5)])])


@pytest.fixture
def spend_block(make_tx, make_block):
    """Height 2: spends tx1:0 (addr1, 10) into addr3=6, addr4=4"""
    return make_block(
        2,
        [make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr3", 6), ("addr4", 4)])]
    )
