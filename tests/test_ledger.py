"""
UTXOLedger - Ledger Controller Tests
======================================
Integration tests for ingestion, rollback and queries.
"""

import threading

import pytest

from utxo_ledger.constants import MAX_VALUE
from utxo_ledger.domain.ledger import LedgerController
from utxo_ledger.domain.models import Block
from utxo_ledger.domain.results import ErrorKind
from utxo_ledger.errors import DatabaseError
from utxo_ledger.storage.db import LedgerStore


class TestLedgerScenarios:
    """End-to-end ledger scenarios"""
    
    def test_ingest_first_block(self, controller, genesis_block):
        result = controller.ingest_block(genesis_block)
        
        assert result.ok
        assert result.value["height"] == 1
        assert controller.get_balance("addr1").value == 10
        assert controller.get_balance("addr2").value == 5
    
    def test_spend_previous_output(self, controller, genesis_block, spend_block):
        controller.ingest_block(genesis_block)
        
        result = controller.ingest_block(spend_block)
        
        assert result.ok
        assert controller.get_balance("addr1").value == 0
        assert controller.get_balance("addr3").value == 6
        assert controller.get_balance("addr4").value == 4
    
    def test_rollback_restores_balances(self, controller, genesis_block, spend_block):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        
        assert controller.rollback_to(1).ok
        
        assert controller.get_balance("addr1").value == 10
        assert controller.get_balance("addr3").kind == ErrorKind.ADDRESS_NOT_FOUND
        assert controller.get_balance("addr4").kind == ErrorKind.ADDRESS_NOT_FOUND
    
    def test_height_gap_after_rollback(self, controller, genesis_block, spend_block, make_tx, make_block):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        controller.rollback_to(1)
        
        result = controller.ingest_block(make_block(3, [make_tx("tx_invalid", outputs=[("addr5", 5)])]))
        
        assert result.kind == ErrorKind.SEQUENTIAL_HEIGHT_VIOLATION
        assert result.details["expected"] == 2
    
    def test_imbalanced_block(self, controller, genesis_block, make_tx, make_block):
        controller.ingest_block(genesis_block)
        
        result = controller.ingest_block(
            make_block(2, [make_tx("tx_invalid2", inputs=[("tx1", 0)], outputs=[("addr6", 15)])])
        )
        
        assert result.kind == ErrorKind.IMBALANCED_TRANSACTION
    
    def test_invalid_block_id(self, controller, genesis_block, make_tx):
        controller.ingest_block(genesis_block)
        
        result = controller.ingest_block(
            Block(id="invalid_id", height=2, transactions=[make_tx("tx3", outputs=[("addr7", 8)])])
        )
        
        assert result.kind == ErrorKind.INVALID_BLOCK_ID


class TestLedgerController:
    """Test LedgerController behaviour"""
    
    def test_rejection_leaves_ledger_untouched(self, controller, genesis_block, make_tx, make_block):
        controller.ingest_block(genesis_block)
        before = controller.get_info()
        
        controller.ingest_block(
            make_block(2, [make_tx("tx2", inputs=[("tx1", 0)], outputs=[("addr9", 11)])])
        )
        
        assert controller.get_info() == before
        assert controller.get_balance("addr9").kind == ErrorKind.ADDRESS_NOT_FOUND
    
    def test_spent_output_cannot_be_spent_again(self, controller, genesis_block, spend_block, make_tx, make_block):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        
        result = controller.ingest_block(
            make_block(3, [make_tx("tx3", inputs=[("tx1", 0)], outputs=[("addr9", 10)])])
        )
        
        assert result.kind == ErrorKind.UNRESOLVED_INPUT
    
    def test_zero_balance_is_found(self, controller, genesis_block, spend_block):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        
        result = controller.get_balance("addr1")
        
        assert result.ok
        assert result.value == 0
    
    def test_unknown_address_not_found(self, controller):
        result = controller.get_balance("nobody")
        
        assert result.kind == ErrorKind.ADDRESS_NOT_FOUND
        assert result.details == {"address": "nobody"}
    
    def test_balances_sum_unchanged_by_spending_block(self, controller, test_database, genesis_block, spend_block):
        controller.ingest_block(genesis_block)
        with test_database.session_scope() as store:
            before = sum(store.get_all_balances().values())
        
        controller.ingest_block(spend_block)
        with test_database.session_scope() as store:
            after = sum(store.get_all_balances().values())
        
        assert before == after == 15
    
    def test_info(self, controller, genesis_block, spend_block):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        
        assert controller.get_info() == {"height": 2, "blocks": 2, "addresses": 4}
    
    def test_audit_log_written(self, controller, test_config, genesis_block, spend_block):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        controller.rollback_to(1)
        
        content = (test_config.log_dir / "audit.log").read_text(encoding="utf-8")
        
        assert "block_accepted" in content
        assert "rollback" in content


class TestStoreFailures:
    """Store failures abort the whole unit of work"""
    
    def test_failed_ingest_is_atomic(self, controller, genesis_block, spend_block, monkeypatch):
        controller.ingest_block(genesis_block)
        
        def broken(self, deltas):
            raise DatabaseError("disk full", code="DB_WRITE_FAILED")
        
        monkeypatch.setattr(LedgerStore, "apply_balance_deltas", broken)
        
        result = controller.ingest_block(spend_block)
        
        assert result.kind == ErrorKind.STORE_FAILURE
        assert result.message == "Internal Server Error"
        assert controller.get_head() == 1
        assert controller.get_balance("addr1").value == 10
        assert controller.get_balance("addr3").kind == ErrorKind.ADDRESS_NOT_FOUND
    
    def test_failed_rollback_keeps_previous_state(self, controller, genesis_block, spend_block, monkeypatch):
        controller.ingest_block(genesis_block)
        controller.ingest_block(spend_block)
        
        def broken(self, balances):
            raise DatabaseError("disk full", code="DB_WRITE_FAILED")
        
        monkeypatch.setattr(LedgerStore, "replace_all_balances", broken)
        
        result = controller.rollback_to(0)
        
        assert result.kind == ErrorKind.STORE_FAILURE
        assert controller.get_head() == 2
        assert controller.get_balance("addr3").value == 6


class TestReusedTransactionIds:
    """Transaction ids repeated across blocks"""
    
    @pytest.fixture
    def reused_chain(self, controller, make_tx, make_block):
        """A minted, spent by S, then A reused spending S"""
        assert controller.ingest_block(make_block(1, [make_tx("A", outputs=[("addr1", 10)])])).ok
        assert controller.ingest_block(
            make_block(2, [make_tx("S", inputs=[("A", 0)], outputs=[("addr2", 10)])])
        ).ok
        return controller
    
    def test_reused_id_does_not_revive_spent_output(self, reused_chain, make_tx, make_block):
        result = reused_chain.ingest_block(make_block(3, [
            make_tx("A", inputs=[("S", 0)], outputs=[("addr3", 10)]),
            make_tx("B", inputs=[("A", 0)], outputs=[("addr4", 10)]),
        ]))
        
        assert result.kind == ErrorKind.UNRESOLVED_INPUT
        assert result.details == {"tx_id": "B", "ref_tx_id": "A", "index": 0}
        assert reused_chain.get_head() == 2
    
    def test_chain_with_reused_id_rolls_back(self, reused_chain, test_database, make_tx, make_block):
        assert reused_chain.ingest_block(
            make_block(3, [make_tx("A", inputs=[("S", 0)], outputs=[("addr3", 10)])])
        ).ok
        with test_database.session_scope() as store:
            at_height_3 = store.get_all_balances()
        
        assert reused_chain.ingest_block(make_block(4, [make_tx("I", outputs=[("addr5", 1)])])).ok
        
        assert reused_chain.rollback_to(3).ok
        with test_database.session_scope() as store:
            assert store.get_all_balances() == at_height_3
        assert at_height_3 == {"addr1": 0, "addr2": 0, "addr3": 10}
        
        assert reused_chain.rollback_to(1).ok
        assert reused_chain.get_balance("addr1").value == 10
    
    def test_reused_output_of_spent_id_stays_unspendable(self, reused_chain, make_tx, make_block):
        reused_chain.ingest_block(
            make_block(3, [make_tx("A", inputs=[("S", 0)], outputs=[("addr3", 10)])])
        )
        
        result = reused_chain.ingest_block(
            make_block(4, [make_tx("C", inputs=[("A", 0)], outputs=[("addr6", 10)])])
        )
        
        assert result.kind == ErrorKind.UNRESOLVED_INPUT


class TestStorageLimits:
    """Values at the edge of what the store holds"""
    
    def test_balance_overflow_is_store_failure(self, controller, make_tx, make_block):
        assert controller.ingest_block(make_block(1, [make_tx("t1", outputs=[("whale", MAX_VALUE)])])).ok
        
        result = controller.ingest_block(make_block(2, [make_tx("t2", outputs=[("whale", 1)])]))
        
        assert result.kind == ErrorKind.STORE_FAILURE
        assert result.details == {"code": "BALANCE_OVERFLOW"}
        assert controller.get_head() == 1
        assert controller.get_balance("whale").value == MAX_VALUE
    
    def test_colliding_block_ids_at_different_heights(self, controller, make_tx, make_block):
        # "1" + "1tx" and "11" + "tx" share a preimage
        first = make_block(1, [make_tx("1tx", outputs=[("addr1", 1)])])
        assert controller.ingest_block(first).ok
        for height in range(2, 11):
            assert controller.ingest_block(make_block(height, [])).ok
        
        colliding = make_block(11, [make_tx("tx", outputs=[("addr2", 2)])])
        assert colliding.id == first.id
        
        assert controller.ingest_block(colliding).ok
        assert controller.get_balance("addr2").value == 2
        
        assert controller.rollback_to(10).ok
        assert controller.get_balance("addr2").kind == ErrorKind.ADDRESS_NOT_FOUND
        assert controller.get_balance("addr1").value == 1


class TestConcurrency:
    """Single-writer discipline"""
    
    def test_concurrent_ingest_of_same_height(self, controller, genesis_block, make_tx, make_block):
        controller.ingest_block(genesis_block)
        
        candidates = [
            make_block(2, [make_tx(f"tx_{i}", outputs=[(f"addr_{i}", 1)])])
            for i in range(8)
        ]
        results = []
        barrier = threading.Barrier(len(candidates))
        
        def worker(block):
            barrier.wait()
            results.append(controller.ingest_block(block))
        
        threads = [threading.Thread(target=worker, args=(b,)) for b in candidates]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        accepted = [r for r in results if r.ok]
        rejected = [r for r in results if not r.ok]
        
        assert len(accepted) == 1
        assert all(r.kind == ErrorKind.SEQUENTIAL_HEIGHT_VIOLATION for r in rejected)
        assert controller.get_head() == 2
    
    def test_controllers_are_isolated(self, test_config, temp_data_dir, genesis_block):
        from utxo_ledger.storage.db import LedgerDatabase
        
        other_db = LedgerDatabase(f"sqlite:///{temp_data_dir / 'other.db'}")
        other = LedgerController(other_db)
        try:
            assert other.ingest_block(genesis_block).ok
            assert other.get_head() == 1
        finally:
            other.close()
            other_db.close()
