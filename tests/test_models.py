"""
UTXOLedger - Model Tests
==========================
Unit tests for domain models and block identity.
"""

import hashlib

import pytest

from utxo_ledger.constants import MAX_OUTPUT_INDEX, MAX_VALUE
from utxo_ledger.domain.crypto_core import block_id_preimage, compute_block_id
from utxo_ledger.domain.models import Block, InputRef, Output, Transaction
from utxo_ledger.errors import InvalidBlockError, InvalidTransactionError, ValidationError


class TestBlockId:
    """Test block identity digest"""
    
    def test_block_id_is_sha256_of_height_and_tx_ids(self):
        expected = hashlib.sha256(b"1tx1tx2").hexdigest()
        
        assert compute_block_id(1, ["tx1", "tx2"]) == expected
    
    def test_preimage_is_plain_concatenation(self):
        assert block_id_preimage(12, ["a", "b"]) == b"12ab"
    
    def test_empty_block_id(self):
        assert compute_block_id(3, []) == hashlib.sha256(b"3").hexdigest()
    
    def test_build_sets_correct_id(self, make_tx):
        block = Block.build(1, [make_tx("tx1", outputs=[("addr1", 10)])])
        
        assert block.id == block.compute_expected_id()
        assert len(block.id) == 64


class TestModels:
    """Test model construction invariants"""
    
    def test_transaction_normalizes_lists(self):
        tx = Transaction("tx1", [InputRef("tx0", 0)], [Output("addr1", 10)])
        
        assert isinstance(tx.inputs, tuple)
        assert isinstance(tx.outputs, tuple)
        assert tx.total_output_value() == 10
    
    def test_negative_output_value_rejected(self):
        with pytest.raises(ValidationError):
            Output("addr1", -1)
    
    def test_bool_output_value_rejected(self):
        with pytest.raises(ValidationError):
            Output("addr1", True)
    
    def test_output_value_bounded_by_storage(self):
        assert Output("addr1", MAX_VALUE).value == MAX_VALUE
        
        with pytest.raises(ValidationError):
            Output("addr1", MAX_VALUE + 1)
    
    def test_input_index_bounded_by_storage(self):
        with pytest.raises(ValidationError):
            InputRef("tx1", MAX_OUTPUT_INDEX + 1)
    
    def test_negative_input_index_rejected(self):
        with pytest.raises(ValidationError):
            InputRef("tx1", -1)
    
    def test_empty_transaction_id_rejected(self):
        with pytest.raises(InvalidTransactionError):
            Transaction("")
    
    def test_height_zero_rejected(self):
        with pytest.raises(InvalidBlockError):
            Block(id="x", height=0)
    
    def test_duplicate_tx_id_in_block_rejected(self, make_tx):
        txs = [make_tx("tx1", outputs=[("a", 1)]), make_tx("tx1", outputs=[("b", 1)])]
        
        with pytest.raises(InvalidBlockError) as exc_info:
            Block.build(1, txs)
        
        assert exc_info.value.code == "DUPLICATE_TX_ID"
    
    def test_dict_round_trip(self, genesis_block, spend_block):
        for block in (genesis_block, spend_block):
            assert Block.from_dict(block.to_dict()) == block
    
    def test_input_ref_wire_format(self):
        assert InputRef("tx1", 2).to_dict() == {"txId": "tx1", "index": 2}
        assert str(InputRef("tx1", 2)) == "tx1:2"
