"""
UTXOLedger - REST API Tests
=============================
HTTP-level tests through the FastAPI TestClient.
"""

from utxo_ledger.domain.models import Block
from utxo_ledger.storage.db import LedgerStore
from utxo_ledger.errors import DatabaseError


class TestBlocksEndpoint:
    """POST /blocks"""
    
    def test_accepts_first_block(self, client, genesis_block):
        response = client.post("/blocks", json=genesis_block.to_dict())
        
        assert response.status_code == 200
        assert response.json() == {"message": "Block processed successfully"}
    
    def test_full_scenario(self, client, genesis_block, spend_block):
        assert client.post("/blocks", json=genesis_block.to_dict()).status_code == 200
        assert client.get("/balance/addr1").json() == {"balance": 10}
        assert client.get("/balance/addr2").json() == {"balance": 5}
        
        assert client.post("/blocks", json=spend_block.to_dict()).status_code == 200
        assert client.get("/balance/addr1").json() == {"balance": 0}
        assert client.get("/balance/addr3").json() == {"balance": 6}
        assert client.get("/balance/addr4").json() == {"balance": 4}
        
        response = client.post("/rollback", params={"height": 1})
        assert response.status_code == 200
        assert response.json() == {"message": "Rollback successful"}
        
        assert client.get("/balance/addr1").json() == {"balance": 10}
        assert client.get("/balance/addr3").status_code == 404
        assert client.get("/balance/addr4").status_code == 404
    
    def test_height_not_sequential(self, client, genesis_block):
        client.post("/blocks", json=genesis_block.to_dict())
        body = {
            "id": "invalidblock",
            "height": 3,
            "transactions": [
                {"id": "tx_invalid", "inputs": [], "outputs": [{"address": "addr5", "value": 5}]}
            ]
        }
        
        response = client.post("/blocks", json=body)
        
        assert response.status_code == 400
        assert response.json()["error"] == "Block height is not sequential"
        assert response.json()["kind"] == "SequentialHeightViolation"
    
    def test_imbalanced(self, client, genesis_block, make_tx, make_block):
        client.post("/blocks", json=genesis_block.to_dict())
        block = make_block(2, [make_tx("tx_invalid2", inputs=[("tx1", 0)], outputs=[("addr6", 15)])])
        
        response = client.post("/blocks", json=block.to_dict())
        
        assert response.status_code == 400
        assert response.json()["error"] == "Input sum does not match output sum"
    
    def test_unresolved_input(self, client, genesis_block, make_tx, make_block):
        client.post("/blocks", json=genesis_block.to_dict())
        block = make_block(2, [make_tx("tx2", inputs=[("tx1", 7)], outputs=[("addr6", 1)])])
        
        response = client.post("/blocks", json=block.to_dict())
        
        assert response.status_code == 400
        assert response.json()["error"] == "Input references an unknown or spent output"
    
    def test_invalid_block_id(self, client, genesis_block, make_tx):
        client.post("/blocks", json=genesis_block.to_dict())
        block = Block(id="invalid_id", height=2, transactions=[make_tx("tx3", outputs=[("addr7", 8)])])
        
        response = client.post("/blocks", json=block.to_dict())
        
        assert response.status_code == 400
        assert response.json()["error"] == "Block ID is invalid"
    
    def test_malformed_body(self, client):
        response = client.post("/blocks", json={"height": "one"})
        
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert response.json()["details"]
    
    def test_string_value_rejected(self, client):
        body = {
            "id": "x",
            "height": 1,
            "transactions": [{"id": "tx1", "inputs": [], "outputs": [{"address": "a", "value": "10"}]}]
        }
        
        assert client.post("/blocks", json=body).status_code == 400
    
    def test_value_beyond_storable_range_rejected(self, client):
        body = {
            "id": "x",
            "height": 1,
            "transactions": [{"id": "tx1", "inputs": [], "outputs": [{"address": "a", "value": 2**63}]}]
        }
        
        response = client.post("/blocks", json=body)
        
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        assert client.get("/chain/head").json() == {"height": 0}
    
    def test_duplicate_tx_ids_rejected(self, client):
        body = {
            "id": "x",
            "height": 1,
            "transactions": [
                {"id": "tx1", "inputs": [], "outputs": []},
                {"id": "tx1", "inputs": [], "outputs": []},
            ]
        }
        
        assert client.post("/blocks", json=body).status_code == 400
    
    def test_store_failure(self, client, genesis_block, monkeypatch):
        def broken(self, deltas):
            raise DatabaseError("disk full", code="DB_WRITE_FAILED")
        
        monkeypatch.setattr(LedgerStore, "apply_balance_deltas", broken)
        
        response = client.post("/blocks", json=genesis_block.to_dict())
        
        assert response.status_code == 500
        assert response.json()["error"] == "Internal Server Error"
        assert client.get("/chain/head").json() == {"height": 0}


class TestRollbackEndpoint:
    """POST /rollback"""
    
    def test_out_of_range(self, client, genesis_block):
        client.post("/blocks", json=genesis_block.to_dict())
        
        response = client.post("/rollback", params={"height": 5})
        
        assert response.status_code == 400
        assert response.json()["error"] == "Rollback height is out of range"
    
    def test_negative_height(self, client):
        assert client.post("/rollback", params={"height": -1}).status_code == 400
    
    def test_missing_height(self, client):
        assert client.post("/rollback").status_code == 400
    
    def test_non_integer_height(self, client):
        assert client.post("/rollback", params={"height": "abc"}).status_code == 400
    
    def test_rollback_to_head(self, client, genesis_block):
        client.post("/blocks", json=genesis_block.to_dict())
        
        assert client.post("/rollback", params={"height": 1}).status_code == 200
        assert client.get("/balance/addr1").json() == {"balance": 10}


class TestMiscEndpoints:
    """Root, head, balance and middleware"""
    
    def test_root(self, client):
        response = client.get("/")
        
        assert response.status_code == 200
        assert response.json()["status"] == "running"
        assert response.json()["version"] == "1.0.0"
    
    def test_chain_head(self, client, genesis_block):
        assert client.get("/chain/head").json() == {"height": 0}
        
        client.post("/blocks", json=genesis_block.to_dict())
        
        assert client.get("/chain/head").json() == {"height": 1}
    
    def test_unknown_address(self, client):
        response = client.get("/balance/nobody")
        
        assert response.status_code == 404
        assert response.json()["error"] == "Address not found"
    
    def test_request_id_header(self, client):
        response = client.get("/", headers={"X-Request-ID": "abc-123"})
        
        assert response.headers["X-Request-ID"] == "abc-123"
        assert "X-Process-Time" in response.headers
    
    def test_generated_request_id(self, client):
        assert client.get("/").headers["X-Request-ID"]
