"""
UTXOLedger - Core Domain Models
=================================
Fundamental ledger data structures.

Models:
- InputRef: reference to a previously recorded output (tx_id + index)
- Output: credit of `value` to `address`
- Transaction: ordered inputs and outputs
- Block: height + ordered transactions, identified by a hex digest
- ResolvedOutput: (address, value) an InputRef resolves to

All structures are immutable (frozen) and validate their structural
invariants on construction.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Tuple

from utxo_ledger.constants import FIRST_BLOCK_HEIGHT, MAX_OUTPUT_INDEX, MAX_VALUE
from utxo_ledger.domain.crypto_core import compute_block_id
from utxo_ledger.errors import (
    InvalidBlockError,
    InvalidTransactionError,
    format_validation_error,
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ============================================================================
# INPUT REFERENCE
# ============================================================================

@dataclass(frozen=True)
class InputRef:
    """
    Pointer to an output of an earlier transaction.
    
    Attributes:
        tx_id (str): Id of the transaction holding the output
        index (int): Position of the output in that transaction
    """
    
    tx_id: str
    index: int
    
    def __post_init__(self):
        if not self.tx_id or not isinstance(self.tx_id, str):
            raise format_validation_error("txId", self.tx_id, "non-empty string")
        if not _is_int(self.index) or not 0 <= self.index <= MAX_OUTPUT_INDEX:
            raise format_validation_error("index", self.index, f"integer in [0, {MAX_OUTPUT_INDEX}]")
    
    @property
    def key(self) -> Tuple[str, int]:
        return (self.tx_id, self.index)
    
    def to_dict(self) -> Dict[str, Any]:
        return {"txId": self.tx_id, "index": self.index}
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InputRef:
        return cls(tx_id=data["txId"], index=data["index"])
    
    def __str__(self) -> str:
        return f"{self.tx_id}:{self.index}"


# ============================================================================
# OUTPUT
# ============================================================================

@dataclass(frozen=True)
class Output:
    """
    Transaction output.
    
    Attributes:
        address (str): Credited address
        value (int): Non-negative amount
    """
    
    address: str
    value: int
    
    def __post_init__(self):
        if not self.address or not isinstance(self.address, str):
            raise format_validation_error("address", self.address, "non-empty string")
        if not _is_int(self.value) or not 0 <= self.value <= MAX_VALUE:
            raise format_validation_error("value", self.value, f"integer in [0, {MAX_VALUE}]")
    
    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "value": self.value}
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Output:
        return cls(address=data["address"], value=data["value"])


@dataclass(frozen=True)
class ResolvedOutput:
    """(address, value) obtained by resolving an InputRef"""
    
    address: str
    value: int


# ============================================================================
# TRANSACTION
# ============================================================================

@dataclass(frozen=True)
class Transaction:
    """
    Value-transfer transaction.
    
    Attributes:
        id (str): Transaction id, unique within its block
        inputs (tuple[InputRef]): Spent outputs, in order
        outputs (tuple[Output]): Created outputs, in order
    
    Examples:
        >>> tx = Transaction("tx1", [], [Output("addr1", 10)])
        >>> tx.total_output_value()
        10
    """
    
    id: str
    inputs: Tuple[InputRef, ...] = field(default_factory=tuple)
    outputs: Tuple[Output, ...] = field(default_factory=tuple)
    
    def __post_init__(self):
        if not self.id or not isinstance(self.id, str):
            raise InvalidTransactionError(
                "Transaction id must be a non-empty string",
                code="INVALID_TX_ID",
                details={"id": self.id}
            )
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
    
    def total_output_value(self) -> int:
        return sum(output.value for output in self.outputs)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "inputs": [inp.to_dict() for inp in self.inputs],
            "outputs": [out.to_dict() for out in self.outputs],
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Transaction:
        return cls(
            id=data["id"],
            inputs=[InputRef.from_dict(inp) for inp in data.get("inputs", [])],
            outputs=[Output.from_dict(out) for out in data.get("outputs", [])],
        )


# ============================================================================
# BLOCK
# ============================================================================

@dataclass(frozen=True)
class Block:
    """
    Ledger block.
    
    Attributes:
        id (str): Hex digest claimed by the submitter
        height (int): Position in the chain, starting at 1
        transactions (tuple[Transaction]): Ordered transactions
    
    Examples:
        >>> txs = [Transaction("tx1", [], [Output("addr1", 10)])]
        >>> block = Block.build(1, txs)
        >>> block.compute_expected_id() == block.id
        True
    """
    
    id: str
    height: int
    transactions: Tuple[Transaction, ...] = field(default_factory=tuple)
    
    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise InvalidBlockError(
                "Block id must be a non-empty string",
                code="INVALID_BLOCK_ID_FORMAT",
                details={"id": self.id}
            )
        if not _is_int(self.height) or self.height < FIRST_BLOCK_HEIGHT:
            raise InvalidBlockError(
                f"Block height must be an integer >= {FIRST_BLOCK_HEIGHT}",
                code="INVALID_HEIGHT",
                details={"height": self.height}
            )
        
        object.__setattr__(self, "transactions", tuple(self.transactions))
        
        seen = set()
        for tx in self.transactions:
            if tx.id in seen:
                raise InvalidBlockError(
                    f"Duplicate transaction id in block: {tx.id}",
                    code="DUPLICATE_TX_ID",
                    details={"tx_id": tx.id}
                )
            seen.add(tx.id)
    
    @property
    def tx_ids(self) -> Tuple[str, ...]:
        return tuple(tx.id for tx in self.transactions)
    
    def compute_expected_id(self) -> str:
        """Id this block must carry to pass identity checks"""
        return compute_block_id(self.height, self.tx_ids)
    
    def has_inputs(self) -> bool:
        """False for an issuance block (no transaction spends anything)"""
        return any(tx.inputs for tx in self.transactions)
    
    def total_output_value(self) -> int:
        return sum(tx.total_output_value() for tx in self.transactions)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "height": self.height,
            "transactions": [tx.to_dict() for tx in self.transactions],
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Block:
        return cls(
            id=data["id"],
            height=data["height"],
            transactions=[Transaction.from_dict(tx) for tx in data.get("transactions", [])],
        )
    
    @classmethod
    def build(cls, height: int, transactions: Iterable[Transaction]) -> Block:
        """Build a block carrying its correct id"""
        transactions = tuple(transactions)
        return cls(
            id=compute_block_id(height, (tx.id for tx in transactions)),
            height=height,
            transactions=transactions,
        )


__all__ = [
    "InputRef",
    "Output",
    "ResolvedOutput",
    "Transaction",
    "Block",
]
