"""
UTXOLedger - API Schemas
==========================
Pydantic models for API request/response validation.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from utxo_ledger.constants import (
    MAX_ADDRESS_LENGTH,
    MAX_ID_LENGTH,
    MAX_OUTPUT_INDEX,
    MAX_VALUE,
)
from utxo_ledger.domain.models import Block, InputRef, Output, Transaction


# ============================================================================
# BLOCK SCHEMAS
# ============================================================================

class InputRefSchema(BaseModel):
    """Transaction input schema"""
    model_config = ConfigDict(populate_by_name=True)
    
    tx_id: StrictStr = Field(
        ...,
        alias="txId",
        min_length=1,
        max_length=MAX_ID_LENGTH,
        description="Id of the transaction holding the spent output"
    )
    index: StrictInt = Field(..., ge=0, le=MAX_OUTPUT_INDEX, description="Output position in that transaction")
    
    def to_domain(self) -> InputRef:
        return InputRef(tx_id=self.tx_id, index=self.index)


class OutputSchema(BaseModel):
    """Transaction output schema"""
    address: StrictStr = Field(..., min_length=1, max_length=MAX_ADDRESS_LENGTH)
    value: StrictInt = Field(..., ge=0, le=MAX_VALUE, description="Amount credited to address")
    
    def to_domain(self) -> Output:
        return Output(address=self.address, value=self.value)


class TransactionSchema(BaseModel):
    """Transaction schema"""
    id: StrictStr = Field(..., min_length=1, max_length=MAX_ID_LENGTH)
    inputs: List[InputRefSchema] = Field(default_factory=list)
    outputs: List[OutputSchema] = Field(default_factory=list)
    
    def to_domain(self) -> Transaction:
        return Transaction(
            id=self.id,
            inputs=[inp.to_domain() for inp in self.inputs],
            outputs=[out.to_domain() for out in self.outputs],
        )


class BlockSchema(BaseModel):
    """
    Block submission body.
    
    Structural checks only: ledger rules (height sequence, input
    resolution, value conservation, block id) are applied by the engine.
    """
    id: StrictStr = Field(..., min_length=1, max_length=MAX_ID_LENGTH, description="Block id (hex)")
    height: StrictInt = Field(..., ge=1, description="Block height")
    transactions: List[TransactionSchema] = Field(default_factory=list)
    
    @field_validator("transactions")
    @classmethod
    def validate_unique_tx_ids(cls, v: List[TransactionSchema]) -> List[TransactionSchema]:
        tx_ids = [tx.id for tx in v]
        if len(tx_ids) != len(set(tx_ids)):
            raise ValueError("Transaction ids must be unique within a block")
        return v
    
    def to_domain(self) -> Block:
        return Block(
            id=self.id,
            height=self.height,
            transactions=[tx.to_domain() for tx in self.transactions],
        )


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class MessageResponse(BaseModel):
    """Success response"""
    message: str = Field(..., description="Outcome message")


class BalanceResponse(BaseModel):
    """Balance response"""
    balance: int = Field(..., description="Current balance")


class HeadResponse(BaseModel):
    """Chain head response"""
    height: int = Field(..., description="Height of the last accepted block (0 if empty)")


class HealthResponse(BaseModel):
    """Root endpoint response"""
    name: str
    version: str
    status: str
    build: Dict[str, Any] = Field(default_factory=dict, description="Build metadata")


class ErrorResponse(BaseModel):
    """Error response"""
    error: str = Field(..., description="Stable reason string")
    kind: Optional[str] = Field(None, description="Rejection kind")
    details: Optional[Any] = Field(None, description="Error details")


__all__ = [
    "InputRefSchema",
    "OutputSchema",
    "TransactionSchema",
    "BlockSchema",
    "MessageResponse",
    "BalanceResponse",
    "HeadResponse",
    "HealthResponse",
    "ErrorResponse",
]
