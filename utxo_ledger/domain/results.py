"""
UTXOLedger - Operation Results
================================
Tagged results returned by the ledger engine.

Every engine operation returns either Accepted (with an optional value)
or Rejected (with an ErrorKind, a stable reason string and details).
Only the transport layer maps kinds to status codes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union


class ErrorKind(str, Enum):
    """Named rejection kinds"""
    
    SEQUENTIAL_HEIGHT_VIOLATION = "SequentialHeightViolation"
    UNRESOLVED_INPUT = "UnresolvedInput"
    IMBALANCED_TRANSACTION = "ImbalancedTransaction"
    INVALID_BLOCK_ID = "InvalidBlockId"
    INVALID_ROLLBACK_TARGET = "InvalidRollbackTarget"
    ADDRESS_NOT_FOUND = "AddressNotFound"
    STORE_FAILURE = "StoreFailure"
    
    @property
    def reason(self) -> str:
        """Stable, caller-visible reason string"""
        return REASONS[self]


REASONS: Dict[ErrorKind, str] = {
    ErrorKind.SEQUENTIAL_HEIGHT_VIOLATION: "Block height is not sequential",
    ErrorKind.UNRESOLVED_INPUT: "Input references an unknown or spent output",
    ErrorKind.IMBALANCED_TRANSACTION: "Input sum does not match output sum",
    ErrorKind.INVALID_BLOCK_ID: "Block ID is invalid",
    ErrorKind.INVALID_ROLLBACK_TARGET: "Rollback height is out of range",
    ErrorKind.ADDRESS_NOT_FOUND: "Address not found",
    ErrorKind.STORE_FAILURE: "Internal Server Error",
}


@dataclass(frozen=True)
class Accepted:
    """Successful outcome"""
    
    value: Any = None
    
    ok: ClassVar[bool] = True


@dataclass(frozen=True)
class Rejected:
    """
    Failed outcome.
    
    Attributes:
        kind (ErrorKind): Rejection kind
        details (dict): Diagnostic details (expected/got values, offending refs)
        message (str): Reason string, defaults to the kind's stable reason
    """
    
    kind: ErrorKind
    details: Dict[str, Any] = field(default_factory=dict)
    message: Optional[str] = None
    
    ok: ClassVar[bool] = False
    
    def __post_init__(self):
        if self.message is None:
            object.__setattr__(self, "message", self.kind.reason)
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "error": self.message,
            "details": self.details,
        }


LedgerResult = Union[Accepted, Rejected]


__all__ = [
    "ErrorKind",
    "REASONS",
    "Accepted",
    "Rejected",
    "LedgerResult",
]
