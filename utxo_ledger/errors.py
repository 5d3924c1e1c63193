"""
UTXOLedger - Custom Exceptions
================================
Exception hierarchy for granular error handling.

Validation outcomes of the ledger engine are NOT exceptions: they are
returned as tagged results (see utxo_ledger.domain.results). Exceptions
cover structural domain errors, configuration and storage faults.

Last Updated: 2026-10-19
Version: 1.0.0
"""

from typing import Optional, Any


# ============================================================================
# BASE EXCEPTION
# ============================================================================

class LedgerException(Exception):
    """
    Base exception for every UTXOLedger error.
    
    Attributes:
        message (str): Error message
        code (str): Error code (e.g. "DB_CONNECTION_FAILED")
        details (dict): Additional details
    """
    
    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        
        super().__init__(self.message)
    
    def to_dict(self) -> dict:
        """Serialize exception for API/logging"""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }
    
    def __str__(self) -> str:
        if self.details:
            return f"[{self.code}] {self.message} | Details: {self.details}"
        return f"[{self.code}] {self.message}"


# ============================================================================
# CONFIGURATION ERRORS
# ============================================================================

class ConfigError(LedgerException):
    """System configuration error"""
    pass


class InvalidConfigError(ConfigError):
    """Invalid configuration"""
    pass


# ============================================================================
# VALIDATION ERRORS
# ============================================================================

class ValidationError(LedgerException):
    """Structural validation error of a domain object"""
    pass


class InvalidBlockError(ValidationError):
    """Malformed block"""
    pass


class InvalidTransactionError(ValidationError):
    """Malformed transaction"""
    pass


# ============================================================================
# STORAGE ERRORS
# ============================================================================

class StorageError(LedgerException):
    """Storage/database error"""
    pass


class DatabaseError(StorageError):
    """Generic database error"""
    pass


class DatabaseConnectionError(DatabaseError):
    """Database connection error"""
    pass


class DatabaseCorruptionError(DatabaseError):
    """Stored history is inconsistent"""
    pass


class MigrationError(StorageError):
    """Schema migration failed"""
    pass


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def format_validation_error(
    field: str,
    value: Any,
    expected: str,
    code: Optional[str] = None
) -> ValidationError:
    """
    Build a formatted ValidationError.
    
    Args:
        field: Invalid field name
        value: Received value
        expected: Expected value/type
        code: Custom error code
    
    Returns:
        ValidationError: Formatted exception
    
    Example:
        >>> raise format_validation_error("value", -100, "non-negative integer")
    """
    return ValidationError(
        message=f"Invalid field '{field}': expected {expected}, got {value}",
        code=code or "VALIDATION_FAILED",
        details={"field": field, "value": value, "expected": expected}
    )


# ============================================================================
# EXPORT ALL
# ============================================================================

__all__ = [
    # Base
    "LedgerException",
    
    # Config
    "ConfigError",
    "InvalidConfigError",
    
    # Validation
    "ValidationError",
    "InvalidBlockError",
    "InvalidTransactionError",
    
    # Storage
    "StorageError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseCorruptionError",
    "MigrationError",
    
    # Helpers
    "format_validation_error",
]
