"""
UTXOLedger - Core Constants
=============================
Immutable ledger protocol constants.

Last Updated: 2026-10-19
Version: 1.0.0
"""

from typing import Final

# ============================================================================
# PROJECT IDENTIFICATION
# ============================================================================

PROJECT_NAME: Final[str] = "UTXOLedger"

# ============================================================================
# CHAIN PARAMETERS
# ============================================================================

# Chain head of an empty ledger
GENESIS_HEIGHT: Final[int] = 0

# Height of the first accepted block
FIRST_BLOCK_HEIGHT: Final[int] = 1

# ============================================================================
# STORAGE
# ============================================================================

DEFAULT_DB_FILENAME: Final[str] = "utxoledger.db"

# Column sizes
MAX_ID_LENGTH: Final[int] = 256
MAX_ADDRESS_LENGTH: Final[int] = 256

# Largest amount a value or balance column holds (signed 64-bit)
MAX_VALUE: Final[int] = 2**63 - 1

# Largest output index an index column holds (signed 32-bit)
MAX_OUTPUT_INDEX: Final[int] = 2**31 - 1

# ============================================================================
# NETWORK DEFAULTS
# ============================================================================

DEFAULT_API_HOST: Final[str] = "0.0.0.0"
DEFAULT_API_PORT: Final[int] = 3000

# ============================================================================
# HTTP MESSAGES
# ============================================================================

MSG_BLOCK_ACCEPTED: Final[str] = "Block processed successfully"
MSG_ROLLBACK_OK: Final[str] = "Rollback successful"


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "PROJECT_NAME",
    "GENESIS_HEIGHT",
    "FIRST_BLOCK_HEIGHT",
    "DEFAULT_DB_FILENAME",
    "MAX_ID_LENGTH",
    "MAX_ADDRESS_LENGTH",
    "MAX_VALUE",
    "MAX_OUTPUT_INDEX",
    "DEFAULT_API_HOST",
    "DEFAULT_API_PORT",
    "MSG_BLOCK_ACCEPTED",
    "MSG_ROLLBACK_OK",
]
