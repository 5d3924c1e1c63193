"""
UTXOLedger - Hashing Primitives
=================================
Block identity hashing.

A block id is the hex SHA-256 digest of the decimal height followed by the
concatenation, in order, of the block's transaction ids.
"""

import hashlib
from typing import Iterable


def compute_sha256(data: bytes) -> bytes:
    """
    Compute SHA-256 hash.
    
    Args:
        data: Input data
    
    Returns:
        bytes: 32-byte digest
    
    Examples:
        >>> compute_sha256(b"").hex()
        'e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    """
    return hashlib.sha256(data).digest()


def compute_sha256_hex(data: bytes) -> str:
    """SHA-256 as lowercase hex string"""
    return compute_sha256(data).hex()


def block_id_preimage(height: int, tx_ids: Iterable[str]) -> bytes:
    """Bytes hashed into a block id"""
    return f"{height}{''.join(tx_ids)}".encode("utf-8")


def compute_block_id(height: int, tx_ids: Iterable[str]) -> str:
    """
    Compute the expected id of a block.
    
    Args:
        height: Block height
        tx_ids: Transaction ids in block order
    
    Returns:
        str: 64 lowercase hex chars
    
    Examples:
        >>> compute_block_id(1, ["tx1"]) == compute_sha256_hex(b"1tx1")
        True
    """
    return compute_sha256_hex(block_id_preimage(height, tx_ids))


__all__ = [
    "compute_sha256",
    "compute_sha256_hex",
    "block_id_preimage",
    "compute_block_id",
]
