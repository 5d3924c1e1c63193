"""
UTXOLedger - Configuration Management
=======================================
Centralized configuration with Pydantic Settings.
Supports environment variables, .env files and runtime overrides.

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Automatic type validation
- Environment variables with UTXOLEDGER_ prefix
- DATABASE_URL honoured for the store connection string
- .env file support
"""

import os
from pathlib import Path
from typing import Optional, List
from functools import lru_cache

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utxo_ledger.constants import (
    DEFAULT_API_HOST,
    DEFAULT_API_PORT,
    DEFAULT_DB_FILENAME,
)
from utxo_ledger.errors import InvalidConfigError


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class LedgerSettings(BaseSettings):
    """
    Main UTXOLedger configuration.
    
    Supports:
    - Loading from environment variables (UTXOLEDGER_*)
    - Loading from a .env file
    - Programmatic overrides
    - Automatic validation
    
    Example:
        # From environment
        export UTXOLEDGER_API_PORT=3001
        export DATABASE_URL=postgresql+psycopg://ledger@localhost/ledger
        
        # From code
        config = LedgerSettings(node_name="TestNode")
    """
    
    model_config = SettingsConfigDict(
        env_prefix='UTXOLEDGER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )
    
    # ========================================================================
    # NODE IDENTIFICATION
    # ========================================================================
    
    node_name: str = Field(
        default="UTXOLedger-Node",
        description="Node name"
    )
    
    # ========================================================================
    # STORAGE
    # ========================================================================
    
    data_dir: Path = Field(
        default=Path("./data"),
        description="Ledger data directory"
    )
    
    database_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("UTXOLEDGER_DATABASE_URL", "DATABASE_URL", "database_url"),
        description="SQLAlchemy URL (auto: sqlite in data_dir)"
    )
    
    db_echo: bool = Field(
        default=False,
        description="Echo SQL statements (debug)"
    )
    
    # ========================================================================
    # API
    # ========================================================================
    
    api_host: str = Field(
        default=DEFAULT_API_HOST,
        description="API host"
    )
    
    api_port: int = Field(
        default=DEFAULT_API_PORT,
        ge=1,
        le=65535,
        description="API REST port"
    )
    
    api_enable_cors: bool = Field(
        default=True,
        description="Enable CORS for the API"
    )
    
    api_cors_origins: List[str] = Field(
        default_factory=lambda: ["*"],
        description="CORS allowed origins"
    )
    
    # ========================================================================
    # LOGGING
    # ========================================================================
    
    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    
    log_to_file: bool = Field(
        default=True,
        description="Write logs to file"
    )
    
    log_dir: Path = Field(
        default=Path("./logs"),
        description="Log files directory"
    )
    
    log_format: str = Field(
        default="json",
        description="Log format: json, text"
    )
    
    log_rotation_mb: int = Field(
        default=100,
        ge=1,
        description="Max log file size before rotation (MB)"
    )
    
    log_retention_days: int = Field(
        default=30,
        ge=1,
        description="Log files retention (rotated backups)"
    )
    
    audit_log_enabled: bool = Field(
        default=True,
        description="Write accepted blocks and rollbacks to audit.log"
    )
    
    # ========================================================================
    # VALIDATORS
    # ========================================================================
    
    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {valid_levels}")
        return v_upper
    
    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format"""
        valid_formats = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid_formats}")
        return v_lower
    
    # ========================================================================
    # POST-INIT PROCESSING
    # ========================================================================
    
    def model_post_init(self, __context) -> None:
        """Post-initialization: resolve database URL"""
        if self.database_url is None:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            db_path = (self.data_dir / DEFAULT_DB_FILENAME).resolve()
            self.database_url = f"sqlite:///{db_path}"
    
    # ========================================================================
    # HELPER METHODS
    # ========================================================================
    
    def is_sqlite(self) -> bool:
        """Check whether the store is SQLite"""
        return self.database_url.startswith("sqlite")
    
    def to_dict(self) -> dict:
        """Serialize config"""
        return self.model_dump()
    
    def to_json(self) -> str:
        """Serialize config as JSON"""
        return self.model_dump_json(indent=2)
    
    def __repr__(self) -> str:
        return (
            f"LedgerSettings("
            f"node_name={self.node_name}, "
            f"database_url={self.database_url}, "
            f"api_port={self.api_port})"
        )


# ============================================================================
# CACHED INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> LedgerSettings:
    """
    Cached LedgerSettings instance for entry points (CLI, server).
    
    The engine never calls this: settings are passed explicitly to
    LedgerDatabase and LedgerController.
    
    Returns:
        LedgerSettings: Configuration instance
    """
    return LedgerSettings()


def override_settings(**kwargs) -> LedgerSettings:
    """
    Build settings with custom values.
    
    Useful for testing.
    
    Example:
        >>> test_config = override_settings(log_to_file=False)
    """
    return LedgerSettings(**kwargs)


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(config: LedgerSettings, strict: bool = False) -> tuple[bool, list[str]]:
    """
    Validate complete configuration.
    
    Args:
        config: LedgerSettings to validate
        strict: Raise instead of returning errors
    
    Returns:
        tuple: (is_valid, errors_list)
    
    Raises:
        InvalidConfigError: If strict and the configuration is invalid
    """
    errors = []
    
    if config.is_sqlite() and config.data_dir.exists() and not os.access(config.data_dir, os.W_OK):
        errors.append(f"Directory not writable: {config.data_dir}")
    
    if config.log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        if not os.access(config.log_dir, os.W_OK):
            errors.append(f"Directory not writable: {config.log_dir}")
    
    if config.api_enable_cors and not config.api_cors_origins:
        errors.append("api_enable_cors=True requires api_cors_origins")
    
    if strict and errors:
        raise InvalidConfigError(
            "Invalid configuration",
            code="INVALID_CONFIG",
            details={"errors": errors}
        )
    
    return (len(errors) == 0, errors)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "LedgerSettings",
    "get_settings",
    "override_settings",
    "validate_config",
]
