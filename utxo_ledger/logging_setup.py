"""
UTXOLedger - Logging System
=============================
Structured JSON logging for audit and debugging.

Last Updated: 2026-10-19
Version: 1.0.0

Features:
- Structured JSON logging
- Automatic rotation
- Console + file handlers
- Context enrichment
- Performance tracking
- Audit trail
"""

import logging
import logging.handlers
import json
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import traceback


# ============================================================================
# JSON FORMATTER
# ============================================================================

class JSONFormatter(logging.Formatter):
    """
    Formatter emitting one JSON object per record.
    
    Output structure:
    {
        "timestamp": "2026-10-19T10:00:00.000000Z",
        "level": "INFO",
        "logger": "utxoledger.ledger",
        "message": "Block accepted",
        "extra_data": {...},
        "exception": {...}
    }
    """
    
    def __init__(
        self,
        include_extra: bool = True,
        include_stack: bool = True
    ):
        super().__init__()
        self.include_extra = include_extra
        self.include_stack = include_stack
    
    def format(self, record: logging.LogRecord) -> str:
        """
        Format LogRecord as JSON.
        
        Args:
            record: LogRecord to format
        
        Returns:
            str: JSON string
        """
        log_data = {
            "timestamp": _utc(record.created).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        
        if record.thread:
            log_data["thread_id"] = record.thread
            log_data["thread_name"] = record.threadName
        
        if record.process:
            log_data["process_id"] = record.process
        
        if self.include_extra and hasattr(record, 'extra_data'):
            log_data["extra_data"] = record.extra_data
        
        if record.exc_info and self.include_stack:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }
        
        return json.dumps(log_data, default=str)


def _utc(created: float) -> datetime:
    return datetime.fromtimestamp(created, tz=timezone.utc)


# ============================================================================
# TEXT FORMATTER (Human-Readable)
# ============================================================================

class ColoredTextFormatter(logging.Formatter):
    """
    Colored console formatter.
    
    Colors:
    - DEBUG: Gray
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Bold Red
    """
    
    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[90m',
        'INFO': '\033[92m',
        'WARNING': '\033[93m',
        'ERROR': '\033[91m',
        'CRITICAL': '\033[1;91m',
        'RESET': '\033[0m'
    }
    
    def format(self, record: logging.LogRecord) -> str:
        """Format with colors"""
        levelname = record.levelname
        if levelname in self.COLORS:
            levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        
        timestamp = _utc(record.created).strftime('%Y-%m-%d %H:%M:%S')
        
        message = f"{timestamp} [{levelname}] {record.name}: {record.getMessage()}"
        
        if hasattr(record, 'extra_data'):
            message += f" | {record.extra_data}"
        
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"
        
        return message


# ============================================================================
# LOGGER CLASS
# ============================================================================

class LedgerLogger:
    """
    Logger wrapper with structured extra data.
    
    Features:
    - Context enrichment
    - Structured logging (extra_data)
    """
    
    def __init__(self, logger: logging.Logger):
        self._logger = logger
        self._context: Dict[str, Any] = {}
    
    @property
    def name(self) -> str:
        return self._logger.name
    
    def set_context(self, **kwargs):
        """
        Set context added to every record.
        
        Example:
            >>> logger.set_context(node_name="ledger-1")
        """
        self._context.update(kwargs)
    
    def clear_context(self):
        """Clear context"""
        self._context.clear()
    
    def _log(
        self,
        level: int,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None,
        exc_info=None
    ):
        merged_extra = {**self._context}
        if extra_data:
            merged_extra.update(extra_data)
        
        self._logger.log(
            level,
            message,
            exc_info=exc_info,
            extra={'extra_data': merged_extra} if merged_extra else {}
        )
    
    def debug(self, message: str, extra_data: Optional[Dict] = None):
        """Log DEBUG"""
        self._log(logging.DEBUG, message, extra_data)
    
    def info(self, message: str, extra_data: Optional[Dict] = None):
        """Log INFO"""
        self._log(logging.INFO, message, extra_data)
    
    def warning(self, message: str, extra_data: Optional[Dict] = None):
        """Log WARNING"""
        self._log(logging.WARNING, message, extra_data)
    
    def error(self, message: str, extra_data: Optional[Dict] = None, exc_info=None):
        """Log ERROR"""
        self._log(logging.ERROR, message, extra_data, exc_info)
    
    def critical(self, message: str, extra_data: Optional[Dict] = None, exc_info=None):
        """Log CRITICAL"""
        self._log(logging.CRITICAL, message, extra_data, exc_info)
    
    def exception(self, message: str, extra_data: Optional[Dict] = None):
        """Log exception with traceback"""
        self._log(logging.ERROR, message, extra_data, exc_info=sys.exc_info())


# ============================================================================
# SETUP FUNCTION
# ============================================================================

ROOT_LOGGER_NAME = "utxoledger"


def setup_logging(
    log_level: str = "INFO",
    log_to_file: bool = True,
    log_dir: Path = Path("./logs"),
    log_format: str = "json",
    log_rotation_mb: int = 100,
    log_retention_days: int = 30,
    enable_console: bool = True,
) -> LedgerLogger:
    """
    Configure the logging system.
    
    Args:
        log_level: Level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Write to file
        log_dir: Log files directory
        log_format: Format (json, text)
        log_rotation_mb: MB before rotation
        log_retention_days: Rotated backups kept
        enable_console: Also log to console
    
    Returns:
        LedgerLogger: Configured root logger
    
    Example:
        >>> logger = setup_logging(log_level="DEBUG", log_to_file=False)
        >>> logger.info("Ledger started", extra_data={"port": 3000})
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))
    
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    
    # ========================================================================
    # FILE HANDLER (with rotation)
    # ========================================================================
    
    if log_to_file:
        log_dir.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "utxoledger.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )
        
        if log_format == "json":
            file_handler.setFormatter(JSONFormatter())
        else:
            file_handler.setFormatter(
                logging.Formatter(
                    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
                )
            )
        
        root_logger.addHandler(file_handler)
    
    # ========================================================================
    # CONSOLE HANDLER
    # ========================================================================
    
    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColoredTextFormatter())
        root_logger.addHandler(console_handler)
    
    # ========================================================================
    # ERROR FILE HANDLER (separate error log)
    # ========================================================================
    
    if log_to_file:
        error_handler = logging.handlers.RotatingFileHandler(
            filename=log_dir / "utxoledger_errors.log",
            maxBytes=log_rotation_mb * 1024 * 1024,
            backupCount=log_retention_days,
            encoding='utf-8'
        )
        
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(JSONFormatter(include_stack=True))
        
        root_logger.addHandler(error_handler)
    
    return LedgerLogger(root_logger)


# ============================================================================
# CATEGORY LOGGERS
# ============================================================================

def get_logger(category: str) -> LedgerLogger:
    """
    Get logger for a category.
    
    Args:
        category: Category (ledger, validation, storage, api, ...)
    
    Returns:
        LedgerLogger: Category logger
    
    Example:
        >>> storage_logger = get_logger("storage")
        >>> storage_logger.info("Database opened")
    """
    return LedgerLogger(logging.getLogger(f"{ROOT_LOGGER_NAME}.{category}"))


# ============================================================================
# PERFORMANCE TRACKING
# ============================================================================

class PerformanceLogger:
    """
    Context manager for performance tracking.
    
    Example:
        >>> logger = get_logger("validation")
        >>> with PerformanceLogger(logger, "validate_block"):
        ...     validator.validate(head, block, view)
        # Logs: "validate_block completed in 0.123ms"
    """
    
    def __init__(
        self,
        logger: LedgerLogger,
        operation: str,
        threshold_ms: Optional[int] = None
    ):
        self.logger = logger
        self.operation = operation
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms: Optional[float] = None
    
    def __enter__(self):
        self.start_time = time.perf_counter()
        return self
    
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000
        
        extra = {
            "operation": self.operation,
            "duration_ms": round(self.elapsed_ms, 2)
        }
        
        if self.threshold_ms and self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation} took {self.elapsed_ms:.2f}ms (threshold: {self.threshold_ms}ms)",
                extra_data=extra
            )
        else:
            self.logger.debug(
                f"{self.operation} completed in {self.elapsed_ms:.2f}ms",
                extra_data=extra
            )


# ============================================================================
# AUDIT LOGGER
# ============================================================================

class AuditLogger:
    """
    Audit trail of ledger mutations.
    
    Use for:
    - Accepted blocks
    - Rollbacks
    """
    
    def __init__(self, log_dir: Path = Path("./logs")):
        self.log_dir = log_dir
        self.log_dir.mkdir(parents=True, exist_ok=True)
        
        self.logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.audit")
        self.logger.setLevel(logging.INFO)
        
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
        
        # No rotation for audit: keep everything
        handler = logging.FileHandler(log_dir / "audit.log", encoding='utf-8')
        handler.setFormatter(JSONFormatter(include_extra=True))
        
        self.logger.addHandler(handler)
    
    def _audit(self, message: str, action: str, **fields):
        self.logger.info(
            message,
            extra={
                'extra_data': {
                    "action": action,
                    **fields,
                    "timestamp": datetime.now(timezone.utc).isoformat()
                }
            }
        )
    
    def log_block_accepted(self, height: int, block_id: str, tx_count: int):
        """Log block acceptance"""
        self._audit(
            "Block accepted",
            "block_accepted",
            height=height,
            block_id=block_id,
            tx_count=tx_count
        )
    
    def log_rollback(self, from_height: int, to_height: int, removed_blocks: int):
        """Log rollback"""
        self._audit(
            "Ledger rolled back",
            "rollback",
            from_height=from_height,
            to_height=to_height,
            removed_blocks=removed_blocks
        )
    
    def close(self) -> None:
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "setup_logging",
    "get_logger",
    "LedgerLogger",
    "PerformanceLogger",
    "AuditLogger",
    "JSONFormatter",
    "ColoredTextFormatter",
    "ROOT_LOGGER_NAME",
]
