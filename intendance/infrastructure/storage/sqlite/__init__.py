"""SQLite storage implementations."""

from intendance.infrastructure.storage.sqlite.audit_store import SQLiteAuditLog
from intendance.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from intendance.infrastructure.storage.sqlite.ledger_manager import (
    DeletionResult,
    LedgerManager,
    MovementResult,
)
from intendance.infrastructure.storage.sqlite.stock_store import SQLiteStockStore

# Type aliases for convenience
StockStore = SQLiteStockStore
AuditLog = SQLiteAuditLog

# Singleton instances
_stock_store: SQLiteStockStore | None = None
_audit_log: SQLiteAuditLog | None = None


async def get_stock_store() -> SQLiteStockStore:
    """Get singleton stock store instance."""
    global _stock_store
    if _stock_store is None:
        _stock_store = SQLiteStockStore(await get_pool())
    return _stock_store


async def get_audit_log() -> SQLiteAuditLog:
    """Get singleton audit log instance."""
    global _audit_log
    if _audit_log is None:
        _audit_log = SQLiteAuditLog(await get_pool())
    return _audit_log


def reset_stores() -> None:
    """Drop the singleton stores (after the global pool is closed)."""
    global _stock_store, _audit_log
    _stock_store = None
    _audit_log = None


__all__ = [
    # Connection
    "ConnectionPool",
    "get_pool",
    "close_pool",
    # Store classes
    "SQLiteStockStore",
    "SQLiteAuditLog",
    "LedgerManager",
    "MovementResult",
    "DeletionResult",
    # Type aliases
    "StockStore",
    "AuditLog",
    # Factory functions
    "get_stock_store",
    "get_audit_log",
    "reset_stores",
]
