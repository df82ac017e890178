"""Core interfaces (ports) for dependency injection."""

from intendance.core.interfaces.audit_log import IAuditLog
from intendance.core.interfaces.identity import IIdentityProvider
from intendance.core.interfaces.stock_store import IStockStore

__all__ = [
    "IAuditLog",
    "IIdentityProvider",
    "IStockStore",
]
