"""Abstract interface for the audit history."""

from abc import ABC, abstractmethod
from typing import Any

from intendance.core.entities.audit import (
    ConnectionAction,
    ConnectionRecord,
    ConnectionStatus,
    ModificationRecord,
)


class IAuditLog(ABC):
    """Append-only log of connections and modifications."""

    @abstractmethod
    async def log_connection(
        self, user: str, action: ConnectionAction, status: ConnectionStatus
    ) -> ConnectionRecord:
        """Record a login or logout attempt."""
        pass

    @abstractmethod
    async def log_modification(
        self, record: ModificationRecord, conn: Any | None = None
    ) -> ModificationRecord:
        """
        Record a modification.

        When `conn` is given the entry is written on that connection and
        commits or rolls back with the caller's transaction.
        """
        pass

    @abstractmethod
    async def list_connections(self, limit: int = 100) -> list[ConnectionRecord]:
        """List connection history, newest first."""
        pass

    @abstractmethod
    async def list_modifications(
        self, table: str | None = None, limit: int = 100
    ) -> list[ModificationRecord]:
        """List modification history, newest first, optionally for one table."""
        pass
