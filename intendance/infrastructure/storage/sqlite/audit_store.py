"""SQLite implementation of the audit history."""

from datetime import datetime

import aiosqlite

from intendance.config import get_logger
from intendance.core.entities.audit import (
    ConnectionAction,
    ConnectionRecord,
    ConnectionStatus,
    ModificationRecord,
    ModificationType,
)
from intendance.core.interfaces.audit_log import IAuditLog
from intendance.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool
from intendance.infrastructure.storage.sqlite.stock_store import parse_timestamp

logger = get_logger(__name__)


class SQLiteAuditLog(IAuditLog):
    """Append-only connection and modification history."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def log_connection(
        self, user: str, action: ConnectionAction, status: ConnectionStatus
    ) -> ConnectionRecord:
        """Record a login or logout attempt."""
        record = ConnectionRecord(user=user, action=action, status=status)
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO historique_connexions (date, utilisateur, action, statut)
                VALUES (?, ?, ?, ?)
                """,
                (
                    record.date.isoformat(),
                    record.user,
                    record.action.value,
                    record.status.value,
                ),
            )
            record.id = cursor.lastrowid
        logger.info(
            "connection_logged",
            user=user,
            action=action.value,
            status=status.value,
        )
        return record

    async def log_modification(
        self, record: ModificationRecord, conn: aiosqlite.Connection | None = None
    ) -> ModificationRecord:
        """Record a modification, inside the caller's transaction when `conn` is given."""
        if conn is not None:
            record.id = await self._insert_modification(conn, record)
        else:
            pool = await self._get_pool()
            async with pool.transaction() as own_conn:
                record.id = await self._insert_modification(own_conn, record)
        logger.info(
            "modification_logged",
            table=record.table,
            type=record.type.value,
            user=record.user,
        )
        return record

    @staticmethod
    async def _insert_modification(
        conn: aiosqlite.Connection, record: ModificationRecord
    ) -> int | None:
        cursor = await conn.execute(
            """
            INSERT INTO historique_modifications (
                date, table_modifiee, type_modification, utilisateur, details
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (
                record.date.isoformat(),
                record.table,
                record.type.value,
                record.user,
                record.details,
            ),
        )
        return cursor.lastrowid

    async def list_connections(self, limit: int = 100) -> list[ConnectionRecord]:
        """List connection history, newest first."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM historique_connexions
                ORDER BY date DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = await cursor.fetchall()
            return [
                ConnectionRecord(
                    id=row["id"],
                    date=parse_timestamp(row["date"]) or datetime.now(),
                    user=row["utilisateur"],
                    action=ConnectionAction(row["action"]),
                    status=ConnectionStatus(row["statut"]),
                )
                for row in rows
            ]

    async def list_modifications(
        self, table: str | None = None, limit: int = 100
    ) -> list[ModificationRecord]:
        """List modification history, newest first, optionally for one table."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            if table is None:
                cursor = await conn.execute(
                    """
                    SELECT * FROM historique_modifications
                    ORDER BY date DESC, id DESC
                    LIMIT ?
                    """,
                    (limit,),
                )
            else:
                cursor = await conn.execute(
                    """
                    SELECT * FROM historique_modifications
                    WHERE table_modifiee = ?
                    ORDER BY date DESC, id DESC
                    LIMIT ?
                    """,
                    (table, limit),
                )
            rows = await cursor.fetchall()
            return [
                ModificationRecord(
                    id=row["id"],
                    date=parse_timestamp(row["date"]) or datetime.now(),
                    table=row["table_modifiee"],
                    type=ModificationType(row["type_modification"]),
                    user=row["utilisateur"],
                    details=row["details"] or "",
                )
                for row in rows
            ]
