"""SQLite implementation of stock storage."""

from datetime import datetime

import aiosqlite

from intendance.config import get_logger
from intendance.core.entities.movement import MovementKind, MovementRecord
from intendance.core.entities.stock import StockItem
from intendance.core.interfaces.stock_store import IStockStore
from intendance.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse a stored ISO timestamp, None when missing or unreadable."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None


class SQLiteStockStore(IStockStore):
    """SQLite implementation of stock item storage and movement history reads."""

    def __init__(self, pool: ConnectionPool | None = None):
        self._pool = pool

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    async def create_stock(self, item: StockItem) -> StockItem:
        """Create a stock item; its quantity is snapshotted as the initial one."""
        item.initial_quantity = item.quantity
        item.created_at = datetime.now()
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            cursor = await conn.execute(
                """
                INSERT INTO stocks (
                    designation, quantite, etat, description, valeur_critique,
                    statut, date_creation, quantite_initiale
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.designation,
                    item.quantity,
                    item.state,
                    item.description,
                    item.critical_value,
                    item.status,
                    item.created_at.isoformat(),
                    item.initial_quantity,
                ),
            )
            item.id = cursor.lastrowid
            logger.info(
                "stock_created",
                stock_id=item.id,
                designation=item.designation,
                quantity=item.quantity,
            )
            return item

    async def get_stock(self, stock_id: int) -> StockItem | None:
        """Get stock item by ID."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            return await self.fetch_stock(conn, stock_id)

    async def list_stocks(self, limit: int = 100, offset: int = 0) -> list[StockItem]:
        """List stock items with pagination."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stocks
                ORDER BY designation, id
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            )
            rows = await cursor.fetchall()
            return [self.row_to_stock(row) for row in rows]

    async def list_by_status(
        self, statuses: list[str], limit: int = 100
    ) -> list[StockItem]:
        """List stock items whose status is one of `statuses`."""
        if not statuses:
            return []
        placeholders = ", ".join("?" for _ in statuses)
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                f"""
                SELECT * FROM stocks
                WHERE statut IN ({placeholders})
                ORDER BY designation, id
                LIMIT ?
                """,
                (*statuses, limit),
            )
            rows = await cursor.fetchall()
            return [self.row_to_stock(row) for row in rows]

    async def update_details(self, item: StockItem) -> StockItem:
        """Update descriptive fields, threshold and status. Quantity is left alone."""
        pool = await self._get_pool()
        async with pool.transaction() as conn:
            await conn.execute(
                """
                UPDATE stocks SET
                    designation = ?,
                    etat = ?,
                    description = ?,
                    valeur_critique = ?,
                    statut = ?
                WHERE id = ?
                """,
                (
                    item.designation,
                    item.state,
                    item.description,
                    item.critical_value,
                    item.status,
                    item.id,
                ),
            )
            logger.info("stock_details_updated", stock_id=item.id)
            return item

    async def get_creation_metadata(
        self, stock_id: int
    ) -> tuple[datetime | None, int | None] | None:
        """Get (date_creation, quantite_initiale); either may be None on legacy rows."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT date_creation, quantite_initiale FROM stocks WHERE id = ?",
                (stock_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                return None
            return parse_timestamp(row["date_creation"]), row["quantite_initiale"]

    async def get_movements(self, stock_id: int) -> list[MovementRecord]:
        """Get all movements of a stock item, newest first."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                """
                SELECT * FROM stock_movements
                WHERE stock_id = ?
                ORDER BY date_movement DESC, id DESC
                """,
                (stock_id,),
            )
            rows = await cursor.fetchall()
            return [self.row_to_movement(row) for row in rows]

    async def count_movements(self, stock_id: int) -> int:
        """Count movements recorded for a stock item."""
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            cursor = await conn.execute(
                "SELECT COUNT(*) FROM stock_movements WHERE stock_id = ?",
                (stock_id,),
            )
            row = await cursor.fetchone()
            return row[0]

    @classmethod
    async def fetch_stock(
        cls, conn: aiosqlite.Connection, stock_id: int
    ) -> StockItem | None:
        """Read one stock row on an already acquired connection."""
        cursor = await conn.execute("SELECT * FROM stocks WHERE id = ?", (stock_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return cls.row_to_stock(row)

    @staticmethod
    def row_to_stock(row: aiosqlite.Row) -> StockItem:
        """Convert a database row to a StockItem entity."""
        return StockItem(
            id=row["id"],
            designation=row["designation"],
            quantity=row["quantite"],
            state=row["etat"] or "",
            description=row["description"] or "",
            critical_value=row["valeur_critique"] or 0,
            status=row["statut"] or "",
            created_at=parse_timestamp(row["date_creation"]) or datetime.now(),
            initial_quantity=row["quantite_initiale"] or 0,
        )

    @staticmethod
    def row_to_movement(row: aiosqlite.Row) -> MovementRecord:
        """Convert a database row to a MovementRecord entity."""
        return MovementRecord(
            id=row["id"],
            stock_id=row["stock_id"],
            kind=MovementKind(row["type"]),
            amount=row["quantite"],
            description=row["description"] or "",
            timestamp=parse_timestamp(row["date_movement"]) or datetime.now(),
            actor=row["utilisateur"],
            quantity_before=row["quantite_avant"],
            quantity_after=row["quantite_apres"],
        )
