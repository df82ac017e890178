"""
Stock movement ledger.

Applies quantity changes to stock items. Each movement updates the
balance, inserts the movement row and appends an audit entry in a single
write transaction, so the stored quantity can always be replayed from the
initial quantity and the movement history.
"""

import asyncio
import weakref
from dataclasses import dataclass
from datetime import datetime

import aiosqlite

from intendance.config import LedgerSettings, get_logger, get_settings
from intendance.core.entities.audit import ModificationRecord, ModificationType
from intendance.core.entities.equipment_card import EquipmentCard
from intendance.core.entities.movement import MovementKind, MovementRecord
from intendance.core.entities.stock import StockItem, compute_status
from intendance.core.exceptions import (
    InsufficientQuantityError,
    PersistenceError,
    StockNotFoundError,
    ValidationError,
)
from intendance.core.interfaces.audit_log import IAuditLog
from intendance.core.interfaces.identity import IIdentityProvider
from intendance.core.interfaces.stock_store import IStockStore
from intendance.infrastructure.storage.sqlite.connection import ConnectionPool
from intendance.infrastructure.storage.sqlite.stock_store import SQLiteStockStore

logger = get_logger(__name__)


@dataclass
class MovementResult:
    """Result of an applied movement."""

    stock: StockItem
    movement: MovementRecord


@dataclass
class DeletionResult:
    """Result of a stock item deletion."""

    stock_id: int
    designation: str
    movements_deleted: int


class LedgerManager:
    """
    Transactional owner of stock quantities and movement records.

    Movements on one stock item are serialized twice: by an in-process lock
    keyed by stock id, and by the database write lock taken with
    BEGIN IMMEDIATE before the balance is read.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        audit_log: IAuditLog,
        identity: IIdentityProvider,
        stock_store: IStockStore | None = None,
        settings: LedgerSettings | None = None,
    ):
        self._pool = pool
        self._audit_log = audit_log
        self._identity = identity
        self._stock_store = stock_store or SQLiteStockStore(pool)
        self._settings = settings or get_settings().ledger
        # A lock lives while a task holds or awaits it
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, stock_id: int) -> asyncio.Lock:
        lock = self._locks.get(stock_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[stock_id] = lock
        return lock

    def _status_for(self, quantity: int, critical_value: int) -> str:
        return compute_status(
            quantity,
            critical_value,
            critical_ratio=self._settings.critical_ratio,
            alert_ratio=self._settings.alert_ratio,
            attention_ratio=self._settings.attention_ratio,
        ).value

    async def apply_movement(
        self,
        stock_id: int,
        kind: MovementKind | str,
        amount: int,
        description: str = "",
    ) -> MovementResult:
        """
        Apply a supply or withdrawal to a stock item.

        Raises:
            ValidationError: amount is not a positive integer or kind is unknown
            StockNotFoundError: no stock item with this id
            InsufficientQuantityError: a withdrawal would go below zero
            PersistenceError: the database failed; nothing was written
        """
        try:
            kind = MovementKind(kind)
        except ValueError as e:
            raise ValidationError("kind", "unknown movement type", kind) from e
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("amount", "must be a whole number of units", amount)
        if amount <= 0:
            raise ValidationError("amount", "must be greater than zero", amount)

        actor = self._identity.current_user

        async with self._lock_for(stock_id):
            try:
                async with self._pool.write_transaction() as conn:
                    stock = await SQLiteStockStore.fetch_stock(conn, stock_id)
                    if stock is None:
                        raise StockNotFoundError(stock_id)

                    quantity_before = stock.quantity
                    quantity_after = kind.apply(quantity_before, amount)
                    if quantity_after < 0:
                        raise InsufficientQuantityError(
                            stock_id=stock_id,
                            requested=amount,
                            available=quantity_before,
                        )
                    status = self._status_for(quantity_after, stock.critical_value)

                    await conn.execute(
                        "UPDATE stocks SET quantite = ?, statut = ? WHERE id = ?",
                        (quantity_after, status, stock_id),
                    )

                    movement = MovementRecord(
                        stock_id=stock_id,
                        kind=kind,
                        amount=amount,
                        description=description,
                        timestamp=datetime.now(),
                        actor=actor,
                        quantity_before=quantity_before,
                        quantity_after=quantity_after,
                    )
                    movement_id = await self._insert_movement(conn, movement)
                    movement = movement.model_copy(update={"id": movement_id})

                    details = (
                        f"Mouvement {kind.value}: {kind.sign} {amount} unités"
                        f" - {description}"
                    )
                    await self._append_audit(
                        conn,
                        ModificationRecord(
                            table=self._settings.stock_table_label,
                            type=ModificationType.UPDATE,
                            user=actor,
                            details=details,
                        ),
                    )
            except InsufficientQuantityError as e:
                logger.warning("stock_movement_rejected", **e.details)
                raise
            except aiosqlite.Error as e:
                logger.error(
                    "stock_movement_failed",
                    stock_id=stock_id,
                    kind=kind.value,
                    amount=amount,
                    error=str(e),
                )
                raise PersistenceError("apply_movement", str(e)) from e

        stock.quantity = quantity_after
        stock.status = status
        logger.info(
            "stock_movement_applied",
            stock_id=stock_id,
            movement_id=movement.id,
            kind=kind.value,
            amount=amount,
            quantity_before=quantity_before,
            quantity_after=quantity_after,
            actor=actor,
        )
        return MovementResult(stock=stock, movement=movement)

    async def supply(self, stock_id: int, amount: int, description: str = "") -> MovementResult:
        return await self.apply_movement(stock_id, MovementKind.SUPPLY, amount, description)

    async def withdraw(self, stock_id: int, amount: int, description: str = "") -> MovementResult:
        return await self.apply_movement(
            stock_id, MovementKind.WITHDRAWAL, amount, description
        )

    async def delete_stock_item(self, stock_id: int, designation: str) -> DeletionResult:
        """
        Delete a stock item together with its whole movement history.

        Raises:
            StockNotFoundError: nothing to delete; the transaction is rolled back
            PersistenceError: the database failed; nothing was deleted
        """
        actor = self._identity.current_user

        async with self._lock_for(stock_id):
            try:
                async with self._pool.write_transaction() as conn:
                    cursor = await conn.execute(
                        "DELETE FROM stock_movements WHERE stock_id = ?", (stock_id,)
                    )
                    movements_deleted = cursor.rowcount

                    cursor = await conn.execute(
                        "DELETE FROM stocks WHERE id = ?", (stock_id,)
                    )
                    if cursor.rowcount == 0:
                        raise StockNotFoundError(stock_id)

                    await self._append_audit(
                        conn,
                        ModificationRecord(
                            table=self._settings.stock_table_label,
                            type=ModificationType.DELETION,
                            user=actor,
                            details=(
                                f"Suppression de l'équipement: {designation} "
                                f"(ID: {stock_id})"
                            ),
                        ),
                    )
            except aiosqlite.Error as e:
                logger.error("stock_deletion_failed", stock_id=stock_id, error=str(e))
                raise PersistenceError("delete_stock_item", str(e)) from e

        logger.info(
            "stock_deleted",
            stock_id=stock_id,
            designation=designation,
            movements_deleted=movements_deleted,
        )
        return DeletionResult(
            stock_id=stock_id,
            designation=designation,
            movements_deleted=movements_deleted,
        )

    async def build_equipment_card(self, stock: StockItem) -> EquipmentCard:
        """
        Reconcile a stock item against its movement history.

        Never raises. Legacy rows without creation metadata default to now
        and zero; read failures yield a degraded card.
        """
        created_at = datetime.now()
        initial_quantity = 0

        try:
            metadata = await self._stock_store.get_creation_metadata(stock.id)
        except Exception as e:
            logger.warning(
                "equipment_card_metadata_unavailable",
                stock_id=stock.id,
                error=str(e),
            )
            return EquipmentCard(
                stock=stock,
                created_at=created_at,
                initial_quantity=initial_quantity,
                degraded=True,
                warnings=[f"creation metadata unavailable: {e}"],
            )

        if metadata is not None:
            stored_created_at, stored_initial = metadata
            if stored_created_at is not None:
                created_at = stored_created_at
            if stored_initial is not None:
                initial_quantity = stored_initial

        warnings: list[str] = []
        try:
            movements = await self._stock_store.get_movements(stock.id)
        except Exception as e:
            logger.warning(
                "equipment_card_history_unavailable",
                stock_id=stock.id,
                error=str(e),
            )
            movements = []
            warnings.append(f"movement history unavailable: {e}")

        return EquipmentCard(
            stock=stock,
            created_at=created_at,
            initial_quantity=initial_quantity,
            movements=movements,
            degraded=bool(warnings),
            warnings=warnings,
        )

    async def get_equipment_card(self, stock_id: int) -> EquipmentCard:
        """Load a stock item by id and build its card."""
        try:
            stock = await self._stock_store.get_stock(stock_id)
        except aiosqlite.Error as e:
            raise PersistenceError("get_equipment_card", str(e)) from e
        if stock is None:
            raise StockNotFoundError(stock_id)
        return await self.build_equipment_card(stock)

    async def get_movements(self, stock_id: int) -> list[MovementRecord]:
        """Movement history of a stock item, newest first."""
        try:
            return await self._stock_store.get_movements(stock_id)
        except aiosqlite.Error as e:
            raise PersistenceError("get_movements", str(e)) from e

    @staticmethod
    async def _insert_movement(
        conn: aiosqlite.Connection, movement: MovementRecord
    ) -> int | None:
        cursor = await conn.execute(
            """
            INSERT INTO stock_movements (
                stock_id, type, quantite, description, date_movement,
                utilisateur, quantite_avant, quantite_apres
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                movement.stock_id,
                movement.kind.value,
                movement.amount,
                movement.description,
                movement.timestamp.isoformat(),
                movement.actor,
                movement.quantity_before,
                movement.quantity_after,
            ),
        )
        return cursor.lastrowid

    async def _append_audit(
        self, conn: aiosqlite.Connection, record: ModificationRecord
    ) -> None:
        # A failed audit insert is undone alone; the ledger write still commits.
        await conn.execute("SAVEPOINT audit_entry")
        try:
            await self._audit_log.log_modification(record, conn=conn)
        except aiosqlite.Error as e:
            await conn.execute("ROLLBACK TO SAVEPOINT audit_entry")
            logger.warning(
                "audit_entry_failed",
                table=record.table,
                type=record.type.value,
                error=str(e),
            )
        await conn.execute("RELEASE SAVEPOINT audit_entry")
