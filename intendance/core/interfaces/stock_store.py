"""Abstract interface for stock storage."""

from abc import ABC, abstractmethod
from datetime import datetime

from intendance.core.entities.movement import MovementRecord
from intendance.core.entities.stock import StockItem


class IStockStore(ABC):
    """
    Interface for stock item persistence and movement history reads.

    Quantity changes are not part of this interface: they go through the
    ledger so that every balance change is matched by a movement.
    """

    @abstractmethod
    async def create_stock(self, item: StockItem) -> StockItem:
        """Create a stock item; its current quantity becomes the initial one."""
        pass

    @abstractmethod
    async def get_stock(self, stock_id: int) -> StockItem | None:
        """Get stock item by ID."""
        pass

    @abstractmethod
    async def list_stocks(self, limit: int = 100, offset: int = 0) -> list[StockItem]:
        """List stock items ordered by designation."""
        pass

    @abstractmethod
    async def list_by_status(
        self, statuses: list[str], limit: int = 100
    ) -> list[StockItem]:
        """List stock items whose status is one of `statuses`."""
        pass

    @abstractmethod
    async def update_details(self, item: StockItem) -> StockItem:
        """Update descriptive fields and threshold; never the quantity."""
        pass

    @abstractmethod
    async def get_creation_metadata(
        self, stock_id: int
    ) -> tuple[datetime | None, int | None] | None:
        """Get (date_creation, quantite_initiale), None if the row is missing."""
        pass

    @abstractmethod
    async def get_movements(self, stock_id: int) -> list[MovementRecord]:
        """Get all movements of a stock item, newest first."""
        pass

    @abstractmethod
    async def count_movements(self, stock_id: int) -> int:
        """Count movements recorded for a stock item."""
        pass
