"""Check Stock Alerts Use Case: critical and low stock lines."""

from dataclasses import dataclass

from intendance.config import get_logger
from intendance.core.entities.stock import StockItem, StockStatus
from intendance.core.interfaces.stock_store import IStockStore

logger = get_logger(__name__)


@dataclass
class StockAlert:
    stock: StockItem
    message: str

    @property
    def is_critical(self) -> bool:
        return self.stock.is_critical


class CheckStockAlertsUseCase:
    """List stock items in VIOLET (critical) or ROUGE (low) status, critical first."""

    def __init__(self, stock_store: IStockStore):
        self._stock_store = stock_store

    async def execute(self, limit: int = 500) -> list[StockAlert]:
        """Execute check stock alerts use case."""
        items = await self._stock_store.list_by_status(
            [StockStatus.VIOLET.value, StockStatus.ROUGE.value], limit=limit
        )

        alerts = []
        for item in sorted(items, key=lambda i: not i.is_critical):
            prefix = "STOCK CRITIQUE" if item.is_critical else "STOCK FAIBLE"
            alerts.append(
                StockAlert(
                    stock=item,
                    message=(
                        f"{prefix}: {item.designation} "
                        f"(Quantité: {item.quantity}, Seuil: {item.critical_value})"
                    ),
                )
            )

        logger.info(
            "stock_alerts_checked",
            critical=sum(1 for a in alerts if a.is_critical),
            low=sum(1 for a in alerts if not a.is_critical),
        )
        return alerts
