"""Application use cases."""

from intendance.application.use_cases.check_stock_alerts import (
    CheckStockAlertsUseCase,
    StockAlert,
)
from intendance.application.use_cases.create_stock_item import CreateStockItemUseCase
from intendance.application.use_cases.update_stock_item import UpdateStockItemUseCase

__all__ = [
    "CheckStockAlertsUseCase",
    "StockAlert",
    "CreateStockItemUseCase",
    "UpdateStockItemUseCase",
]
