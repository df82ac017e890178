"""
Application layer - Use cases, DTOs, the user session and service factories.

This layer orchestrates business logic by:
1. Defining request DTOs for stock edits
2. Implementing use cases that coordinate the stores and the audit log
3. Providing factory functions for dependency injection
"""

from intendance.application.dto.requests import (
    CreateStockItemRequest,
    UpdateStockItemRequest,
)
from intendance.application.services import (
    get_check_stock_alerts_use_case,
    get_create_stock_item_use_case,
    get_ledger_manager,
    get_session,
    get_update_stock_item_use_case,
    reset_services,
)
from intendance.application.session import UserSession
from intendance.application.use_cases import (
    CheckStockAlertsUseCase,
    CreateStockItemUseCase,
    StockAlert,
    UpdateStockItemUseCase,
)

__all__ = [
    # Request DTOs
    "CreateStockItemRequest",
    "UpdateStockItemRequest",
    # Session
    "UserSession",
    # Use Cases
    "CreateStockItemUseCase",
    "UpdateStockItemUseCase",
    "CheckStockAlertsUseCase",
    "StockAlert",
    # Service factories
    "get_session",
    "get_ledger_manager",
    "get_create_stock_item_use_case",
    "get_update_stock_item_use_case",
    "get_check_stock_alerts_use_case",
    "reset_services",
]
