"""Data transfer objects."""

from intendance.application.dto.requests import (
    CreateStockItemRequest,
    UpdateStockItemRequest,
)

__all__ = [
    "CreateStockItemRequest",
    "UpdateStockItemRequest",
]
