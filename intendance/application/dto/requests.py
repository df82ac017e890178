"""Request DTOs for use cases.

Pydantic v2 models describing what callers may ask for. Business rules
(positive thresholds, non-empty designations) are checked by the use cases
so that they surface as domain ValidationErrors.
"""

from pydantic import BaseModel, Field


class CreateStockItemRequest(BaseModel):
    """Request to register a new equipment stock line."""

    designation: str = Field(..., description="Equipment name")
    quantity: int = Field(..., description="Opening on-hand quantity")
    critical_value: int = Field(..., description="Critical threshold (> 0)")
    state: str = Field(default="", description="Physical condition")
    description: str = Field(default="", description="Free-text description")


class UpdateStockItemRequest(BaseModel):
    """Request to edit a stock line. Fields left to None are unchanged."""

    stock_id: int = Field(..., description="Stock item ID")
    designation: str | None = Field(default=None, description="Equipment name")
    state: str | None = Field(default=None, description="Physical condition")
    description: str | None = Field(default=None, description="Free-text description")
    critical_value: int | None = Field(default=None, description="Critical threshold (> 0)")
