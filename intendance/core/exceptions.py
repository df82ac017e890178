"""
Ledger error types.

Every error carries a stable ``code`` (printed by the CLI) and a ``details``
dict of the values that caused it, which the ledger logs as event fields.
"""

from typing import Any


class IntendanceError(Exception):
    """Root of the ledger's exceptions."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__
        self.details = dict(details or {})

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "details": self.details}


class StorageError(IntendanceError):
    """The database could not serve a request."""


class StockNotFoundError(StorageError):
    def __init__(self, stock_id: int):
        super().__init__(
            f"Stock item not found: {stock_id}",
            code="STOCK_NOT_FOUND",
            details={"stock_id": stock_id},
        )


class PersistenceError(StorageError):
    """A write failed and its whole unit of work was rolled back."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="PERSISTENCE_ERROR",
            details={"operation": operation, "error": error},
        )


class LedgerError(IntendanceError):
    """A movement breaks a ledger rule."""


class InsufficientQuantityError(LedgerError):
    """Withdrawing ``requested`` units would leave a negative balance."""

    def __init__(self, stock_id: int, requested: int, available: int):
        super().__init__(
            f"Insufficient quantity for stock {stock_id}: "
            f"requested {requested}, available {available}",
            code="INSUFFICIENT_QUANTITY",
            details={"stock_id": stock_id, "requested": requested, "available": available},
        )


class ValidationError(IntendanceError):
    """An input value was rejected before touching the database."""

    def __init__(self, field: str, message: str, value: Any = None):
        shown = None if value is None else str(value)[:100]
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={"field": field, "message": message, "value": shown},
        )


class AccessDeniedError(IntendanceError):
    """The logged-in service may not work on ``table``."""

    def __init__(self, service: str | None, table: str):
        super().__init__(
            f"Service '{service}' has no access to table '{table}'",
            code="ACCESS_DENIED",
            details={"service": service, "table": table},
        )
