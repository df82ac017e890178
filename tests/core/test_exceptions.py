"""Unit tests for domain exceptions."""

from intendance.core.exceptions import (
    AccessDeniedError,
    InsufficientQuantityError,
    IntendanceError,
    LedgerError,
    PersistenceError,
    StockNotFoundError,
    StorageError,
    ValidationError,
)


class TestIntendanceError:
    """Tests for base IntendanceError exception."""

    def test_basic_initialization(self):
        error = IntendanceError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.code == "IntendanceError"
        assert error.details == {}

    def test_with_custom_code(self):
        error = IntendanceError("Error message", code="CUSTOM_ERROR")
        assert error.code == "CUSTOM_ERROR"

    def test_to_dict(self):
        error = IntendanceError("Test error", code="TEST_CODE", details={"extra": "info"})
        assert error.to_dict() == {
            "error": "TEST_CODE",
            "message": "Test error",
            "details": {"extra": "info"},
        }


class TestStorageErrors:
    def test_stock_not_found(self):
        error = StockNotFoundError(42)
        assert isinstance(error, StorageError)
        assert error.code == "STOCK_NOT_FOUND"
        assert error.details == {"stock_id": 42}
        assert "42" in error.message

    def test_persistence_error(self):
        error = PersistenceError("apply_movement", "disk I/O error")
        assert isinstance(error, StorageError)
        assert error.code == "PERSISTENCE_ERROR"
        assert error.details["operation"] == "apply_movement"
        assert "disk I/O error" in error.message


class TestLedgerErrors:
    def test_insufficient_quantity(self):
        error = InsufficientQuantityError(stock_id=1, requested=999, available=70)
        assert isinstance(error, LedgerError)
        assert error.code == "INSUFFICIENT_QUANTITY"
        assert error.details == {"stock_id": 1, "requested": 999, "available": 70}


class TestValidationError:
    def test_value_is_truncated(self):
        error = ValidationError("designation", "too long", "x" * 500)
        assert error.code == "VALIDATION_ERROR"
        assert len(error.details["value"]) == 100

    def test_value_none(self):
        error = ValidationError("amount", "required")
        assert error.details["value"] is None


class TestAccessDeniedError:
    def test_details(self):
        error = AccessDeniedError("Opérations", "stocks")
        assert error.code == "ACCESS_DENIED"
        assert error.details == {"service": "Opérations", "table": "stocks"}
        assert isinstance(error, IntendanceError)
