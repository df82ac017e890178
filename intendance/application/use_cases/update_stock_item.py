"""Update Stock Item Use Case: descriptive fields and threshold only."""

from intendance.application.dto.requests import UpdateStockItemRequest
from intendance.config import LedgerSettings, get_logger, get_settings
from intendance.core.entities.audit import ModificationRecord, ModificationType
from intendance.core.entities.stock import StockItem, compute_status
from intendance.core.exceptions import StockNotFoundError, ValidationError
from intendance.core.interfaces.audit_log import IAuditLog
from intendance.core.interfaces.identity import IIdentityProvider
from intendance.core.interfaces.stock_store import IStockStore

logger = get_logger(__name__)


class UpdateStockItemUseCase:
    """Edit a stock item. Quantities only change through the ledger."""

    def __init__(
        self,
        stock_store: IStockStore,
        audit_log: IAuditLog,
        identity: IIdentityProvider,
        settings: LedgerSettings | None = None,
    ):
        self._stock_store = stock_store
        self._audit_log = audit_log
        self._identity = identity
        self._settings = settings or get_settings().ledger

    async def execute(self, request: UpdateStockItemRequest) -> StockItem:
        """Execute update stock item use case."""
        item = await self._stock_store.get_stock(request.stock_id)
        if item is None:
            raise StockNotFoundError(request.stock_id)

        if request.designation is not None:
            designation = request.designation.strip()
            if not designation:
                raise ValidationError("designation", "must not be empty")
            item.designation = designation
        if request.state is not None:
            item.state = request.state.strip()
        if request.description is not None:
            item.description = request.description.strip()
        if request.critical_value is not None:
            if request.critical_value <= 0:
                raise ValidationError(
                    "critical_value",
                    "must be greater than zero",
                    request.critical_value,
                )
            item.critical_value = request.critical_value

        item.status = compute_status(
            item.quantity,
            item.critical_value,
            critical_ratio=self._settings.critical_ratio,
            alert_ratio=self._settings.alert_ratio,
            attention_ratio=self._settings.attention_ratio,
        ).value
        item = await self._stock_store.update_details(item)

        await self._audit_log.log_modification(
            ModificationRecord(
                table=self._settings.stock_table_label,
                type=ModificationType.UPDATE,
                user=self._identity.current_user,
                details=f"Modification équipement: {item.designation}",
            )
        )

        logger.info("stock_item_updated", stock_id=item.id, status=item.status)
        return item
