"""Create Stock Item Use Case: new equipment line with its opening balance."""

from intendance.application.dto.requests import CreateStockItemRequest
from intendance.config import LedgerSettings, get_logger, get_settings
from intendance.core.entities.audit import ModificationRecord, ModificationType
from intendance.core.entities.stock import StockItem, compute_status
from intendance.core.exceptions import ValidationError
from intendance.core.interfaces.audit_log import IAuditLog
from intendance.core.interfaces.identity import IIdentityProvider
from intendance.core.interfaces.stock_store import IStockStore

logger = get_logger(__name__)


class CreateStockItemUseCase:
    """Create a stock item; its quantity becomes the initial quantity of its card."""

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

    async def execute(self, request: CreateStockItemRequest) -> StockItem:
        """Execute create stock item use case."""
        designation = request.designation.strip()
        if not designation:
            raise ValidationError("designation", "must not be empty")
        if request.quantity < 0:
            raise ValidationError("quantity", "must not be negative", request.quantity)
        if request.critical_value <= 0:
            raise ValidationError(
                "critical_value", "must be greater than zero", request.critical_value
            )

        status = compute_status(
            request.quantity,
            request.critical_value,
            critical_ratio=self._settings.critical_ratio,
            alert_ratio=self._settings.alert_ratio,
            attention_ratio=self._settings.attention_ratio,
        )
        item = StockItem(
            designation=designation,
            quantity=request.quantity,
            state=request.state.strip(),
            description=request.description.strip(),
            critical_value=request.critical_value,
            status=status.value,
        )
        item = await self._stock_store.create_stock(item)

        await self._audit_log.log_modification(
            ModificationRecord(
                table=self._settings.stock_table_label,
                type=ModificationType.CREATION,
                user=self._identity.current_user,
                details=f"Ajout équipement: {item.designation}",
            )
        )

        logger.info(
            "stock_item_created",
            stock_id=item.id,
            designation=item.designation,
            status=item.status,
        )
        return item
