"""
Service factory functions for dependency injection.

This module wires the SQLite infrastructure to the ledger, the session and
the use cases. Callers (the management CLI, tests) should import from here.

Clean Architecture: Application layer orchestrates DI, not core layer.
"""

from typing import TYPE_CHECKING

from intendance.application.session import UserSession
from intendance.application.use_cases import (
    CheckStockAlertsUseCase,
    CreateStockItemUseCase,
    UpdateStockItemUseCase,
)
from intendance.config import get_settings
from intendance.core.services import default_permissions

if TYPE_CHECKING:
    from intendance.infrastructure.storage.sqlite import LedgerManager


# Singleton service instances
_session: UserSession | None = None
_ledger_manager: "LedgerManager | None" = None


async def get_session() -> UserSession:
    """
    Get or create the process-wide user session.

    The session starts anonymous; its user is the actor stamped on every
    movement and audit entry until login.
    """
    global _session

    if _session is not None:
        return _session

    # Lazy import infrastructure to avoid circular imports
    from intendance.infrastructure.storage.sqlite import get_audit_log

    _session = UserSession(
        audit_log=await get_audit_log(),
        permissions=default_permissions(),
        anonymous_user=get_settings().ledger.default_actor,
    )
    return _session


async def get_ledger_manager() -> "LedgerManager":
    """Get or create the LedgerManager bound to the global pool and session."""
    global _ledger_manager

    if _ledger_manager is not None:
        return _ledger_manager

    from intendance.infrastructure.storage.sqlite import (
        LedgerManager,
        get_audit_log,
        get_pool,
        get_stock_store,
    )

    _ledger_manager = LedgerManager(
        pool=await get_pool(),
        audit_log=await get_audit_log(),
        identity=await get_session(),
        stock_store=await get_stock_store(),
        settings=get_settings().ledger,
    )
    return _ledger_manager


async def get_create_stock_item_use_case() -> CreateStockItemUseCase:
    from intendance.infrastructure.storage.sqlite import get_audit_log, get_stock_store

    return CreateStockItemUseCase(
        stock_store=await get_stock_store(),
        audit_log=await get_audit_log(),
        identity=await get_session(),
        settings=get_settings().ledger,
    )


async def get_update_stock_item_use_case() -> UpdateStockItemUseCase:
    from intendance.infrastructure.storage.sqlite import get_audit_log, get_stock_store

    return UpdateStockItemUseCase(
        stock_store=await get_stock_store(),
        audit_log=await get_audit_log(),
        identity=await get_session(),
        settings=get_settings().ledger,
    )


async def get_check_stock_alerts_use_case() -> CheckStockAlertsUseCase:
    from intendance.infrastructure.storage.sqlite import get_stock_store

    return CheckStockAlertsUseCase(stock_store=await get_stock_store())


def reset_services() -> None:
    """Reset all singleton services (for testing)."""
    global _session, _ledger_manager

    from intendance.infrastructure.storage.sqlite import reset_stores

    _session = None
    _ledger_manager = None
    reset_stores()
