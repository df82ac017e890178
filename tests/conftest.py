"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from intendance.application.session import UserSession
from intendance.config import LedgerSettings
from intendance.infrastructure.storage.sqlite.audit_store import SQLiteAuditLog
from intendance.infrastructure.storage.sqlite.connection import ConnectionPool
from intendance.infrastructure.storage.sqlite.ledger_manager import LedgerManager
from intendance.infrastructure.storage.sqlite.migrations import initialize_database
from intendance.infrastructure.storage.sqlite.stock_store import SQLiteStockStore


@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Create a temporary database path."""
    return tmp_path / "test.db"


@pytest.fixture
def mock_settings(temp_db_path: Path):
    """Mock settings with temp database path."""
    mock = MagicMock()
    mock.storage.db_path = temp_db_path
    mock.storage.pool_size = 2
    mock.storage.busy_timeout = 5000
    mock.ledger = LedgerSettings()
    return mock


@pytest.fixture
async def migrated_db(temp_db_path: Path) -> Path:
    """Temporary database with every migration applied."""
    results = await initialize_database(temp_db_path, create_backup_before=False)
    assert all(r.success for r in results)
    return temp_db_path


@pytest.fixture
async def pool(migrated_db: Path) -> AsyncGenerator[ConnectionPool, None]:
    """Connection pool over the migrated database."""
    pool = ConnectionPool(migrated_db, pool_size=2, busy_timeout=5000)
    await pool.initialize()
    yield pool
    await pool.close()


@pytest.fixture
def ledger_settings() -> LedgerSettings:
    return LedgerSettings()


@pytest.fixture
def stock_store(pool: ConnectionPool) -> SQLiteStockStore:
    return SQLiteStockStore(pool)


@pytest.fixture
def audit_log(pool: ConnectionPool) -> SQLiteAuditLog:
    return SQLiteAuditLog(pool)


@pytest.fixture
def session(audit_log: SQLiteAuditLog) -> UserSession:
    """Anonymous session; tests log in when they need a named actor."""
    return UserSession(audit_log)


@pytest.fixture
def ledger(
    pool: ConnectionPool,
    audit_log: SQLiteAuditLog,
    session: UserSession,
    stock_store: SQLiteStockStore,
    ledger_settings: LedgerSettings,
) -> LedgerManager:
    return LedgerManager(
        pool=pool,
        audit_log=audit_log,
        identity=session,
        stock_store=stock_store,
        settings=ledger_settings,
    )
