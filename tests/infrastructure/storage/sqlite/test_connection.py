"""Unit tests for SQLite connection pool."""

import asyncio
from pathlib import Path
from unittest.mock import patch

import aiosqlite
import pytest

from intendance.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)


class TestConnectionPoolInit:
    """Tests for ConnectionPool initialization."""

    def test_init_defaults(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path)
        assert pool.db_path == temp_db_path
        assert pool.pool_size == 5
        assert pool.busy_timeout == 30000
        assert pool._initialized is False
        assert len(pool._connections) == 0


class TestConnectionPoolInitialize:
    """Tests for ConnectionPool.initialize()."""

    async def test_initialize_creates_directory(self, tmp_path: Path):
        """Initialize creates database directory if not exists."""
        db_path = tmp_path / "subdir" / "nested" / "test.db"
        pool = ConnectionPool(db_path, pool_size=1)

        await pool.initialize()
        assert db_path.parent.exists()
        await pool.close()

    async def test_initialize_idempotent(self, temp_db_path: Path):
        """Multiple initialize calls are safe."""
        pool = ConnectionPool(temp_db_path, pool_size=2)

        await pool.initialize()
        await pool.initialize()

        assert len(pool._connections) == 2
        assert pool._pool.qsize() == 2
        await pool.close()


class TestConnectionPoolCreateConnection:
    """Tests for ConnectionPool._create_connection()."""

    async def test_connection_pragmas(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, busy_timeout=1234)
        conn = await pool._create_connection()

        cursor = await conn.execute("PRAGMA journal_mode")
        assert (await cursor.fetchone())[0].lower() == "wal"
        cursor = await conn.execute("PRAGMA foreign_keys")
        assert (await cursor.fetchone())[0] == 1
        cursor = await conn.execute("PRAGMA busy_timeout")
        assert (await cursor.fetchone())[0] == 1234
        assert conn.row_factory == aiosqlite.Row
        await conn.close()


class TestConnectionPoolAcquire:
    """Tests for ConnectionPool.acquire()."""

    async def test_acquire_auto_initializes(self, temp_db_path: Path):
        """acquire() initializes pool if not initialized."""
        pool = ConnectionPool(temp_db_path, pool_size=1)

        async with pool.acquire() as conn:
            assert pool._initialized is True
            assert isinstance(conn, aiosqlite.Connection)

        await pool.close()

    async def test_acquire_returns_on_exception(self, temp_db_path: Path):
        """Connection is returned even if exception occurs."""
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        with pytest.raises(ValueError):
            async with pool.acquire() as _conn:
                raise ValueError("Test error")

        assert pool._pool.qsize() == 1
        await pool.close()

    async def test_acquire_blocks_when_pool_exhausted(self, temp_db_path: Path):
        """acquire() blocks when all connections are in use."""
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.initialize()

        async with pool.acquire() as _conn1:
            with pytest.raises(asyncio.TimeoutError):
                async with asyncio.timeout(0.1):
                    async with pool.acquire() as _conn2:
                        pass

        await pool.close()


class TestConnectionPoolTransaction:
    """Tests for ConnectionPool.transaction() and write_transaction()."""

    async def test_transaction_commits_on_success(self, pool: ConnectionPool):
        async with pool.transaction() as conn:
            await conn.execute(
                "INSERT INTO stocks (designation, quantite) VALUES (?, ?)",
                ("Casque F1", 5),
            )

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT designation FROM stocks")
            row = await cursor.fetchone()
            assert row["designation"] == "Casque F1"

    async def test_transaction_rollbacks_on_exception(self, pool: ConnectionPool):
        with pytest.raises(ValueError):
            async with pool.transaction() as conn:
                await conn.execute(
                    "INSERT INTO stocks (designation, quantite) VALUES (?, ?)",
                    ("Rollback", 5),
                )
                raise ValueError("Force rollback")

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM stocks")
            assert (await cursor.fetchone())[0] == 0

    async def test_write_transaction_holds_write_lock(self, pool: ConnectionPool):
        async with pool.write_transaction() as conn:
            assert conn.in_transaction
            await conn.execute(
                "INSERT INTO stocks (designation, quantite) VALUES (?, ?)",
                ("Gourde", 3),
            )

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM stocks")
            assert (await cursor.fetchone())[0] == 1

    async def test_write_transaction_rollbacks_on_exception(self, pool: ConnectionPool):
        with pytest.raises(RuntimeError):
            async with pool.write_transaction() as conn:
                await conn.execute(
                    "INSERT INTO stocks (designation, quantite) VALUES (?, ?)",
                    ("Gourde", 3),
                )
                raise RuntimeError("boom")

        async with pool.acquire() as conn:
            assert not conn.in_transaction
            cursor = await conn.execute("SELECT COUNT(*) FROM stocks")
            assert (await cursor.fetchone())[0] == 0

    async def test_failed_commit_rolls_back(self, migrated_db: Path):
        pool = ConnectionPool(migrated_db, pool_size=1)

        # Deferred foreign keys are only checked at commit time
        with pytest.raises(aiosqlite.IntegrityError):
            async with pool.transaction() as conn:
                await conn.execute("PRAGMA defer_foreign_keys=ON")
                await conn.execute(
                    "INSERT INTO stock_movements (stock_id, type, quantite, date_movement, "
                    "utilisateur, quantite_avant, quantite_apres) "
                    "VALUES (999, 'APPROVISIONNEMENT', 5, '2024-01-01T00:00:00', 'admin', 0, 5)"
                )

        async with pool.acquire() as conn:
            assert not conn.in_transaction

        async with pool.transaction() as conn:
            await conn.execute(
                "INSERT INTO stocks (designation, quantite) VALUES (?, ?)",
                ("Gourde", 3),
            )

        async with pool.acquire() as conn:
            cursor = await conn.execute("SELECT COUNT(*) FROM stock_movements")
            assert (await cursor.fetchone())[0] == 0
            cursor = await conn.execute("SELECT COUNT(*) FROM stocks")
            assert (await cursor.fetchone())[0] == 1

        await pool.close()


class TestConnectionPoolClose:
    """Tests for ConnectionPool.close()."""

    async def test_close_resets_pool(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=2)
        await pool.initialize()

        await pool.close()
        assert len(pool._connections) == 0
        assert pool._initialized is False
        assert pool._pool.qsize() == 0

    async def test_close_safe_when_not_initialized(self, temp_db_path: Path):
        pool = ConnectionPool(temp_db_path, pool_size=1)
        await pool.close()


class TestGlobalPool:
    """Tests for get_pool() and close_pool()."""

    async def test_get_pool_returns_same_instance(self, mock_settings):
        import intendance.infrastructure.storage.sqlite.connection as conn_module

        conn_module._pool = None

        with patch.object(conn_module, "get_settings", return_value=mock_settings):
            pool1 = await get_pool()
            pool2 = await get_pool()

            assert pool1 is pool2
            assert pool1.db_path == mock_settings.storage.db_path
            assert pool1.pool_size == 2

            await close_pool()
            assert conn_module._pool is None

    async def test_close_pool_safe_when_none(self):
        import intendance.infrastructure.storage.sqlite.connection as conn_module

        conn_module._pool = None
        await close_pool()
