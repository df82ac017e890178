"""
Pooled aiosqlite connections for the ledger database.

Each connection is lent to a single task at a time (an asyncio.Queue holds
the idle ones), so a transaction opened on a borrowed connection is never
interleaved with another task's statements.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from intendance.config import get_logger, get_settings

logger = get_logger(__name__)

# Applied to every new connection. WAL keeps card and alert reads
# running while a movement holds the write lock.
CONNECTION_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """Fixed-size pool of connections to one SQLite file."""

    def __init__(self, db_path: Path, pool_size: int = 5, busy_timeout: int = 30000):
        self.db_path = db_path
        self.pool_size = pool_size
        self.busy_timeout = busy_timeout

        self._connections: list[aiosqlite.Connection] = []
        self._pool: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue(maxsize=pool_size)
        self._initialized = False
        self._lock = asyncio.Lock()

    async def _create_connection(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path)
        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={int(self.busy_timeout)}")
        conn.row_factory = aiosqlite.Row
        return conn

    async def initialize(self) -> None:
        """Open all connections; later calls are no-ops."""
        async with self._lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            while len(self._connections) < self.pool_size:
                conn = await self._create_connection()
                self._connections.append(conn)
                self._pool.put_nowait(conn)

            self._initialized = True
            logger.info(
                "connection_pool_initialized",
                db_path=str(self.db_path),
                pool_size=self.pool_size,
            )

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a connection, waiting while every connection is lent out."""
        if not self._initialized:
            await self.initialize()

        conn = await self._pool.get()
        try:
            yield conn
        finally:
            self._pool.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self, immediate: bool = False) -> AsyncIterator[aiosqlite.Connection]:
        """
        Borrow a connection and commit what the block did, or roll it back
        if the block raises.

        With ``immediate=True`` the block starts with ``BEGIN IMMEDIATE``:
        the database write lock is taken before the first read, so rows read
        in the block stay unchanged until the commit.
        """
        async with self.acquire() as conn:
            if immediate:
                await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except BaseException:
                # Covers a failed commit too; the connection goes back clean
                await conn.rollback()
                raise

    def write_transaction(self):
        """Shorthand for ``transaction(immediate=True)``."""
        return self.transaction(immediate=True)

    async def close(self) -> None:
        async with self._lock:
            while self._connections:
                await self._connections.pop().close()
            self._pool = asyncio.Queue(maxsize=self.pool_size)
            if self._initialized:
                logger.info("connection_pool_closed", db_path=str(self.db_path))
            self._initialized = False


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Return the process-wide pool built from the storage settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return
    await _pool.close()
    _pool = None
