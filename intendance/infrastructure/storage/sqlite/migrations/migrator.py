"""
Versioned schema migrations for the ledger database.

Migration files live next to this module and are named ``vNNN_name.sql``.
They run in version order, each one recorded in ``schema_migrations`` with
a checksum of its text. A run stops at the first failing script; when a
backup was taken it is restored if the run raises and deleted once every
script succeeded.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from intendance.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE_PATTERN = re.compile(r"^v(\d+)_(\w+)\.sql$")

REQUIRED_TABLES = (
    "schema_migrations",
    "stocks",
    "stock_movements",
    "historique_connexions",
    "historique_modifications",
)


@dataclass(frozen=True)
class MigrationInfo:
    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = MIGRATION_FILE_PATTERN.match(path.name)
        if match is None:
            raise ValueError(f"Invalid migration filename: {path.name}")
        digest = hashlib.sha256(path.read_bytes()).hexdigest()
        return cls(
            version=match.group(1),
            name=match.group(2),
            path=path,
            checksum=digest[:16],
        )

    @property
    def label(self) -> str:
        return f"v{self.version}_{self.name}"


@dataclass
class MigrationResult:
    """Outcome of running one migration script."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """List the migration scripts of ``migrations_dir`` in version order.

    Files that do not follow the ``vNNN_name.sql`` convention are skipped
    with a warning.
    """
    found: list[MigrationInfo] = []
    for path in migrations_dir.glob("v*.sql"):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError:
            logger.warning("migration_file_skipped", path=str(path))
    return sorted(found, key=lambda m: int(m.version))


async def _table_exists(conn: aiosqlite.Connection, table: str) -> bool:
    cursor = await conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (table,)
    )
    return await cursor.fetchone() is not None


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Map each recorded version to the checksum it was applied with."""
    if not await _table_exists(conn, "schema_migrations"):
        return {}
    cursor = await conn.execute(
        "SELECT version, checksum FROM schema_migrations ORDER BY version"
    )
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    applied = await get_applied_migrations(conn)
    return max(applied, key=int) if applied else None


async def _apply(conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
    logger.info("migration_started", migration=migration.label)
    started = time.perf_counter()

    def elapsed_ms() -> int:
        return int((time.perf_counter() - started) * 1000)

    try:
        await conn.executescript(migration.path.read_text(encoding="utf-8"))
        await conn.execute(
            "INSERT OR REPLACE INTO schema_migrations "
            "(version, name, checksum, execution_time_ms) VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, elapsed_ms()),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", migration=migration.label, error=str(e))
        return MigrationResult(
            migration.version, migration.name, False, elapsed_ms(), error=str(e)
        )

    duration = elapsed_ms()
    logger.info("migration_applied", migration=migration.label, execution_time_ms=duration)
    return MigrationResult(migration.version, migration.name, True, duration)


async def _problems_after(conn: aiosqlite.Connection, migration: MigrationInfo) -> list[str]:
    """Describe what is wrong with the database after ``migration`` ran."""
    problems = []
    if migration.version not in await get_applied_migrations(conn):
        problems.append(f"{migration.label} missing from schema_migrations")
    cursor = await conn.execute("PRAGMA foreign_key_check")
    violations = await cursor.fetchall()
    if violations:
        problems.append(f"{len(violations)} foreign key violation(s)")
    return problems


async def create_backup(db_path: Path) -> Path:
    """Write a consistent copy of ``db_path`` next to it and return its path.

    ``VACUUM INTO`` includes pages still sitting in the WAL file, which a
    plain file copy would miss.
    """
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = db_path.with_suffix(f".backup_{stamp}.db")
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("VACUUM INTO ?", (str(backup_path),))
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


def restore_backup(db_path: Path, backup_path: Path) -> None:
    """Put ``backup_path`` back in place of ``db_path``.

    No connection to ``db_path`` may be open. Stale WAL sidecar files are
    removed so SQLite does not replay them over the restored file.
    """
    shutil.copy2(backup_path, db_path)
    for suffix in ("-wal", "-shm"):
        db_path.with_name(db_path.name + suffix).unlink(missing_ok=True)
    logger.warning("database_restored_from_backup", backup_path=str(backup_path))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool | None = None,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Bring the database up to the newest migration.

    Args:
        db_path: Database file; defaults to the configured storage path.
        create_backup_before: Back up an existing database first; defaults
            to ``storage.backup_before_migrate``.
        migrations_dir: Directory holding the ``vNNN_name.sql`` scripts.

    Returns:
        One result per script that was run, in order. Already applied
        versions are not run again and produce no result.
    """
    storage = None
    if db_path is None or create_backup_before is None:
        storage = get_settings().storage
    db_path = db_path or storage.db_path
    if create_backup_before is None:
        create_backup_before = storage.backup_before_migrate

    db_path.parent.mkdir(parents=True, exist_ok=True)
    pending = discover_migrations(migrations_dir)
    if not pending:
        logger.warning("no_migrations_found", migrations_dir=str(migrations_dir))
        return []

    backup_path = None
    if create_backup_before and db_path.exists():
        backup_path = await create_backup(db_path)

    results: list[MigrationResult] = []
    try:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute("PRAGMA foreign_keys=ON")
            applied = await get_applied_migrations(conn)

            for migration in pending:
                checksum = applied.get(migration.version)
                if checksum is not None:
                    if checksum != migration.checksum:
                        logger.error("migration_checksum_changed", migration=migration.label)
                    continue

                result = await _apply(conn, migration)
                results.append(result)
                if not result.success:
                    break

                problems = await _problems_after(conn, migration)
                if problems:
                    logger.error(
                        "migration_validation_failed",
                        migration=migration.label,
                        problems=problems,
                    )
                    # A failed result keeps the backup on disk
                    result.success = False
                    result.error = "; ".join(problems)
                    break
    except Exception:
        logger.exception("database_initialization_failed", db_path=str(db_path))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
        raise

    if backup_path is not None and all(r.success for r in results):
        backup_path.unlink()

    logger.info(
        "database_initialized",
        db_path=str(db_path),
        applied=[r.version for r in results if r.success],
    )
    return results


async def get_migration_status(
    db_path: Path | None = None,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> dict:
    """Report the schema version plus applied and pending migration versions."""
    db_path = db_path or get_settings().storage.db_path
    discovered = discover_migrations(migrations_dir)

    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": [m.version for m in discovered],
            "total_migrations": len(discovered),
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = await get_applied_migrations(conn)
        current = await get_current_version(conn)

    return {
        "exists": True,
        "current_version": current,
        "applied_migrations": list(applied),
        "pending_migrations": [m.version for m in discovered if m.version not in applied],
        "total_migrations": len(discovered),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """Run the foreign key, integrity and required table checks."""
    db_path = db_path or get_settings().storage.db_path

    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("PRAGMA foreign_key_check")
        violations = await cursor.fetchall()
        cursor = await conn.execute("PRAGMA integrity_check")
        (integrity,) = await cursor.fetchone()
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {name for (name,) in await cursor.fetchall()}

    missing = [t for t in REQUIRED_TABLES if t not in tables]
    return [
        {
            "check": "foreign_keys",
            "status": "FAIL" if violations else "PASS",
            "violations": len(violations),
        },
        {
            "check": "integrity",
            "status": "PASS" if integrity == "ok" else "FAIL",
            "result": integrity,
        },
        {
            "check": "required_tables",
            "status": "FAIL" if missing else "PASS",
            "missing": missing,
        },
    ]
