"""Unit tests for database migrator."""

import shutil
from pathlib import Path

import aiosqlite
import pytest

from intendance.infrastructure.storage.sqlite.migrations.migrator import (
    MIGRATIONS_DIR,
    MigrationInfo,
    create_backup,
    discover_migrations,
    get_applied_migrations,
    get_current_version,
    get_migration_status,
    initialize_database,
    restore_backup,
    verify_schema_integrity,
)


async def table_columns(db_path: Path, table: str) -> set[str]:
    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute(f"PRAGMA table_info({table})")
        return {row[1] for row in await cursor.fetchall()}


class TestMigrationInfo:
    """Tests for MigrationInfo dataclass."""

    def test_from_file_parses_filename(self, tmp_path: Path):
        migration_file = tmp_path / "v001_initial_schema.sql"
        migration_file.write_text("-- Test migration\nSELECT 1;")

        info = MigrationInfo.from_file(migration_file)

        assert info.version == "001"
        assert info.name == "initial_schema"
        assert len(info.checksum) == 16

    def test_from_file_invalid_filename_raises(self, tmp_path: Path):
        invalid_file = tmp_path / "invalid_migration.sql"
        invalid_file.write_text("SELECT 1;")

        with pytest.raises(ValueError, match="Invalid migration filename"):
            MigrationInfo.from_file(invalid_file)


class TestDiscoverMigrations:
    """Tests for discover_migrations()."""

    def test_bundled_migrations(self):
        versions = [m.version for m in discover_migrations()]
        assert versions[:2] == ["001", "002"]

    def test_returns_sorted_and_skips_invalid(self, tmp_path: Path):
        (tmp_path / "v002_second.sql").write_text("SELECT 2;")
        (tmp_path / "v001_first.sql").write_text("SELECT 1;")
        (tmp_path / "invalid_file.sql").write_text("SELECT 3;")

        result = discover_migrations(tmp_path)

        assert [m.version for m in result] == ["001", "002"]


class TestInitializeDatabase:
    """Tests for initialize_database()."""

    async def test_applies_all_migrations(self, temp_db_path: Path):
        results = await initialize_database(temp_db_path, create_backup_before=False)

        assert [r.version for r in results] == ["001", "002"]
        assert all(r.success for r in results)

        columns = await table_columns(temp_db_path, "stocks")
        assert {"date_creation", "quantite_initiale", "quantite", "statut"} <= columns
        movement_columns = await table_columns(temp_db_path, "stock_movements")
        assert {"quantite_avant", "quantite_apres", "utilisateur"} <= movement_columns

    async def test_second_run_is_noop(self, migrated_db: Path):
        results = await initialize_database(migrated_db, create_backup_before=False)
        assert results == []

        async with aiosqlite.connect(migrated_db) as conn:
            assert await get_current_version(conn) == "002"
            applied = await get_applied_migrations(conn)
        assert set(applied) == {"001", "002"}

    async def test_upgrades_legacy_database(self, tmp_path: Path, temp_db_path: Path):
        """A database created before the movement ledger keeps its rows."""
        legacy_dir = tmp_path / "legacy"
        legacy_dir.mkdir()
        shutil.copy(MIGRATIONS_DIR / "v001_base_schema.sql", legacy_dir)
        await initialize_database(
            temp_db_path, create_backup_before=False, migrations_dir=legacy_dir
        )
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute(
                "INSERT INTO stocks (designation, quantite, valeur_critique) "
                "VALUES ('Casque F1', 40, 10)"
            )
            await conn.commit()

        results = await initialize_database(temp_db_path, create_backup_before=True)

        assert [r.version for r in results] == ["002"]
        async with aiosqlite.connect(temp_db_path) as conn:
            cursor = await conn.execute(
                "SELECT quantite, date_creation FROM stocks WHERE designation = 'Casque F1'"
            )
            row = await cursor.fetchone()
        assert row == (40, None)
        # Backup is removed once every migration succeeded
        assert not list(temp_db_path.parent.glob("*.backup_*"))

    async def test_failed_migration_stops(self, tmp_path: Path, temp_db_path: Path):
        migrations_dir = tmp_path / "broken"
        migrations_dir.mkdir()
        (migrations_dir / "v001_ok.sql").write_text(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "version TEXT PRIMARY KEY, name TEXT, checksum TEXT, "
            "applied_at TEXT, execution_time_ms INTEGER);"
        )
        (migrations_dir / "v002_broken.sql").write_text("CREATE TABL nope;")
        (migrations_dir / "v003_never.sql").write_text("SELECT 1;")

        results = await initialize_database(
            temp_db_path, create_backup_before=False, migrations_dir=migrations_dir
        )

        assert [r.success for r in results] == [True, False]
        assert results[1].error is not None

    async def test_validation_failure_keeps_backup(self, tmp_path: Path, temp_db_path: Path):
        migrations_dir = tmp_path / "orphans"
        migrations_dir.mkdir()
        (migrations_dir / "v001_tracking.sql").write_text(
            "CREATE TABLE IF NOT EXISTS schema_migrations ("
            "version TEXT PRIMARY KEY, name TEXT, checksum TEXT, "
            "applied_at TEXT, execution_time_ms INTEGER);"
        )
        (migrations_dir / "v002_orphan_rows.sql").write_text(
            "PRAGMA foreign_keys=OFF;"
            "CREATE TABLE parent (id INTEGER PRIMARY KEY);"
            "CREATE TABLE child (id INTEGER PRIMARY KEY, "
            "parent_id INTEGER REFERENCES parent(id));"
            "INSERT INTO child (parent_id) VALUES (42);"
            "PRAGMA foreign_keys=ON;"
        )
        async with aiosqlite.connect(temp_db_path) as conn:
            await conn.execute("CREATE TABLE existing (id INTEGER PRIMARY KEY)")
            await conn.commit()

        results = await initialize_database(
            temp_db_path, create_backup_before=True, migrations_dir=migrations_dir
        )

        assert [r.success for r in results] == [True, False]
        assert "foreign key" in results[1].error
        assert list(temp_db_path.parent.glob("*.backup_*"))


class TestBackups:
    async def test_create_and_restore(self, migrated_db: Path):
        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute(
                "INSERT INTO stocks (designation, quantite) VALUES ('Gourde', 12)"
            )
            await conn.commit()

        backup_path = await create_backup(migrated_db)
        assert ".backup_" in backup_path.name

        async with aiosqlite.connect(migrated_db) as conn:
            await conn.execute("DELETE FROM stocks")
            await conn.commit()

        restore_backup(migrated_db, backup_path)

        async with aiosqlite.connect(migrated_db) as conn:
            cursor = await conn.execute("SELECT designation, quantite FROM stocks")
            assert await cursor.fetchall() == [("Gourde", 12)]


class TestMigrationStatus:
    async def test_missing_database(self, tmp_path: Path):
        result = await get_migration_status(tmp_path / "nonexistent.db")
        assert result["exists"] is False
        assert result["current_version"] is None

    async def test_pending_migrations(self, tmp_path: Path, migrated_db: Path):
        migrations_dir = tmp_path / "next"
        migrations_dir.mkdir()
        for name in ("v001_base_schema.sql", "v002_stock_movements.sql"):
            shutil.copy(MIGRATIONS_DIR / name, migrations_dir)
        (migrations_dir / "v003_future.sql").write_text("SELECT 1;")

        result = await get_migration_status(migrated_db, migrations_dir=migrations_dir)

        assert result["exists"] is True
        assert result["current_version"] == "002"
        assert result["pending_migrations"] == ["003"]

    async def test_schema_integrity(self, migrated_db: Path):
        checks = {c["check"]: c for c in await verify_schema_integrity(migrated_db)}

        assert checks["foreign_keys"]["status"] == "PASS"
        assert checks["integrity"]["status"] == "PASS"
        assert checks["required_tables"]["missing"] == []
