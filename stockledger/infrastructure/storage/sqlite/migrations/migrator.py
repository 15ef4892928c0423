"""
Schema migrations for the inventory database.

Migration files live next to this module as ``vNNN_name.sql`` and are
applied in version order. Each applied file is recorded in
``schema_migrations`` with a short content hash so edits to an already
applied file are reported. An existing database file is copied aside
before migrating and copied back if a migration fails.
"""

import argparse
import asyncio
import hashlib
import re
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import aiosqlite

from stockledger.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent
MIGRATION_FILE = re.compile(r"^v(?P<version>\d{3,})_(?P<name>\w+)\.sql$")

REQUIRED_TABLES = ("products", "inventory_transactions", "reorder_alerts", "schema_migrations")

_BOOKKEEPING_DDL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    execution_time_ms INTEGER NOT NULL DEFAULT 0,
    applied_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
)
"""


@dataclass(frozen=True)
class Migration:
    version: str
    name: str
    path: Path

    @property
    def sql(self) -> str:
        return self.path.read_text(encoding="utf-8")

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode("utf-8")).hexdigest()[:16]


@dataclass
class MigrationResult:
    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Migration files in ``directory``, oldest first."""
    found = []
    for path in directory.glob("v*.sql"):
        match = MIGRATION_FILE.match(path.name)
        if match is None:
            logger.warning("migration_file_ignored", file=path.name)
            continue
        found.append(Migration(match["version"], match["name"], path))
    return sorted(found, key=lambda m: int(m.version))


async def _applied_checksums(conn: aiosqlite.Connection) -> dict[str, str]:
    try:
        cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    except aiosqlite.OperationalError:
        # No bookkeeping table yet
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


async def _apply(conn: aiosqlite.Connection, migration: Migration) -> MigrationResult:
    started = time.perf_counter()
    try:
        await conn.executescript(migration.sql)
        await conn.execute(
            "INSERT INTO schema_migrations (version, name, checksum, execution_time_ms) "
            "VALUES (?, ?, ?, ?)",
            (migration.version, migration.name, migration.checksum, _elapsed_ms(started)),
        )
        await conn.commit()
    except aiosqlite.Error as e:
        await conn.rollback()
        logger.error("migration_failed", version=migration.version, error=str(e))
        return MigrationResult(
            migration.version, migration.name, False, _elapsed_ms(started), str(e)
        )

    elapsed = _elapsed_ms(started)
    logger.info("migration_applied", version=migration.version, name=migration.name, ms=elapsed)
    return MigrationResult(migration.version, migration.name, True, elapsed)


@contextmanager
def _safety_copy(db_path: Path, enabled: bool) -> Iterator[list[MigrationResult]]:
    """
    Keep a copy of ``db_path`` while migrations run.

    The caller fills the yielded list with results. The copy is restored if
    the block raises or any result failed, and deleted otherwise.
    """
    results: list[MigrationResult] = []
    if not (enabled and db_path.exists()):
        yield results
        return

    copy = db_path.with_suffix(f".backup_{datetime.now():%Y%m%d_%H%M%S}.db")
    shutil.copy2(db_path, copy)
    logger.info("database_backup_created", backup=str(copy))
    try:
        yield results
    except BaseException:
        shutil.copy2(copy, db_path)
        logger.warning("database_restored", backup=str(copy))
        raise
    if all(r.success for r in results):
        copy.unlink()
    else:
        shutil.copy2(copy, db_path)
        logger.warning("database_restored", backup=str(copy))


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
) -> list[MigrationResult]:
    """
    Bring the database schema up to date.

    Stops at the first failing migration. Returns a result for every
    migration attempted; an up-to-date database yields an empty list.
    """
    db_path = Path(db_path or get_settings().storage.db_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with _safety_copy(db_path, create_backup_before) as results:
        async with aiosqlite.connect(db_path) as conn:
            await conn.execute("PRAGMA foreign_keys=ON")
            await conn.execute(_BOOKKEEPING_DDL)
            await conn.commit()

            applied = await _applied_checksums(conn)
            for migration in discover_migrations():
                if migration.version in applied:
                    if applied[migration.version] != migration.checksum:
                        logger.warning("migration_modified_after_apply", version=migration.version)
                    continue
                result = await _apply(conn, migration)
                results.append(result)
                if not result.success:
                    break

    logger.info("database_schema_checked", db_path=str(db_path), applied=len(results))
    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict:
    db_path = Path(db_path or get_settings().storage.db_path)
    known = [m.version for m in discover_migrations()]
    if not db_path.exists():
        return {
            "exists": False,
            "current_version": None,
            "applied_migrations": [],
            "pending_migrations": known,
        }

    async with aiosqlite.connect(db_path) as conn:
        applied = sorted(await _applied_checksums(conn), key=int)
    return {
        "exists": True,
        "current_version": applied[-1] if applied else None,
        "applied_migrations": applied,
        "pending_migrations": [v for v in known if v not in applied],
        "total_migrations": len(known),
    }


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict]:
    """Foreign key, page integrity and table presence checks."""
    db_path = Path(db_path or get_settings().storage.db_path)

    async with aiosqlite.connect(db_path) as conn:
        violations = await (await conn.execute("PRAGMA foreign_key_check")).fetchall()
        (integrity,) = await (await conn.execute("PRAGMA integrity_check")).fetchone()
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        tables = {name for (name,) in await cursor.fetchall()}

    missing = [t for t in REQUIRED_TABLES if t not in tables]

    def verdict(ok: bool) -> str:
        return "PASS" if ok else "FAIL"

    return [
        {"check": "foreign_keys", "status": verdict(not violations), "violations": len(violations)},
        {"check": "integrity", "status": verdict(integrity == "ok"), "result": integrity},
        {"check": "required_tables", "status": verdict(not missing), "missing": missing},
    ]


def main() -> None:
    """Entry point for ``stockledger-migrate``."""
    parser = argparse.ArgumentParser(description="Apply StockLedger schema migrations")
    parser.add_argument("--db-path", type=Path, help="Database file (default from settings)")
    parser.add_argument("--status", action="store_true", help="Only report migration status")
    parser.add_argument("--no-backup", action="store_true", help="Do not copy the database first")
    args = parser.parse_args()

    if args.status:
        status = asyncio.run(get_migration_status(args.db_path))
        print(f"current: {status['current_version'] or '-'}")
        print(f"pending: {', '.join(status['pending_migrations']) or '-'}")
        return

    results = asyncio.run(
        initialize_database(args.db_path, create_backup_before=not args.no_backup)
    )
    for r in results:
        print(f"v{r.version} {r.name}: {'ok' if r.success else 'FAILED ' + (r.error or '')}")
    if any(not r.success for r in results):
        raise SystemExit(1)
