import logging
import time

from ._schema import SCHEMA_SQL, SCHEMA_VERSION

logger = logging.getLogger("storage")

# version -> columns added in that version, as (table, column, typedef)
COLUMN_MIGRATIONS = {
    2: [
        ("daily_transactions", "totalUserTxs", "INTEGER NOT NULL DEFAULT 0"),
        ("transactions", "txFee", "REAL NOT NULL DEFAULT 0"),
    ],
}


async def _schema_version(db) -> int:
    try:
        async with db.execute("SELECT MAX(version) FROM schema_version") as cursor:
            row = await cursor.fetchone()
    except Exception:
        # no schema_version table on a fresh database
        return 0
    return row[0] if row and row[0] is not None else 0


async def _columns(db, table: str) -> set:
    async with db.execute(f"PRAGMA table_info({table})") as cursor:
        return {r[1] for r in await cursor.fetchall()}


async def _add_missing_columns(db, from_version: int, log):
    for version in sorted(COLUMN_MIGRATIONS):
        if version <= from_version:
            continue
        for table, column, typedef in COLUMN_MIGRATIONS[version]:
            existing = await _columns(db, table)
            # tables absent from an older database are created by SCHEMA_SQL
            if not existing or column in existing:
                continue
            await db.execute(f"ALTER TABLE {table} ADD COLUMN {column} {typedef}")
            log.info("Added %s.%s (v%d)", table, column, version)


async def run_migrations(db, logger_override=None):
    log = logger_override or logger
    current_version = await _schema_version(db)
    if current_version >= SCHEMA_VERSION:
        log.debug("Database schema up to date (v%d)", current_version)
        return

    log.info("Migrating explorer database v%d -> v%d", current_version, SCHEMA_VERSION)
    if current_version > 0:
        # columns first: SCHEMA_SQL indexes some of them
        await _add_missing_columns(db, current_version, log)
    await db.executescript(SCHEMA_SQL)
    await db.execute(
        "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
        (SCHEMA_VERSION, time.time()),
    )
    await db.commit()
    log.info("Explorer schema at v%d", SCHEMA_VERSION)
