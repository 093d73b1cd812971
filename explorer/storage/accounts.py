import asyncio
import logging
from typing import Dict, Iterable, List, Optional

import aiosqlite

from explorer.codec import CodecError, encode_column, loads
from explorer.types import parse_account_type
from .filters import AccountFilter, page_clause

logger = logging.getLogger("storage")

ACCOUNT_COLUMNS = (
    "accountId",
    "data",
    "timestamp",
    "hash",
    "cycleNumber",
    "isGlobal",
    "createdTimestamp",
    "accountType",
)

_SELECT = "SELECT " + ", ".join(ACCOUNT_COLUMNS) + " FROM accounts"


def _keep_newer(column: str) -> str:
    return (
        f"{column} = CASE WHEN excluded.timestamp > accounts.timestamp "
        f"THEN excluded.{column} ELSE accounts.{column} END"
    )


# Stale writes (timestamp not strictly newer) keep the stored columns, but
# createdTimestamp always takes the earliest sighting.
UPSERT_CONFLICT = (
    " ON CONFLICT(accountId) DO UPDATE SET "
    + ", ".join(
        _keep_newer(c)
        for c in ("cycleNumber", "timestamp", "data", "hash", "accountType", "isGlobal")
    )
    + ", createdTimestamp = MIN(accounts.createdTimestamp, excluded.createdTimestamp)"
)

_ROW_PLACEHOLDERS = "(" + ", ".join("?" for _ in ACCOUNT_COLUMNS) + ")"
_INSERT_PREFIX = "INSERT INTO accounts (" + ", ".join(ACCOUNT_COLUMNS) + ") VALUES "


def account_row(account: dict) -> tuple:
    """Column values for one account; createdTimestamp starts at the write's timestamp."""
    account_type = account.get("accountType")
    if hasattr(account_type, "value"):
        account_type = account_type.value
    return (
        account["accountId"],
        encode_column(account["data"]),
        account["timestamp"],
        account["hash"],
        account["cycleNumber"],
        1 if account.get("isGlobal") else 0,
        account["timestamp"],
        account_type,
    )


def _row_to_dict(row) -> dict:
    return {
        "accountId": row[0],
        "data": loads(row[1]),
        "timestamp": row[2],
        "hash": row[3],
        "cycleNumber": row[4],
        "isGlobal": bool(row[5]),
        "createdTimestamp": row[6],
        "accountType": row[7],
    }


class AccountRepo:
    """Upserts and filtered reads for the accounts table."""

    def __init__(self, db: aiosqlite.Connection, write_lock: Optional[asyncio.Lock] = None):
        self._db = db
        # one lock per connection: BEGIN ... COMMIT must not interleave
        self._lock = write_lock or asyncio.Lock()

    async def insert(self, account: dict) -> bool:
        """Upsert one account. Returns False if the write failed (already logged)."""
        async with self._lock:
            try:
                values = account_row(account)
                await self._db.execute(_INSERT_PREFIX + _ROW_PLACEHOLDERS + UPSERT_CONFLICT, values)
                await self._db.commit()
            except Exception:
                logger.exception("Unable to insert account %s", account.get("accountId"))
                await self._db.rollback()
                return False
        logger.debug("Upserted account %s", account["accountId"])
        return True

    async def bulk_insert(self, accounts: List[dict]) -> bool:
        """Upsert many accounts in one statement inside one transaction.

        Either every row of the batch is written or none is.
        """
        if not accounts:
            return True
        async with self._lock:
            try:
                values = [v for account in accounts for v in account_row(account)]
                sql = (
                    _INSERT_PREFIX
                    + ", ".join(_ROW_PLACEHOLDERS for _ in accounts)
                    + UPSERT_CONFLICT
                )
                await self._db.execute("BEGIN IMMEDIATE")
                await self._db.execute(sql, values)
                await self._db.commit()
            except Exception:
                logger.exception("Unable to bulk insert %d accounts", len(accounts))
                await self._db.rollback()
                return False
        logger.info("Bulk inserted %d accounts", len(accounts))
        return True

    async def get(self, account_id: str) -> Optional[dict]:
        async with self._db.execute(_SELECT + " WHERE accountId = ?", (account_id,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return _row_to_dict(row)
        except CodecError:
            logger.exception("Corrupt account data for %s", account_id)
            return None

    async def query(self, flt: Optional[AccountFilter] = None) -> List[dict]:
        """One page of accounts. Rows whose data cannot be decoded are skipped."""
        flt = flt or AccountFilter()
        pred = flt.predicate()
        limit_sql, limit_params = page_clause(flt.skip, flt.limit)
        sql = _SELECT + pred.where() + flt.order_by() + limit_sql
        results = []
        try:
            async with self._db.execute(sql, pred.params + limit_params) as cursor:
                async for row in cursor:
                    try:
                        results.append(_row_to_dict(row))
                    except CodecError:
                        logger.exception("Skipping account %s with undecodable data", row[0])
        except Exception:
            logger.exception("Account query failed")
        return results

    async def count(self, flt: Optional[AccountFilter] = None) -> int:
        flt = flt or AccountFilter()
        pred = flt.predicate()
        try:
            async with self._db.execute(
                "SELECT COUNT(*) FROM accounts" + pred.where(), pred.params
            ) as cursor:
                row = await cursor.fetchone()
        except Exception:
            logger.exception("Account count failed")
            return 0
        return row[0] if row and row[0] else 0

    async def get_timestamp(self, account_id: str) -> Optional[dict]:
        async with self._db.execute(
            "SELECT timestamp, createdTimestamp FROM accounts WHERE accountId = ?",
            (account_id,),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return {"timestamp": row[0], "createdTimestamp": row[1]}

    async def get_timestamps_batch(self, account_ids: Iterable[str]) -> Dict[str, dict]:
        ids = list(account_ids)
        result: Dict[str, dict] = {}
        if not ids:
            return result
        placeholders = ", ".join("?" for _ in ids)
        async with self._db.execute(
            "SELECT accountId, timestamp, createdTimestamp FROM accounts "
            f"WHERE accountId IN ({placeholders})",
            ids,
        ) as cursor:
            async for row in cursor:
                result[row[0]] = {"timestamp": row[1], "createdTimestamp": row[2]}
        return result

    async def count_by_created_timestamp(
        self, start: int, end: int, account_type: Optional[str] = None
    ) -> int:
        sql = "SELECT COUNT(*) FROM accounts WHERE createdTimestamp BETWEEN ? AND ?"
        params: list = [start, end]
        kind = parse_account_type(account_type)
        if kind is not None:
            sql += " AND accountType = ?"
            params.append(kind.value)
        async with self._db.execute(sql, params) as cursor:
            row = await cursor.fetchone()
        return row[0] if row and row[0] else 0
