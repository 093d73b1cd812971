import asyncio
import logging
from typing import List, Optional

import aiosqlite

logger = logging.getLogger("storage")

COIN_STATS_COLUMNS = (
    "cycle",
    "timestamp",
    "totalSupplyChange",
    "totalStakeChange",
    "transactionFee",
    "networkCommission",
)


class CoinStatsRepo:
    """Per-cycle supply and stake changes."""

    def __init__(self, db: aiosqlite.Connection, write_lock: Optional[asyncio.Lock] = None):
        self._db = db
        self._lock = write_lock or asyncio.Lock()

    @staticmethod
    def _row_values(record: dict) -> tuple:
        return (record["cycle"], record["timestamp"]) + tuple(
            record.get(c) or 0 for c in COIN_STATS_COLUMNS[2:]
        )

    async def insert(self, record: dict) -> bool:
        async with self._lock:
            try:
                await self._db.execute(
                    f"INSERT OR REPLACE INTO coin_stats ({', '.join(COIN_STATS_COLUMNS)}) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    self._row_values(record),
                )
                await self._db.commit()
            except Exception:
                logger.exception("Unable to insert coin stats for cycle %s", record.get("cycle"))
                await self._db.rollback()
                return False
        return True

    async def bulk_insert(self, records: List[dict]) -> bool:
        if not records:
            return True
        async with self._lock:
            try:
                await self._db.execute("BEGIN IMMEDIATE")
                await self._db.execute(
                    f"INSERT OR REPLACE INTO coin_stats ({', '.join(COIN_STATS_COLUMNS)}) VALUES "
                    + ", ".join("(?, ?, ?, ?, ?, ?)" for _ in records),
                    [v for r in records for v in self._row_values(r)],
                )
                await self._db.commit()
            except Exception:
                logger.exception("Unable to bulk insert %d coin stats rows", len(records))
                await self._db.rollback()
                return False
        return True

    async def query_latest(self, count: int = 0) -> List[dict]:
        sql = f"SELECT {', '.join(COIN_STATS_COLUMNS)} FROM coin_stats ORDER BY cycle DESC"
        params: list = []
        if count and count > 0:
            sql += " LIMIT ?"
            params.append(count)
        async with self._db.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        return [dict(zip(COIN_STATS_COLUMNS, r)) for r in rows]

    async def query_aggregated(self) -> dict:
        """Totals across all cycles, plus the last cycle recorded."""
        async with self._db.execute(
            "SELECT IFNULL(SUM(totalSupplyChange), 0), IFNULL(SUM(totalStakeChange), 0), "
            "MAX(cycle) FROM coin_stats"
        ) as cursor:
            row = await cursor.fetchone()
        supply, stake, last_cycle = row if row else (0, 0, None)
        return {
            "totalSupplyChange": supply,
            "totalStakeChange": stake,
            "lastUpdatedCycle": last_cycle or 0,
        }
