"""
daily_stats.py - Persistence for the derived daily statistic tables.

Every daily table is keyed by ``dateStartTime`` (start of the UTC day, ms).
Rows are replaced wholesale on rewrite since a day's figures are recomputed
as a unit.
"""

import asyncio
import logging
from typing import List, Optional, Tuple

import aiosqlite

logger = logging.getLogger("storage")


class DailyStatsRepo:
    """Shared insert/query logic; subclasses name the table and its columns."""

    TABLE: str = ""
    COLUMNS: Tuple[str, ...] = ()

    def __init__(self, db: aiosqlite.Connection, write_lock: Optional[asyncio.Lock] = None):
        self._db = db
        self._lock = write_lock or asyncio.Lock()

    @property
    def _select(self) -> str:
        return f"SELECT {', '.join(self.COLUMNS)} FROM {self.TABLE}"

    @property
    def _placeholders(self) -> str:
        return "(" + ", ".join("?" for _ in self.COLUMNS) + ")"

    def _row_values(self, record: dict) -> tuple:
        # dateStartTime is mandatory, every figure defaults to zero
        return (record["dateStartTime"],) + tuple(
            record.get(c, 0) for c in self.COLUMNS[1:]
        )

    def _row_to_dict(self, row) -> dict:
        return dict(zip(self.COLUMNS, row))

    async def insert(self, record: dict) -> bool:
        async with self._lock:
            try:
                await self._db.execute(
                    f"INSERT OR REPLACE INTO {self.TABLE} ({', '.join(self.COLUMNS)}) "
                    f"VALUES {self._placeholders}",
                    self._row_values(record),
                )
                await self._db.commit()
            except Exception:
                logger.exception("Unable to insert %s row %s", self.TABLE, record.get("dateStartTime"))
                await self._db.rollback()
                return False
        return True

    async def bulk_insert(self, records: List[dict]) -> bool:
        if not records:
            return True
        async with self._lock:
            try:
                values = [v for r in records for v in self._row_values(r)]
                await self._db.execute("BEGIN IMMEDIATE")
                await self._db.execute(
                    f"INSERT OR REPLACE INTO {self.TABLE} ({', '.join(self.COLUMNS)}) VALUES "
                    + ", ".join(self._placeholders for _ in records),
                    values,
                )
                await self._db.commit()
            except Exception:
                logger.exception("Unable to bulk insert %d %s rows", len(records), self.TABLE)
                await self._db.rollback()
                return False
        return True

    async def query_latest(self, count: int = 0) -> List[dict]:
        """Newest ``count`` days first; ``count=0`` returns every day."""
        sql = self._select + " ORDER BY dateStartTime DESC"
        params: list = []
        if count and count > 0:
            sql += " LIMIT ?"
            params.append(count)
        return await self._fetch(sql, params)

    async def query_between(self, start: int, end: int) -> List[dict]:
        return await self._fetch(
            self._select + " WHERE dateStartTime BETWEEN ? AND ? ORDER BY dateStartTime ASC",
            [start, end],
        )

    async def _fetch(self, sql: str, params: list) -> List[dict]:
        try:
            async with self._db.execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        except Exception:
            logger.exception("%s query failed", self.TABLE)
            return []
        return [self._row_to_dict(r) for r in rows]


class DailyAccountStatsRepo(DailyStatsRepo):
    TABLE = "daily_accounts"
    COLUMNS = ("dateStartTime", "newAccounts", "newUserAccounts", "activeAccounts")


class DailyTransactionStatsRepo(DailyStatsRepo):
    TABLE = "daily_transactions"
    COLUMNS = (
        "dateStartTime",
        "totalTxs",
        "totalUserTxs",
        "totalTransferTxs",
        "totalMessageTxs",
        "totalDepositStakeTxs",
        "totalWithdrawStakeTxs",
    )


class DailyCoinStatsRepo(DailyStatsRepo):
    TABLE = "daily_coin_stats"
    COLUMNS = (
        "dateStartTime",
        "mintedCoin",
        "transactionFee",
        "burntFee",
        "stakeAmount",
        "unStakeAmount",
        "rewardAmountRealized",
        "rewardAmountUnrealized",
        "penaltyAmount",
    )

    async def query_aggregated(self) -> dict:
        """Lifetime sums of every coin column."""
        sums = ", ".join(f"IFNULL(SUM({c}), 0)" for c in self.COLUMNS[1:])
        async with self._db.execute(f"SELECT {sums} FROM {self.TABLE}") as cursor:
            row = await cursor.fetchone()
        return dict(zip(self.COLUMNS[1:], row or (0,) * (len(self.COLUMNS) - 1)))


class DailyNetworkStatsRepo(DailyStatsRepo):
    TABLE = "daily_network"
    COLUMNS = (
        "dateStartTime",
        "stabilityFactorStr",
        "transactionFeeUsdStr",
        "stakeRequiredUsdStr",
        "nodeRewardAmountUsdStr",
        "nodePenaltyUsdStr",
        "defaultTollUsdStr",
        "minTollUsdStr",
        "activeNodes",
        "standbyNodes",
    )

    def _row_values(self, record: dict) -> tuple:
        values = []
        for c in self.COLUMNS[1:]:
            v = record.get(c)
            if c.endswith("Str"):
                values.append("0" if v is None else str(v))
            else:
                values.append(v or 0)
        return (record["dateStartTime"],) + tuple(values)
