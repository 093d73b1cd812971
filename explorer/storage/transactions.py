import asyncio
import logging
from typing import List, Optional

import aiosqlite

from explorer.codec import CodecError, encode_column, loads
from explorer.types import STAKING_TX_TYPES, TransactionSearchType, parse_tx_search_type
from .filters import TransactionFilter, page_clause

logger = logging.getLogger("storage")

TRANSACTION_COLUMNS = (
    "txId",
    "timestamp",
    "cycleNumber",
    "transactionType",
    "txFrom",
    "txTo",
    "txFee",
    "data",
    "originalTxData",
)

_SELECT = "SELECT " + ", ".join(TRANSACTION_COLUMNS) + " FROM transactions"
_ROW_PLACEHOLDERS = "(" + ", ".join("?" for _ in TRANSACTION_COLUMNS) + ")"
_INSERT_PREFIX = "INSERT INTO transactions (" + ", ".join(TRANSACTION_COLUMNS) + ") VALUES "

UPSERT_CONFLICT = " ON CONFLICT(txId) DO UPDATE SET " + ", ".join(
    f"{c} = CASE WHEN excluded.timestamp > transactions.timestamp "
    f"THEN excluded.{c} ELSE transactions.{c} END"
    for c in TRANSACTION_COLUMNS[1:]
)


def transaction_row(tx: dict) -> tuple:
    tx_type = tx.get("transactionType")
    if hasattr(tx_type, "value"):
        tx_type = tx_type.value
    return (
        tx["txId"],
        tx["timestamp"],
        tx["cycleNumber"],
        tx_type,
        tx.get("txFrom"),
        tx.get("txTo"),
        tx.get("txFee") or 0,
        encode_column(tx["data"]),
        encode_column(tx["originalTxData"]),
    )


def _row_to_dict(row) -> dict:
    return {
        "txId": row[0],
        "timestamp": row[1],
        "cycleNumber": row[2],
        "transactionType": row[3],
        "txFrom": row[4],
        "txTo": row[5],
        "txFee": row[6],
        "data": loads(row[7]),
        "originalTxData": loads(row[8]),
    }


class TransactionRepo:
    """Upserts, filtered reads and per-cycle/per-type counts for transactions."""

    def __init__(self, db: aiosqlite.Connection, write_lock: Optional[asyncio.Lock] = None):
        self._db = db
        self._lock = write_lock or asyncio.Lock()

    async def insert(self, tx: dict) -> bool:
        async with self._lock:
            try:
                values = transaction_row(tx)
                await self._db.execute(_INSERT_PREFIX + _ROW_PLACEHOLDERS + UPSERT_CONFLICT, values)
                await self._db.commit()
            except Exception:
                logger.exception("Unable to insert transaction %s", tx.get("txId"))
                await self._db.rollback()
                return False
        logger.debug("Upserted transaction %s", tx["txId"])
        return True

    async def bulk_insert(self, txs: List[dict]) -> bool:
        """Upsert a batch atomically; False means nothing from the batch was written."""
        if not txs:
            return True
        async with self._lock:
            try:
                values = [v for tx in txs for v in transaction_row(tx)]
                sql = _INSERT_PREFIX + ", ".join(_ROW_PLACEHOLDERS for _ in txs) + UPSERT_CONFLICT
                await self._db.execute("BEGIN IMMEDIATE")
                await self._db.execute(sql, values)
                await self._db.commit()
            except Exception:
                logger.exception("Unable to bulk insert %d transactions", len(txs))
                await self._db.rollback()
                return False
        logger.info("Bulk inserted %d transactions", len(txs))
        return True

    async def get(self, tx_id: str) -> Optional[dict]:
        async with self._db.execute(_SELECT + " WHERE txId = ?", (tx_id,)) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        try:
            return _row_to_dict(row)
        except CodecError:
            logger.exception("Corrupt transaction data for %s", tx_id)
            return None

    async def query(self, flt: Optional[TransactionFilter] = None) -> List[dict]:
        flt = flt or TransactionFilter()
        pred = flt.predicate()
        limit_sql, limit_params = page_clause(flt.skip, flt.limit)
        sql = _SELECT + pred.where() + flt.order_by() + limit_sql
        return await self._fetch(sql, pred.params + limit_params)

    async def count(self, flt: Optional[TransactionFilter] = None) -> int:
        flt = flt or TransactionFilter()
        pred = flt.predicate()
        try:
            async with self._db.execute(
                "SELECT COUNT(*) FROM transactions" + pred.where(), pred.params
            ) as cursor:
                row = await cursor.fetchone()
        except Exception:
            logger.exception("Transaction count failed")
            return 0
        return row[0] if row and row[0] else 0

    async def list_for_cycle(self, cycle: int) -> List[dict]:
        return await self._fetch(
            _SELECT + " WHERE cycleNumber = ? ORDER BY timestamp ASC", [cycle]
        )

    async def count_by_cycles(
        self, start: int, end: int, tx_type: Optional[str] = None
    ) -> List[dict]:
        """Per-cycle transaction counts for cycles in [start, end], ascending."""
        sql = "SELECT cycleNumber, COUNT(*) FROM transactions"
        params: list = []
        kind = parse_tx_search_type(tx_type)
        if kind is TransactionSearchType.STAKING:
            sql += " WHERE transactionType IN (?, ?)"
            params.extend(t.value for t in STAKING_TX_TYPES)
        elif kind is not None and kind is not TransactionSearchType.ALL:
            sql += " WHERE transactionType = ?"
            params.append(kind.value)
        sql += " GROUP BY cycleNumber HAVING cycleNumber BETWEEN ? AND ? ORDER BY cycleNumber ASC"
        params.extend([start, end])
        async with self._db.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        return [{"cycle": r[0], "transactions": r[1]} for r in rows]

    async def count_by_type(self, before: int, after: int) -> dict:
        """Totals for transactions with after <= timestamp < before."""
        async with self._db.execute(
            "SELECT COUNT(*), "
            "SUM(CASE WHEN txFee > 0 THEN 1 ELSE 0 END), "
            "SUM(CASE WHEN txFee = 0 THEN 1 ELSE 0 END) "
            "FROM transactions WHERE timestamp >= ? AND timestamp < ?",
            (after, before),
        ) as cursor:
            row = await cursor.fetchone()
        total, with_fee, without_fee = row if row else (0, 0, 0)
        return {
            "totalTxs": total or 0,
            "totalTxsWithFee": with_fee or 0,
            "totalTxsWithoutFee": without_fee or 0,
        }

    async def count_active_accounts(
        self, before: int, after: int, exclude_zero_fee: bool = False
    ) -> int:
        """Distinct senders in [after, before)."""
        sql = "SELECT COUNT(DISTINCT txFrom) FROM transactions WHERE timestamp >= ? AND timestamp < ?"
        if exclude_zero_fee:
            sql += " AND txFee > 0"
        async with self._db.execute(sql, (after, before)) as cursor:
            row = await cursor.fetchone()
        return row[0] if row and row[0] else 0

    async def _fetch(self, sql: str, params: list) -> List[dict]:
        results = []
        try:
            async with self._db.execute(sql, params) as cursor:
                async for row in cursor:
                    try:
                        results.append(_row_to_dict(row))
                    except CodecError:
                        logger.exception("Skipping transaction %s with undecodable data", row[0])
        except Exception:
            logger.exception("Transaction query failed")
        return results
