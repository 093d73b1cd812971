"""
loader.py - Bulk ingestion of accounts and transactions.

Large record lists are split into fixed-size chunks. Each chunk is written
by a single multi-row upsert inside its own transaction, so a failing chunk
is rolled back on its own while chunks before and after it stay committed.
Failures are logged and reported through LoadResult rather than raised.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional

from explorer.codec import CodecError, decode_account_data, format_token_amount, loads
from explorer.config import ExplorerConfig

if TYPE_CHECKING:
    from explorer.storage.accounts import AccountRepo
    from explorer.storage.transactions import TransactionRepo

logger = logging.getLogger("loader")


@dataclass
class LoadResult:
    committed: int = 0
    failed: int = 0
    skipped: int = 0
    chunks: int = 0
    failed_chunks: List[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_chunks and self.skipped == 0


def chunked(records: List[dict], size: int) -> Iterator[List[dict]]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    for start in range(0, len(records), size):
        yield records[start:start + size]


def _fee_of(payload) -> float:
    if not isinstance(payload, dict) or payload.get("fee") is None:
        return 0.0
    return float(format_token_amount(payload["fee"]))


class BulkLoader:
    """Chunked writer over the account and transaction repos."""

    def __init__(
        self,
        accounts: "AccountRepo",
        transactions: "TransactionRepo",
        config: Optional[ExplorerConfig] = None,
    ):
        self.accounts = accounts
        self.transactions = transactions
        self.config = config or ExplorerConfig()

    async def _write_chunks(self, records: List[dict], writer, label: str) -> LoadResult:
        result = LoadResult()
        for index, chunk in enumerate(chunked(records, self.config.bulk_chunk_size)):
            result.chunks += 1
            if await writer(chunk):
                result.committed += len(chunk)
                if self.config.verbose:
                    logger.debug("%s chunk %d committed (%d rows)", label, index, len(chunk))
            else:
                result.failed += len(chunk)
                result.failed_chunks.append(index)
                logger.warning("%s chunk %d rolled back (%d rows)", label, index, len(chunk))
        logger.info(
            "Loaded %s: %d committed, %d failed in %d chunks",
            label, result.committed, result.failed, result.chunks,
        )
        return result

    async def bulk_upsert_accounts(self, records: List[dict]) -> LoadResult:
        return await self._write_chunks(list(records), self.accounts.bulk_insert, "accounts")

    async def bulk_upsert_transactions(self, records: List[dict]) -> LoadResult:
        return await self._write_chunks(list(records), self.transactions.bulk_insert, "transactions")

    # ── Enrichment of raw network records ───────────────────────

    def prepare_account(self, raw: dict) -> dict:
        """Turn an AccountsCopy snapshot into an account row. Raises CodecError."""
        data = loads(raw.get("data"))
        if not isinstance(data, dict):
            raise CodecError("account data is not an object")
        account_type = data.get("type")
        # validates the discriminator and the payload shape
        decode_account_data(account_type, data)
        return {
            "accountId": raw["accountId"],
            "cycleNumber": raw["cycleNumber"],
            "timestamp": raw["timestamp"],
            "data": data,
            "hash": raw["hash"],
            "accountType": account_type,
            "isGlobal": bool(raw.get("isGlobal")),
            "createdTimestamp": raw["timestamp"],
        }

    def prepare_transaction(self, raw: dict) -> dict:
        """Derive type, sender, recipient and fee from ``data`` or the original tx."""
        data = loads(raw.get("data"))
        original = loads(raw.get("originalTxData")) or {}
        source = data if data else (original.get("tx") if isinstance(original, dict) else None)
        if not isinstance(source, dict):
            raise CodecError("transaction has neither data nor originalTxData.tx")
        return {
            "txId": raw["txId"],
            "cycleNumber": raw["cycleNumber"],
            "timestamp": raw["timestamp"],
            "transactionType": source.get("type"),
            "txFrom": source.get("from"),
            "txTo": source.get("to"),
            "txFee": _fee_of(source),
            "data": data if data is not None else {},
            "originalTxData": original,
        }

    def _prepare_all(self, raws: Iterable[dict], prepare, label: str):
        prepared = []
        skipped = 0
        for raw in raws:
            try:
                prepared.append(prepare(raw))
            except (CodecError, KeyError) as e:
                skipped += 1
                logger.warning("Skipping unparseable %s record: %s", label, e)
        return prepared, skipped

    async def load_accounts(self, accounts_copy: Iterable[dict]) -> LoadResult:
        prepared, skipped = self._prepare_all(accounts_copy, self.prepare_account, "account")
        result = await self.bulk_upsert_accounts(prepared)
        result.skipped = skipped
        return result

    async def load_transactions(self, raw: Iterable[dict]) -> LoadResult:
        prepared, skipped = self._prepare_all(raw, self.prepare_transaction, "transaction")
        result = await self.bulk_upsert_transactions(prepared)
        result.skipped = skipped
        return result
