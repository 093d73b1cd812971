import asyncio
import logging
from typing import Optional

try:
    import aiosqlite
except ImportError:
    raise ImportError(
        "aiosqlite is required for the storage layer. "
        "Install with: pip install aiosqlite"
    )

from ._migrate import run_migrations
from .accounts import AccountRepo
from .coin_stats import CoinStatsRepo
from .daily_stats import (
    DailyAccountStatsRepo,
    DailyCoinStatsRepo,
    DailyNetworkStatsRepo,
    DailyTransactionStatsRepo,
)
from .transactions import TransactionRepo

logger = logging.getLogger("storage")


class StorageManager:
    """Opens the explorer database, runs migrations, exposes repos."""

    def __init__(self, db_path: str = "explorer.db"):
        self.db_path = db_path
        self._db: Optional[aiosqlite.Connection] = None
        # serializes write transactions on the shared connection
        self._write_lock = asyncio.Lock()
        self.accounts: Optional[AccountRepo] = None
        self.transactions: Optional[TransactionRepo] = None
        self.coin_stats: Optional[CoinStatsRepo] = None
        self.daily_accounts: Optional[DailyAccountStatsRepo] = None
        self.daily_transactions: Optional[DailyTransactionStatsRepo] = None
        self.daily_coin_stats: Optional[DailyCoinStatsRepo] = None
        self.daily_network: Optional[DailyNetworkStatsRepo] = None

    @property
    def db(self) -> Optional[aiosqlite.Connection]:
        return self._db

    async def initialize(self):
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.execute("PRAGMA journal_mode=WAL")
        await self._db.execute("PRAGMA synchronous=NORMAL")
        await run_migrations(self._db, logger)

        self.accounts = AccountRepo(self._db, self._write_lock)
        self.transactions = TransactionRepo(self._db, self._write_lock)
        self.coin_stats = CoinStatsRepo(self._db, self._write_lock)
        self.daily_accounts = DailyAccountStatsRepo(self._db, self._write_lock)
        self.daily_transactions = DailyTransactionStatsRepo(self._db, self._write_lock)
        self.daily_coin_stats = DailyCoinStatsRepo(self._db, self._write_lock)
        self.daily_network = DailyNetworkStatsRepo(self._db, self._write_lock)

        logger.info("Explorer database ready: %s", self.db_path)

    async def close(self):
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Explorer database closed: %s", self.db_path)
