from ._schema import SCHEMA_VERSION, SCHEMA_SQL
from .accounts import AccountRepo
from .coin_stats import CoinStatsRepo
from .daily_stats import (
    DailyAccountStatsRepo,
    DailyCoinStatsRepo,
    DailyNetworkStatsRepo,
    DailyStatsRepo,
    DailyTransactionStatsRepo,
)
from .filters import AccountFilter, TransactionFilter
from .transactions import TransactionRepo
from .manager import StorageManager

__all__ = [
    "SCHEMA_VERSION",
    "SCHEMA_SQL",
    "AccountFilter",
    "AccountRepo",
    "CoinStatsRepo",
    "DailyAccountStatsRepo",
    "DailyCoinStatsRepo",
    "DailyNetworkStatsRepo",
    "DailyStatsRepo",
    "DailyTransactionStatsRepo",
    "StorageManager",
    "TransactionFilter",
    "TransactionRepo",
]
