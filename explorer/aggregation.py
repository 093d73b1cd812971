"""
aggregation.py - Daily statistics to chart series.

Stat rows arrive in one of two wire forms: positional arrays
(``responseType=array``) or named objects (``responseType=object``). Both
decode into the same frozen record types below, sorted by ``dateStartTime``
ascending, so every series builder sees one canonical shape.

A Series carries its points plus highest / lowest / current markers. Markers
come from a single linear scan; on ties the earliest day wins. Counters of
newly created things ignore zero days when looking for the lowest value,
while totals and "active" counters treat zero as a real minimum.
"""

import logging
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from explorer.codec import CodecError, to_decimal
from explorer.config import ExplorerConfig
from explorer.types import ResponseType

logger = logging.getLogger("aggregation")

T = TypeVar("T")


# ── Canonical records ───────────────────────────────────────

@dataclass(frozen=True)
class DailyAccountStats:
    date_start_time: int
    new_accounts: int = 0
    new_user_accounts: int = 0
    active_accounts: int = 0


@dataclass(frozen=True)
class DailyTransactionStats:
    date_start_time: int
    total_txs: int = 0
    total_transfer_txs: int = 0
    total_message_txs: int = 0
    total_deposit_stake_txs: int = 0
    total_withdraw_stake_txs: int = 0
    total_user_txs: int = 0


@dataclass(frozen=True)
class DailyCoinStats:
    date_start_time: int
    minted_coin: Decimal = Decimal(0)
    transaction_fee: Decimal = Decimal(0)
    burnt_fee: Decimal = Decimal(0)
    stake_amount: Decimal = Decimal(0)
    unstake_amount: Decimal = Decimal(0)
    reward_amount_realized: Decimal = Decimal(0)
    reward_amount_unrealized: Decimal = Decimal(0)
    penalty_amount: Decimal = Decimal(0)
    stability_factor: Decimal = Decimal(0)


@dataclass(frozen=True)
class DailyNetworkStats:
    date_start_time: int
    stability_factor: Decimal = Decimal(0)
    transaction_fee_usd: Decimal = Decimal(0)
    stake_required_usd: Decimal = Decimal(0)
    node_reward_amount_usd: Decimal = Decimal(0)
    node_penalty_usd: Decimal = Decimal(0)
    default_toll_usd: Decimal = Decimal(0)
    min_toll_usd: Decimal = Decimal(0)
    active_nodes: int = 0
    standby_nodes: int = 0


def _int(value) -> int:
    if value is None or value == "":
        return 0
    return int(value)


# Wire layouts: (record attribute, object key, converter). The list order is
# the positional array layout; index 0 is always dateStartTime.
Layout = Sequence[Tuple[str, str, Callable[[Any], Any]]]

ACCOUNT_LAYOUT: Layout = (
    ("date_start_time", "dateStartTime", _int),
    ("new_accounts", "newAccounts", _int),
    ("new_user_accounts", "newUserAccounts", _int),
    ("active_accounts", "activeAccounts", _int),
)

TRANSACTION_LAYOUT: Layout = (
    ("date_start_time", "dateStartTime", _int),
    ("total_txs", "totalTxs", _int),
    ("total_transfer_txs", "totalTransferTxs", _int),
    ("total_message_txs", "totalMessageTxs", _int),
    ("total_deposit_stake_txs", "totalDepositStakeTxs", _int),
    ("total_withdraw_stake_txs", "totalWithdrawStakeTxs", _int),
    ("total_user_txs", "totalUserTxs", _int),
)

COIN_LAYOUT: Layout = (
    ("date_start_time", "dateStartTime", _int),
    ("minted_coin", "mintedCoin", to_decimal),
    ("transaction_fee", "transactionFee", to_decimal),
    ("burnt_fee", "burntFee", to_decimal),
    ("stake_amount", "stakeAmount", to_decimal),
    ("unstake_amount", "unStakeAmount", to_decimal),
    ("reward_amount_realized", "rewardAmountRealized", to_decimal),
    ("reward_amount_unrealized", "rewardAmountUnrealized", to_decimal),
    ("penalty_amount", "penaltyAmount", to_decimal),
    ("stability_factor", "stabilityFactorStr", to_decimal),
)

NETWORK_LAYOUT: Layout = (
    ("date_start_time", "dateStartTime", _int),
    ("stability_factor", "stabilityFactorStr", to_decimal),
    ("transaction_fee_usd", "transactionFeeUsdStr", to_decimal),
    ("stake_required_usd", "stakeRequiredUsdStr", to_decimal),
    ("node_reward_amount_usd", "nodeRewardAmountUsdStr", to_decimal),
    ("node_penalty_usd", "nodePenaltyUsdStr", to_decimal),
    ("default_toll_usd", "defaultTollUsdStr", to_decimal),
    ("min_toll_usd", "minTollUsdStr", to_decimal),
    ("active_nodes", "activeNodes", _int),
    ("standby_nodes", "standbyNodes", _int),
)


def _decode_row(row, layout: Layout, record_cls: Type[T]) -> T:
    values = {}
    if isinstance(row, (list, tuple)):
        for index, (attr, _key, convert) in enumerate(layout):
            values[attr] = convert(row[index] if index < len(row) else None)
    elif isinstance(row, dict):
        for attr, key, convert in layout:
            values[attr] = convert(row.get(key))
    else:
        raise CodecError(f"Unsupported stat row: {type(row).__name__}")
    return record_cls(**values)


def _shape_matches(row, response_type: Optional[ResponseType]) -> bool:
    if response_type is None:
        return True
    if response_type is ResponseType.ARRAY:
        return isinstance(row, (list, tuple))
    return isinstance(row, dict)


def decode_rows(rows, layout: Layout, record_cls: Type[T], response_type=None) -> List[T]:
    """Decode wire rows into canonical records sorted by day.

    Rows that do not fit the declared ``response_type`` or fail conversion
    are logged and dropped.
    """
    kind = ResponseType(response_type) if response_type is not None else None
    records = []
    for row in rows or []:
        if not _shape_matches(row, kind):
            logger.warning("Dropping %s row not in %s form", record_cls.__name__, kind.value)
            continue
        try:
            records.append(_decode_row(row, layout, record_cls))
        except (CodecError, TypeError, ValueError) as e:
            logger.warning("Dropping undecodable %s row %r: %s", record_cls.__name__, row, e)
    records.sort(key=lambda r: r.date_start_time)
    return records


def decode_daily_account_stats(rows, response_type=None) -> List[DailyAccountStats]:
    return decode_rows(rows, ACCOUNT_LAYOUT, DailyAccountStats, response_type)


def decode_daily_transaction_stats(rows, response_type=None) -> List[DailyTransactionStats]:
    return decode_rows(rows, TRANSACTION_LAYOUT, DailyTransactionStats, response_type)


def decode_daily_coin_stats(rows, response_type=None) -> List[DailyCoinStats]:
    return decode_rows(rows, COIN_LAYOUT, DailyCoinStats, response_type)


def decode_daily_network_stats(rows, response_type=None) -> List[DailyNetworkStats]:
    return decode_rows(rows, NETWORK_LAYOUT, DailyNetworkStats, response_type)


def encode_rows(rows: List[dict], layout: Layout, response_type) -> list:
    """Render stored rows (named columns) in the requested wire form."""
    if ResponseType(response_type) is ResponseType.OBJECT:
        return [{key: row.get(key, 0) for _attr, key, _c in layout} for row in rows]
    return [[row.get(key, 0) for _attr, key, _c in layout] for row in rows]


# ── Deltas ──────────────────────────────────────────────────

def supply_delta(stats: DailyCoinStats) -> Decimal:
    """Net change of circulating supply for one day."""
    return (
        stats.minted_coin
        + stats.reward_amount_realized
        - stats.transaction_fee
        - stats.burnt_fee
        - stats.penalty_amount
    )


def stake_delta(stats: DailyCoinStats) -> Decimal:
    return stats.stake_amount - stats.unstake_amount - stats.penalty_amount


# ── Series ──────────────────────────────────────────────────

@dataclass
class Marker:
    timestamp: int
    value: float


@dataclass
class Point:
    timestamp: int
    value: float
    breakdown: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Series:
    name: str
    points: List[Point] = field(default_factory=list)
    highest: Optional[Marker] = None
    lowest: Optional[Marker] = None
    current: Optional[Marker] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _number(value):
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return value


def find_markers(points: List[Point], lowest_includes_zero: bool):
    """(highest, lowest, current) for ``points`` already in ascending order."""
    highest = lowest = None
    for p in points:
        if highest is None or p.value > highest.value:
            highest = Marker(p.timestamp, p.value)
        if not lowest_includes_zero and p.value == 0:
            continue
        if lowest is None or p.value < lowest.value:
            lowest = Marker(p.timestamp, p.value)
    current = Marker(points[-1].timestamp, points[-1].value) if points else None
    return highest, lowest, current


def build_series(name: str, points: List[Point], lowest_includes_zero: bool = True) -> Series:
    for p in points:
        p.value = _number(p.value)
    highest, lowest, current = find_markers(points, lowest_includes_zero)
    return Series(name=name, points=points, highest=highest, lowest=lowest, current=current)


class StatsAggregator:
    """Builds chart series from canonical daily records."""

    def __init__(self, config: Optional[ExplorerConfig] = None):
        self.config = config or ExplorerConfig()

    # accounts

    def new_addresses(self, stats: List[DailyAccountStats]) -> Series:
        total = 0
        points = []
        for s in stats:
            total += s.new_accounts
            points.append(Point(s.date_start_time, total, {"dailyIncrease": s.new_accounts}))
        return build_series("newAddresses", points, lowest_includes_zero=False)

    def new_user_accounts(self, stats: List[DailyAccountStats]) -> Series:
        points = [Point(s.date_start_time, s.new_user_accounts) for s in stats]
        return build_series("newUserAccounts", points, lowest_includes_zero=False)

    def active_accounts(self, stats: List[DailyAccountStats]) -> Series:
        points = [Point(s.date_start_time, s.active_accounts) for s in stats]
        return build_series("activeAccounts", points)

    # transactions

    def daily_transactions(self, stats: List[DailyTransactionStats]) -> Series:
        points = [
            Point(
                s.date_start_time,
                s.total_txs,
                {
                    "userTxs": s.total_user_txs,
                    "transfer": s.total_transfer_txs,
                    "message": s.total_message_txs,
                    "depositStake": s.total_deposit_stake_txs,
                    "withdrawStake": s.total_withdraw_stake_txs,
                },
            )
            for s in stats
        ]
        return build_series("dailyTransactions", points)

    def avg_transaction_fee(
        self, coin: List[DailyCoinStats], txs: List[DailyTransactionStats]
    ) -> Series:
        """Average fee per transaction in USD (fee in LIB times the day's stability factor)."""
        tx_by_day = {t.date_start_time: t.total_txs for t in txs}
        points = []
        for c in coin:
            total = tx_by_day.get(c.date_start_time, 0)
            avg = c.transaction_fee / total if total else Decimal(0)
            points.append(
                Point(
                    c.date_start_time,
                    avg * c.stability_factor,
                    {"avgFeeLib": _number(avg), "totalTxs": total},
                )
            )
        return build_series("avgTransactionFee", points)

    # coin

    def total_supply(self, coin: List[DailyCoinStats]) -> Series:
        supply = to_decimal(self.config.genesis_supply)
        points = []
        for c in coin:
            delta = supply_delta(c)
            supply += delta
            points.append(Point(c.date_start_time, supply, {"change": _number(delta)}))
        return build_series("totalSupply", points)

    def network_stake(self, coin: List[DailyCoinStats]) -> Series:
        stake = Decimal(0)
        points = []
        for c in coin:
            stake += stake_delta(c)
            points.append(
                Point(
                    c.date_start_time,
                    stake,
                    {
                        "stakeAmount": _number(c.stake_amount),
                        "unStakeAmount": _number(c.unstake_amount),
                        "penaltyAmount": _number(c.penalty_amount),
                    },
                )
            )
        return build_series("networkStake", points)

    def burnt_supply(self, coin: List[DailyCoinStats]) -> Series:
        points = [
            Point(
                c.date_start_time,
                c.transaction_fee + c.burnt_fee + c.penalty_amount,
                {
                    "transactionFee": _number(c.transaction_fee),
                    "networkFee": _number(c.burnt_fee),
                    "penaltyAmount": _number(c.penalty_amount),
                },
            )
            for c in coin
        ]
        return build_series("burntSupply", points)

    def distributed_supply(self, coin: List[DailyCoinStats]) -> Series:
        points = [
            Point(
                c.date_start_time,
                c.minted_coin + c.reward_amount_realized,
                {
                    "mintedCoin": _number(c.minted_coin),
                    "rewardAmountRealized": _number(c.reward_amount_realized),
                },
            )
            for c in coin
        ]
        return build_series("distributedSupply", points)

    def price(self, coin: List[DailyCoinStats]) -> Series:
        points = [Point(c.date_start_time, c.stability_factor) for c in coin]
        return build_series("price", points)

    def market_cap(self, coin: List[DailyCoinStats]) -> Series:
        supply = to_decimal(self.config.genesis_supply)
        points = []
        for c in coin:
            supply += supply_delta(c)
            points.append(
                Point(
                    c.date_start_time,
                    supply * c.stability_factor,
                    {"totalSupply": _number(supply), "price": _number(c.stability_factor)},
                )
            )
        return build_series("marketCap", points)

    # network

    def active_nodes(self, network: List[DailyNetworkStats]) -> Series:
        points = [
            Point(n.date_start_time, n.active_nodes, {"standbyNodes": n.standby_nodes})
            for n in network
        ]
        return build_series("activeNodes", points)

    def required_stake(self, network: List[DailyNetworkStats]) -> Series:
        points = [Point(n.date_start_time, n.stake_required_usd) for n in network]
        return build_series("requiredStake", points)
