"""
filters.py - Typed read filters for accounts and transactions.

Each optional filter field becomes one parameterised predicate fragment;
fragments are AND-combined. Values that are absent or not understood are
left out of the predicate instead of raising. ``limit=0`` means no limit.

Ordering: a range filter (cycle or timestamp window) returns oldest first so
callers can page forward through history; without one the newest rows come
first (the "latest N" view).
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from explorer.types import (
    STAKING_TX_TYPES,
    TransactionSearchType,
    parse_account_type,
    parse_tx_search_type,
)

ORDER_LATEST = "cycleNumber DESC, timestamp DESC"
ORDER_HISTORY = "cycleNumber ASC, timestamp ASC"


@dataclass
class Predicate:
    clauses: List[str] = field(default_factory=list)
    params: list = field(default_factory=list)

    def add(self, clause: str, *params):
        self.clauses.append(clause)
        self.params.extend(params)

    def where(self) -> str:
        if not self.clauses:
            return ""
        return " WHERE " + " AND ".join(self.clauses)


def _as_int(value) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _add_range(pred: Predicate, column: str, start, end) -> bool:
    start, end = _as_int(start), _as_int(end)
    if start is not None and end is not None:
        pred.add(f"{column} BETWEEN ? AND ?", start, end)
    elif start is not None:
        pred.add(f"{column} >= ?", start)
    elif end is not None:
        pred.add(f"{column} <= ?", end)
    else:
        return False
    return True


def page_clause(skip, limit) -> Tuple[str, list]:
    skip = max(_as_int(skip) or 0, 0)
    limit = max(_as_int(limit) or 0, 0)
    if limit > 0 and skip > 0:
        return " LIMIT ? OFFSET ?", [limit, skip]
    if limit > 0:
        return " LIMIT ?", [limit]
    if skip > 0:
        return " LIMIT -1 OFFSET ?", [skip]
    return "", []


@dataclass
class AccountFilter:
    type: Optional[str] = None
    account_id: Optional[str] = None
    start_cycle: Optional[int] = None
    end_cycle: Optional[int] = None
    start_timestamp: Optional[int] = None
    end_timestamp: Optional[int] = None
    skip: int = 0
    limit: int = 10

    def predicate(self) -> Predicate:
        pred = Predicate()
        account_type = parse_account_type(self.type)
        if account_type is not None:
            pred.add("accountType = ?", account_type.value)
        if self.account_id:
            pred.add("accountId = ?", self.account_id)
        _add_range(pred, "cycleNumber", self.start_cycle, self.end_cycle)
        _add_range(pred, "timestamp", self.start_timestamp, self.end_timestamp)
        return pred

    def has_range(self) -> bool:
        return any(
            _as_int(v) is not None
            for v in (self.start_cycle, self.end_cycle, self.start_timestamp, self.end_timestamp)
        )

    def order_by(self) -> str:
        return " ORDER BY " + (ORDER_HISTORY if self.has_range() else ORDER_LATEST)


@dataclass
class TransactionFilter:
    tx_type: Optional[str] = None
    account_id: Optional[str] = None
    start_cycle: Optional[int] = None
    end_cycle: Optional[int] = None
    start_timestamp: Optional[int] = None
    end_timestamp: Optional[int] = None
    before_timestamp: Optional[int] = None
    after_timestamp: Optional[int] = None
    exclude_zero_fee: bool = False
    skip: int = 0
    limit: int = 10

    def predicate(self) -> Predicate:
        pred = Predicate()
        tx_type = parse_tx_search_type(self.tx_type)
        if tx_type is TransactionSearchType.STAKING:
            pred.add(
                "transactionType IN (?, ?)",
                *(t.value for t in STAKING_TX_TYPES),
            )
        elif tx_type is not None and tx_type is not TransactionSearchType.ALL:
            pred.add("transactionType = ?", tx_type.value)
        if self.account_id:
            pred.add("(txFrom = ? OR txTo = ?)", self.account_id, self.account_id)
        _add_range(pred, "cycleNumber", self.start_cycle, self.end_cycle)
        _add_range(pred, "timestamp", self.start_timestamp, self.end_timestamp)
        before = _as_int(self.before_timestamp)
        if before is not None and before > 0:
            pred.add("timestamp < ?", before)
        after = _as_int(self.after_timestamp)
        if after is not None and after > 0:
            pred.add("timestamp > ?", after)
        if self.exclude_zero_fee:
            pred.add("txFee > 0")
        return pred

    def has_range(self) -> bool:
        return any(
            _as_int(v) is not None
            for v in (self.start_cycle, self.end_cycle, self.start_timestamp, self.end_timestamp)
        )

    def order_by(self) -> str:
        if (_as_int(self.before_timestamp) or 0) > 0:
            return " ORDER BY timestamp DESC"
        if (_as_int(self.after_timestamp) or 0) > 0:
            return " ORDER BY timestamp ASC"
        return " ORDER BY " + (ORDER_HISTORY if self.has_range() else ORDER_LATEST)
