"""Stats router - /api/stats/{account,transaction,coin,network}.

Daily reports are returned oldest first in either wire form; ``count``
returns the newest days first.
"""

from typing import List, Optional

from fastapi import APIRouter
from starlette.requests import Request

from explorer.aggregation import (
    ACCOUNT_LAYOUT,
    COIN_LAYOUT,
    NETWORK_LAYOUT,
    TRANSACTION_LAYOUT,
    encode_rows,
)
from explorer.codec import to_decimal
from explorer.deps import get_server
from explorer.models import CoinSummary
from explorer.routers._params import error, parse_count, parse_flag, parse_response_type

router = APIRouter()


async def daily_coin_rows(storage) -> List[dict]:
    """All daily coin rows, ascending, each carrying that day's stability factor."""
    coin = await storage.daily_coin_stats.query_latest(0)
    network = await storage.daily_network.query_latest(0)
    price_by_day = {n["dateStartTime"]: n["stabilityFactorStr"] for n in network}
    rows = [dict(c, stabilityFactorStr=price_by_day.get(c["dateStartTime"], "0")) for c in coin]
    rows.sort(key=lambda r: r["dateStartTime"])
    return rows


async def daily_rows(repo) -> List[dict]:
    rows = await repo.query_latest(0)
    rows.sort(key=lambda r: r["dateStartTime"])
    return rows


@router.get("/api/stats/account")
async def account_stats(
    request: Request,
    count: Optional[str] = None,
    responseType: Optional[str] = None,
    allDailyAccountReport: Optional[str] = None,
):
    srv = get_server(request)
    if not any((count, responseType, allDailyAccountReport)):
        return error("Not specified which account stats to query")
    try:
        response_type = parse_response_type(responseType)
        rows: List[dict] = []
        if count:
            rows = await srv.storage.daily_accounts.query_latest(
                parse_count(count, srv.config.max_stats_per_request)
            )
        elif parse_flag(allDailyAccountReport, "allDailyAccountReport"):
            rows = await daily_rows(srv.storage.daily_accounts)
    except ValueError as e:
        return error(str(e))
    return {"success": True, "dailyAccountStats": encode_rows(rows, ACCOUNT_LAYOUT, response_type)}


@router.get("/api/stats/transaction")
async def transaction_stats(
    request: Request,
    count: Optional[str] = None,
    responseType: Optional[str] = None,
    allDailyTxsReport: Optional[str] = None,
):
    srv = get_server(request)
    if not any((count, responseType, allDailyTxsReport)):
        return error("Not specified which transaction stats to query")
    try:
        response_type = parse_response_type(responseType)
        rows: List[dict] = []
        if count:
            rows = await srv.storage.daily_transactions.query_latest(
                parse_count(count, srv.config.max_stats_per_request)
            )
        elif parse_flag(allDailyTxsReport, "allDailyTxsReport"):
            rows = await daily_rows(srv.storage.daily_transactions)
    except ValueError as e:
        return error(str(e))
    return {
        "success": True,
        "transactionStats": encode_rows(rows, TRANSACTION_LAYOUT, response_type),
    }


@router.get("/api/stats/coin")
async def coin_stats(
    request: Request,
    count: Optional[str] = None,
    responseType: Optional[str] = None,
    allDailyCoinReport: Optional[str] = None,
):
    srv = get_server(request)
    try:
        if count:
            latest = await srv.storage.coin_stats.query_latest(
                parse_count(count, srv.config.max_stats_per_request)
            )
            return {"success": True, "coinStats": latest}
        if parse_flag(allDailyCoinReport, "allDailyCoinReport"):
            response_type = parse_response_type(responseType)
            rows = await daily_coin_rows(srv.storage)
            return {"success": True, "dailyCoinStats": encode_rows(rows, COIN_LAYOUT, response_type)}
    except ValueError as e:
        return error(str(e))

    totals = await srv.storage.coin_stats.query_aggregated()
    total_supply = to_decimal(totals["totalSupplyChange"]) + to_decimal(srv.config.genesis_supply)
    return CoinSummary(
        totalSupply=float(total_supply),
        totalStaked=totals["totalStakeChange"],
        lastUpdatedCycle=totals["lastUpdatedCycle"],
    ).to_response()


@router.get("/api/stats/network")
async def network_stats(
    request: Request,
    responseType: Optional[str] = None,
    allDailyNetworkReport: Optional[str] = None,
):
    srv = get_server(request)
    try:
        if parse_flag(allDailyNetworkReport, "allDailyNetworkReport"):
            response_type = parse_response_type(responseType)
            rows = await daily_rows(srv.storage.daily_network)
            return {
                "success": True,
                "dailyNetworkStats": encode_rows(rows, NETWORK_LAYOUT, response_type),
            }
    except ValueError as e:
        return error(str(e))

    latest = await srv.storage.daily_network.query_latest(1)
    if not latest:
        return error("No network stats found")
    return {"success": True, **latest[0]}
