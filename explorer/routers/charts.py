"""Charts router - /api/charts/{series}.

Stats are read in the requested wire form and decoded back to canonical
records before the series is built, the same path a chart client takes.
"""

from typing import Optional

from fastapi import APIRouter
from starlette.requests import Request

from explorer.aggregation import (
    ACCOUNT_LAYOUT,
    COIN_LAYOUT,
    NETWORK_LAYOUT,
    TRANSACTION_LAYOUT,
    decode_daily_account_stats,
    decode_daily_coin_stats,
    decode_daily_network_stats,
    decode_daily_transaction_stats,
    encode_rows,
)
from explorer.deps import get_server, get_storage
from explorer.models import SeriesResponse
from explorer.routers._params import error, parse_response_type
from explorer.routers.stats import daily_coin_rows, daily_rows
from explorer.types import ResponseType

router = APIRouter()

# series name -> (stat sources in builder argument order, aggregator method)
SERIES = {
    "newAddresses": (("account",), "new_addresses"),
    "newUserAccounts": (("account",), "new_user_accounts"),
    "activeAccounts": (("account",), "active_accounts"),
    "dailyTransactions": (("transaction",), "daily_transactions"),
    "avgTransactionFee": (("coin", "transaction"), "avg_transaction_fee"),
    "totalSupply": (("coin",), "total_supply"),
    "networkStake": (("coin",), "network_stake"),
    "burntSupply": (("coin",), "burnt_supply"),
    "distributedSupply": (("coin",), "distributed_supply"),
    "price": (("coin",), "price"),
    "marketCap": (("coin",), "market_cap"),
    "activeNodes": (("network",), "active_nodes"),
    "requiredStake": (("network",), "required_stake"),
}


async def _load(storage, source: str, response_type: ResponseType):
    if source == "account":
        rows = await daily_rows(storage.daily_accounts)
        return decode_daily_account_stats(encode_rows(rows, ACCOUNT_LAYOUT, response_type), response_type)
    if source == "transaction":
        rows = await daily_rows(storage.daily_transactions)
        return decode_daily_transaction_stats(
            encode_rows(rows, TRANSACTION_LAYOUT, response_type), response_type
        )
    if source == "coin":
        rows = await daily_coin_rows(storage)
        return decode_daily_coin_stats(encode_rows(rows, COIN_LAYOUT, response_type), response_type)
    rows = await daily_rows(storage.daily_network)
    return decode_daily_network_stats(encode_rows(rows, NETWORK_LAYOUT, response_type), response_type)


@router.get("/api/charts/{series}")
async def chart_series(
    request: Request,
    series: str,
    responseType: Optional[str] = None,
    accountResponseType: Optional[str] = None,
    transactionResponseType: Optional[str] = None,
):
    srv = get_server(request)
    if series not in SERIES:
        return error(f"Unknown chart series: {series}")
    try:
        response_type = parse_response_type(
            responseType or accountResponseType or transactionResponseType,
            default=ResponseType.ARRAY,
        )
    except ValueError as e:
        return error(str(e))

    sources, method = SERIES[series]
    storage = get_storage(request)
    inputs = [await _load(storage, s, response_type) for s in sources]
    result = getattr(srv.aggregator, method)(*inputs)
    return SeriesResponse(**result.to_dict()).to_response()
