"""Transaction router - /api/transaction."""

import math
from typing import Optional

from fastapi import APIRouter
from starlette.requests import Request

from explorer.deps import get_server
from explorer.models import TotalTxsDetail, TransactionListResponse
from explorer.routers._params import (
    error,
    parse_count,
    parse_cycle_range,
    parse_id,
    parse_page,
    parse_timestamp,
)
from explorer.storage.filters import TransactionFilter
from explorer.types import TransactionType, parse_tx_search_type

router = APIRouter()


async def _totals_by_type(repo) -> dict:
    async def of(tx_type: Optional[TransactionType]) -> int:
        return await repo.count(TransactionFilter(tx_type=tx_type))

    return {
        "totalTransactions": await of(None),
        "totalTransferTxs": await of(TransactionType.TRANSFER),
        "totalMessageTxs": await of(TransactionType.MESSAGE),
        "totalDepositStakeTxs": await of(TransactionType.DEPOSIT_STAKE),
        "totalWithdrawStakeTxs": await of(TransactionType.WITHDRAW_STAKE),
    }


@router.get("/api/transaction")
async def get_transactions(
    request: Request,
    count: Optional[str] = None,
    limit: Optional[str] = None,
    page: Optional[str] = None,
    txId: Optional[str] = None,
    accountId: Optional[str] = None,
    txType: Optional[str] = None,
    txSearchType: Optional[str] = None,
    startCycle: Optional[str] = None,
    endCycle: Optional[str] = None,
    startTimestamp: Optional[str] = None,
    endTimestamp: Optional[str] = None,
    beforeTimestamp: Optional[str] = None,
    afterTimestamp: Optional[str] = None,
    totalTxsDetail: Optional[str] = None,
):
    srv = get_server(request)
    cfg = srv.config
    repo = srv.storage.transactions
    type_param = txType or txSearchType
    count = count or limit

    if not any((count, page, txId, accountId, type_param, startCycle, endCycle, startTimestamp,
                endTimestamp, beforeTimestamp, afterTimestamp, totalTxsDetail)):
        return error("Not specified which transaction to query")

    try:
        tx_type = None
        if type_param:
            tx_type = parse_tx_search_type(type_param)
            if tx_type is None:
                raise ValueError("Invalid transaction search type")

        if count:
            n = parse_count(count, cfg.max_transactions_per_request)
            txs = await repo.query(TransactionFilter(tx_type=tx_type, limit=n))
            total = await repo.count(TransactionFilter(tx_type=tx_type))
            return TransactionListResponse(transactions=txs, totalTransactions=total).to_response()

        if txId:
            tx = await repo.get(parse_id(txId, "transaction id"))
            if tx is None:
                return error("The transaction is not found!")
            return TransactionListResponse(transactions=[tx]).to_response()

        if totalTxsDetail == "true":
            return TotalTxsDetail(**await _totals_by_type(repo)).to_response()

        account_id = parse_id(accountId, "account id") if accountId else None
        start_cycle, end_cycle = parse_cycle_range(
            startCycle, endCycle, cfg.max_between_cycles_per_request
        )
        before = parse_timestamp(beforeTimestamp, "before timestamp")
        after = parse_timestamp(afterTimestamp, "after timestamp")
        start_ts = parse_timestamp(startTimestamp, "start timestamp")
        end_ts = parse_timestamp(endTimestamp, "end timestamp")
        if (before and after) or (start_ts and end_ts and end_ts < start_ts):
            raise ValueError("Invalid timestamp range")
        page_no = parse_page(page)
    except ValueError as e:
        return error(str(e))

    per_page = cfg.items_per_page
    flt = TransactionFilter(
        tx_type=tx_type,
        account_id=account_id,
        start_cycle=start_cycle,
        end_cycle=end_cycle,
        start_timestamp=start_ts,
        end_timestamp=end_ts,
        before_timestamp=before,
        after_timestamp=after,
        skip=(page_no - 1) * per_page,
        limit=per_page,
    )
    total = await repo.count(flt)
    total_pages = math.ceil(total / per_page)
    if page_no > 1 and page_no > total_pages:
        return error("Page no is greater than the totalPage")

    txs = await repo.query(flt) if total > 0 else []
    return TransactionListResponse(
        transactions=txs, totalTransactions=total, totalPages=total_pages
    ).to_response()
