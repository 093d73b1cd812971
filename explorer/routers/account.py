"""Account router - /api/account."""

import math
from typing import Optional

from fastapi import APIRouter
from starlette.requests import Request

from explorer.deps import get_server
from explorer.models import AccountListResponse
from explorer.routers._params import (
    error,
    parse_count,
    parse_cycle_range,
    parse_id,
    parse_page,
    parse_timestamp,
)
from explorer.storage.filters import AccountFilter
from explorer.types import parse_account_type

router = APIRouter()


@router.get("/api/account")
async def get_accounts(
    request: Request,
    count: Optional[str] = None,
    limit: Optional[str] = None,
    page: Optional[str] = None,
    accountId: Optional[str] = None,
    accountType: Optional[str] = None,
    accountSearchType: Optional[str] = None,
    startCycle: Optional[str] = None,
    endCycle: Optional[str] = None,
    startTimestamp: Optional[str] = None,
    endTimestamp: Optional[str] = None,
):
    srv = get_server(request)
    cfg = srv.config
    repo = srv.storage.accounts
    type_param = accountType or accountSearchType
    count = count or limit

    if not any((count, page, accountId, type_param, startCycle, endCycle, startTimestamp, endTimestamp)):
        return error("not specified which account to query")

    try:
        account_type = None
        if type_param:
            account_type = parse_account_type(type_param)
            if account_type is None:
                raise ValueError("Invalid account search type")

        if count:
            n = parse_count(count, cfg.max_accounts_per_request)
            accounts = await repo.query(AccountFilter(type=account_type, limit=n))
            total = await repo.count(AccountFilter(type=account_type))
            return AccountListResponse(accounts=accounts, totalAccounts=total).to_response()

        if accountId:
            account = await repo.get(parse_id(accountId, "account id"))
            return AccountListResponse(accounts=[account] if account else []).to_response()

        start_cycle, end_cycle = parse_cycle_range(
            startCycle, endCycle, cfg.max_between_cycles_per_request
        )
        start_ts = parse_timestamp(startTimestamp, "start timestamp")
        end_ts = parse_timestamp(endTimestamp, "end timestamp")
        page_no = parse_page(page)
    except ValueError as e:
        return error(str(e))

    per_page = cfg.items_per_page
    flt = AccountFilter(
        type=account_type,
        start_cycle=start_cycle,
        end_cycle=end_cycle,
        start_timestamp=start_ts,
        end_timestamp=end_ts,
        skip=(page_no - 1) * per_page,
        limit=per_page,
    )
    total = await repo.count(flt)
    total_pages = math.ceil(total / per_page)
    if page_no > 1 and page_no > total_pages:
        return error("Page no is greater than the totalPage")

    accounts = await repo.query(flt) if total > 0 else []
    return AccountListResponse(
        accounts=accounts, totalAccounts=total, totalPages=total_pages
    ).to_response()
