"""
test_account_api.py - Integration tests for /api/account.

Uses FastAPI TestClient against an ExplorerServer with in-memory SQLite.
"""

import pytest

pytestmark = pytest.mark.asyncio


async def _seed(storage, make_account, n=25):
    for i in range(n):
        kind = "NodeAccount" if i % 5 == 0 else "UserAccount"
        await storage.accounts.insert(make_account(i, timestamp=1000 + i, cycle=i, account_type=kind))


# ── Validation ────────────────────────────────────────────────────────────

class TestValidation:

    async def test_no_parameters(self, client):
        r = client.get("/api/account")
        assert r.status_code == 200
        assert r.json() == {"success": False, "error": "not specified which account to query"}

    @pytest.mark.parametrize("query,message", [
        ("count=0", "Invalid count"),
        ("count=abc", "Invalid count"),
        ("count=101", "Maximum count is 100"),
        ("accountId=short", "Invalid account id"),
        ("page=0", "Invalid page number"),
        ("accountType=Bogus", "Invalid account search type"),
        ("startCycle=5&endCycle=2", "Invalid end cycle number"),
        ("startCycle=0&endCycle=500", "The cycle range is too big. Max cycle range is 100 cycles."),
    ])
    async def test_bad_parameters(self, client, query, message):
        body = client.get(f"/api/account?{query}").json()
        assert body == {"success": False, "error": message}


# ── Queries ───────────────────────────────────────────────────────────────

class TestAccountQueries:

    async def test_count_returns_latest(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?count=3").json()
        assert body["success"] is True
        assert body["totalAccounts"] == 25
        assert [a["cycleNumber"] for a in body["accounts"]] == [24, 23, 22]

    async def test_by_account_id(self, storage, client, make_account):
        await _seed(storage, make_account, n=2)
        account_id = f"{1:064x}"
        body = client.get(f"/api/account?accountId={account_id.upper()}").json()
        assert [a["accountId"] for a in body["accounts"]] == [account_id]

    async def test_unknown_account_id(self, client):
        body = client.get(f"/api/account?accountId={'ef' * 32}").json()
        assert body == {"success": True, "accounts": []}

    async def test_pages(self, storage, client, make_account):
        await _seed(storage, make_account)
        seen = []
        for page in (1, 2, 3):
            body = client.get(f"/api/account?page={page}").json()
            assert body["totalAccounts"] == 25
            assert body["totalPages"] == 3
            seen.extend(a["accountId"] for a in body["accounts"])
        assert len(set(seen)) == 25

    async def test_page_beyond_total(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?page=4").json()
        assert body == {"success": False, "error": "Page no is greater than the totalPage"}

    async def test_cycle_range_oldest_first(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?startCycle=3&endCycle=6").json()
        assert body["totalAccounts"] == 4
        assert [a["cycleNumber"] for a in body["accounts"]] == [3, 4, 5, 6]

    async def test_type_filter(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?accountType=NodeAccount").json()
        assert body["totalAccounts"] == 5
        assert {a["accountType"] for a in body["accounts"]} == {"NodeAccount"}

    async def test_single_start_cycle(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?startCycle=7").json()
        assert [a["cycleNumber"] for a in body["accounts"]] == [7]

    async def test_limit_is_count(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?limit=3").json()
        assert [a["cycleNumber"] for a in body["accounts"]] == [24, 23, 22]

    async def test_timestamp_range(self, storage, client, make_account):
        await _seed(storage, make_account)
        body = client.get("/api/account?startTimestamp=1003&endTimestamp=1005").json()
        assert [a["cycleNumber"] for a in body["accounts"]] == [3, 4, 5]
