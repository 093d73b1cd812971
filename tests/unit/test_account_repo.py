"""
test_account_repo.py - Unit tests for AccountRepo.

Covers the keep-newer upsert rule, createdTimestamp tracking, filtered and
paginated reads, and the supplementary timestamp lookups, using in-memory
SQLite.
"""

import itertools

import pytest
import pytest_asyncio

from explorer.storage import AccountFilter, AccountRepo
from explorer.types import AccountType

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def repo(db):
    return AccountRepo(db)


def _account(account_id, timestamp, cycle=1, account_type=AccountType.USER, balance=0):
    return {
        "accountId": account_id,
        "cycleNumber": cycle,
        "timestamp": timestamp,
        "hash": f"hash-{timestamp}",
        "isGlobal": False,
        "accountType": account_type,
        "data": {"type": account_type.value, "timestamp": timestamp, "data": {"balance": balance}},
    }


def _addr(n: int) -> str:
    return f"{n:064x}"


# ── Upsert merge rules ────────────────────────────────────────────────────

class TestUpsert:

    async def test_insert_new_account(self, repo, account_id):
        assert await repo.insert(_account(account_id, 100, balance=5)) is True
        stored = await repo.get(account_id)
        assert stored["timestamp"] == 100
        assert stored["createdTimestamp"] == 100
        assert stored["accountType"] == "UserAccount"
        assert stored["isGlobal"] is False
        assert stored["data"]["data"]["balance"] == 5

    @pytest.mark.parametrize("payload", ["hello", "42", 42, 1.5, [1, 2]])
    async def test_non_object_data_reads_back(self, repo, account_id, payload):
        record = _account(account_id, 100)
        record["data"] = payload
        assert await repo.insert(record) is True

        assert (await repo.get(account_id))["data"] == payload
        [listed] = await repo.query(AccountFilter())
        assert listed["data"] == payload
        assert await repo.count() == 1

    async def test_idempotent(self, repo, account_id):
        record = _account(account_id, 100, balance=5)
        await repo.insert(record)
        first = await repo.get(account_id)
        await repo.insert(record)
        assert await repo.get(account_id) == first
        assert await repo.count() == 1

    async def test_newer_write_overwrites(self, repo, account_id):
        await repo.insert(_account(account_id, 100, cycle=1, balance=5))
        await repo.insert(_account(account_id, 200, cycle=2, balance=7))
        stored = await repo.get(account_id)
        assert stored["timestamp"] == 200
        assert stored["cycleNumber"] == 2
        assert stored["hash"] == "hash-200"
        assert stored["data"]["data"]["balance"] == 7
        assert stored["createdTimestamp"] == 100

    async def test_stale_write_keeps_data_but_lowers_created(self, repo, account_id):
        await repo.insert(_account(account_id, 200, cycle=2, balance=7))
        await repo.insert(_account(account_id, 100, cycle=1, balance=5))
        stored = await repo.get(account_id)
        assert stored["timestamp"] == 200
        assert stored["cycleNumber"] == 2
        assert stored["data"]["data"]["balance"] == 7
        assert stored["createdTimestamp"] == 100

    async def test_equal_timestamp_is_not_applied(self, repo, account_id):
        await repo.insert(_account(account_id, 100, balance=5))
        await repo.insert(_account(account_id, 100, balance=9))
        stored = await repo.get(account_id)
        assert stored["data"]["data"]["balance"] == 5

    @pytest.mark.parametrize("order", list(itertools.permutations([300, 100, 200])))
    async def test_any_order_converges(self, repo, account_id, order):
        for ts in order:
            await repo.insert(_account(account_id, ts, cycle=ts // 100, balance=ts))
        stored = await repo.get(account_id)
        assert stored["timestamp"] == 300
        assert stored["data"]["data"]["balance"] == 300
        assert stored["createdTimestamp"] == 100

    async def test_failed_insert_returns_false(self, repo, account_id):
        record = _account(account_id, 100)
        record["hash"] = None
        assert await repo.insert(record) is False
        assert await repo.get(account_id) is None

    async def test_bulk_insert_applies_same_rules(self, repo, account_id):
        await repo.insert(_account(account_id, 200, balance=7))
        ok = await repo.bulk_insert([
            _account(account_id, 50, balance=1),
            _account(_addr(1), 100),
        ])
        assert ok is True
        stored = await repo.get(account_id)
        assert stored["data"]["data"]["balance"] == 7
        assert stored["createdTimestamp"] == 50
        assert await repo.count() == 2

    async def test_bulk_insert_is_all_or_nothing(self, repo):
        records = [_account(_addr(i), 100 + i) for i in range(5)]
        records[3]["hash"] = None
        assert await repo.bulk_insert(records) is False
        assert await repo.count() == 0


# ── Filters and paging ────────────────────────────────────────────────────

class TestQuery:

    async def _seed(self, repo, n=25):
        for i in range(n):
            kind = AccountType.NODE if i % 5 == 0 else AccountType.USER
            await repo.insert(_account(_addr(i), 1000 + i, cycle=i, account_type=kind))

    async def test_pages_cover_count(self, repo):
        await self._seed(repo)
        total = await repo.count(AccountFilter())
        seen = []
        skip = 0
        while True:
            page = await repo.query(AccountFilter(skip=skip, limit=10))
            if not page:
                break
            seen.extend(a["accountId"] for a in page)
            skip += 10
        assert total == 25
        assert len(seen) == total
        assert len(set(seen)) == total

    async def test_no_range_is_newest_first(self, repo):
        await self._seed(repo)
        rows = await repo.query(AccountFilter(limit=3))
        assert [r["cycleNumber"] for r in rows] == [24, 23, 22]

    async def test_range_is_oldest_first(self, repo):
        await self._seed(repo)
        rows = await repo.query(AccountFilter(start_cycle=5, end_cycle=9, limit=0))
        assert [r["cycleNumber"] for r in rows] == [5, 6, 7, 8, 9]

    async def test_open_ended_range(self, repo):
        await self._seed(repo)
        assert await repo.count(AccountFilter(start_cycle=20)) == 5
        assert await repo.count(AccountFilter(end_cycle=4)) == 5

    async def test_type_filter_and_count_agree(self, repo):
        await self._seed(repo)
        flt = AccountFilter(type="NodeAccount", limit=0)
        rows = await repo.query(flt)
        assert len(rows) == await repo.count(flt) == 5
        assert all(r["accountType"] == "NodeAccount" for r in rows)

    async def test_account_id_filter_scopes_count(self, repo):
        await self._seed(repo)
        flt = AccountFilter(account_id=_addr(7), limit=0)
        assert [r["accountId"] for r in await repo.query(flt)] == [_addr(7)]
        assert await repo.count(flt) == 1
        assert await repo.count(AccountFilter(account_id="ef" * 32)) == 0

    async def test_unknown_type_is_ignored(self, repo):
        await self._seed(repo)
        assert await repo.count(AccountFilter(type="NotAType")) == 25

    async def test_timestamp_range(self, repo):
        await self._seed(repo)
        rows = await repo.query(AccountFilter(start_timestamp=1010, end_timestamp=1012))
        assert [r["timestamp"] for r in rows] == [1010, 1011, 1012]

    async def test_undecodable_row_is_skipped(self, repo, db):
        await self._seed(repo, n=3)
        await db.execute("UPDATE accounts SET data = ? WHERE accountId = ?", ("{not json", _addr(1)))
        await db.commit()
        rows = await repo.query(AccountFilter(limit=0))
        assert len(rows) == 2
        assert _addr(1) not in {r["accountId"] for r in rows}
        assert await repo.count() == 3


# ── Timestamp helpers ─────────────────────────────────────────────────────

class TestTimestamps:

    async def test_get_timestamp(self, repo, account_id):
        await repo.insert(_account(account_id, 200))
        await repo.insert(_account(account_id, 100))
        assert await repo.get_timestamp(account_id) == {"timestamp": 200, "createdTimestamp": 100}
        assert await repo.get_timestamp(_addr(99)) is None

    async def test_batch(self, repo):
        for i in range(3):
            await repo.insert(_account(_addr(i), 100 + i))
        result = await repo.get_timestamps_batch([_addr(0), _addr(2), _addr(7)])
        assert set(result) == {_addr(0), _addr(2)}
        assert result[_addr(2)]["timestamp"] == 102
        assert await repo.get_timestamps_batch([]) == {}

    async def test_count_by_created_timestamp(self, repo):
        for i in range(4):
            kind = AccountType.NODE if i == 0 else AccountType.USER
            await repo.insert(_account(_addr(i), 100 + i * 10, account_type=kind))
        assert await repo.count_by_created_timestamp(100, 120) == 3
        assert await repo.count_by_created_timestamp(100, 130, "UserAccount") == 3
        assert await repo.count_by_created_timestamp(100, 130, "NodeAccount") == 1
