"""test_transaction_api.py - Integration tests for /api/transaction."""

import pytest

pytestmark = pytest.mark.asyncio

ALICE = "aa" * 32
CAROL = "cc" * 32


async def _seed(storage, make_tx):
    txs = [
        make_tx(1, timestamp=1000, cycle=1, fee=0.1),
        make_tx(2, timestamp=2000, cycle=2, tx_type="message", tx_from=CAROL),
        make_tx(3, timestamp=3000, cycle=2, tx_type="deposit_stake"),
        make_tx(4, timestamp=4000, cycle=3, tx_type="withdraw_stake"),
        make_tx(5, timestamp=5000, cycle=4),
    ]
    result = await storage.transactions.bulk_insert(txs)
    assert result is True


class TestTransactionApi:

    async def test_no_parameters(self, client):
        body = client.get("/api/transaction").json()
        assert body["success"] is False

    async def test_count(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?count=2").json()
        assert body["totalTransactions"] == 5
        assert [t["timestamp"] for t in body["transactions"]] == [5000, 4000]

    async def test_by_tx_id(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get(f"/api/transaction?txId={3:064x}").json()
        assert body["transactions"][0]["transactionType"] == "deposit_stake"

    async def test_missing_tx_id(self, client):
        body = client.get(f"/api/transaction?txId={'ef' * 32}").json()
        assert body == {"success": False, "error": "The transaction is not found!"}

    async def test_staking_search(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?txType=stakingTxs").json()
        assert body["totalTransactions"] == 2

    async def test_invalid_search_type(self, client):
        body = client.get("/api/transaction?txType=nope").json()
        assert body == {"success": False, "error": "Invalid transaction search type"}

    async def test_account_filter(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get(f"/api/transaction?accountId={CAROL}").json()
        assert [t["timestamp"] for t in body["transactions"]] == [2000]

    async def test_before_and_after_cursors(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        before = client.get("/api/transaction?beforeTimestamp=3000").json()
        assert [t["timestamp"] for t in before["transactions"]] == [2000, 1000]
        after = client.get("/api/transaction?afterTimestamp=3000").json()
        assert [t["timestamp"] for t in after["transactions"]] == [4000, 5000]

    async def test_both_cursors_rejected(self, client):
        body = client.get("/api/transaction?beforeTimestamp=3000&afterTimestamp=1000").json()
        assert body == {"success": False, "error": "Invalid timestamp range"}

    async def test_cycle_range(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?startCycle=2&endCycle=3").json()
        assert [t["timestamp"] for t in body["transactions"]] == [2000, 3000, 4000]
        assert body["totalPages"] == 1

    async def test_total_txs_detail(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?totalTxsDetail=true").json()
        assert body == {
            "success": True,
            "totalTransactions": 5,
            "totalTransferTxs": 2,
            "totalMessageTxs": 1,
            "totalDepositStakeTxs": 1,
            "totalWithdrawStakeTxs": 1,
        }

    async def test_timestamp_range(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?startTimestamp=1500&endTimestamp=3500").json()
        assert body["success"] is True
        assert body["totalTransactions"] == 2
        assert [t["timestamp"] for t in body["transactions"]] == [2000, 3000]

    async def test_timestamp_range_with_type(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?startTimestamp=1000&endTimestamp=5000&txType=message").json()
        assert [t["timestamp"] for t in body["transactions"]] == [2000]

    async def test_reversed_timestamp_range(self, client):
        body = client.get("/api/transaction?startTimestamp=3500&endTimestamp=1500").json()
        assert body == {"success": False, "error": "Invalid timestamp range"}

    async def test_limit_is_count(self, storage, client, make_tx):
        await _seed(storage, make_tx)
        body = client.get("/api/transaction?limit=2").json()
        assert body["totalTransactions"] == 5
        assert [t["timestamp"] for t in body["transactions"]] == [5000, 4000]
