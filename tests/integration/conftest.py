"""
Shared fixtures for explorer API integration tests.

Provides an ExplorerServer backed by in-memory SQLite and a FastAPI
TestClient bound to its app, plus record factories for seeding.
"""

import pytest
import pytest_asyncio

from explorer.config import ExplorerConfig
from explorer.server import ExplorerServer


# ── Record factories ──────────────────────────────────────────────────────

def _make_account(n: int, timestamp: int = 1000, cycle: int = 1, account_type: str = "UserAccount") -> dict:
    return {
        "accountId": f"{n:064x}",
        "cycleNumber": cycle,
        "timestamp": timestamp,
        "hash": f"hash-{n}",
        "isGlobal": False,
        "accountType": account_type,
        "data": {"type": account_type, "id": f"{n:064x}"},
    }


def _make_tx(n: int, timestamp: int = 1000, cycle: int = 1, tx_type: str = "transfer",
            tx_from: str = "aa" * 32, tx_to: str = "bb" * 32, fee: float = 0.0) -> dict:
    return {
        "txId": f"{n:064x}",
        "cycleNumber": cycle,
        "timestamp": timestamp,
        "transactionType": tx_type,
        "txFrom": tx_from,
        "txTo": tx_to,
        "txFee": fee,
        "data": {"type": tx_type, "from": tx_from, "to": tx_to},
        "originalTxData": {},
    }


# ── Fixtures ──────────────────────────────────────────────────────────────

@pytest.fixture
def config():
    return ExplorerConfig(db_path=":memory:", genesis_supply=1000)


@pytest_asyncio.fixture
async def server(config):
    srv = ExplorerServer(config)
    await srv.init_storage()
    yield srv
    await srv.stop()


@pytest.fixture
def storage(server):
    return server.storage


@pytest.fixture
def client(server):
    from fastapi.testclient import TestClient
    return TestClient(server.app)


@pytest.fixture
def make_account():
    return _make_account


@pytest.fixture
def make_tx():
    return _make_tx
