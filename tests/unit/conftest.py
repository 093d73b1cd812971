"""Shared fixtures for the explorer unit tests."""

import time

import aiosqlite
import pytest
import pytest_asyncio

from explorer.config import ExplorerConfig
from explorer.storage import SCHEMA_SQL, SCHEMA_VERSION


# ── Fixtures ────────────────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def db():
    conn = await aiosqlite.connect(":memory:")
    await conn.executescript(SCHEMA_SQL)
    await conn.execute(
        "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
        (SCHEMA_VERSION, time.time()),
    )
    await conn.commit()
    yield conn
    await conn.close()


@pytest.fixture
def config():
    return ExplorerConfig(db_path=":memory:")


@pytest.fixture
def account_id():
    """A valid-format 64-hex account address."""
    return "ab" * 32
