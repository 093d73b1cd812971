"""
server.py - Explorer API server entry point.

Single-process server combining:
 - SQLite persistent storage via StorageManager
 - Bulk loader and stats aggregator
 - REST API (FastAPI on uvicorn, port 6001)

Usage:
    python -m explorer.server [--host 127.0.0.1] [--port 6001] [--db-path data/explorer.db]
    python -m explorer.server --load-accounts accounts.json --load-transactions txs.json
"""

import argparse
import asyncio
import json
import logging
import os
from typing import Optional

from fastapi import FastAPI
import uvicorn

from explorer import __version__
from explorer.aggregation import StatsAggregator
from explorer.config import ExplorerConfig, load_config
from explorer.loader import BulkLoader
from explorer.routers import register_all_routers
from explorer.storage import StorageManager

logger = logging.getLogger("server")


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)-10s] %(levelname)-5s %(message)s",
        datefmt="%H:%M:%S",
    )


class ExplorerServer:
    """Owns the storage, loader and aggregator, and serves the REST API."""

    def __init__(self, config: Optional[ExplorerConfig] = None):
        self.config = config or ExplorerConfig()

        # Storage + loader are initialized async in start()
        self.storage: Optional[StorageManager] = None
        self.loader: Optional[BulkLoader] = None
        self.aggregator = StatsAggregator(self.config)

        self.app = FastAPI(title="Liberdus Explorer", version=__version__)
        self.app.state.server = self
        register_all_routers(self.app)
        self._uvicorn_server: Optional[uvicorn.Server] = None

    async def init_storage(self):
        """Open the database and wire up the loader. Fails loudly if storage is unavailable."""
        db_dir = os.path.dirname(self.config.db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self.storage = StorageManager(self.config.db_path)
        await self.storage.initialize()
        self.loader = BulkLoader(self.storage.accounts, self.storage.transactions, self.config)
        logger.info("Services initialized (db=%s)", self.config.db_path)

    async def load_files(self, accounts_path: str = "", transactions_path: str = ""):
        """Bulk load AccountsCopy / raw transaction dumps (JSON arrays)."""
        if accounts_path:
            with open(accounts_path, encoding="utf-8") as fh:
                result = await self.loader.load_accounts(json.load(fh))
            logger.info("Accounts file %s: %s", accounts_path, result)
        if transactions_path:
            with open(transactions_path, encoding="utf-8") as fh:
                result = await self.loader.load_transactions(json.load(fh))
            logger.info("Transactions file %s: %s", transactions_path, result)

    async def start(self):
        await self.init_storage()
        config = uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level="debug" if self.config.verbose else "info",
        )
        self._uvicorn_server = uvicorn.Server(config)
        logger.info("REST API starting on port %d", self.config.port)
        try:
            await self._uvicorn_server.serve()
        finally:
            await self.stop()

    async def stop(self):
        if self._uvicorn_server:
            self._uvicorn_server.should_exit = True
        if self.storage:
            await self.storage.close()
            self.storage = None


async def _run_loads(server: ExplorerServer, accounts_path: str, transactions_path: str):
    await server.init_storage()
    try:
        await server.load_files(accounts_path, transactions_path)
    finally:
        await server.stop()


def main():
    """CLI entry point for the explorer server."""
    parser = argparse.ArgumentParser(description="Liberdus Explorer API Server")
    parser.add_argument("--config", default=None, help="Path to config.json (default: ./config.json)")
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="REST API port (overrides config)")
    parser.add_argument("--db-path", default=None, help="SQLite database path (overrides config)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--load-accounts", default="", help="Load an AccountsCopy JSON file and exit")
    parser.add_argument("--load-transactions", default="", help="Load a transactions JSON file and exit")
    args = parser.parse_args()

    config = load_config(args.config)
    overrides = {
        "host": args.host,
        "port": args.port,
        "db_path": args.db_path,
        "verbose": True if args.verbose else None,
    }
    config = config.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    setup_logging(config.verbose)

    server = ExplorerServer(config)

    if args.load_accounts or args.load_transactions:
        asyncio.run(_run_loads(server, args.load_accounts, args.load_transactions))
        return

    logger.info("=" * 60)
    logger.info("  Liberdus Explorer Server")
    logger.info("  REST API:    http://%s:%d", config.host, config.port)
    logger.info("  Database:    %s", config.db_path)
    logger.info("=" * 60)

    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
