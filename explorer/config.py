"""Explorer configuration: defaults, optional config.json, then EXPLORER_* env vars."""

import json
import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel

logger = logging.getLogger("config")

ENV_PREFIX = "EXPLORER_"
DEFAULT_CONFIG_FILE = "config.json"


class ExplorerConfig(BaseModel):
    db_path: str = "data/explorer.db"
    host: str = "127.0.0.1"
    port: int = 6001
    verbose: bool = False

    # Bulk loader
    bulk_chunk_size: int = 1000

    # Aggregation
    genesis_supply: float = 100_000_000

    # API paging / request limits
    items_per_page: int = 10
    max_accounts_per_request: int = 100
    max_transactions_per_request: int = 100
    max_stats_per_request: int = 1000
    max_between_cycles_per_request: int = 100


def load_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> ExplorerConfig:
    """Build the config from defaults, a JSON file (if present) and the environment.

    A missing file is fine; an unreadable one is logged and ignored. Env vars
    are named ``EXPLORER_<FIELD>`` (e.g. ``EXPLORER_BULK_CHUNK_SIZE``).
    """
    values: dict = {}
    path = path or DEFAULT_CONFIG_FILE
    try:
        with open(path, encoding="utf-8") as fh:
            file_values = json.load(fh)
        if isinstance(file_values, dict):
            values.update(file_values)
        else:
            logger.warning("Ignoring %s: top-level value is not an object", path)
    except FileNotFoundError:
        pass
    except (OSError, ValueError) as e:
        logger.warning("Failed to parse config file %s: %s", path, e)

    env = os.environ if env is None else env
    for name in ExplorerConfig.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in env:
            values[name] = env[key]

    return ExplorerConfig(**values)
