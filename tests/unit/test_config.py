"""test_config.py - Defaults, config file and environment layering."""

import json

import pytest
from pydantic import ValidationError

from explorer.config import ExplorerConfig, load_config


class TestLoadConfig:

    def test_defaults_without_file(self, tmp_path):
        cfg = load_config(str(tmp_path / "missing.json"), env={})
        assert cfg == ExplorerConfig()
        assert cfg.bulk_chunk_size == 1000
        assert cfg.items_per_page == 10
        assert cfg.genesis_supply == 100_000_000

    def test_file_values(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": 7000, "max_accounts_per_request": 50}))
        cfg = load_config(str(path), env={})
        assert cfg.port == 7000
        assert cfg.max_accounts_per_request == 50

    def test_env_overrides_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"port": 7000}))
        cfg = load_config(str(path), env={"EXPLORER_PORT": "7100", "EXPLORER_VERBOSE": "true"})
        assert cfg.port == 7100
        assert cfg.verbose is True

    def test_unreadable_file_is_ignored(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{broken")
        assert load_config(str(path), env={}) == ExplorerConfig()

    def test_invalid_value_raises(self, tmp_path):
        with pytest.raises(ValidationError):
            load_config(str(tmp_path / "missing.json"), env={"EXPLORER_PORT": "not-a-port"})
