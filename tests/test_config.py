"""Tests for configuration loading."""

import os
from unittest.mock import patch

import pytest

from quoteboard.config import Setting, load_setting, parse_setting
from quoteboard.errors import ConfigError

CONFIG_YAML = """
long_port:
  app_key: key
  app_secret: secret
  access_token: token
simulator:
  update_interval: 0.25
stock:
  - symbol: 700.HK
    name: Tencent
    source: long_port
  - symbol: AAPL.US
    name: Apple
    source: simulator
"""


class TestLoadSetting:
    def test_load_full_document(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(CONFIG_YAML, encoding="utf-8")

        with patch.dict(os.environ, {}, clear=True):
            setting = load_setting(path)

        assert setting.long_port.app_key == "key"
        assert setting.long_port.enable_overnight is True
        assert setting.massive is None
        assert setting.simulator.update_interval == 0.25
        assert [(s.symbol, s.source) for s in setting.stock] == [
            ("700.HK", "long_port"),
            ("AAPL.US", "simulator"),
        ]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_setting(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("stock: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid YAML"):
            load_setting(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_setting(path)

    def test_empty_file_is_empty_setting(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        with patch.dict(os.environ, {}, clear=True):
            setting = load_setting(path)
        assert setting.stock == []
        assert setting.long_port is None


class TestParseSetting:
    def test_duplicate_symbol_rejected(self):
        raw = {
            "stock": [
                {"symbol": "AAPL", "source": "simulator"},
                {"symbol": "AAPL", "source": "massive"},
            ]
        }
        with pytest.raises(ConfigError, match="more than once"):
            parse_setting(raw)

    def test_incomplete_credentials_rejected(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigError):
                parse_setting({"long_port": {"app_key": "only-key"}})

    def test_entry_requires_source(self):
        with pytest.raises(ConfigError):
            parse_setting({"stock": [{"symbol": "AAPL"}]})

    def test_massive_key_from_environment(self):
        with patch.dict(os.environ, {"MASSIVE_API_KEY": "env-key"}, clear=True):
            setting = parse_setting({"massive": {"poll_interval": 5}})
        assert setting.massive.api_key == "env-key"
        assert setting.massive.poll_interval == 5

    def test_blank_massive_key_ignored(self):
        with patch.dict(os.environ, {"MASSIVE_API_KEY": "   "}, clear=True):
            setting = parse_setting({})
        assert setting.massive is None

    def test_longport_from_environment(self):
        env = {
            "LONGPORT_APP_KEY": "k",
            "LONGPORT_APP_SECRET": "s",
            "LONGPORT_ACCESS_TOKEN": "t",
        }
        with patch.dict(os.environ, env, clear=True):
            setting = parse_setting(None)
        assert setting.long_port.access_token == "t"

    def test_partial_longport_environment_ignored(self):
        with patch.dict(os.environ, {"LONGPORT_APP_KEY": "k"}, clear=True):
            setting = parse_setting({})
        assert setting.long_port is None

    def test_blocks_are_optional(self):
        assert Setting().stock == []
