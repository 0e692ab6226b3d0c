import sys
import os
import logging

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from config import DisputePolicy, EngineConfig, LookupStrategy
from errors import ConfigError


class TestEngineConfig:
    def test_defaults(self):
        config = EngineConfig.from_env({})
        assert config == EngineConfig()
        assert config.lookup_strategy is LookupStrategy.SCAN
        assert config.dispute_policy is DisputePolicy.REQUIRE_AVAILABLE
        assert config.verify_invariants is True
        assert config.log_level == logging.WARNING

    def test_from_env(self):
        config = EngineConfig.from_env({
            "PAYMENTS_LOOKUP": "index",
            "PAYMENTS_DISPUTE_POLICY": " Allow_Negative ",
            "PAYMENTS_VERIFY_INVARIANTS": "no",
            "PAYMENTS_LOG_LEVEL": "debug",
        })
        assert config.lookup_strategy is LookupStrategy.INDEX
        assert config.dispute_policy is DisputePolicy.ALLOW_NEGATIVE
        assert config.verify_invariants is False
        assert config.log_level == logging.DEBUG

    def test_reads_process_environment(self, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOOKUP", "index")
        assert EngineConfig.from_env().lookup_strategy is LookupStrategy.INDEX

    @pytest.mark.parametrize("name, value", [
        ("PAYMENTS_LOOKUP", "btree"),
        ("PAYMENTS_DISPUTE_POLICY", "sometimes"),
        ("PAYMENTS_VERIFY_INVARIANTS", "maybe"),
        ("PAYMENTS_LOG_LEVEL", "LOUD"),
    ])
    def test_invalid_values(self, name, value):
        with pytest.raises(ConfigError):
            EngineConfig.from_env({name: value})

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            EngineConfig.from_env({"PAYMENTS_LOOKUP": "btree"})
