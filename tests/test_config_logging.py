"""
Tests for configuration and structured logging
"""

import json
import logging

import pytest
from pydantic import ValidationError

from token_ledger.config import LedgerConfig, get_config, reload_config
from token_ledger.logging_config import JSONFormatter, setup_logging, log_action
from token_ledger.storage import InMemoryStorage
from token_ledger.system import TokenLedger


class TestConfig:
    
    def test_defaults(self):
        config = LedgerConfig()
        assert config.default_burn_fee_bps == 10
        assert config.block_blacklisted_recipients is False
        assert config.storage_backend == "memory"
    
    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TOKEN_LEDGER_DEFAULT_BURN_FEE_BPS", "25")
        monkeypatch.setenv("TOKEN_LEDGER_BLOCK_BLACKLISTED_RECIPIENTS", "true")
        config = reload_config()
        try:
            assert config.default_burn_fee_bps == 25
            assert config.block_blacklisted_recipients is True
            assert get_config() is config
        finally:
            monkeypatch.delenv("TOKEN_LEDGER_DEFAULT_BURN_FEE_BPS")
            monkeypatch.delenv("TOKEN_LEDGER_BLOCK_BLACKLISTED_RECIPIENTS")
            reload_config()
    
    @pytest.mark.parametrize("value", ["-1", "10001"])
    def test_default_fee_out_of_range_rejected_on_load(self, monkeypatch, value):
        monkeypatch.setenv("TOKEN_LEDGER_DEFAULT_BURN_FEE_BPS", value)
        with pytest.raises(ValidationError):
            LedgerConfig()
    
    def test_default_fee_bounds_accepted(self):
        assert LedgerConfig(default_burn_fee_bps=0).default_burn_fee_bps == 0
        assert LedgerConfig(default_burn_fee_bps=10000).default_burn_fee_bps == 10000
    
    def test_config_drives_ledger(self):
        ledger = TokenLedger(
            config=LedgerConfig(default_burn_fee_bps=100, block_blacklisted_recipients=True),
            storage=InMemoryStorage()
        )
        assert ledger.get_user_tier("anyone").transaction_burn_fee_bps == 100
        assert ledger.access_gate.block_blacklisted_recipients


class TestLogging:
    
    def test_json_formatter_fields(self):
        logger = logging.getLogger("token_ledger.test")
        record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, "Transfer applied", (), None)
        record.caller = "deployer"
        record.action = "transfer"
        record.extra = {"fee_bps": 10}
        
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["message"] == "Transfer applied"
        assert entry["caller"] == "deployer"
        assert entry["action"] == "transfer"
        assert entry["extra"] == {"fee_bps": 10}
        assert "resource" not in entry
    
    def test_setup_logging_replaces_handlers(self):
        logger = setup_logging("DEBUG", logger_name="token_ledger.setup_test")
        setup_logging("DEBUG", logger_name="token_ledger.setup_test")
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)
        assert logger.level == logging.DEBUG
        
        text_logger = setup_logging("INFO", log_format="text", logger_name="token_ledger.text_test")
        assert not isinstance(text_logger.handlers[0].formatter, JSONFormatter)
    
    def test_log_action_structured_fields(self):
        logger = logging.getLogger("token_ledger.action_test")
        logger.setLevel(logging.INFO)
        captured = []
        
        class ListHandler(logging.Handler):
            def emit(self, record):
                captured.append(record)
        
        handler = ListHandler()
        logger.addHandler(handler)
        try:
            log_action(logger, "info", "Admin pause applied", caller="deployer",
                       action="pause", resource="CTX")
            log_action(logger, "debug", "filtered out")
        finally:
            logger.removeHandler(handler)
        
        assert len(captured) == 1
        assert captured[0].caller == "deployer"
        assert captured[0].action == "pause"
        assert captured[0].resource == "CTX"
    
    def test_rejected_transfer_logged_as_warning(self, caplog):
        ledger = TokenLedger(config=LedgerConfig(), storage=InMemoryStorage())
        ledger.initialize("deployer", "CTX", "CTX", 1000)
        with caplog.at_level(logging.WARNING, logger="token_ledger.ledger"):
            with pytest.raises(ValueError):
                ledger.transfer("user1", "user2", 5)
        assert any("Transfer rejected" in r.getMessage() for r in caplog.records)
