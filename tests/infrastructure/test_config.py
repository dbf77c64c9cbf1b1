"""Tests for configuration and logging setup."""

import json
import logging
from decimal import Decimal

import pytest

from tms.infrastructure.config import Config
from tms.infrastructure.log_setup import StructuredFormatter, setup_logging


class TestConfig:

    def test_defaults(self, monkeypatch):
        for name in ("TMS_DEFAULT_EVALUATED_PRICE", "TMS_DEFAULT_PROVINCE", "TMS_SHARE_LINK_DAYS"):
            monkeypatch.delenv(name, raising=False)
        config = Config()
        assert config.DEFAULT_EVALUATED_PRICE == Decimal("30.00")
        assert config.DEFAULT_PROVINCE == "QC"
        assert config.SHARE_LINK_DAYS == 30

    def test_data_files_follow_data_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TMS_DATA_DIR", str(tmp_path))
        config = Config()
        assert config.orders_file == tmp_path / "orders.json"
        assert config.candidates_file == tmp_path / "candidates.json"

    @pytest.mark.parametrize("raw", ["abc", "0", "-3"])
    def test_invalid_price_rejected(self, monkeypatch, raw):
        monkeypatch.setenv("TMS_DEFAULT_CV_ONLY_PRICE", raw)
        with pytest.raises(ValueError, match="TMS_DEFAULT_CV_ONLY_PRICE"):
            Config()

    def test_invalid_share_days_rejected(self, monkeypatch):
        monkeypatch.setenv("TMS_SHARE_LINK_DAYS", "soon")
        with pytest.raises(ValueError, match="must be an integer"):
            Config()


class TestLogging:

    def test_setup_is_idempotent(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TMS_LOG_FILE", str(tmp_path / "tms.log"))
        logger = logging.getLogger("tms")
        before = list(logger.handlers)
        try:
            setup_logging(Config())
            count = len(logger.handlers)
            setup_logging(Config())
            assert len(logger.handlers) == count
        finally:
            for handler in list(logger.handlers):
                if handler not in before:
                    logger.removeHandler(handler)
                    handler.close()

    def test_structured_formatter(self):
        record = logging.LogRecord("tms.test", logging.INFO, __file__, 1, "order #%s submitted", (7,), None)
        entry = json.loads(StructuredFormatter().format(record))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "tms.test"
        assert entry["message"] == "order #7 submitted"
