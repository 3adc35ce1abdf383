"""Tests for configuration loading, logging setup and the event sink."""

import io
import json
import logging
from pathlib import Path

import pytest

from ledgerguard.config import CoreConfig, load_config
from ledgerguard.exceptions import ConfigurationError
from ledgerguard.fraud.profile import build_user_profile
from ledgerguard.fraud.registry import default_registry
from ledgerguard.models import SecurityEvent, SystemEvent
from ledgerguard.observability.events import LoggingEventSink
from ledgerguard.observability.logging import JSON_FIELDS, LedgerJsonFormatter, setup_logging
from tests.conftest import NOW, make_history, make_pattern

SAMPLE_CONFIG = Path(__file__).resolve().parent.parent / "data" / "rules_config.json"


class TestLoadConfig:
    def test_defaults_without_path(self):
        config = load_config()
        assert config.fraud.large_amount_multiplier == 50
        assert config.validation.high_value_threshold == 1000
        assert config.monitoring.max_alerts is None

    def test_missing_file_uses_defaults(self, tmp_path):
        assert load_config(tmp_path / "nope.json") == CoreConfig()

    def test_sample_file_overrides_subset(self):
        config = load_config(SAMPLE_CONFIG)
        assert config.fraud.large_amount_multiplier == 20
        assert config.fraud.rapid_min_count == 4
        assert config.fraud.velocity_max_count == 50
        assert config.ledger.overdraft_limit == 5000
        assert config.monitoring.max_alerts == 10000

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_wrong_types(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"fraud": {"rapid_min_count": "many"}}))
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_thresholds_reach_rules(self):
        config = load_config(SAMPLE_CONFIG)
        registry = default_registry(config.fraud)
        merchant_rule = registry.get_rule("SUSPICIOUS_MERCHANT")
        assert merchant_rule.evaluate(make_pattern(merchant_category="GAMBLING"), []) is not None
        assert merchant_rule.evaluate(make_pattern(merchant_category="PRECIOUS_METALS"), []) is None


class TestLogging:
    def test_json_formatter_fields(self):
        formatter = LedgerJsonFormatter(JSON_FIELDS)
        record = logging.LogRecord("ledgerguard.test", logging.INFO, __file__, 1, "hello", None, None)
        record.user_id = "user-1"
        payload = json.loads(formatter.format(record))
        assert payload["message"] == "hello"
        assert payload["level"] == "INFO"
        assert payload["service"] == "ledgerguard"
        assert payload["user_id"] == "user-1"

    def test_timestamp_comes_from_record(self):
        formatter = LedgerJsonFormatter(JSON_FIELDS, service="payments")
        record = logging.LogRecord("ledgerguard.test", logging.WARNING, __file__, 1, "late", None, None)
        record.created = NOW.timestamp()
        payload = json.loads(formatter.format(record))
        assert payload["timestamp"] == NOW.isoformat()
        assert payload["service"] == "payments"

    def test_setup_logging_writes_to_stream(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        stream = io.StringIO()
        try:
            setup_logging("INFO", stream=stream)
            logging.getLogger("ledgerguard.test").info("ready", extra={"user_id": "user-1"})
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
        payload = json.loads(stream.getvalue())
        assert payload["message"] == "ready"
        assert payload["user_id"] == "user-1"

    def test_setup_logging_installs_single_handler(self):
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("DEBUG", json_format=True)
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, LedgerJsonFormatter)
            assert root.level == logging.DEBUG
            setup_logging("WARNING", json_format=False)
            assert not isinstance(root.handlers[0].formatter, LedgerJsonFormatter)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestLoggingEventSink:
    def test_error_system_event_logged_at_error(self, caplog):
        sink = LoggingEventSink()
        with caplog.at_level(logging.INFO, logger="ledgerguard.events"):
            sink.log_system_event(SystemEvent(type="ERROR", message="CRITICAL_FRAUD_ALERT"))
            sink.log_system_event(SystemEvent(type="INFO", message="RULES_RELOADED"))
        levels = {r.getMessage(): r.levelno for r in caplog.records}
        assert levels["CRITICAL_FRAUD_ALERT"] == logging.ERROR
        assert levels["RULES_RELOADED"] == logging.INFO

    def test_security_event_logged_as_warning(self, caplog):
        sink = LoggingEventSink()
        with caplog.at_level(logging.WARNING, logger="ledgerguard.events"):
            sink.log_security_event(SecurityEvent(
                type="TRANSACTION_BLOCKED", message="blocked", user_id="user-1"
            ))
        assert caplog.records[0].levelno == logging.WARNING
        assert caplog.records[0].user_id == "user-1"


class TestUserProfile:
    def test_empty_history(self):
        profile = build_user_profile("user-1", [])
        assert profile.transaction_count == 0
        assert profile.first_seen is None

    def test_summarizes_user_history(self):
        history = make_history(3, amount=100, location="Madrid", device="iphone-1") + [
            make_pattern(amount=400, location="Paris", merchant_category="GROCERY"),
            make_pattern(user_id="someone-else", amount=9999, location="Lagos"),
        ]
        profile = build_user_profile("user-1", history)
        assert profile.transaction_count == 4
        assert profile.avg_transaction_amount == pytest.approx(175)
        assert profile.usual_locations == ["Madrid", "Paris"]
        assert profile.usual_devices == ["iphone-1"]
        assert profile.usual_merchants == ["GROCERY"]
        assert profile.first_seen < NOW

    def test_collects_ip_addresses(self):
        history = [
            make_pattern(ip_address="10.0.0.1"),
            make_pattern(ip_address="10.0.0.2"),
            make_pattern(ip_address="10.0.0.1"),
            make_pattern(),
        ]
        profile = build_user_profile("user-1", history)
        assert profile.usual_ip_addresses == ["10.0.0.1", "10.0.0.2"]
