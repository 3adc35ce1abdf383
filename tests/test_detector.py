"""Tests for the fraud detector orchestration."""

import logging
from datetime import timedelta

from ledgerguard.fraud.detector import FraudDetector
from ledgerguard.models import FraudRule
from tests.conftest import NOW, make_alert, make_history, make_pattern


def _raising_check(current, history):
    raise RuntimeError("rule exploded")


def _always_block(current, history):
    return make_alert(user_id=current.user_id, alert_type="ALWAYS", severity="high", action="block")


class TestAnalyzeTransaction:
    def test_clean_transaction(self, detector):
        history = make_history(10, amount=120)
        result = detector.analyze_transaction(make_pattern(amount=95), history)
        assert result.approved
        assert result.alerts == []
        assert result.risk_score == 0

    def test_new_account_high_value_blocked(self, detector):
        result = detector.analyze_transaction(make_pattern(amount=10000, timestamp=NOW), [])
        assert result.approved is False
        alert = next(a for a in result.alerts if a.alert_type == "NEW_ACCOUNT_HIGH_VALUE")
        assert alert.severity == "critical"
        assert result.risk_score == 1.0

    def test_flag_only_is_approved(self, detector):
        history = make_history(5, amount=100, location="Madrid")
        result = detector.analyze_transaction(make_pattern(amount=5200, location="Madrid"), history)
        assert [a.alert_type for a in result.alerts] == ["LARGE_AMOUNT"]
        assert result.approved

    def test_multiple_signals_score_above_half(self, detector):
        history = make_history(5, amount=100, location="Madrid", device="iphone-1")
        current = make_pattern(amount=150, location="Lagos", device="android-7")
        result = detector.analyze_transaction(current, history)
        assert {a.alert_type for a in result.alerts} == {"UNUSUAL_LOCATION", "UNUSUAL_DEVICE"}
        assert result.risk_score > 0.5
        assert result.approved

    def test_adding_signal_never_lowers_score(self, detector):
        history = make_history(5, amount=100, location="Madrid")
        clean = detector.analyze_transaction(make_pattern(amount=150, location="Madrid"), history)
        noisy = detector.analyze_transaction(
            make_pattern(amount=2000, location="Lagos"), history
        )
        assert noisy.risk_score >= clean.risk_score

    def test_block_iff_not_approved(self, detector):
        cases = [
            (make_pattern(amount=95), make_history(10, amount=120)),
            (make_pattern(amount=10000), []),
            (make_pattern(amount=3000), make_history(10, amount=120)),
            (make_pattern(amount=100), make_history(51, minutes_apart=10)),
        ]
        for current, history in cases:
            result = detector.analyze_transaction(current, history)
            has_block = any(a.action == "block" for a in result.alerts)
            assert result.approved is not has_block


class TestRuleManagement:
    def test_disabled_rule_skipped(self, detector):
        detector.disable_rule("NEW_ACCOUNT_HIGH_VALUE")
        detector.disable_rule("ROUND_AMOUNT")
        result = detector.analyze_transaction(make_pattern(amount=10000), [])
        assert result.approved
        assert result.alerts == []

    def test_custom_rule_runs(self, detector):
        detector.add_custom_rule(FraudRule(
            id="ALWAYS", name="Always block", severity="high", action="block", check=_always_block,
        ))
        result = detector.analyze_transaction(make_pattern(amount=10), make_history(3))
        assert not result.approved
        assert "ALWAYS" in [r.id for r in detector.get_active_rules()]

    def test_failing_rule_isolated(self, detector, caplog):
        detector.add_custom_rule(FraudRule(
            id="BROKEN", name="Broken", severity="low", action="monitor", check=_raising_check,
        ))
        with caplog.at_level(logging.ERROR, logger="ledgerguard.fraud.detector"):
            result = detector.analyze_transaction(make_pattern(amount=10000), [])
        assert "NEW_ACCOUNT_HIGH_VALUE" in [a.alert_type for a in result.alerts]
        assert "Error in fraud rule BROKEN" in caplog.text

    def test_detectors_share_registry(self, registry):
        first = FraudDetector(registry=registry)
        second = FraudDetector(registry=registry)
        first.disable_rule("ROUND_AMOUNT")
        assert "ROUND_AMOUNT" not in [r.id for r in second.get_active_rules()]

    def test_default_registry_per_detector(self):
        first = FraudDetector()
        second = FraudDetector()
        first.disable_rule("ROUND_AMOUNT")
        assert "ROUND_AMOUNT" in [r.id for r in second.get_active_rules()]


class TestSecurityEvents:
    def test_blocked_emits_event(self, detector, event_sink):
        detector.analyze_transaction(make_pattern(amount=10000), [])
        event_sink.log_security_event.assert_called_once()
        event = event_sink.log_security_event.call_args[0][0]
        assert event.type == "TRANSACTION_BLOCKED"
        assert event.user_id == "user-1"
        assert "NEW_ACCOUNT_HIGH_VALUE" in event.details["blocking_alerts"]

    def test_approved_emits_nothing(self, detector, event_sink):
        detector.analyze_transaction(make_pattern(amount=95), make_history(10, amount=120))
        event_sink.log_security_event.assert_not_called()

    def test_history_window_uses_current_timestamp(self, detector):
        later = NOW + timedelta(days=3)
        result = detector.analyze_transaction(
            make_pattern(amount=100, timestamp=later), make_history(60, minutes_apart=10)
        )
        assert "HIGH_VELOCITY" not in [a.alert_type for a in result.alerts]
