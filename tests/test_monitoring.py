"""Tests for the fraud monitoring service."""

from datetime import timedelta

from ledgerguard.config import MonitoringConfig
from ledgerguard.fraud.monitoring import FraudMonitoringService
from ledgerguard.storage.memory import AlertStore
from tests.conftest import NOW, make_alert


class TestRecordAlert:
    def test_non_critical_not_escalated(self, monitoring, event_sink):
        monitoring.record_alert(make_alert(severity="high"))
        event_sink.log_system_event.assert_not_called()

    def test_critical_emits_system_event(self, monitoring, event_sink):
        alert = make_alert(
            user_id="alice", alert_type="ACCOUNT_TAKEOVER", severity="critical", action="block"
        )
        monitoring.record_alert(alert)

        event_sink.log_system_event.assert_called_once()
        event = event_sink.log_system_event.call_args[0][0]
        assert event.type == "ERROR"
        assert event.message == "CRITICAL_FRAUD_ALERT"
        assert event.details["alert_id"] == alert.id
        assert event.details["user_id"] == "alice"
        assert event.details["alert_type"] == "ACCOUNT_TAKEOVER"

    def test_record_alerts(self, monitoring, alert_store):
        monitoring.record_alerts([make_alert(), make_alert()])
        assert len(alert_store) == 2


class TestQueries:
    def test_user_alerts_newest_first(self, monitoring):
        for i in range(3):
            monitoring.record_alert(make_alert(
                user_id="alice",
                alert_id=f"a-{i}",
                detected_at=NOW + timedelta(minutes=i),
            ))
        monitoring.record_alert(make_alert(user_id="bob"))

        results = monitoring.get_alerts_for_user("alice")
        assert [a.id for a in results] == ["a-2", "a-1", "a-0"]

    def test_user_alerts_limit(self, monitoring):
        for i in range(10):
            monitoring.record_alert(make_alert(detected_at=NOW + timedelta(seconds=i)))
        results = monitoring.get_alerts_for_user("user-1", limit=3)
        assert len(results) == 3
        assert results[0].detected_at == NOW + timedelta(seconds=9)

    def test_default_user_limit(self, monitoring):
        for i in range(60):
            monitoring.record_alert(make_alert(detected_at=NOW + timedelta(seconds=i)))
        assert len(monitoring.get_alerts_for_user("user-1")) == 50

    def test_out_of_order_arrival(self, monitoring):
        monitoring.record_alert(make_alert(alert_id="late", detected_at=NOW + timedelta(hours=1)))
        monitoring.record_alert(make_alert(alert_id="early", detected_at=NOW))
        assert [a.id for a in monitoring.get_alerts_for_user("user-1")] == ["late", "early"]

    def test_by_severity(self, monitoring):
        monitoring.record_alert(make_alert(severity="critical", alert_id="c-1", detected_at=NOW))
        monitoring.record_alert(make_alert(severity="low"))
        monitoring.record_alert(make_alert(
            severity="critical", alert_id="c-2", detected_at=NOW + timedelta(minutes=1)
        ))
        results = monitoring.get_alerts_by_severity("critical", limit=10)
        assert [a.id for a in results] == ["c-2", "c-1"]

    def test_clear(self, monitoring):
        monitoring.record_alert(make_alert())
        monitoring.clear()
        assert monitoring.get_alerts_for_user("user-1") == []


class TestConfiguration:
    def test_max_alerts_from_config(self, event_sink):
        service = FraudMonitoringService(
            event_sink=event_sink, config=MonitoringConfig(max_alerts=2)
        )
        for i in range(4):
            service.record_alert(make_alert(detected_at=NOW + timedelta(seconds=i)))
        assert len(service.store) == 2

    def test_explicit_store_used(self, event_sink):
        store = AlertStore()
        service = FraudMonitoringService(store=store, event_sink=event_sink)
        service.record_alert(make_alert())
        assert len(store) == 1
