"""Alert recording and querying.

Every recorded alert lands in the AlertStore. Critical alerts are also
reported to the event sink as a CRITICAL_FRAUD_ALERT system event so the
host can page someone.
"""

import logging
from typing import Iterable, Optional

from ledgerguard.config import MonitoringConfig
from ledgerguard.fraud.alerts import as_utc
from ledgerguard.models import FraudAlert, SystemEvent
from ledgerguard.observability.events import EventSink, LoggingEventSink
from ledgerguard.storage.memory import AlertStore

logger = logging.getLogger(__name__)


def _newest_first(alerts: list[FraudAlert], limit: int) -> list[FraudAlert]:
    ordered = sorted(alerts, key=lambda a: as_utc(a.detected_at), reverse=True)
    return ordered[:max(limit, 0)]


class FraudMonitoringService:
    def __init__(
        self,
        store: Optional[AlertStore] = None,
        event_sink: Optional[EventSink] = None,
        config: Optional[MonitoringConfig] = None,
    ) -> None:
        self.config = config or MonitoringConfig()
        self.store = store if store is not None else AlertStore(self.config.max_alerts)
        self.event_sink = event_sink if event_sink is not None else LoggingEventSink()

    def record_alert(self, alert: FraudAlert) -> None:
        self.store.add(alert)
        logger.info(
            "Fraud alert recorded",
            extra={
                "alert_id": alert.id,
                "user_id": alert.user_id,
                "alert_type": alert.alert_type,
                "severity": alert.severity,
            },
        )

        if alert.severity == "critical":
            self.event_sink.log_system_event(SystemEvent(
                type="ERROR",
                message="CRITICAL_FRAUD_ALERT",
                details={
                    "alert_id": alert.id,
                    "user_id": alert.user_id,
                    "alert_type": alert.alert_type,
                    "description": alert.description,
                },
            ))

    def record_alerts(self, alerts: Iterable[FraudAlert]) -> None:
        for alert in alerts:
            self.record_alert(alert)

    def get_alerts_for_user(self, user_id: str, limit: Optional[int] = None) -> list[FraudAlert]:
        """Newest first, at most `limit` (default from config)."""
        if limit is None:
            limit = self.config.user_alert_limit
        return _newest_first(self.store.get_by_user(user_id), limit)

    def get_alerts_by_severity(self, severity: str, limit: Optional[int] = None) -> list[FraudAlert]:
        if limit is None:
            limit = self.config.severity_alert_limit
        return _newest_first(self.store.get_by_severity(severity), limit)

    def clear(self) -> None:
        self.store.clear()
