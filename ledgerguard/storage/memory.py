"""In-memory fraud alert log.

Alerts are kept in arrival order. By default nothing is evicted; with
max_alerts set the log becomes a ring buffer that drops the oldest alerts
first. All data lives in memory and is lost on restart, so long-term
retention belongs to the host's persistence layer.
"""

import logging
import threading
from collections import deque
from typing import Deque, List, Optional

from ledgerguard.models import FraudAlert

logger = logging.getLogger(__name__)


class AlertStore:
    """Thread-safe in-memory store for fraud alerts."""

    def __init__(self, max_alerts: Optional[int] = None) -> None:
        self._lock = threading.RLock()
        self._alerts: Deque[FraudAlert] = deque(maxlen=max_alerts)
        self.max_alerts = max_alerts
        self._eviction_logged = False

    def add(self, alert: FraudAlert) -> None:
        with self._lock:
            if self.max_alerts is not None and len(self._alerts) >= self.max_alerts:
                if not self._eviction_logged:
                    logger.warning(
                        "Alert log full, evicting oldest alerts",
                        extra={"max_alerts": self.max_alerts},
                    )
                    self._eviction_logged = True
            self._alerts.append(alert)

    def get_by_user(self, user_id: str) -> List[FraudAlert]:
        """Return a user's alerts in arrival order."""
        with self._lock:
            return [a for a in self._alerts if a.user_id == user_id]

    def get_by_severity(self, severity: str) -> List[FraudAlert]:
        with self._lock:
            return [a for a in self._alerts if a.severity == severity]

    def get_all(self) -> List[FraudAlert]:
        with self._lock:
            return list(self._alerts)

    def clear(self) -> None:
        with self._lock:
            self._alerts.clear()
            self._eviction_logged = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._alerts)
