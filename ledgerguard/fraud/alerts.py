"""Shared helpers for the built-in fraud rules."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from ledgerguard.models import FraudAlert, RuleAction, Severity, TransactionPattern, new_id


def as_utc(moment: datetime) -> datetime:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def user_history(
    current: TransactionPattern,
    history: list[TransactionPattern],
) -> list[TransactionPattern]:
    return [p for p in history if p.user_id == current.user_id]


def within_window(
    current: TransactionPattern,
    history: list[TransactionPattern],
    window: timedelta,
) -> list[TransactionPattern]:
    """Patterns strictly after `current.timestamp - window`, up to the current one."""
    now = as_utc(current.timestamp)
    start = now - window
    return [p for p in history if start < as_utc(p.timestamp) <= now]


def build_alert(
    current: TransactionPattern,
    alert_type: str,
    severity: Severity,
    action: RuleAction,
    description: str,
    confidence: float,
    metadata: Optional[dict[str, Any]] = None,
) -> FraudAlert:
    return FraudAlert(
        id=new_id(f"ALERT_{alert_type}"),
        user_id=current.user_id,
        account_id=current.account_id,
        alert_type=alert_type,
        severity=severity,
        description=description,
        confidence=max(0.0, min(1.0, confidence)),
        metadata=metadata or {},
        action=action,
    )
