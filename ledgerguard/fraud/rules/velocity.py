"""Transaction frequency rules.

RAPID_TRANSACTIONS catches short bursts on a single account (card testing,
scripted transfers). HIGH_VELOCITY catches sustained volume across all of
a user's accounts over a day.
"""

from datetime import timedelta
from typing import Optional

from ledgerguard.fraud.alerts import build_alert, user_history, within_window
from ledgerguard.models import FraudAlert, RuleAction, Severity, TransactionPattern


def check_rapid_transactions(
    current: TransactionPattern,
    history: list[TransactionPattern],
    window_minutes: int = 5,
    min_count: int = 3,
    severity: Severity = "medium",
    action: RuleAction = "monitor",
) -> Optional[FraudAlert]:
    """Fire when the account sees `min_count` transactions inside the window.

    The window is exclusive at its start: a transaction exactly
    `window_minutes` old does not count. The current transaction is
    included in the count.
    """
    same_account = [
        p for p in user_history(current, history) if p.account_id == current.account_id
    ]
    recent = within_window(current, same_account, timedelta(minutes=window_minutes))
    count = len(recent) + 1

    if count < min_count:
        return None

    return build_alert(
        current,
        "RAPID_TRANSACTIONS",
        severity,
        action,
        description=f"{count} transactions in last {window_minutes} minutes",
        confidence=min(0.8, count / 5),
        metadata={"recent_count": count, "window_minutes": window_minutes},
    )


def check_high_velocity(
    current: TransactionPattern,
    history: list[TransactionPattern],
    window_hours: int = 24,
    max_count: int = 50,
    severity: Severity = "high",
    action: RuleAction = "block",
) -> Optional[FraudAlert]:
    """Fire when the user already has more than `max_count` transactions in the window."""
    recent = within_window(
        current, user_history(current, history), timedelta(hours=window_hours)
    )
    count = len(recent)

    if count <= max_count:
        return None

    return build_alert(
        current,
        "HIGH_VELOCITY",
        severity,
        action,
        description=f"{count} transactions in last {window_hours} hours",
        confidence=min(0.9, count / 100),
        metadata={"transaction_count": count, "window_hours": window_hours},
    )
