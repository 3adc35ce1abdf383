"""Risk score aggregation.

Each alert contributes its severity weight w in [0, 1]; the combined score
is the noisy-OR 1 - prod(1 - w). This keeps the score in [0, 1], never
lets an extra alert lower it, and saturates at 1.0 on any critical alert:

    one medium (0.5)        -> 0.5
    two medium              -> 0.75
    medium + high (0.8)     -> 0.9
"""

from typing import Optional

from ledgerguard.config import FraudRulesConfig
from ledgerguard.models import FraudAlert

DEFAULT_WEIGHTS = FraudRulesConfig().severity_weights


def calculate_risk_score(
    alerts: list[FraudAlert],
    weights: Optional[dict[str, float]] = None,
) -> float:
    weights = weights or DEFAULT_WEIGHTS
    remaining = 1.0
    for alert in alerts:
        weight = min(1.0, max(0.0, weights.get(alert.severity, 0.0)))
        remaining *= 1.0 - weight
    return round(1.0 - remaining, 4)


def is_approved(alerts: list[FraudAlert]) -> bool:
    """A transaction is rejected iff some alert carries the block action."""
    return not any(alert.action == "block" for alert in alerts)
