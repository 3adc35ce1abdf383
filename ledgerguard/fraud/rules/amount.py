"""Amount-based fraud rules.

Three signals look only at the size of the candidate transaction:
  - LARGE_AMOUNT: far above what this user normally moves
  - ROUND_AMOUNT: exact multiples of a round unit, typical of structuring
  - NEW_ACCOUNT_HIGH_VALUE: a large first transaction with no history at all
"""

from typing import Optional

from ledgerguard.fraud.alerts import build_alert, user_history
from ledgerguard.fraud.profile import build_user_profile
from ledgerguard.models import FraudAlert, RuleAction, Severity, TransactionPattern
from ledgerguard.utils.numbers import format_amount, to_decimal


def check_large_amount(
    current: TransactionPattern,
    history: list[TransactionPattern],
    multiplier: float = 50.0,
    min_history: int = 5,
    severity: Severity = "high",
    action: RuleAction = "flag",
) -> Optional[FraudAlert]:
    """Fire when the amount is at least `multiplier` times the user's average.

    Users with fewer than `min_history` past transactions have no reliable
    average and are skipped.
    """
    profile = build_user_profile(current.user_id, history)
    if profile.transaction_count < min_history:
        return None

    avg_amount = profile.avg_transaction_amount
    if avg_amount <= 0:
        return None

    ratio = current.amount / avg_amount
    if ratio < multiplier:
        return None

    return build_alert(
        current,
        "LARGE_AMOUNT",
        severity,
        action,
        description=(
            f"Transaction amount ${format_amount(current.amount)} is "
            f"{round(ratio)}x user average"
        ),
        confidence=min(0.9, 0.5 + (ratio - multiplier) / (multiplier * 10)),
        metadata={
            "avg_amount": avg_amount,
            "threshold": avg_amount * multiplier,
            "ratio": ratio,
        },
    )


def check_round_amount(
    current: TransactionPattern,
    history: list[TransactionPattern],
    unit: float = 1000.0,
    severity: Severity = "low",
    action: RuleAction = "monitor",
) -> Optional[FraudAlert]:
    # Decimal keeps 3000.0000001 from passing as a multiple of 1000
    amount = to_decimal(current.amount)
    round_unit = to_decimal(unit)
    if amount < round_unit or amount % round_unit != 0:
        return None

    return build_alert(
        current,
        "ROUND_AMOUNT",
        severity,
        action,
        description=f"Round number transaction: ${format_amount(current.amount)}",
        confidence=0.4,
        metadata={"amount": current.amount, "unit": unit},
    )


def check_new_account_high_value(
    current: TransactionPattern,
    history: list[TransactionPattern],
    threshold: float = 10000.0,
    severity: Severity = "critical",
    action: RuleAction = "block",
) -> Optional[FraudAlert]:
    if user_history(current, history) or current.amount < threshold:
        return None

    return build_alert(
        current,
        "NEW_ACCOUNT_HIGH_VALUE",
        severity,
        action,
        description=(
            f"High value transaction (${format_amount(current.amount)}) from new account"
        ),
        confidence=0.8,
        metadata={"amount": current.amount, "is_first_transaction": True},
    )
