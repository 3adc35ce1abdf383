"""Built-in fraud rule definitions.

Each rule binds a plain check function to its thresholds from
FraudRulesConfig. Severity and action live on the FraudRule and are passed
through, so the alert a rule emits always matches the rule's declared tier.
"""

from functools import partial

from ledgerguard.config import FraudRulesConfig
from ledgerguard.fraud.rules.amount import (
    check_large_amount,
    check_new_account_high_value,
    check_round_amount,
)
from ledgerguard.fraud.rules.behavior import (
    check_account_takeover,
    check_unusual_device,
    check_unusual_location,
)
from ledgerguard.fraud.rules.merchant import check_suspicious_merchant
from ledgerguard.fraud.rules.velocity import check_high_velocity, check_rapid_transactions
from ledgerguard.models import FraudRule


def _rule(rule_id, name, description, severity, action, check, **thresholds) -> FraudRule:
    return FraudRule(
        id=rule_id,
        name=name,
        description=description,
        severity=severity,
        action=action,
        check=partial(check, severity=severity, action=action, **thresholds),
    )


def build_builtin_rules(config: FraudRulesConfig) -> list[FraudRule]:
    return [
        _rule(
            "LARGE_AMOUNT",
            "Unusually Large Amount",
            "Transaction amount is significantly higher than user average",
            "high",
            "flag",
            check_large_amount,
            multiplier=config.large_amount_multiplier,
            min_history=config.large_amount_min_history,
        ),
        _rule(
            "RAPID_TRANSACTIONS",
            "Rapid Successive Transactions",
            "Multiple transactions in short time period",
            "medium",
            "monitor",
            check_rapid_transactions,
            window_minutes=config.rapid_window_minutes,
            min_count=config.rapid_min_count,
        ),
        _rule(
            "UNUSUAL_LOCATION",
            "Unusual Location",
            "Transaction from location not normally used by user",
            "medium",
            "monitor",
            check_unusual_location,
        ),
        _rule(
            "UNUSUAL_DEVICE",
            "Unusual Device",
            "Transaction from device not normally used by user",
            "medium",
            "monitor",
            check_unusual_device,
        ),
        _rule(
            "ROUND_AMOUNT",
            "Round Amount",
            "Transaction amount is a round number (potential structuring)",
            "low",
            "monitor",
            check_round_amount,
            unit=config.round_amount_unit,
        ),
        _rule(
            "HIGH_VELOCITY",
            "High Transaction Velocity",
            "Many transactions exceeding normal frequency",
            "high",
            "block",
            check_high_velocity,
            window_hours=config.velocity_window_hours,
            max_count=config.velocity_max_count,
        ),
        _rule(
            "NEW_ACCOUNT_HIGH_VALUE",
            "New Account High Value",
            "Large transaction from recently created account",
            "critical",
            "block",
            check_new_account_high_value,
            threshold=config.new_account_high_value,
        ),
        _rule(
            "SUSPICIOUS_MERCHANT",
            "Suspicious Merchant Category",
            "Transaction with merchant category flagged as high risk",
            "medium",
            "flag",
            check_suspicious_merchant,
            suspicious_categories=list(config.suspicious_categories),
            threshold=config.merchant_match_threshold,
        ),
        _rule(
            "ACCOUNT_TAKEOVER",
            "Account Takeover Indicators",
            "Multiple indicators of account takeover",
            "critical",
            "block",
            check_account_takeover,
            amount_threshold=config.takeover_amount,
            min_indicators=config.takeover_min_indicators,
        ),
    ]
