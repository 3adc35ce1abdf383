"""Behavioral rules: where, from what device and from what address the user transacts.

A location or device is "unusual" only relative to the user's profile.
Users with no recorded locations (or devices) are not flagged by the
single-signal rules, since there is nothing to compare to.
ACCOUNT_TAKEOVER combines the signals and also counts a large amount.
"""

from typing import Optional

from ledgerguard.fraud.alerts import build_alert
from ledgerguard.fraud.profile import build_user_profile
from ledgerguard.models import FraudAlert, RuleAction, Severity, TransactionPattern


def check_unusual_location(
    current: TransactionPattern,
    history: list[TransactionPattern],
    severity: Severity = "medium",
    action: RuleAction = "monitor",
) -> Optional[FraudAlert]:
    if not current.location:
        return None

    locations = build_user_profile(current.user_id, history).usual_locations
    if not locations or current.location in locations:
        return None

    return build_alert(
        current,
        "UNUSUAL_LOCATION",
        severity,
        action,
        description=f"Transaction from new location: {current.location}",
        confidence=0.7,
        metadata={"new_location": current.location, "usual_locations": locations},
    )


def check_unusual_device(
    current: TransactionPattern,
    history: list[TransactionPattern],
    severity: Severity = "medium",
    action: RuleAction = "monitor",
) -> Optional[FraudAlert]:
    if not current.device:
        return None

    devices = build_user_profile(current.user_id, history).usual_devices
    if not devices or current.device in devices:
        return None

    return build_alert(
        current,
        "UNUSUAL_DEVICE",
        severity,
        action,
        description=f"Transaction from new device: {current.device}",
        confidence=0.6,
        metadata={"new_device": current.device, "usual_devices": devices},
    )


def check_account_takeover(
    current: TransactionPattern,
    history: list[TransactionPattern],
    amount_threshold: float = 10000.0,
    min_indicators: int = 3,
    severity: Severity = "critical",
    action: RuleAction = "block",
) -> Optional[FraudAlert]:
    """Count independent takeover indicators and fire at `min_indicators`.

    Indicators: amount above `amount_threshold`, and a location, device or
    IP address the user has never used. A field missing on the current
    transaction is not an indicator.
    """
    profile = build_user_profile(current.user_id, history)
    factors = {
        "high_amount": current.amount > amount_threshold,
        "unusual_location": bool(current.location)
        and current.location not in profile.usual_locations,
        "unusual_device": bool(current.device)
        and current.device not in profile.usual_devices,
        "unusual_ip_address": bool(current.ip_address)
        and current.ip_address not in profile.usual_ip_addresses,
    }
    indicators = sum(1 for hit in factors.values() if hit)

    if indicators < min_indicators:
        return None

    return build_alert(
        current,
        "ACCOUNT_TAKEOVER",
        severity,
        action,
        description=f"Multiple indicators of account takeover ({indicators} risk factors)",
        confidence=0.8,
        metadata={"suspicious_indicators": indicators, "factors": factors},
    )
