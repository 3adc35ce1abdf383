"""Per-user behavioral baseline derived from transaction history."""

from ledgerguard.fraud.alerts import as_utc
from ledgerguard.models import TransactionPattern, UserProfile


def build_user_profile(user_id: str, history: list[TransactionPattern]) -> UserProfile:
    """Summarize a user's past transactions.

    Only patterns belonging to `user_id` are considered. Locations, devices,
    merchant categories and IP addresses keep first-seen order.
    """
    patterns = [p for p in history if p.user_id == user_id]
    if not patterns:
        return UserProfile(user_id=user_id)

    def distinct(field: str) -> list[str]:
        values: list[str] = []
        for pattern in patterns:
            value = getattr(pattern, field)
            if value and value not in values:
                values.append(value)
        return values

    return UserProfile(
        user_id=user_id,
        transaction_count=len(patterns),
        avg_transaction_amount=sum(p.amount for p in patterns) / len(patterns),
        usual_locations=distinct("location"),
        usual_devices=distinct("device"),
        usual_merchants=distinct("merchant_category"),
        usual_ip_addresses=distinct("ip_address"),
        first_seen=min(as_utc(p.timestamp) for p in patterns),
    )
