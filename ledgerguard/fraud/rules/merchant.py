"""Suspicious merchant category rule.

Merchant categories arrive from many acquirers with inconsistent spelling
("Crypto-Currency Exchange", "cryptocurrency_exchange", "GAMBLING "), so an
exact set lookup misses real hits. Matching uses thefuzz:
  - fuzz.ratio(): overall character-level similarity
  - fuzz.token_sort_ratio(): tolerates reordered words
    ("exchange cryptocurrency" vs "cryptocurrency exchange")

The higher of the two scores is compared against the threshold.
"""

import re
from typing import Optional

from thefuzz import fuzz

from ledgerguard.config import DEFAULT_SUSPICIOUS_CATEGORIES
from ledgerguard.fraud.alerts import build_alert
from ledgerguard.models import FraudAlert, RuleAction, Severity, TransactionPattern


def _normalize_category(category: str) -> str:
    """Lowercase, turn _ and - into spaces, collapse whitespace."""
    return re.sub(r"\s+", " ", re.sub(r"[_\-]", " ", category).strip().lower())


def best_category_match(
    category: str,
    suspicious_categories: list[str],
) -> tuple[Optional[str], int]:
    """Return the closest suspicious category and its similarity score."""
    normalized = _normalize_category(category)
    best: Optional[str] = None
    best_score = 0
    for candidate in suspicious_categories:
        normalized_candidate = _normalize_category(candidate)
        score = max(
            fuzz.ratio(normalized, normalized_candidate),
            fuzz.token_sort_ratio(normalized, normalized_candidate),
        )
        if score > best_score:
            best, best_score = candidate, score
    return best, best_score


def check_suspicious_merchant(
    current: TransactionPattern,
    history: list[TransactionPattern],
    suspicious_categories: Optional[list[str]] = None,
    threshold: int = 90,
    severity: Severity = "medium",
    action: RuleAction = "flag",
) -> Optional[FraudAlert]:
    if not current.merchant_category:
        return None

    categories = (
        suspicious_categories
        if suspicious_categories is not None
        else DEFAULT_SUSPICIOUS_CATEGORIES
    )
    matched, score = best_category_match(current.merchant_category, categories)
    if matched is None or score < threshold:
        return None

    return build_alert(
        current,
        "SUSPICIOUS_MERCHANT",
        severity,
        action,
        description=f"Transaction with suspicious merchant: {current.merchant_category}",
        confidence=0.6 * score / 100,
        metadata={
            "merchant_category": current.merchant_category,
            "matched_category": matched,
            "similarity": score,
        },
    )
