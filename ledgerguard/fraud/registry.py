"""Mutable set of fraud rules shared by detectors.

A registry is built once at startup (default_registry) and handed to every
FraudDetector that should see the same rules. Tests clone it instead of
mutating a shared instance.

Rules are never mutated in place: enabling or disabling swaps in a copy
under the lock, and readers get list snapshots. An analysis already
iterating a snapshot is unaffected by a concurrent toggle.
"""

import logging
import threading
from typing import Optional

from ledgerguard.config import FraudRulesConfig
from ledgerguard.exceptions import RuleRegistryError
from ledgerguard.fraud.builtin import build_builtin_rules
from ledgerguard.models import FraudRule

logger = logging.getLogger(__name__)


class RuleRegistry:
    """Thread-safe ordered collection of FraudRule keyed by id."""

    def __init__(self, rules: Optional[list[FraudRule]] = None) -> None:
        self._lock = threading.RLock()
        # Insertion order is evaluation order
        self._rules: dict[str, FraudRule] = {}
        for rule in rules or []:
            self._rules[rule.id] = rule

    def add_custom_rule(self, rule: FraudRule) -> None:
        """Register a rule; an existing rule with the same id is replaced."""
        with self._lock:
            if rule.id in self._rules:
                logger.warning("Replacing fraud rule", extra={"rule_id": rule.id})
            self._rules[rule.id] = rule
        logger.info("Fraud rule registered", extra={"rule_id": rule.id, "enabled": rule.enabled})

    def _set_enabled(self, rule_id: str, enabled: bool) -> bool:
        with self._lock:
            rule = self._rules.get(rule_id)
            if rule is None:
                logger.warning("Unknown fraud rule", extra={"rule_id": rule_id})
                return False
            self._rules[rule_id] = rule.model_copy(update={"enabled": enabled})
        logger.info("Fraud rule toggled", extra={"rule_id": rule_id, "enabled": enabled})
        return True

    def enable_rule(self, rule_id: str) -> bool:
        return self._set_enabled(rule_id, True)

    def disable_rule(self, rule_id: str) -> bool:
        return self._set_enabled(rule_id, False)

    def get_rule(self, rule_id: str) -> FraudRule:
        with self._lock:
            rule = self._rules.get(rule_id)
        if rule is None:
            raise RuleRegistryError(f"Unknown fraud rule: {rule_id}")
        return rule

    def get_active_rules(self) -> list[FraudRule]:
        with self._lock:
            return [rule for rule in self._rules.values() if rule.enabled]

    def get_all_rules(self) -> list[FraudRule]:
        with self._lock:
            return list(self._rules.values())

    def clone(self) -> "RuleRegistry":
        return RuleRegistry(self.get_all_rules())

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        with self._lock:
            return rule_id in self._rules


def default_registry(config: Optional[FraudRulesConfig] = None) -> RuleRegistry:
    return RuleRegistry(build_builtin_rules(config or FraudRulesConfig()))
