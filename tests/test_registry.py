"""Tests for the fraud rule registry."""

import threading

import pytest

from ledgerguard.exceptions import RuleRegistryError
from ledgerguard.fraud.registry import RuleRegistry, default_registry
from ledgerguard.models import FraudRule

BUILTIN_IDS = [
    "LARGE_AMOUNT",
    "RAPID_TRANSACTIONS",
    "UNUSUAL_LOCATION",
    "UNUSUAL_DEVICE",
    "ROUND_AMOUNT",
    "HIGH_VELOCITY",
    "NEW_ACCOUNT_HIGH_VALUE",
    "SUSPICIOUS_MERCHANT",
    "ACCOUNT_TAKEOVER",
]


def _custom_rule(rule_id="CUSTOM", enabled=True):
    return FraudRule(
        id=rule_id,
        name="Custom",
        severity="low",
        action="monitor",
        enabled=enabled,
        check=lambda current, history: None,
    )


class TestDefaultRegistry:
    def test_builtin_rules_in_order(self, registry):
        assert [r.id for r in registry.get_all_rules()] == BUILTIN_IDS

    def test_all_enabled(self, registry):
        assert len(registry.get_active_rules()) == len(BUILTIN_IDS)

    def test_declared_tiers(self, registry):
        assert registry.get_rule("HIGH_VELOCITY").action == "block"
        assert registry.get_rule("NEW_ACCOUNT_HIGH_VALUE").severity == "critical"
        assert registry.get_rule("ROUND_AMOUNT").severity == "low"


class TestToggling:
    def test_disable_and_enable(self, registry):
        assert registry.disable_rule("ROUND_AMOUNT") is True
        assert "ROUND_AMOUNT" not in [r.id for r in registry.get_active_rules()]
        assert registry.enable_rule("ROUND_AMOUNT") is True
        assert "ROUND_AMOUNT" in [r.id for r in registry.get_active_rules()]

    def test_unknown_rule(self, registry):
        assert registry.disable_rule("NOPE") is False
        assert registry.enable_rule("NOPE") is False

    def test_snapshot_not_affected_by_toggle(self, registry):
        snapshot = registry.get_active_rules()
        registry.disable_rule("LARGE_AMOUNT")
        assert snapshot[0].id == "LARGE_AMOUNT"
        assert snapshot[0].enabled is True


class TestCustomRules:
    def test_add_custom_rule(self, registry):
        registry.add_custom_rule(_custom_rule())
        assert registry.get_all_rules()[-1].id == "CUSTOM"
        assert "CUSTOM" in registry

    def test_duplicate_id_replaces(self, registry):
        registry.add_custom_rule(_custom_rule())
        registry.add_custom_rule(_custom_rule(enabled=False))
        assert len(registry) == len(BUILTIN_IDS) + 1
        assert registry.get_rule("CUSTOM").enabled is False

    def test_get_unknown_rule(self):
        with pytest.raises(RuleRegistryError):
            RuleRegistry().get_rule("NOPE")

    def test_clone_is_independent(self, registry):
        clone = registry.clone()
        clone.disable_rule("LARGE_AMOUNT")
        clone.add_custom_rule(_custom_rule())
        assert registry.get_rule("LARGE_AMOUNT").enabled is True
        assert "CUSTOM" not in registry


class TestConcurrency:
    def test_concurrent_toggles(self):
        registry = default_registry()

        def toggle():
            for _ in range(200):
                registry.disable_rule("ROUND_AMOUNT")
                registry.enable_rule("ROUND_AMOUNT")
                registry.get_active_rules()

        threads = [threading.Thread(target=toggle) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(registry) == len(BUILTIN_IDS)
        assert registry.get_rule("ROUND_AMOUNT").enabled is True
