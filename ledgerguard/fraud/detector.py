"""Fraud analysis orchestrator.

Runs every enabled rule in the registry against a candidate transaction
and its history, then combines the alerts into a verdict:
  - approved is False iff any alert carries the block action
  - risk_score is the noisy-OR of alert severities (see scorer)

A rule that raises is logged and skipped; the remaining rules still run.
"""

import logging
from typing import Optional

from ledgerguard.config import FraudRulesConfig
from ledgerguard.fraud.registry import RuleRegistry, default_registry
from ledgerguard.fraud.scorer import calculate_risk_score, is_approved
from ledgerguard.models import (
    FraudAlert,
    FraudAnalysis,
    FraudRule,
    SecurityEvent,
    TransactionPattern,
)
from ledgerguard.observability.events import EventSink

logger = logging.getLogger(__name__)


class FraudDetector:
    """Evaluates transactions against a RuleRegistry."""

    def __init__(
        self,
        registry: Optional[RuleRegistry] = None,
        config: Optional[FraudRulesConfig] = None,
        event_sink: Optional[EventSink] = None,
    ) -> None:
        self.config = config or FraudRulesConfig()
        self.registry = registry if registry is not None else default_registry(self.config)
        self.event_sink = event_sink

    def analyze_transaction(
        self,
        current: TransactionPattern,
        history: list[TransactionPattern],
    ) -> FraudAnalysis:
        alerts: list[FraudAlert] = []

        # Snapshot so concurrent enable/disable calls don't affect this run
        for rule in self.registry.get_active_rules():
            try:
                alert = rule.evaluate(current, history)
            except Exception:
                logger.exception(
                    "Error in fraud rule %s",
                    rule.id,
                    extra={"rule_id": rule.id, "user_id": current.user_id},
                )
                continue
            if alert is not None:
                alerts.append(alert)

        approved = is_approved(alerts)
        risk_score = calculate_risk_score(alerts, self.config.severity_weights)

        logger.info(
            "Fraud analysis completed",
            extra={
                "user_id": current.user_id,
                "account_id": current.account_id,
                "approved": approved,
                "risk_score": risk_score,
                "alert_types": [a.alert_type for a in alerts],
            },
        )

        if not approved and self.event_sink is not None:
            self.event_sink.log_security_event(SecurityEvent(
                type="TRANSACTION_BLOCKED",
                message="Transaction blocked by fraud rules",
                user_id=current.user_id,
                details={
                    "account_id": current.account_id,
                    "amount": current.amount,
                    "risk_score": risk_score,
                    "blocking_alerts": [
                        a.alert_type for a in alerts if a.action == "block"
                    ],
                },
            ))

        return FraudAnalysis(approved=approved, alerts=alerts, risk_score=risk_score)

    # Rule management delegates to the registry

    def add_custom_rule(self, rule: FraudRule) -> None:
        self.registry.add_custom_rule(rule)

    def enable_rule(self, rule_id: str) -> bool:
        return self.registry.enable_rule(rule_id)

    def disable_rule(self, rule_id: str) -> bool:
        return self.registry.disable_rule(rule_id)

    def get_active_rules(self) -> list[FraudRule]:
        return self.registry.get_active_rules()
