"""Shared fixtures for the test suite."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from ledgerguard.config import CoreConfig, FraudRulesConfig, MonitoringConfig
from ledgerguard.fraud.detector import FraudDetector
from ledgerguard.fraud.monitoring import FraudMonitoringService
from ledgerguard.fraud.registry import default_registry
from ledgerguard.models import (
    FraudAlert,
    LedgerEntry,
    LedgerTransaction,
    TransactionPattern,
)
from ledgerguard.storage.memory import AlertStore


NOW = datetime(2026, 2, 22, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def fraud_config():
    return FraudRulesConfig()


@pytest.fixture
def core_config():
    return CoreConfig()


@pytest.fixture
def registry(fraud_config):
    return default_registry(fraud_config)


@pytest.fixture
def event_sink():
    return Mock()


@pytest.fixture
def detector(registry, fraud_config, event_sink):
    return FraudDetector(registry=registry, config=fraud_config, event_sink=event_sink)


@pytest.fixture
def alert_store():
    return AlertStore()


@pytest.fixture
def monitoring(alert_store, event_sink):
    return FraudMonitoringService(
        store=alert_store, event_sink=event_sink, config=MonitoringConfig()
    )


def make_pattern(
    user_id="user-1",
    account_id="acct-1",
    amount=100.0,
    timestamp=NOW,
    location=None,
    device=None,
    merchant_category=None,
    ip_address=None,
) -> TransactionPattern:
    return TransactionPattern(
        user_id=user_id,
        account_id=account_id,
        amount=amount,
        timestamp=timestamp,
        location=location,
        device=device,
        merchant_category=merchant_category,
        ip_address=ip_address,
    )


def make_history(count, minutes_apart=60, start=NOW, **kwargs) -> list[TransactionPattern]:
    """`count` patterns going back from `start`, oldest first."""
    return [
        make_pattern(timestamp=start - timedelta(minutes=minutes_apart * (count - i)), **kwargs)
        for i in range(count)
    ]


def make_alert(
    user_id="user-1",
    alert_type="LARGE_AMOUNT",
    severity="high",
    action="flag",
    detected_at=NOW,
    alert_id=None,
) -> FraudAlert:
    extra = {"id": alert_id} if alert_id else {}
    return FraudAlert(
        user_id=user_id,
        account_id="acct-1",
        alert_type=alert_type,
        severity=severity,
        description=f"{alert_type} test alert",
        confidence=0.5,
        detected_at=detected_at,
        action=action,
        **extra,
    )


def make_entry(
    amount="100",
    debit=False,
    credit=False,
    account_id="acct-1",
    timestamp=NOW,
    entry_id="ent-1",
) -> LedgerEntry:
    return LedgerEntry(
        id=entry_id,
        account_id=account_id,
        amount=Decimal(str(amount)),
        debit=debit,
        credit=credit,
        timestamp=timestamp,
        user_id="user-1",
        transaction_id="txn-1",
    )


def make_transaction(entries, txn_id="txn-1", status="pending") -> LedgerTransaction:
    return LedgerTransaction(
        id=txn_id,
        entries=entries,
        description="Test transaction",
        user_id="user-1",
        status=status,
    )
