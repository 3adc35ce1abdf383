"""Tunable thresholds for the ledger, validators, fraud rules and alert log.

Defaults live on the models; a JSON file can override any subset of them:

    {"fraud": {"large_amount_multiplier": 20}, "monitoring": {"max_alerts": 10000}}
"""

import json
import logging
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from ledgerguard.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_SUSPICIOUS_CATEGORIES = [
    "CRYPTOCURRENCY_EXCHANGE",
    "GAMBLING",
    "MONEY_TRANSFER",
    "PRECIOUS_METALS",
    "CASH_ADVANCE",
]


class FraudRulesConfig(BaseModel):
    """Thresholds for the built-in fraud rules."""
    large_amount_multiplier: float = 50.0
    large_amount_min_history: int = 5
    rapid_window_minutes: int = 5
    rapid_min_count: int = 3  # includes the current transaction
    velocity_window_hours: int = 24
    velocity_max_count: int = 50
    round_amount_unit: float = 1000.0
    new_account_high_value: float = 10000.0
    takeover_amount: float = 10000.0
    takeover_min_indicators: int = 3
    suspicious_categories: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SUSPICIOUS_CATEGORIES)
    )
    merchant_match_threshold: int = 90
    severity_weights: dict[str, float] = Field(
        default_factory=lambda: {
            "info": 0.05,
            "low": 0.2,
            "medium": 0.5,
            "high": 0.8,
            "critical": 1.0,
        }
    )


class LedgerConfig(BaseModel):
    overdraft_limit: float = 10000.0
    adjustment_clearing_account: str = "ADJUSTMENT_CLEARING"
    atm_cash_account: str = "ATM_CASH"
    deposit_source_account: str = "CASH_DEPOSITS"


class ValidationConfig(BaseModel):
    overdraft_limit: float = 10000.0
    high_value_threshold: float = 1000.0
    high_value_min_interval_seconds: float = 60.0
    min_interval_seconds: float = 6.0
    description_max_length: int = 500
    min_exchange_rate: float = 0.0001
    max_exchange_rate: float = 10000.0
    reference_pattern: str = r"^[A-Za-z0-9]{1,50}$"


class MonitoringConfig(BaseModel):
    user_alert_limit: int = 50
    severity_alert_limit: int = 100
    max_alerts: Optional[int] = None  # None keeps every alert


class CoreConfig(BaseModel):
    fraud: FraudRulesConfig = Field(default_factory=FraudRulesConfig)
    ledger: LedgerConfig = Field(default_factory=LedgerConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)


def load_config(path: Optional[Union[str, Path]] = None) -> CoreConfig:
    """Load configuration from a JSON file, falling back to defaults.

    A missing file is not an error; a malformed one is.
    """
    if path is None:
        return CoreConfig()

    config_path = Path(path)
    if not config_path.exists():
        logger.info("Config file not found, using defaults", extra={"path": str(config_path)})
        return CoreConfig()

    try:
        with open(config_path, "r") as f:
            return CoreConfig(**json.load(f))
    except (json.JSONDecodeError, PydanticValidationError) as exc:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {exc}") from exc
