"""Named validation bundles that compose the primitives and raise on failure."""

from datetime import datetime
from typing import Optional, Union

from ledgerguard.calculations.financial import get_currency_precision
from ledgerguard.config import ValidationConfig
from ledgerguard.models import TransactionInput, ValidationResult
from ledgerguard.validation.domain import (
    DEFAULT_CONFIG,
    merge_results,
    parse_input,
    validate_amount,
    validate_cross_currency_transaction,
    validate_or_throw,
    validate_transaction,
    validate_transaction_timing,
)


def _amount_input(amount: float, currency) -> dict:
    precision = get_currency_precision(currency) if isinstance(currency, str) else 2
    return {"amount": amount, "currency": currency, "precision": precision}


def _transaction_results(
    data: Union[TransactionInput, dict],
    config: ValidationConfig,
) -> tuple[Optional[TransactionInput], list[ValidationResult]]:
    txn, errors = parse_input(TransactionInput, data)
    if txn is None:
        return None, [ValidationResult(is_valid=False, errors=errors)]
    return txn, [
        validate_transaction(txn, config=config),
        validate_amount(_amount_input(txn.amount, txn.currency)),
    ]


def standard_transaction(
    data: Union[TransactionInput, dict],
    config: ValidationConfig = DEFAULT_CONFIG,
) -> None:
    """Account ids, description, reference, plus amount/currency at the currency's precision."""
    _, results = _transaction_results(data, config)
    validate_or_throw(merge_results(*results))


def high_value_transaction(
    data: Union[TransactionInput, dict],
    last_transaction_time: Optional[datetime],
    now: Optional[datetime] = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> None:
    txn, results = _transaction_results(data, config)
    if txn is not None:
        results.append(
            validate_transaction_timing(last_transaction_time, txn.amount, now=now, config=config)
        )
    validate_or_throw(merge_results(*results))


def international_transfer(
    from_currency: str,
    to_currency: str,
    amount: float,
    exchange_rate: Optional[float] = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> None:
    validate_or_throw(merge_results(
        validate_amount(_amount_input(amount, from_currency)),
        validate_cross_currency_transaction(
            from_currency, to_currency, amount, exchange_rate, config=config
        ),
    ))


class ValidationRules:
    """Namespace mirroring the bundle names used by request handlers."""

    standard_transaction = staticmethod(standard_transaction)
    high_value_transaction = staticmethod(high_value_transaction)
    international_transfer = staticmethod(international_transfer)
