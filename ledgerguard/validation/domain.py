"""Structural and business-rule validators.

Each validator collects every violation into a ValidationResult instead of
raising, so callers can report all problems at once. validate_or_throw is
the adapter for call sites that want an exception.
"""

import re
from datetime import datetime, timezone
from typing import Any, Optional, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError

from ledgerguard.config import ValidationConfig
from ledgerguard.exceptions import DomainValidationError
from ledgerguard.models import (
    AccountType,
    AmountInput,
    TransactionInput,
    ValidationError,
    ValidationResult,
)
from ledgerguard.utils.numbers import decimal_places, format_amount

CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

INPUT_ERROR_CODES = {
    "amount": "INVALID_AMOUNT",
    "currency": "INVALID_CURRENCY",
    "precision": "INVALID_PRECISION",
}

InputModel = TypeVar("InputModel", AmountInput, TransactionInput)

DEFAULT_CONFIG = ValidationConfig()


def _result(errors: list[ValidationError]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


def merge_results(*results: ValidationResult) -> ValidationResult:
    """Combine several results, keeping error order."""
    errors: list[ValidationError] = []
    for result in results:
        errors.extend(result.errors)
    return _result(errors)


def _input_errors(exc: PydanticValidationError) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for error in exc.errors():
        field = str(error["loc"][0]) if error["loc"] else "input"
        errors.append(ValidationError(
            field=field,
            code=INPUT_ERROR_CODES.get(field, "INVALID_FIELD"),
            message=f"{field.replace('_', ' ').capitalize()} is required and must be valid",
            value=None if error["type"] == "missing" else error.get("input"),
        ))
    return errors


def parse_input(
    model: type[InputModel],
    data: Union[InputModel, dict],
) -> tuple[Optional[InputModel], list[ValidationError]]:
    """Build a validator input model, reporting malformed fields as errors."""
    if not isinstance(data, dict):
        return data, []
    try:
        return model(**data), []
    except PydanticValidationError as exc:
        return None, _input_errors(exc)


def validate_amount(data: Union[AmountInput, dict]) -> ValidationResult:
    data, errors = parse_input(AmountInput, data)
    if data is None:
        return _result(errors)

    if data.amount < 0:
        errors.append(ValidationError(
            field="amount",
            code="NEGATIVE_AMOUNT",
            message="Amount cannot be negative",
            value=data.amount,
        ))

    if not isinstance(data.currency, str) or not CURRENCY_CODE.match(data.currency):
        errors.append(ValidationError(
            field="currency",
            code="INVALID_CURRENCY",
            message="Currency must be a valid 3-letter code",
            value=data.currency,
        ))

    if decimal_places(data.amount) > data.precision:
        errors.append(ValidationError(
            field="amount",
            code="INVALID_PRECISION",
            message=f"Amount cannot have more than {data.precision} decimal places",
            value=data.amount,
        ))

    if data.min_amount is not None and data.amount < data.min_amount:
        errors.append(ValidationError(
            field="amount",
            code="BELOW_MINIMUM",
            message=f"Amount must be at least {format_amount(data.min_amount)}",
            value=data.amount,
        ))

    if data.max_amount is not None and data.amount > data.max_amount:
        errors.append(ValidationError(
            field="amount",
            code="ABOVE_MAXIMUM",
            message=f"Amount cannot exceed {format_amount(data.max_amount)}",
            value=data.amount,
        ))

    return _result(errors)


def _valid_account_id(account_id: Any) -> bool:
    return isinstance(account_id, str) and account_id.strip() != ""


def validate_transaction(
    data: Union[TransactionInput, dict],
    config: ValidationConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    data, errors = parse_input(TransactionInput, data)
    if data is None:
        return _result(errors)

    if not _valid_account_id(data.from_account_id):
        errors.append(ValidationError(
            field="from_account_id",
            code="INVALID_ACCOUNT_ID",
            message="From account ID is required and must be a string",
            value=data.from_account_id,
        ))

    if not _valid_account_id(data.to_account_id):
        errors.append(ValidationError(
            field="to_account_id",
            code="INVALID_ACCOUNT_ID",
            message="To account ID is required and must be a string",
            value=data.to_account_id,
        ))

    if data.from_account_id == data.to_account_id and _valid_account_id(data.from_account_id):
        errors.append(ValidationError(
            field="to_account_id",
            code="SAME_ACCOUNT_TRANSFER",
            message="Cannot transfer to the same account",
            value=data.to_account_id,
        ))

    if data.description is not None and len(data.description) > config.description_max_length:
        errors.append(ValidationError(
            field="description",
            code="DESCRIPTION_TOO_LONG",
            message=f"Description cannot exceed {config.description_max_length} characters",
            value=len(data.description),
        ))

    if data.reference is not None and not re.match(config.reference_pattern, data.reference):
        errors.append(ValidationError(
            field="reference",
            code="INVALID_REFERENCE_FORMAT",
            message="Reference must be alphanumeric (1-50 characters)",
            value=data.reference,
        ))

    return _result(errors)


def validate_balance(
    current_balance: float,
    transaction_amount: float,
    account_type: Union[AccountType, str],
    allow_overdraft: bool = False,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    """Check that debiting `transaction_amount` respects the account policy.

    Savings never go negative. Other accounts need allow_overdraft to go
    negative, and even then not below -overdraft_limit.
    """
    new_balance = current_balance - transaction_amount
    errors: list[ValidationError] = []

    if account_type == AccountType.SAVINGS and new_balance < 0:
        errors.append(ValidationError(
            field="balance",
            code="SAVINGS_NEGATIVE_BALANCE",
            message="Savings accounts cannot have negative balance",
            value=new_balance,
        ))
    elif not allow_overdraft and new_balance < 0:
        errors.append(ValidationError(
            field="balance",
            code="INSUFFICIENT_FUNDS",
            message=(
                f"Insufficient funds. Current: {format_amount(current_balance)}, "
                f"Required: {format_amount(transaction_amount)}"
            ),
            value={
                "current_balance": current_balance,
                "transaction_amount": transaction_amount,
                "new_balance": new_balance,
            },
        ))
    elif allow_overdraft and new_balance < -config.overdraft_limit:
        errors.append(ValidationError(
            field="balance",
            code="OVERDRAFT_LIMIT_EXCEEDED",
            message="Overdraft limit exceeded",
            value={"new_balance": new_balance, "limit": -config.overdraft_limit},
        ))

    return _result(errors)


def validate_cross_currency_transaction(
    from_currency: str,
    to_currency: str,
    amount: float,
    exchange_rate: Optional[float] = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    if from_currency == to_currency:
        return _result([])

    errors: list[ValidationError] = []
    if exchange_rate is None or exchange_rate <= 0:
        errors.append(ValidationError(
            field="exchange_rate",
            code="INVALID_EXCHANGE_RATE",
            message="Exchange rate is required and must be positive",
            value=exchange_rate,
        ))
    elif exchange_rate < config.min_exchange_rate or exchange_rate > config.max_exchange_rate:
        errors.append(ValidationError(
            field="exchange_rate",
            code="UNREASONABLE_EXCHANGE_RATE",
            message="Exchange rate seems unreasonable",
            value=exchange_rate,
        ))

    return _result(errors)


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def validate_transaction_timing(
    last_transaction_time: Optional[datetime],
    amount: float,
    now: Optional[datetime] = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> ValidationResult:
    """Enforce minimum spacing between consecutive transactions.

    No previous transaction means nothing to check.
    """
    if last_transaction_time is None:
        return _result([])

    now = _as_utc(now) if now is not None else datetime.now(timezone.utc)
    elapsed_seconds = (now - _as_utc(last_transaction_time)).total_seconds()
    errors: list[ValidationError] = []

    if amount >= config.high_value_threshold and elapsed_seconds < config.high_value_min_interval_seconds:
        errors.append(ValidationError(
            field="timing",
            code="TOO_FREQUENT_HIGH_VALUE",
            message="High-value transactions require at least 1 minute between them",
            value={
                "minutes_since_last_transaction": elapsed_seconds / 60,
                "amount": amount,
            },
        ))

    if elapsed_seconds < config.min_interval_seconds:
        errors.append(ValidationError(
            field="timing",
            code="TOO_FREQUENT",
            message=f"Transactions must be at least {format_amount(config.min_interval_seconds)} seconds apart",
            value=elapsed_seconds,
        ))

    return _result(errors)


def validate_or_throw(result: ValidationResult) -> None:
    """Raise DomainValidationError carrying the first error's message."""
    if result.is_valid and not result.errors:
        return
    first = result.errors[0] if result.errors else None
    message = first.message if first else "Validation failed"
    raise DomainValidationError(message, errors=list(result.errors))
