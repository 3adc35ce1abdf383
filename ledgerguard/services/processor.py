"""Transaction processing pipeline.

Composes the validators, fraud detector, fee calculator and double-entry
constructors into a single call, in this order:

  1. Account snapshots belong to the accounts named in the request
  2. Request structure (accounts, amount, currency, description, reference)
  3. Source account balance policy
  4. Exchange rate sanity when the two accounts use different currencies
  5. Fraud analysis; alerts are recorded, a block verdict rejects
  6. Account-type fee
  7. Transfer and fee ledger transactions, checked against the ledger
     overdraft limit

Loading accounts and history, and posting the resulting transactions, is
the caller's job. Business-rule failures come back as an unsuccessful
TransactionResult rather than an exception.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ledgerguard.bookkeeping.rules import (
    create_fee_transaction,
    create_transfer_transaction,
    is_valid_transaction,
    validate_account_constraints,
)
from ledgerguard.calculations.financial import (
    calculate_loan_details,
    calculate_transaction_fee,
    convert_currency,
)
from ledgerguard.config import CoreConfig
from ledgerguard.exceptions import DomainValidationError, LedgerError, LedgerGuardError
from ledgerguard.fraud.detector import FraudDetector
from ledgerguard.fraud.monitoring import FraudMonitoringService
from ledgerguard.models import (
    AccountBalance,
    AccountSnapshot,
    AccountType,
    AmountInput,
    CurrencyConversion,
    FeeSchedule,
    LoanDetails,
    LedgerTransaction,
    TransactionContext,
    TransactionPattern,
    TransactionRequest,
    TransactionResult,
    ValidationError,
    utcnow,
)
from ledgerguard.utils.numbers import to_decimal
from ledgerguard.validation.domain import validate_amount, validate_balance, validate_or_throw
from ledgerguard.validation.rules import international_transfer, standard_transaction

logger = logging.getLogger(__name__)

FEE_SCHEDULES: dict[str, FeeSchedule] = {
    AccountType.CHECKING.value: FeeSchedule(),
    AccountType.SAVINGS.value: FeeSchedule(),
    AccountType.BUSINESS.value: FeeSchedule(
        fixed_fee=2.5, percentage_fee=0.002, min_fee=2.5, max_fee=25.0
    ),
}

# Static reference rates; hosts pass live rates via exchange_rates or per call
DEFAULT_EXCHANGE_RATES: dict[str, float] = {
    "USD-EUR": 0.85,
    "EUR-USD": 1.18,
    "USD-GBP": 0.73,
    "GBP-USD": 1.37,
    "USD-JPY": 110.0,
    "JPY-USD": 0.0091,
}

FEE_REVENUE_ACCOUNT = "FEE_REVENUE"

LOAN_MIN_PRINCIPAL = 100.0
LOAN_MAX_PRINCIPAL = 1_000_000.0
LOAN_MAX_RATE = 0.3
LOAN_MAX_MONTHS = 360


def _domain_error(field: str, code: str, message: str, value) -> DomainValidationError:
    return DomainValidationError(
        message, errors=[ValidationError(field=field, code=code, message=message, value=value)]
    )


class TransactionProcessor:
    """Validates, screens and books transfers between two accounts."""

    def __init__(
        self,
        detector: Optional[FraudDetector] = None,
        monitoring: Optional[FraudMonitoringService] = None,
        config: Optional[CoreConfig] = None,
        exchange_rates: Optional[dict[str, float]] = None,
        fee_revenue_account: str = FEE_REVENUE_ACCOUNT,
    ) -> None:
        self.config = config or CoreConfig()
        self.detector = detector or FraudDetector(config=self.config.fraud)
        self.monitoring = monitoring or FraudMonitoringService(config=self.config.monitoring)
        self.exchange_rates = dict(exchange_rates or DEFAULT_EXCHANGE_RATES)
        self.fee_revenue_account = fee_revenue_account

    def get_exchange_rate(self, from_currency: str, to_currency: str) -> float:
        if from_currency == to_currency:
            return 1.0
        rate = self.exchange_rates.get(f"{from_currency}-{to_currency}")
        if rate is None:
            raise _domain_error(
                "exchange_rate",
                "EXCHANGE_RATE_UNAVAILABLE",
                "Exchange rate not available for currency pair",
                f"{from_currency}-{to_currency}",
            )
        return rate

    def calculate_fee(self, amount: float, account_type: AccountType) -> float:
        """Fee for a transfer out of an account of the given type."""
        key = account_type.value if isinstance(account_type, AccountType) else str(account_type)
        schedule = FEE_SCHEDULES.get(key, FEE_SCHEDULES[AccountType.CHECKING.value])
        return calculate_transaction_fee(amount, schedule)

    def _check_source_constraints(
        self,
        from_account: AccountSnapshot,
        transactions: list[LedgerTransaction],
    ) -> None:
        """Apply the ledger overdraft policy to the source account, one posting at a time."""
        account_id = from_account.account_id
        balance = to_decimal(from_account.balance)
        account_types = {account_id: from_account.account_type}
        for txn in transactions:
            validate_account_constraints(
                txn,
                {account_id: AccountBalance(account_id=account_id, net_balance=balance)},
                account_types,
                overdraft_limit=self.config.ledger.overdraft_limit,
            )
            balance -= sum(
                (e.amount for e in txn.entries if e.debit and e.account_id == account_id),
                Decimal("0"),
            )

    def process_transaction(
        self,
        request: TransactionRequest,
        user_id: str,
        from_account: AccountSnapshot,
        to_account: AccountSnapshot,
        history: Optional[list[TransactionPattern]] = None,
        context: Optional[TransactionContext] = None,
        exchange_rate: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> TransactionResult:
        context = context or TransactionContext()
        alerts = []
        risk_score = 0.0

        try:
            if (
                from_account.account_id != request.from_account_id
                or to_account.account_id != request.to_account_id
            ):
                raise _domain_error(
                    "account_id",
                    "ACCOUNT_MISMATCH",
                    "Account details do not match the transfer request",
                    {
                        "from_account_id": from_account.account_id,
                        "to_account_id": to_account.account_id,
                    },
                )

            standard_transaction(
                request.model_dump(exclude={"metadata"}), config=self.config.validation
            )

            validate_or_throw(validate_balance(
                from_account.balance,
                request.amount,
                from_account.account_type,
                from_account.allow_overdraft,
                config=self.config.validation,
            ))

            if from_account.currency != to_account.currency:
                rate = exchange_rate
                if rate is None:
                    rate = self.get_exchange_rate(from_account.currency, to_account.currency)
                international_transfer(
                    from_account.currency,
                    to_account.currency,
                    request.amount,
                    rate,
                    config=self.config.validation,
                )

            pattern = TransactionPattern(
                user_id=user_id,
                account_id=from_account.account_id,
                amount=request.amount,
                timestamp=now or utcnow(),
                location=context.location,
                device=context.device,
                ip_address=context.ip_address,
                merchant_category=context.merchant_category,
            )
            analysis = self.detector.analyze_transaction(pattern, history or [])
            alerts = analysis.alerts
            risk_score = analysis.risk_score
            self.monitoring.record_alerts(alerts)

            if not analysis.approved:
                logger.warning(
                    "Transaction blocked",
                    extra={"user_id": user_id, "risk_score": risk_score},
                )
                return TransactionResult(
                    success=False,
                    fraud_alerts=alerts,
                    risk_score=risk_score,
                    error="Potential fraud detected",
                )

            fee_amount = self.calculate_fee(request.amount, from_account.account_type)

            transactions = [
                create_transfer_transaction(
                    request.from_account_id,
                    request.to_account_id,
                    request.amount,
                    request.description or "Transfer",
                    user_id,
                    reference=request.reference,
                )
            ]
            if fee_amount > 0:
                transactions.append(create_fee_transaction(
                    request.from_account_id,
                    fee_amount,
                    self.fee_revenue_account,
                    "Transaction fee",
                    user_id,
                ))

            if not all(is_valid_transaction(t) for t in transactions):
                raise LedgerError("Invalid transaction structure")
            self._check_source_constraints(from_account, transactions)

        except LedgerGuardError as exc:
            logger.warning(
                "Transaction failed",
                extra={
                    "user_id": user_id,
                    "error": str(exc),
                    "from_account_id": request.from_account_id,
                    "to_account_id": request.to_account_id,
                    "amount": request.amount,
                },
            )
            return TransactionResult(
                success=False,
                fraud_alerts=alerts,
                risk_score=risk_score,
                error=str(exc),
            )

        warnings = [f"{a.alert_type}: {a.description}" for a in alerts]
        logger.info(
            "Transaction processed",
            extra={
                "user_id": user_id,
                "transaction_id": transactions[0].id,
                "amount": request.amount,
                "currency": request.currency,
                "fee_amount": fee_amount,
                "risk_score": risk_score,
            },
        )
        return TransactionResult(
            success=True,
            transactions=transactions,
            fee_amount=fee_amount,
            fraud_alerts=alerts,
            risk_score=risk_score,
            warnings=warnings,
        )

    def quote_loan(self, principal: float, annual_rate: float, months: int) -> LoanDetails:
        """Loan payment and schedule, within the product's lending bounds.

        Raises DomainValidationError for out-of-range terms.
        """
        validate_or_throw(validate_amount(AmountInput(
            amount=principal,
            currency="USD",
            precision=2,
            min_amount=LOAN_MIN_PRINCIPAL,
            max_amount=LOAN_MAX_PRINCIPAL,
        )))
        if annual_rate < 0 or annual_rate > LOAN_MAX_RATE:
            raise _domain_error(
                "annual_rate",
                "INVALID_INTEREST_RATE",
                "Interest rate must be between 0% and 30%",
                annual_rate,
            )
        if months < 1 or months > LOAN_MAX_MONTHS:
            raise _domain_error(
                "months",
                "INVALID_LOAN_TERM",
                "Loan term must be between 1 and 360 months",
                months,
            )
        return calculate_loan_details(principal, annual_rate, months)

    def convert(self, amount: float, from_currency: str, to_currency: str) -> CurrencyConversion:
        validate_or_throw(validate_amount(AmountInput(amount=amount, currency=from_currency)))
        rate = self.get_exchange_rate(from_currency, to_currency)
        return CurrencyConversion(
            amount=amount,
            from_currency=from_currency,
            to_currency=to_currency,
            exchange_rate=rate,
            converted_amount=convert_currency(amount, from_currency, to_currency, rate),
        )
