"""Pydantic models for ledger, validation, calculator and fraud data."""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, Field


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Ledger -----------------------------------------------------------------


class AccountType(str, Enum):
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    BUSINESS = "BUSINESS"
    CREDIT = "CREDIT"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"
    LIABILITY = "LIABILITY"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    POSTED = "posted"
    REVERSED = "reversed"


class LedgerEntry(BaseModel):
    """One side of a double-entry transaction.

    Exactly one of debit/credit should be set and amount should be positive;
    validate_double_entry enforces both so the failure carries a readable
    message instead of a pydantic error.
    """
    id: str
    account_id: str
    amount: Decimal
    debit: bool
    credit: bool
    description: str = ""
    timestamp: datetime = Field(default_factory=utcnow)
    user_id: str
    transaction_id: str


class LedgerTransaction(BaseModel):
    """A group of entries that must balance."""
    id: str
    entries: list[LedgerEntry]
    description: str
    timestamp: datetime = Field(default_factory=utcnow)
    user_id: str
    status: TransactionStatus = TransactionStatus.PENDING
    reference: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class AccountBalance(BaseModel):
    """Balance derived from an entry stream (net = debits - credits)."""
    account_id: str
    debit_balance: Decimal = Decimal("0")
    credit_balance: Decimal = Decimal("0")
    net_balance: Decimal = Decimal("0")
    last_updated: datetime = Field(default_factory=utcnow)


class AtmWithdrawal(BaseModel):
    transfer_txn: LedgerTransaction
    fee_txn: Optional[LedgerTransaction] = None


class InterestBearingDeposit(BaseModel):
    deposit_txn: LedgerTransaction
    interest_txn: Optional[LedgerTransaction] = None


# --- Validation -------------------------------------------------------------


class ValidationError(BaseModel):
    """A single business-rule violation (not to be confused with pydantic's)."""
    field: str
    code: str
    message: str
    value: Any = None


class ValidationResult(BaseModel):
    is_valid: bool = True
    errors: list[ValidationError] = Field(default_factory=list)


class AmountInput(BaseModel):
    """Amount check input. Currency is typed Any so a non-string code is
    reported as INVALID_CURRENCY rather than rejected at construction."""
    amount: float
    currency: Any = None
    precision: int = 2
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None


class TransactionInput(BaseModel):
    """Transfer request as seen by the validators.

    Account ids are typed Any so a non-string id can be reported as
    INVALID_ACCOUNT_ID rather than rejected at construction.
    """
    from_account_id: Any = None
    to_account_id: Any = None
    amount: float
    currency: Any = None
    description: Optional[str] = None
    reference: Optional[str] = None


# --- Financial calculator ---------------------------------------------------


class TaxCalculation(BaseModel):
    amount: float
    tax_rate: float
    tax_amount: float
    total_amount: float
    tax_type: str = "STANDARD"


class InterestCalculation(BaseModel):
    principal: float
    annual_rate: float
    days: int
    compounding: Optional[str] = None
    interest_amount: float
    total_amount: float


class BalanceSummary(BaseModel):
    balance: float
    pending_debits: float
    pending_credits: float
    hold_amount: float
    available_balance: float


class FeeSchedule(BaseModel):
    fixed_fee: float = 0.0
    percentage_fee: float = 0.0
    min_fee: Optional[float] = None
    max_fee: Optional[float] = None


class SpreadConversion(BaseModel):
    amount: float
    mid_rate: float
    buy_rate: float
    sell_rate: float
    spread: float
    converted_amount: float


class LoanPayment(BaseModel):
    monthly_payment: float
    total_payment: float
    total_interest: float


class AmortizationRow(BaseModel):
    month: int
    payment: float
    principal: float
    interest: float
    balance: float


class LoanDetails(LoanPayment):
    schedule: list[AmortizationRow]


class TotalWithFees(BaseModel):
    subtotal: float
    fee: float
    total: float


# --- Fraud ------------------------------------------------------------------

Severity = Literal["info", "low", "medium", "high", "critical"]
RuleAction = Literal["monitor", "flag", "block"]


class TransactionPattern(BaseModel):
    """Normalized observation of a transaction, used as candidate and history."""
    user_id: str
    account_id: str
    amount: float
    timestamp: datetime
    location: Optional[str] = None
    device: Optional[str] = None
    ip_address: Optional[str] = None
    merchant_category: Optional[str] = None


class FraudAlert(BaseModel):
    """Output of a fraud rule that fired. Never mutated after creation."""
    id: str = Field(default_factory=lambda: new_id("ALERT"))
    user_id: str
    account_id: str
    alert_type: str
    severity: Severity
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    detected_at: datetime = Field(default_factory=utcnow)
    transaction_id: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    action: RuleAction


CheckFunction = Callable[[TransactionPattern, list[TransactionPattern]], Optional[FraudAlert]]


class FraudRule(BaseModel):
    """A pluggable fraud check. Built-in and custom rules share this shape."""
    id: str
    name: str
    description: str = ""
    enabled: bool = True
    severity: Severity
    action: RuleAction
    check: CheckFunction

    def evaluate(
        self,
        current: TransactionPattern,
        history: list[TransactionPattern],
    ) -> Optional[FraudAlert]:
        return self.check(current, history)


class FraudAnalysis(BaseModel):
    """Verdict for one candidate transaction."""
    approved: bool
    alerts: list[FraudAlert]
    risk_score: float  # 0.0 - 1.0


class UserProfile(BaseModel):
    user_id: str
    transaction_count: int = 0
    avg_transaction_amount: float = 0.0
    usual_locations: list[str] = Field(default_factory=list)
    usual_devices: list[str] = Field(default_factory=list)
    usual_merchants: list[str] = Field(default_factory=list)
    usual_ip_addresses: list[str] = Field(default_factory=list)
    first_seen: Optional[datetime] = None


# --- External event sink ----------------------------------------------------


class SystemEvent(BaseModel):
    type: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


class SecurityEvent(BaseModel):
    type: str
    message: str
    user_id: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


# --- Transaction processing -------------------------------------------------


class TransactionRequest(BaseModel):
    """Incoming transfer to be validated, screened and booked."""
    from_account_id: str
    to_account_id: str
    amount: float
    currency: str
    description: Optional[str] = None
    reference: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)


class TransactionContext(BaseModel):
    """Client context used for fraud screening."""
    location: Optional[str] = None
    device: Optional[str] = None
    ip_address: Optional[str] = None
    merchant_category: Optional[str] = None


class AccountSnapshot(BaseModel):
    """Account state as loaded by the caller's persistence layer."""
    account_id: str
    account_type: AccountType = AccountType.CHECKING
    balance: float
    currency: str = "USD"
    allow_overdraft: bool = False


class TransactionResult(BaseModel):
    success: bool
    transactions: list[LedgerTransaction] = Field(default_factory=list)
    fee_amount: float = 0.0
    fraud_alerts: list[FraudAlert] = Field(default_factory=list)
    risk_score: float = 0.0
    warnings: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class CurrencyConversion(BaseModel):
    amount: float
    from_currency: str
    to_currency: str
    exchange_rate: float
    converted_amount: float
    timestamp: datetime = Field(default_factory=utcnow)
