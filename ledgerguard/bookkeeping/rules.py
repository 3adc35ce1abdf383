"""Double-entry construction and invariant checks.

Every transaction built here is balanced and validated before it is
returned. Checks on caller-supplied transactions raise a LedgerError
subclass with a message fit for an end user, e.g.

    Transaction is not balanced. Debits: 100, Credits: 200

Amounts are summed as Decimal so 0.1 + 0.2 balances against 0.3.
"""

import logging
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Union

from ledgerguard.config import LedgerConfig
from ledgerguard.exceptions import (
    InsufficientFundsError,
    InvalidEntryError,
    LedgerError,
    OverdraftLimitExceededError,
    ReversalError,
    TrialBalanceError,
    UnbalancedTransactionError,
)
from ledgerguard.models import (
    AccountBalance,
    AccountType,
    LedgerEntry,
    LedgerTransaction,
    TransactionStatus,
    new_id,
    utcnow,
)
from ledgerguard.utils.numbers import Number, format_amount, to_decimal

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = LedgerConfig()
ZERO = Decimal("0")


def validate_double_entry(transaction: LedgerTransaction) -> None:
    """Raise unless the transaction is a well-formed balanced double entry.

    Checks, in order: entry count, side flags, positive amounts, balance.
    """
    if len(transaction.entries) < 2:
        raise InvalidEntryError("Transaction must have at least 2 entries")

    for entry in transaction.entries:
        if entry.debit and entry.credit:
            raise InvalidEntryError("Entry cannot be both debit and credit")
        if not entry.debit and not entry.credit:
            raise InvalidEntryError("Entry must be either debit or credit")

    for entry in transaction.entries:
        if entry.amount <= 0:
            raise InvalidEntryError("Entry amounts must be positive")

    total_debits = sum((e.amount for e in transaction.entries if e.debit), ZERO)
    total_credits = sum((e.amount for e in transaction.entries if e.credit), ZERO)

    if total_debits != total_credits:
        raise UnbalancedTransactionError(
            f"Transaction is not balanced. Debits: {format_amount(total_debits)}, "
            f"Credits: {format_amount(total_credits)}"
        )


def is_valid_transaction(transaction: LedgerTransaction) -> bool:
    try:
        validate_double_entry(transaction)
    except LedgerError:
        return False
    return True


def _entry(
    transaction_id: str,
    account_id: str,
    amount: Decimal,
    is_debit: bool,
    description: str,
    user_id: str,
) -> LedgerEntry:
    return LedgerEntry(
        id=new_id("ENT"),
        account_id=account_id,
        amount=amount,
        debit=is_debit,
        credit=not is_debit,
        description=description,
        user_id=user_id,
        transaction_id=transaction_id,
    )


def _two_entry_transaction(
    debit_account: str,
    credit_account: str,
    amount: Number,
    description: str,
    user_id: str,
    reference: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> LedgerTransaction:
    transaction_id = new_id("TXN")
    value = to_decimal(amount)
    transaction = LedgerTransaction(
        id=transaction_id,
        entries=[
            _entry(transaction_id, debit_account, value, True, description, user_id),
            _entry(transaction_id, credit_account, value, False, description, user_id),
        ],
        description=description,
        user_id=user_id,
        status=TransactionStatus.PENDING,
        reference=reference,
        metadata=metadata or {},
    )
    validate_double_entry(transaction)
    return transaction


def create_transfer_transaction(
    from_account_id: str,
    to_account_id: str,
    amount: Number,
    description: str,
    user_id: str,
    reference: Optional[str] = None,
) -> LedgerTransaction:
    """Debit the source account, credit the destination."""
    return _two_entry_transaction(
        from_account_id, to_account_id, amount, description, user_id, reference=reference
    )


def create_fee_transaction(
    account_id: str,
    fee_amount: Number,
    fee_revenue_account: str,
    description: str,
    user_id: str,
) -> LedgerTransaction:
    """Debit the charged account, credit fee revenue."""
    return _two_entry_transaction(account_id, fee_revenue_account, fee_amount, description, user_id)


def create_interest_transaction(
    account_id: str,
    interest_amount: Number,
    interest_payable_account: str,
    description: str,
    user_id: str,
) -> LedgerTransaction:
    """Debit interest payable, credit the account receiving interest."""
    return _two_entry_transaction(
        interest_payable_account, account_id, interest_amount, description, user_id
    )


def calculate_balance(entries: Iterable[LedgerEntry], account_id: str) -> AccountBalance:
    """Fold the account's entries into debit/credit/net totals."""
    debit_balance = ZERO
    credit_balance = ZERO
    last_updated = None

    for entry in entries:
        if entry.account_id != account_id:
            continue
        if entry.debit:
            debit_balance += entry.amount
        elif entry.credit:
            credit_balance += entry.amount
        if last_updated is None or entry.timestamp > last_updated:
            last_updated = entry.timestamp

    return AccountBalance(
        account_id=account_id,
        debit_balance=debit_balance,
        credit_balance=credit_balance,
        net_balance=debit_balance - credit_balance,
        last_updated=last_updated or utcnow(),
    )


def validate_account_constraints(
    transaction: LedgerTransaction,
    account_balances: Mapping[str, AccountBalance],
    account_types: Mapping[str, Union[AccountType, str]],
    overdraft_limit: Number = DEFAULT_CONFIG.overdraft_limit,
) -> None:
    """Reject transactions that overdraw accounts beyond their policy.

    Only accounts the transaction draws down (has a debit entry on) are
    checked. For those, the projected balance is the current net balance
    minus this transaction's debits plus its credits on the same account.
    A missing balance counts as zero; an account type other than CHECKING
    or SAVINGS carries no constraint.
    """
    debits: dict[str, Decimal] = {}
    credits: dict[str, Decimal] = {}
    for entry in transaction.entries:
        bucket = debits if entry.debit else credits
        bucket[entry.account_id] = bucket.get(entry.account_id, ZERO) + entry.amount

    limit = to_decimal(overdraft_limit)
    for account_id, debit_total in debits.items():
        balance = account_balances.get(account_id)
        current = balance.net_balance if balance is not None else ZERO
        projected = current - debit_total + credits.get(account_id, ZERO)
        account_type = account_types.get(account_id)

        if account_type == AccountType.CHECKING and projected < -limit:
            raise OverdraftLimitExceededError(
                f"Overdraft limit exceeded for account {account_id}", account_id
            )
        if account_type == AccountType.SAVINGS and projected < 0:
            raise InsufficientFundsError(
                f"Insufficient funds in savings account {account_id}", account_id
            )


def reverse_transaction(
    original: LedgerTransaction,
    reason: str,
    user_id: str,
) -> LedgerTransaction:
    """Build the mirror-image transaction that cancels `original`.

    The original is left untouched; marking it reversed is the ledger
    store's job once the reversal is posted.
    """
    if original.status == TransactionStatus.REVERSED:
        raise ReversalError(f"Transaction {original.id} has already been reversed")

    reversal_id = new_id("REV")
    description = f"Reversal of {original.id}"
    entries = [
        LedgerEntry(
            id=new_id("ENT"),
            account_id=entry.account_id,
            amount=entry.amount,
            debit=entry.credit,
            credit=entry.debit,
            description=f"Reversal: {entry.description}" if entry.description else description,
            user_id=user_id,
            transaction_id=reversal_id,
        )
        for entry in original.entries
    ]

    logger.info(
        "Reversal transaction built",
        extra={"original_transaction_id": original.id, "reversal_id": reversal_id, "reason": reason},
    )
    return LedgerTransaction(
        id=reversal_id,
        entries=entries,
        description=description,
        user_id=user_id,
        status=TransactionStatus.PENDING,
        reference=original.id,
        metadata={"original_transaction_id": original.id, "reversal_reason": reason},
    )


def validate_trial_balance(balances: Iterable[AccountBalance]) -> None:
    total_debits = ZERO
    total_credits = ZERO
    for balance in balances:
        total_debits += balance.debit_balance
        total_credits += balance.credit_balance

    if total_debits != total_credits:
        raise TrialBalanceError(
            f"Trial balance is not balanced. Debits: {format_amount(total_debits)}, "
            f"Credits: {format_amount(total_credits)}"
        )


def create_adjusting_entry(
    account_id: str,
    amount: Number,
    is_debit: bool,
    description: str,
    user_id: str,
    clearing_account: str = DEFAULT_CONFIG.adjustment_clearing_account,
) -> LedgerTransaction:
    """Two-entry adjustment against the clearing account."""
    debit_account, credit_account = (
        (account_id, clearing_account) if is_debit else (clearing_account, account_id)
    )
    return _two_entry_transaction(
        debit_account,
        credit_account,
        amount,
        f"Adjusting entry: {description}",
        user_id,
        metadata={"is_adjusting_entry": True},
    )
