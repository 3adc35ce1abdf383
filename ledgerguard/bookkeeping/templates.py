"""Ready-made transaction shapes built from the double-entry constructors."""

from typing import Optional

from ledgerguard.bookkeeping.rules import (
    DEFAULT_CONFIG,
    create_fee_transaction,
    create_interest_transaction,
    create_transfer_transaction,
)
from ledgerguard.models import AtmWithdrawal, InterestBearingDeposit, LedgerTransaction
from ledgerguard.utils.numbers import Number, to_decimal


def bank_transfer(
    from_account_id: str,
    to_account_id: str,
    amount: Number,
    user_id: str,
    reference: Optional[str] = None,
) -> LedgerTransaction:
    return create_transfer_transaction(
        from_account_id, to_account_id, amount, "Bank Transfer", user_id, reference=reference
    )


def atm_withdrawal(
    account_id: str,
    amount: Number,
    fee: Number,
    fee_revenue_account: str,
    user_id: str,
    cash_account: str = DEFAULT_CONFIG.atm_cash_account,
) -> AtmWithdrawal:
    """Cash out to the ATM cash account, plus a separate fee transaction.

    A zero fee produces no fee transaction.
    """
    transfer_txn = create_transfer_transaction(
        account_id, cash_account, amount, "ATM Withdrawal", user_id
    )
    fee_txn = None
    if to_decimal(fee) > 0:
        fee_txn = create_fee_transaction(
            account_id, fee, fee_revenue_account, "ATM Withdrawal Fee", user_id
        )
    return AtmWithdrawal(transfer_txn=transfer_txn, fee_txn=fee_txn)


def interest_bearing_deposit(
    account_id: str,
    amount: Number,
    interest: Number,
    interest_payable_account: str,
    user_id: str,
    deposit_source: str = DEFAULT_CONFIG.deposit_source_account,
) -> InterestBearingDeposit:
    deposit_txn = create_transfer_transaction(
        deposit_source, account_id, amount, "Deposit", user_id
    )
    interest_txn = None
    if to_decimal(interest) > 0:
        interest_txn = create_interest_transaction(
            account_id, interest, interest_payable_account, "Interest Payment", user_id
        )
    return InterestBearingDeposit(deposit_txn=deposit_txn, interest_txn=interest_txn)


class TransactionTemplates:
    """Namespace grouping the common transaction shapes."""

    bank_transfer = staticmethod(bank_transfer)
    atm_withdrawal = staticmethod(atm_withdrawal)
    interest_bearing_deposit = staticmethod(interest_bearing_deposit)
