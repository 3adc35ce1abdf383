"""Domain exceptions raised by the ledger, calculator and validation layers."""


class LedgerGuardError(Exception):
    """Base exception for the library"""

    pass


class LedgerError(LedgerGuardError):
    """A ledger transaction violates a double-entry invariant"""

    pass


class InvalidEntryError(LedgerError):
    """A ledger entry is malformed (wrong side flags or non-positive amount)"""

    pass


class UnbalancedTransactionError(LedgerError):
    """Debits and credits of a transaction do not match"""

    pass


class AccountConstraintError(LedgerError):
    """Posting the transaction would break an account-type balance policy"""

    def __init__(self, message: str, account_id: str) -> None:
        super().__init__(message)
        self.account_id = account_id


class OverdraftLimitExceededError(AccountConstraintError):
    """Checking account would go below the overdraft limit"""

    pass


class InsufficientFundsError(AccountConstraintError):
    """Savings account would go negative"""

    pass


class TrialBalanceError(LedgerError):
    """Total debits across accounts differ from total credits"""

    pass


class ReversalError(LedgerError):
    """Transaction cannot be reversed"""

    pass


class CalculationError(LedgerGuardError):
    """Financial calculation received invalid input"""

    pass


class ConvergenceError(CalculationError):
    """Iterative solver did not converge"""

    pass


class DomainValidationError(LedgerGuardError):
    """Raised by validate_or_throw when a ValidationResult has errors"""

    def __init__(self, message: str, errors: list | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []

    @property
    def code(self) -> str | None:
        return self.errors[0].code if self.errors else None


class RuleRegistryError(LedgerGuardError):
    """Fraud rule lookup or registration failed"""

    pass


class ConfigurationError(LedgerGuardError):
    """Configuration file is unreadable or invalid"""

    pass
