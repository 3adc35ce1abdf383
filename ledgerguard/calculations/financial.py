"""Deterministic financial math.

Every function is pure. Invalid input raises CalculationError rather than
returning a number that looks plausible but is wrong.

Monetary results that represent an amount to be booked (converted amounts,
tax, fees, amortization rows) are rounded half-up to the currency precision.
Rates and intermediate results (interest accrual, NPV, IRR) are returned
unrounded so callers can decide where rounding happens.
"""

import logging
from typing import Union

from ledgerguard.exceptions import CalculationError, ConvergenceError
from ledgerguard.models import (
    AmortizationRow,
    BalanceSummary,
    FeeSchedule,
    InterestCalculation,
    LoanDetails,
    LoanPayment,
    SpreadConversion,
    TaxCalculation,
    TotalWithFees,
)
from ledgerguard.utils.numbers import round_half_up

logger = logging.getLogger(__name__)

# Minor-unit digits per ISO 4217 code (plus the common crypto assets)
CURRENCY_PRECISION: dict[str, int] = {
    "USD": 2, "EUR": 2, "GBP": 2, "CAD": 2, "AUD": 2, "CHF": 2,
    "CNY": 2, "INR": 2, "MXN": 2, "BRL": 2,
    "JPY": 0, "KRW": 0, "VND": 0, "CLP": 0, "ISK": 0,
    "KWD": 3, "BHD": 3, "OMR": 3, "JOD": 3, "TND": 3,
    "BTC": 8, "ETH": 8,
}
DEFAULT_PRECISION = 2

COMPOUNDING_PERIODS: dict[str, int] = {
    "daily": 365,
    "weekly": 52,
    "monthly": 12,
    "quarterly": 4,
    "semiannually": 2,
    "annually": 1,
}

IRR_MAX_ITERATIONS = 1000
IRR_TOLERANCE = 1e-7


def get_currency_precision(currency: str) -> int:
    return CURRENCY_PRECISION.get(currency.upper(), DEFAULT_PRECISION)


def convert_currency(
    amount: float,
    from_currency: str,
    to_currency: str,
    rate: float,
) -> float:
    """Convert `amount` at `rate`, rounded to the target currency's precision.

    Example:
        convert_currency(100, "USD", "JPY", 110.123) -> 11012.0
    """
    if amount < 0:
        raise CalculationError("Cannot convert negative amounts")
    if rate <= 0:
        raise CalculationError("Exchange rate must be positive")

    return round_half_up(amount * rate, get_currency_precision(to_currency))


def calculate_tax(amount: float, rate: float) -> TaxCalculation:
    if amount < 0:
        raise CalculationError("Amount cannot be negative")
    if rate < 0 or rate > 1:
        raise CalculationError("Tax rate must be between 0 and 1")

    tax_amount = round_half_up(amount * rate, 2)
    return TaxCalculation(
        amount=amount,
        tax_rate=rate,
        tax_amount=tax_amount,
        total_amount=round_half_up(amount + tax_amount, 2),
    )


def calculate_interest(
    principal: float,
    annual_rate: float,
    days: int,
    compounding: str = "daily",
) -> InterestCalculation:
    """Compound interest accrued over `days`.

    The rate per period is annual_rate / periods_per_year and the number of
    elapsed periods is days * periods_per_year / 365, so daily compounding
    reduces to principal * ((1 + r/365) ** days - 1).
    """
    if principal < 0 or annual_rate < 0 or days < 0:
        raise CalculationError("Interest parameters cannot be negative")

    periods_per_year = COMPOUNDING_PERIODS.get(compounding.lower())
    if periods_per_year is None:
        raise CalculationError(f"Unsupported compounding frequency: {compounding}")

    effective_rate = annual_rate / periods_per_year
    periods = days * periods_per_year / 365
    interest_amount = principal * ((1 + effective_rate) ** periods - 1)

    return InterestCalculation(
        principal=principal,
        annual_rate=annual_rate,
        days=days,
        compounding=compounding,
        interest_amount=interest_amount,
        total_amount=principal + interest_amount,
    )


def calculate_simple_interest(principal: float, annual_rate: float, days: int) -> InterestCalculation:
    if principal < 0 or annual_rate < 0 or days < 0:
        raise CalculationError("Interest parameters cannot be negative")

    interest_amount = principal * annual_rate * (days / 365)
    return InterestCalculation(
        principal=principal,
        annual_rate=annual_rate,
        days=days,
        interest_amount=interest_amount,
        total_amount=principal + interest_amount,
    )


def calculate_balance_summary(
    balance: float,
    pending_debits: float = 0,
    pending_credits: float = 0,
    hold: float = 0,
) -> BalanceSummary:
    return BalanceSummary(
        balance=balance,
        pending_debits=pending_debits,
        pending_credits=pending_credits,
        hold_amount=hold,
        available_balance=balance - pending_debits - hold + pending_credits,
    )


def _fee_schedule(fee_config: Union[FeeSchedule, dict, None]) -> FeeSchedule:
    if fee_config is None:
        return FeeSchedule()
    if isinstance(fee_config, FeeSchedule):
        return fee_config
    return FeeSchedule(**fee_config)


def calculate_transaction_fee(
    amount: float,
    fee_config: Union[FeeSchedule, dict, None] = None,
) -> float:
    """Fixed + percentage fee, clamped to [min_fee, max_fee] when provided.

    Example:
        calculate_transaction_fee(10, {"fixed_fee": 0.5, "percentage_fee": 0.01, "min_fee": 2.0})
        -> 2.0  (0.60 computed, raised to the minimum)
    """
    if amount < 0:
        raise CalculationError("Amount cannot be negative")

    schedule = _fee_schedule(fee_config)
    fee = schedule.fixed_fee + schedule.percentage_fee * amount

    if schedule.min_fee is not None and fee < schedule.min_fee:
        fee = schedule.min_fee
    if schedule.max_fee is not None and fee > schedule.max_fee:
        fee = schedule.max_fee

    return round_half_up(fee, 2)


def calculate_conversion_with_spread(
    amount: float,
    mid_rate: float,
    spread_pct: float,
) -> SpreadConversion:
    """Customer buys the target currency at the sell side of the spread."""
    if amount < 0:
        raise CalculationError("Cannot convert negative amounts")
    if mid_rate <= 0:
        raise CalculationError("Exchange rate must be positive")
    if spread_pct < 0 or spread_pct >= 1:
        raise CalculationError("Spread must be between 0 and 1")

    buy_rate = mid_rate * (1 - spread_pct)
    sell_rate = mid_rate * (1 + spread_pct)
    return SpreadConversion(
        amount=amount,
        mid_rate=mid_rate,
        buy_rate=buy_rate,
        sell_rate=sell_rate,
        spread=spread_pct,
        converted_amount=amount * sell_rate,
    )


def _validate_loan(principal: float, annual_rate: float, num_months: int) -> None:
    if principal <= 0 or annual_rate < 0 or num_months <= 0:
        raise CalculationError("Invalid loan parameters")


def _payment(principal: float, monthly_rate: float, num_months: int) -> float:
    if monthly_rate == 0:
        return principal / num_months
    return principal * monthly_rate / (1 - (1 + monthly_rate) ** -num_months)


def calculate_monthly_payment(principal: float, annual_rate: float, num_months: int) -> LoanPayment:
    """Level payment for a fully amortizing loan: P*r / (1 - (1+r)^-n)."""
    _validate_loan(principal, annual_rate, num_months)

    payment = _payment(principal, annual_rate / 12, num_months)
    total_payment = payment * num_months
    return LoanPayment(
        monthly_payment=payment,
        total_payment=total_payment,
        total_interest=total_payment - principal,
    )


def calculate_amortization_schedule(
    principal: float,
    annual_rate: float,
    num_months: int,
) -> list[AmortizationRow]:
    """Month-by-month breakdown rounded to cents.

    Each row pays the rounded level payment. The final row absorbs the
    accumulated rounding drift so the closing balance is exactly 0.
    """
    _validate_loan(principal, annual_rate, num_months)

    monthly_rate = annual_rate / 12
    payment = round_half_up(_payment(principal, monthly_rate, num_months), 2)
    balance = round_half_up(principal, 2)

    schedule: list[AmortizationRow] = []
    for month in range(1, num_months + 1):
        interest = round_half_up(balance * monthly_rate, 2)

        if month == num_months:
            principal_part = balance
            row_payment = round_half_up(principal_part + interest, 2)
        else:
            principal_part = round_half_up(payment - interest, 2)
            # Rounding can make the level payment overshoot a tiny balance
            principal_part = min(principal_part, balance)
            row_payment = round_half_up(principal_part + interest, 2)

        balance = round_half_up(balance - principal_part, 2)
        schedule.append(
            AmortizationRow(
                month=month,
                payment=row_payment,
                principal=principal_part,
                interest=interest,
                balance=balance,
            )
        )

    return schedule


def calculate_npv(cash_flows: list[float], rate: float) -> float:
    """Net present value; cash_flows[0] happens now and is not discounted."""
    if rate <= -1:
        raise CalculationError("Discount rate must be greater than -100%")

    return sum(cf / (1 + rate) ** t for t, cf in enumerate(cash_flows))


def _npv_derivative(cash_flows: list[float], rate: float) -> float:
    return sum(-t * cf / (1 + rate) ** (t + 1) for t, cf in enumerate(cash_flows) if t > 0)


def calculate_irr(
    cash_flows: list[float],
    guess: float = 0.1,
    max_iterations: int = IRR_MAX_ITERATIONS,
    tolerance: float = IRR_TOLERANCE,
) -> float:
    """Internal rate of return via Newton-Raphson on the NPV function.

    The loop is capped at `max_iterations`. Flows without both a positive
    and a negative value have no IRR and fail immediately.
    """
    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)
    if not (has_positive and has_negative):
        raise ConvergenceError("IRR calculation failed to converge")

    rate = guess
    for iteration in range(max_iterations):
        npv = calculate_npv(cash_flows, rate)
        derivative = _npv_derivative(cash_flows, rate)
        if derivative == 0:
            break

        next_rate = rate - npv / derivative
        if next_rate <= -1:
            # Newton overshot past -100%; pull back halfway toward the limit
            next_rate = (rate - 1) / 2

        if abs(next_rate - rate) < tolerance:
            logger.debug("IRR converged", extra={"iterations": iteration + 1, "rate": next_rate})
            return next_rate
        rate = next_rate

    raise ConvergenceError("IRR calculation failed to converge")


def calculate_total_with_fees(
    amount: float,
    fee_config: Union[FeeSchedule, dict, None] = None,
) -> TotalWithFees:
    fee = calculate_transaction_fee(amount, fee_config)
    return TotalWithFees(subtotal=amount, fee=fee, total=round_half_up(amount + fee, 2))


def calculate_loan_details(principal: float, annual_rate: float, num_months: int) -> LoanDetails:
    payment = calculate_monthly_payment(principal, annual_rate, num_months)
    return LoanDetails(
        monthly_payment=payment.monthly_payment,
        total_payment=payment.total_payment,
        total_interest=payment.total_interest,
        schedule=calculate_amortization_schedule(principal, annual_rate, num_months),
    )
