"""Closed-form annuity helpers.

Pure functions: Decimal in, Decimal out. No I/O.
Rates are literal annual percentages (3.5 means 3.5%).
"""

from decimal import Decimal, ROUND_HALF_UP

from mortgage_ie.models.rates import Rate, RateType

TWO_PLACES = Decimal("0.01")


def monthly_rate(annual_rate: Decimal) -> Decimal:
    return annual_rate / 100 / 12


def monthly_payment(principal: Decimal, annual_rate: Decimal, months: int) -> Decimal:
    """Level monthly payment that clears principal over months."""
    if principal <= 0 or months <= 0:
        return Decimal("0")
    if annual_rate <= 0:
        return (principal / months).quantize(TWO_PLACES, ROUND_HALF_UP)

    r = monthly_rate(annual_rate)
    # M = P * [r(1+r)^n] / [(1+r)^n - 1]
    factor = (1 + r) ** months
    payment = principal * (r * factor) / (factor - 1)
    return payment.quantize(TWO_PLACES, ROUND_HALF_UP)


def remaining_balance(
    principal: Decimal, annual_rate: Decimal, total_months: int, paid_months: int
) -> Decimal:
    """Balance left after paid_months level payments."""
    if paid_months >= total_months:
        return Decimal("0")
    if annual_rate <= 0:
        return (principal * (1 - Decimal(paid_months) / total_months)).quantize(
            TWO_PLACES, ROUND_HALF_UP
        )

    r = monthly_rate(annual_rate)
    pmt = monthly_payment(principal, annual_rate, total_months)
    growth = (1 + r) ** paid_months
    balance = principal * growth - pmt * (growth - 1) / r
    return max(Decimal("0"), balance.quantize(TWO_PLACES, ROUND_HALF_UP))


def follow_on_payment(
    rate: Rate,
    variable_rate: Rate | None,
    principal: Decimal,
    total_months: int,
) -> Decimal | None:
    """Payment once a fixed term rolls onto the lender's variable rate.

    None when the rate is not fixed, no variable rate is known, or the fixed
    term already covers the whole mortgage.
    """
    if rate.type != RateType.FIXED or not rate.fixed_term_years or variable_rate is None:
        return None

    fixed_months = rate.fixed_term_years * 12
    months_left = total_months - fixed_months
    if months_left <= 0:
        return None

    balance = remaining_balance(principal, rate.rate, total_months, fixed_months)
    return monthly_payment(balance, variable_rate.rate, months_left)


def total_repayable(
    rate: Rate,
    payment: Decimal,
    follow_on: Decimal | None,
    total_months: int,
) -> Decimal:
    if rate.type == RateType.FIXED and rate.fixed_term_years and follow_on is not None:
        fixed_months = rate.fixed_term_years * 12
        return payment * fixed_months + follow_on * (total_months - fixed_months)
    return payment * total_months


def follow_on_ltv(
    principal: Decimal,
    annual_rate: Decimal,
    total_months: int,
    fixed_months: int,
    original_ltv: Decimal,
) -> Decimal:
    """LTV once the fixed period has paid some principal down (property value unchanged)."""
    balance = remaining_balance(principal, annual_rate, total_months, fixed_months)
    return (balance / principal * original_ltv).quantize(TWO_PLACES, ROUND_HALF_UP)


def cost_of_credit_pct(total: Decimal | None, principal: Decimal) -> Decimal | None:
    if total is None or principal <= 0:
        return None
    return ((total - principal) / principal * 100).quantize(TWO_PLACES, ROUND_HALF_UP)
