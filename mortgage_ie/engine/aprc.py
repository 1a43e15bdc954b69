"""APRC (Annual Percentage Rate of Charge) using scipy.

Pure functions. No I/O.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from scipy.optimize import brentq

from mortgage_ie.engine.payments import monthly_payment, remaining_balance

TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class AprcConfig:
    """Lender-specific parameters behind a published APRC."""
    loan_amount: Decimal = Decimal("250000")
    term_years: int = 20
    valuation_fee: Decimal = Decimal("0")  # Deducted from the drawdown
    security_release_fee: Decimal = Decimal("0")  # Added to the final payment


def aprc_cash_flows(
    fixed_rate: Decimal,
    fixed_term_months: int,
    follow_on_rate: Decimal,
    config: AprcConfig,
) -> list[Decimal]:
    """Drawdown (negative) then monthly repayments, rounded to cents."""
    total_months = config.term_years * 12
    variable_months = total_months - fixed_term_months
    fixed_payment = monthly_payment(config.loan_amount, fixed_rate, total_months)

    flows = [-(config.loan_amount - config.valuation_fee)]
    if variable_months <= 0:
        flows.extend([fixed_payment] * total_months)
    else:
        balance = remaining_balance(config.loan_amount, fixed_rate, total_months, fixed_term_months)
        variable_payment = monthly_payment(balance, follow_on_rate, variable_months)
        flows.extend([fixed_payment] * fixed_term_months)
        flows.extend([variable_payment] * variable_months)
    flows[-1] += config.security_release_fee
    return flows


def _monthly_irr(cash_flows: list[Decimal]) -> float:
    cf_float = [float(cf) for cf in cash_flows]

    def npv(rate: float) -> float:
        return sum(cf / (1 + rate) ** t for t, cf in enumerate(cf_float))

    # Monthly rates between -5% and 10% bracket any realistic mortgage
    return brentq(npv, -0.05, 0.10, xtol=1e-12, maxiter=1000)


def _annual_pct(cash_flows: list[Decimal]) -> float:
    return ((1 + _monthly_irr(cash_flows)) ** 12 - 1) * 100


def calculate_aprc(
    fixed_rate: Decimal,
    fixed_term_months: int,
    follow_on_rate: Decimal,
    config: AprcConfig,
) -> Decimal:
    """APRC as a percentage to 2 dp.

    Effective annual rate of the monthly IRR that equates the net drawdown
    with the discounted repayments.
    """
    flows = aprc_cash_flows(fixed_rate, fixed_term_months, follow_on_rate, config)
    return Decimal(str(_annual_pct(flows))).quantize(TWO_PLACES, ROUND_HALF_UP)


def infer_follow_on_rate(
    fixed_rate: Decimal,
    fixed_term_years: int,
    observed_aprc: Decimal,
    config: AprcConfig,
) -> Decimal:
    """Variable rate that reproduces a lender's published APRC.

    Searched between 0.01% and 15%; clamps to the nearer bound when the
    observed APRC is out of reach.
    """
    fixed_months = fixed_term_years * 12
    target = float(observed_aprc)

    def gap(rate: float) -> float:
        flows = aprc_cash_flows(fixed_rate, fixed_months, Decimal(str(rate)), config)
        return _annual_pct(flows) - target

    low, high = 0.01, 15.0
    try:
        rate = brentq(gap, low, high, xtol=1e-6, maxiter=200)
    except ValueError:
        # Same sign at both ends
        rate = low if abs(gap(low)) < abs(gap(high)) else high
    return Decimal(str(rate)).quantize(TWO_PLACES, ROUND_HALF_UP)
