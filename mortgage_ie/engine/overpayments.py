"""Overpayment allowance rules and fee-free overpayment planning.

Pure functions. No I/O. Allowances are advisory: they classify an
overpayment, they never cap what gets applied.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP

from dateutil.relativedelta import relativedelta

from mortgage_ie.engine.payments import monthly_payment, monthly_rate
from mortgage_ie.models.overpayments import (
    AllowanceBasis,
    AllowanceCheck,
    AllowanceType,
    AppliedOverpayment,
    OverpaymentConfig,
    OverpaymentPolicy,
    OverpaymentType,
    TransactionWindow,
    YearlyOverpaymentPlan,
)
from mortgage_ie.models.rates import ResolvedRatePeriod

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def calendar_date(start_date: date, month: int) -> date:
    """Calendar date of mortgage month (month 1 is the start date)."""
    return start_date + relativedelta(months=month - 1)


def allowance_ceiling(
    policy: OverpaymentPolicy | None,
    balance: Decimal,
    payment: Decimal,
    used: Decimal = ZERO,
) -> Decimal:
    """Fee-free amount still available.

    balance: balance at the start of the allowance year for balance-based
    policies. used: overpayments already made in the current allowance
    window (year, or month for monthly-payment policies).
    """
    if policy is None:
        return ZERO

    if policy.allowance_type == AllowanceType.FLAT:
        return max(ZERO, policy.allowance_value - used)

    if policy.basis == AllowanceBasis.BALANCE:
        yearly = (balance * policy.allowance_value / 100).quantize(TWO_PLACES, ROUND_HALF_UP)
        return max(ZERO, yearly - used)

    # Percentage of the monthly payment, renewed every month
    monthly = (payment * policy.allowance_value / 100).quantize(TWO_PLACES, ROUND_HALF_UP)
    if policy.min_amount:
        monthly = max(monthly, policy.min_amount)
    return max(ZERO, monthly - used)


def check_allowance(
    policy: OverpaymentPolicy | None,
    amount: Decimal,
    balance: Decimal,
    payment: Decimal,
    used: Decimal = ZERO,
) -> AllowanceCheck:
    ceiling = allowance_ceiling(policy, balance, payment, used)
    within = min(amount, ceiling)
    excess = amount - within
    chargeable = excess
    if policy is not None and policy.charge_cap is not None:
        chargeable = min(excess, policy.charge_cap)
    return AllowanceCheck(ceiling=ceiling, within=within, excess=excess, chargeable_excess=chargeable)


def overpayment_applies(config: OverpaymentConfig, month: int) -> bool:
    if not config.enabled:
        return False
    if config.type == OverpaymentType.ONE_TIME:
        return config.start_month == month
    if month < config.start_month:
        return False
    if config.end_month is not None and month > config.end_month:
        return False
    return (month - config.start_month) % config.frequency.interval_months == 0


def due_overpayments(
    configs: list[OverpaymentConfig], period: ResolvedRatePeriod, month: int
) -> list[OverpaymentConfig]:
    """Configs linked to the active period that fall due this month."""
    return [
        c for c in configs
        if c.rate_period_id == period.period_id and overpayment_applies(c, month)
    ]


def allowance_year_key(period_id: str, month: int, start_date: date | None) -> str:
    if start_date is not None:
        return f"{period_id}-{calendar_date(start_date, month).year}"
    return f"{period_id}-{(month + 11) // 12}"


def transaction_window_key(
    period_id: str,
    month: int,
    start_date: date | None,
    window: TransactionWindow,
) -> str:
    """Key of the counting window a transaction falls in."""
    if window == TransactionWindow.FIXED_PERIOD:
        return period_id

    if start_date is None:
        if window == TransactionWindow.MONTH:
            return f"{period_id}-m{month}"
        if window == TransactionWindow.QUARTER:
            return f"{period_id}-q{(month + 2) // 3}"
        return f"{period_id}-y{(month + 11) // 12}"

    d = calendar_date(start_date, month)
    if window == TransactionWindow.MONTH:
        return f"{period_id}-{d.year}-{d.month}"
    if window == TransactionWindow.QUARTER:
        return f"{period_id}-{d.year}-Q{(d.month - 1) // 3 + 1}"
    return f"{period_id}-{d.year}"


def window_label(window: TransactionWindow) -> str:
    return "fixed period" if window == TransactionWindow.FIXED_PERIOD else window.value


def overpayment_maps(
    applied: list[AppliedOverpayment],
) -> tuple[dict[int, Decimal], dict[int, Decimal]]:
    """(one-time by month, recurring by month)."""
    one_time: dict[int, Decimal] = defaultdict(Decimal)
    recurring: dict[int, Decimal] = defaultdict(Decimal)
    for op in applied:
        target = recurring if op.is_recurring else one_time
        target[op.month] += op.amount
    return dict(one_time), dict(recurring)


# ---- Fee-free overpayment planning ----

def max_monthly_overpayment_for_year(
    policy: OverpaymentPolicy, balance: Decimal, payment: Decimal
) -> Decimal:
    if policy.allowance_type == AllowanceType.FLAT:
        amount = policy.allowance_value / 12
    elif policy.basis == AllowanceBasis.BALANCE:
        amount = balance * policy.allowance_value / 100 / 12
    else:
        amount = payment * policy.allowance_value / 100

    amount = amount.quantize(TWO_PLACES, ROUND_DOWN)
    if policy.min_amount:
        amount = max(amount, policy.min_amount)
    return amount


def is_constant_allowance_policy(policy: OverpaymentPolicy) -> bool:
    """Allowance does not depend on the balance (flat, or % of a fixed payment)."""
    if policy.allowance_type == AllowanceType.FLAT:
        return True
    return policy.basis == AllowanceBasis.MONTHLY


def year_boundaries(
    start_date: date | None, first_month: int, last_month: int
) -> list[tuple[int, int]]:
    """(start, end) month pairs, split at December when a start date is known."""
    boundaries = []
    current = first_month
    while current <= last_month:
        if start_date is None:
            end = min(current + 11, last_month)
        else:
            end = min(current + 12 - calendar_date(start_date, current).month, last_month)
        boundaries.append((current, end))
        current = end + 1
    return boundaries


def yearly_overpayment_plans(
    policy: OverpaymentPolicy,
    period: ResolvedRatePeriod,
    mortgage_amount: Decimal,
    total_months: int,
    start_date: date | None = None,
    construction_end_month: int | None = None,
) -> list[YearlyOverpaymentPlan]:
    """Largest monthly overpayment per year that stays within the allowance.

    Self-build mortgages start planning after the final drawdown.
    """
    duration = period.duration_months or total_months - period.start_month + 1
    period_end = period.start_month + duration - 1

    first_month = period.start_month
    if construction_end_month and period.start_month <= construction_end_month:
        first_month = construction_end_month + 1
    if first_month > period_end:
        return []

    payment = monthly_payment(mortgage_amount, period.rate, total_months - period.start_month + 1)

    if is_constant_allowance_policy(policy):
        amount = max_monthly_overpayment_for_year(policy, mortgage_amount, payment)
        if amount <= 0:
            return []
        return [YearlyOverpaymentPlan(1, first_month, period_end, amount, mortgage_amount)]

    plans: list[YearlyOverpaymentPlan] = []
    balance = mortgage_amount
    r = monthly_rate(period.rate)
    for i, (start, end) in enumerate(year_boundaries(start_date, first_month, period_end), 1):
        amount = max_monthly_overpayment_for_year(policy, balance, payment)
        if amount > 0:
            plans.append(YearlyOverpaymentPlan(i, start, end, amount, balance))

        for _ in range(end - start + 1):
            interest = (balance * r).quantize(TWO_PLACES, ROUND_HALF_UP)
            balance = max(ZERO, balance - (payment - interest) - amount)
        if balance <= 0:
            break

    return plans


def describe_policy(policy: OverpaymentPolicy | None) -> str:
    if policy is None:
        return "No allowance"
    if policy.allowance_type == AllowanceType.FLAT:
        return f"€{policy.allowance_value:,} per year"
    if policy.basis == AllowanceBasis.MONTHLY:
        return f"{policy.allowance_value}% of monthly payment"
    return f"{policy.allowance_value}% of balance per year"
