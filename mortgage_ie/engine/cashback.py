"""Cashback offer comparison: is a higher rate with cashback worth it?

Pure functions. No I/O.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from itertools import combinations

from mortgage_ie.engine.breakeven import format_breakeven_period, stable_crossover
from mortgage_ie.engine.fees import cashback_amount
from mortgage_ie.engine.payments import monthly_payment, monthly_rate
from mortgage_ie.models.breakeven import (
    CashbackInputs,
    CashbackMonth,
    CashbackOption,
    CashbackOptionResult,
    CashbackPairBreakeven,
    CashbackResult,
    CashbackYear,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
MONTHLY_BREAKDOWN_MONTHS = 48


@dataclass(frozen=True)
class _Path:
    """Month-end running totals for one option, index 0 = month 1."""
    payment: Decimal
    cashback: Decimal
    balances: list[Decimal]
    interest: list[Decimal]
    principal: list[Decimal]

    def net_cost(self, month: int) -> Decimal:
        return self.interest[month - 1] - self.cashback

    def adjusted_balance(self, month: int) -> Decimal:
        return self.balances[month - 1] - self.cashback


def comparison_period_months(options: list[CashbackOption], term_months: int) -> int:
    """Longest fixed period (capped at the term), or the full term if all variable."""
    longest = max((o.fixed_period_years for o in options), default=0)
    if longest == 0:
        return term_months
    return min(longest * 12, term_months)


def _simulate(option: CashbackOption, amount: Decimal, term: int, horizon: int) -> _Path:
    payment = monthly_payment(amount, option.rate, term)
    r = monthly_rate(option.rate)
    balance = amount
    interest_total = principal_total = ZERO
    balances, interest, principal = [], [], []
    for month in range(1, horizon + 1):
        i = (balance * r).quantize(TWO_PLACES, ROUND_HALF_UP)
        p = balance if month == term else min(payment - i, balance)
        balance -= p
        interest_total += i
        principal_total += p
        balances.append(balance)
        interest.append(interest_total)
        principal.append(principal_total)
    cashback = cashback_amount(amount, option.cashback_type, option.cashback_value, option.cashback_cap)
    return _Path(payment, cashback, balances, interest, principal)


def _year_row(paths: list[_Path], year: int, month: int) -> CashbackYear:
    return CashbackYear(
        year=year,
        balances=[p.balances[month - 1] for p in paths],
        net_costs=[p.net_cost(month) for p in paths],
        adjusted_balances=[p.adjusted_balance(month) for p in paths],
        interest_paid=[p.interest[month - 1] for p in paths],
        principal_paid=[p.principal[month - 1] for p in paths],
    )


def _pair_breakeven(
    i: int, j: int, options: list[CashbackOption], paths: list[_Path], period: int
) -> CashbackPairBreakeven:
    """Month from which the option cheaper at the horizon stays cheaper."""
    a, b = paths[i], paths[j]
    a_wins = a.net_cost(period) <= b.net_cost(period)
    winner, loser = (i, j) if a_wins else (j, i)
    w, l = paths[winner], paths[loser]
    holds = [w.net_cost(m) <= l.net_cost(m) for m in range(1, period + 1)]
    month = stable_crossover(holds)

    w_label, l_label = options[winner].label, options[loser].label
    if month == 1:
        month = None
        description = f"{w_label} is cheaper than {l_label} throughout"
    else:
        description = (
            f"{w_label} becomes cheaper than {l_label} after {format_breakeven_period(month)}"
        )
    return CashbackPairBreakeven(
        option_a_index=i,
        option_b_index=j,
        option_a_label=options[i].label,
        option_b_label=options[j].label,
        breakeven_month=month,
        description=description,
    )


def compare_cashback(inputs: CashbackInputs) -> CashbackResult:
    """Compare rate + cashback offers over the longest fixed period.

    Net cost is interest paid over the comparison period less cashback;
    adjusted balance is the balance left at its end less cashback.
    """
    if not inputs.options:
        raise ValueError("At least one cashback option is required")
    if inputs.mortgage_amount <= 0 or inputs.mortgage_term_months <= 0:
        raise ValueError("Mortgage amount and term must be positive")

    options = inputs.options
    term = inputs.mortgage_term_months
    period = comparison_period_months(options, term)
    all_variable = all(o.fixed_period_years == 0 for o in options)

    # One extra year lets us project past a fixed comparison period
    has_projection = not all_variable and period < term
    horizon = min(term, period + 12) if has_projection else period
    paths = [_simulate(o, inputs.mortgage_amount, term, horizon) for o in options]

    cheapest_payment = min(p.payment for p in paths)
    results = [
        CashbackOptionResult(
            label=o.label,
            rate=o.rate,
            fixed_period_years=o.fixed_period_years,
            monthly_payment=p.payment,
            monthly_payment_diff=p.payment - cheapest_payment,
            cashback_amount=p.cashback,
            interest_paid=p.interest[period - 1],
            principal_paid=p.principal[period - 1],
            balance_at_end=p.balances[period - 1],
            net_cost=p.net_cost(period),
            adjusted_balance=p.adjusted_balance(period),
        )
        for o, p in zip(options, paths)
    ]

    def argmin(values: list[Decimal]) -> int:
        return min(range(len(values)), key=lambda k: values[k])

    net_costs = [r.net_cost for r in results]
    cheapest_net = argmin(net_costs)

    yearly = [_year_row(paths, m // 12, m) for m in range(12, period + 1, 12)]
    if period % 12:
        yearly.append(_year_row(paths, period // 12 + 1, period))

    monthly = [
        CashbackMonth(
            month=m,
            net_costs=[p.net_cost(m) for p in paths],
            balances=[p.balances[m - 1] for p in paths],
        )
        for m in range(1, min(MONTHLY_BREAKDOWN_MONTHS, period) + 1)
    ]

    projection = None
    if has_projection:
        projection = _year_row(paths, (period + 11) // 12 + 1, horizon)

    pairwise = [
        _pair_breakeven(i, j, options, paths, period)
        for i, j in combinations(range(len(options)), 2)
    ]

    years = (period + 11) // 12
    savings = max(net_costs) - min(net_costs)
    description = f"{options[cheapest_net].label} has the lowest net cost over {years} years"
    if len(options) > 1:
        worst = options[max(range(len(net_costs)), key=lambda k: net_costs[k])].label
        description += f", saving €{savings:,.2f} versus {worst}"

    logger.debug("Compared %d cashback options over %d months", len(options), period)
    return CashbackResult(
        comparison_period_months=period,
        comparison_period_years=years,
        all_variable=all_variable,
        options=results,
        cheapest_monthly_index=argmin([r.monthly_payment for r in results]),
        cheapest_net_cost_index=cheapest_net,
        cheapest_adjusted_balance_index=argmin([r.adjusted_balance for r in results]),
        savings_vs_worst=savings,
        yearly_breakdown=yearly,
        monthly_breakdown=monthly,
        projection_year=projection,
        pairwise_breakevens=pairwise,
        description=description,
    )
