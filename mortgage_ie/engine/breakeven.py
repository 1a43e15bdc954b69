"""Rent vs buy and remortgage breakeven comparators.

Pure functions. No I/O. A breakeven month is a stable crossover: the first
month from which the comparison favours one path through to the horizon.
"""

import logging
import math
from decimal import Decimal, ROUND_HALF_UP

from mortgage_ie.engine.fees import default_legal_fees, default_remortgage_legal_fees, stamp_duty
from mortgage_ie.engine.payments import monthly_payment, monthly_rate
from mortgage_ie.models.breakeven import (
    EquityBreakevenDetails,
    InterestSavingsDetails,
    NetWorthBreakevenDetails,
    RemortgageBreakevenDetails,
    RemortgageInputs,
    RemortgageResult,
    RemortgageYear,
    RentVsBuyInputs,
    RentVsBuyResult,
    RentVsBuyYear,
    SaleBreakevenDetails,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def _cents(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def stable_crossover(holds: list[bool]) -> int | None:
    """1-indexed month from which every remaining entry is True.

    None when the last entry is False (the comparison never settles).
    """
    month = None
    for i in range(len(holds) - 1, -1, -1):
        if not holds[i]:
            break
        month = i + 1
    return month


def monthly_compound_rate(annual_pct: Decimal) -> Decimal:
    """Monthly rate that compounds to annual_pct over 12 months."""
    return Decimal(str((1 + float(annual_pct) / 100) ** (1 / 12) - 1))


def format_breakeven_period(months: float | int | None) -> str:
    """e.g. "3 months", "1 year 6 months", "Never"."""
    if months is None or not math.isfinite(months):
        return "Never"

    total = math.ceil(months)
    years, rest = divmod(total, 12)
    month_part = f"{rest} month{'s' if rest != 1 else ''}"
    if years == 0:
        return month_part
    year_part = f"{years} year{'s' if years != 1 else ''}"
    if rest == 0:
        return year_part
    return f"{year_part} {month_part}"


# ---- Rent vs buy ----

def rent_vs_buy(inputs: RentVsBuyInputs) -> RentVsBuyResult:
    """Compare buying with renting and investing the difference.

    Ownership carries the deposit, purchase costs, mortgage payments,
    maintenance, service charge and the growth the renter's portfolio would
    have earned. Three independent milestones are tracked: net worth (net
    ownership cost below cumulative rent), sale (sale proceeds above upfront
    costs) and equity recovery (equity above upfront costs).
    """
    legal_fees = inputs.legal_fees if inputs.legal_fees is not None else default_legal_fees()
    mortgage_amount = inputs.property_value - inputs.deposit
    duty = stamp_duty(inputs.property_value)
    purchase_costs = duty + legal_fees
    upfront = inputs.deposit + purchase_costs

    term = inputs.mortgage_term_months
    payment = monthly_payment(mortgage_amount, inputs.mortgage_rate, term)
    r = monthly_rate(inputs.mortgage_rate)
    appreciation = monthly_compound_rate(inputs.home_appreciation_rate)
    opportunity = monthly_compound_rate(inputs.opportunity_cost_rate)

    rent = inputs.current_monthly_rent
    service_charge = inputs.service_charge
    home_value = inputs.property_value
    balance = mortgage_amount
    cumulative_rent = ZERO
    cumulative_ownership = upfront
    portfolio = upfront  # What the renter has invested instead

    net_worth_holds, sale_holds, equity_holds = [], [], []
    net_worth_details, sale_details, equity_details = [], [], []
    yearly: list[RentVsBuyYear] = []

    for month in range(1, term + 1):
        if month > 1 and (month - 1) % 12 == 0:
            rent *= 1 + inputs.rent_inflation_rate / 100
            service_charge *= 1 + inputs.service_charge_increase / 100
        cumulative_rent += rent

        home_value *= 1 + appreciation
        maintenance = home_value * inputs.maintenance_rate / 100 / 12
        ownership_cost = payment + maintenance + service_charge

        growth = portfolio * opportunity
        portfolio += growth
        if rent < ownership_cost:
            portfolio += ownership_cost - rent
        cumulative_ownership += ownership_cost + growth

        interest = _cents(balance * r)
        balance = max(ZERO, balance - (payment - interest))

        equity = home_value - balance
        sale_costs = home_value * inputs.sale_cost_rate / 100
        sale_proceeds = home_value - sale_costs - balance
        net_ownership_cost = cumulative_ownership - equity

        net_worth_holds.append(net_ownership_cost < cumulative_rent)
        sale_holds.append(sale_proceeds > upfront)
        equity_holds.append(equity > upfront)
        net_worth_details.append(NetWorthBreakevenDetails(
            cumulative_rent=_cents(cumulative_rent),
            net_ownership_cost=_cents(net_ownership_cost),
            cumulative_ownership=_cents(cumulative_ownership),
            equity=_cents(equity),
        ))
        sale_details.append(SaleBreakevenDetails(
            home_value=_cents(home_value),
            sale_costs=_cents(sale_costs),
            mortgage_balance=_cents(balance),
            sale_proceeds=_cents(sale_proceeds),
            upfront_costs=_cents(upfront),
        ))
        equity_details.append(EquityBreakevenDetails(
            home_value=_cents(home_value),
            mortgage_balance=_cents(balance),
            equity=_cents(equity),
            upfront_costs=_cents(upfront),
        ))

        if month % 12 == 0 or month == term:
            yearly.append(RentVsBuyYear(
                year=(month + 11) // 12,
                cumulative_rent=_cents(cumulative_rent),
                cumulative_ownership=_cents(cumulative_ownership),
                home_value=_cents(home_value),
                mortgage_balance=_cents(balance),
                equity=_cents(equity),
                net_ownership_cost=_cents(net_ownership_cost),
            ))

    net_worth_month = stable_crossover(net_worth_holds)
    sale_month = stable_crossover(sale_holds)
    equity_month = stable_crossover(equity_holds)

    if net_worth_month is None:
        description = f"Renting stays cheaper than buying over the full {format_breakeven_period(term)}"
    else:
        description = f"Buying beats renting after {format_breakeven_period(net_worth_month)}"

    logger.debug(
        "Rent vs buy: net worth %s, sale %s, equity %s", net_worth_month, sale_month, equity_month
    )
    return RentVsBuyResult(
        breakeven_month=net_worth_month,
        breakeven_details=net_worth_details[net_worth_month - 1] if net_worth_month else None,
        break_even_on_sale_month=sale_month,
        break_even_on_sale_details=sale_details[sale_month - 1] if sale_month else None,
        equity_recovery_month=equity_month,
        equity_recovery_details=equity_details[equity_month - 1] if equity_month else None,
        monthly_mortgage_payment=payment,
        mortgage_amount=_cents(mortgage_amount),
        deposit=_cents(inputs.deposit),
        stamp_duty=duty,
        legal_fees=_cents(legal_fees),
        purchase_costs=_cents(purchase_costs),
        upfront_costs=_cents(upfront),
        yearly_breakdown=yearly,
        description=description,
    )


# ---- Remortgage ----

def remortgage(inputs: RemortgageInputs) -> RemortgageResult:
    """When do interest savings from a switch cover its costs?

    Switching costs are legal fees less cashback plus any early repayment
    charge, floored at zero. A new rate that is not strictly lower never
    breaks even.
    """
    legal_fees = (
        inputs.legal_fees if inputs.legal_fees is not None else default_remortgage_legal_fees()
    )
    months = inputs.remaining_term_months
    balance = inputs.outstanding_balance

    current_payment = monthly_payment(balance, inputs.current_rate, months)
    new_payment = monthly_payment(balance, inputs.new_rate, months)
    monthly_savings = current_payment - new_payment
    switching_costs = max(ZERO, legal_fees - inputs.cashback + inputs.erc)

    r_current = monthly_rate(inputs.current_rate)
    r_new = monthly_rate(inputs.new_rate)
    balance_current = balance_new = balance
    cumulative_savings = ZERO
    interest_current = interest_new = ZERO

    holds: list[bool] = []
    snapshots: list[tuple[Decimal, Decimal]] = []
    yearly: list[RemortgageYear] = []

    for month in range(1, months + 1):
        i_current = _cents(balance_current * r_current)
        i_new = _cents(balance_new * r_new)
        interest_current += i_current
        interest_new += i_new
        balance_current = max(ZERO, balance_current - (current_payment - i_current))
        balance_new = max(ZERO, balance_new - (new_payment - i_new))
        cumulative_savings += monthly_savings

        interest_saved = interest_current - interest_new
        holds.append(interest_saved >= switching_costs)
        snapshots.append((cumulative_savings, interest_saved))

        if month % 12 == 0 or month == months:
            yearly.append(RemortgageYear(
                year=(month + 11) // 12,
                cumulative_savings=cumulative_savings,
                net_savings=cumulative_savings - switching_costs,
                remaining_balance_current=balance_current,
                remaining_balance_new=balance_new,
                interest_paid_current=interest_current,
                interest_paid_new=interest_new,
                interest_saved=interest_saved,
            ))

    breakeven: float = math.inf
    details = None
    if inputs.new_rate < inputs.current_rate:
        crossover = stable_crossover(holds)
        if crossover is not None:
            breakeven = crossover
            savings_then, interest_then = snapshots[crossover - 1]
            details = RemortgageBreakevenDetails(
                monthly_savings=monthly_savings,
                breakeven_months=crossover,
                switching_costs=switching_costs,
                cumulative_savings_at_breakeven=savings_then,
                interest_saved_at_breakeven=interest_then,
            )

    total_saved = interest_current - interest_new
    if inputs.new_rate >= inputs.current_rate:
        description = "Switching does not pay off: the new rate is not lower"
    elif details is None:
        description = "Switching costs are not recovered within the remaining term"
    else:
        description = f"Switching pays for itself after {format_breakeven_period(breakeven)}"

    return RemortgageResult(
        breakeven_months=breakeven,
        breakeven_details=details,
        current_monthly_payment=current_payment,
        new_monthly_payment=new_payment,
        monthly_savings=monthly_savings,
        legal_fees=legal_fees,
        cashback=inputs.cashback,
        erc=inputs.erc,
        switching_costs=switching_costs,
        year_one_savings=monthly_savings * min(12, months) - switching_costs,
        total_savings_over_term=monthly_savings * months - switching_costs,
        interest_savings_details=InterestSavingsDetails(
            total_interest_current=interest_current,
            total_interest_new=interest_new,
            interest_saved=total_saved,
            switching_costs=switching_costs,
            net_benefit=total_saved - switching_costs,
        ),
        yearly_breakdown=yearly,
        description=description,
    )
