"""Rate-period resolution and follow-on rate matching.

Pure functions. No I/O (catalogue passed in as arguments).
"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from mortgage_ie.engine.errors import (
    InvalidRatePeriodStackError,
    InvalidRateRecordError,
    UnresolvedRateError,
)
from mortgage_ie.engine.payments import remaining_balance
from mortgage_ie.models.rates import (
    Rate,
    RateCatalogue,
    RatePeriod,
    RateType,
    ResolvedRatePeriod,
)

logger = logging.getLogger(__name__)


def default_label(lender_name: str, rate: Rate) -> str:
    if rate.type == RateType.FIXED and rate.fixed_term_years:
        return f"{lender_name} {rate.fixed_term_years}-Year Fixed @ {rate.rate}%"
    return f"{lender_name} Variable @ {rate.rate}%"


def validate_stack(periods: list[RatePeriod]) -> None:
    """At most one open-ended period, and only in last position."""
    for i, period in enumerate(periods):
        if period.duration_months < 0:
            raise InvalidRatePeriodStackError(
                f"Rate period {period.id} has negative duration {period.duration_months}"
            )
        if period.duration_months == 0 and i != len(periods) - 1:
            raise InvalidRatePeriodStackError(
                f"Rate period {period.id} runs until the end but is not the last period"
            )


def resolve_rate_period(
    period: RatePeriod, start_month: int, catalogue: RateCatalogue
) -> ResolvedRatePeriod:
    if period.is_custom:
        rate = next((r for r in catalogue.custom_rates if r.id == period.rate_id), None)
        lender_name = (rate.custom_lender_name or "Custom") if rate else "Custom"
    else:
        rate = next(
            (r for r in catalogue.rates
             if r.id == period.rate_id and r.lender_id == period.lender_id),
            None,
        )
        lender = catalogue.lender(period.lender_id)
        lender_name = lender.name if lender else "Unknown"

    if rate is None:
        raise UnresolvedRateError(
            period.id, period.rate_id, None if period.is_custom else period.lender_id
        )
    if rate.rate is None:
        raise InvalidRateRecordError(f"Rate {rate.id} has no numeric rate")

    # Allowance policies only govern fixed periods
    policy_id = None
    if rate.type == RateType.FIXED:
        lender = catalogue.lender(period.lender_id)
        policy_id = lender.overpayment_policy_id if lender else None

    return ResolvedRatePeriod(
        period_id=period.id,
        rate_id=period.rate_id,
        rate=rate.rate,
        type=rate.type,
        start_month=start_month,
        duration_months=period.duration_months,
        lender_id=period.lender_id,
        lender_name=lender_name,
        rate_name=rate.name,
        label=period.label or default_label(lender_name, rate),
        fixed_term_years=rate.fixed_term_years,
        overpayment_policy_id=policy_id,
        is_custom=period.is_custom,
    )


def resolve_rate_periods(
    periods: list[RatePeriod], catalogue: RateCatalogue
) -> list[ResolvedRatePeriod]:
    """Resolve a stack in one left-to-right pass.

    Each start month is the previous start plus the previous duration, so an
    unresolved period is fatal: skipping it would shift every later period.
    """
    validate_stack(periods)

    resolved: list[ResolvedRatePeriod] = []
    start = 1
    for period in periods:
        resolved.append(resolve_rate_period(period, start, catalogue))
        start += period.duration_months
    return resolved


def find_period_for_month(
    resolved: list[ResolvedRatePeriod], month: int
) -> ResolvedRatePeriod | None:
    return next((p for p in resolved if p.contains(month)), None)


def covered_months(resolved: list[ResolvedRatePeriod], term_months: int) -> int:
    """Months of the term the stack covers, from month 1 onward."""
    if not resolved:
        return 0
    last = resolved[-1]
    if last.is_open_ended:
        return term_months
    return min(term_months, last.end_month)


# ---- Follow-on (variable) rate matching ----

def is_valid_follow_on_rate(
    fixed_rate: Rate, variable_rate: Rate, exact_ltv: Decimal | None = None
) -> bool:
    """Can variable_rate follow fixed_rate when the fixed term ends?

    With exact_ltv, the LTV must fall in the variable rate's band (the
    borrower's LTV has moved since drawdown). Without it, the two LTV bands
    must overlap.
    """
    if variable_rate.type != RateType.VARIABLE or variable_rate.lender_id != fixed_rate.lender_id:
        return False

    # BTL rates only follow BTL rates
    if fixed_rate.is_buy_to_let != variable_rate.is_buy_to_let:
        return False

    if exact_ltv is not None:
        return variable_rate.min_ltv <= exact_ltv <= variable_rate.max_ltv

    return fixed_rate.max_ltv > variable_rate.min_ltv and fixed_rate.min_ltv < variable_rate.max_ltv


def find_variable_rate(
    fixed_rate: Rate,
    all_rates: list[Rate],
    ltv: Decimal | None = None,
    ber: str | None = None,
) -> Rate | None:
    candidates = [
        r for r in all_rates
        if is_valid_follow_on_rate(fixed_rate, r, ltv)
        and (ber is None or r.ber_eligible is None or ber in r.ber_eligible)
    ]
    if not candidates:
        return None

    # Existing customers rolling off a fixed term get the follow-on rate
    follow_on = next((r for r in candidates if r.new_business is False), None)
    return follow_on or candidates[0]


def can_rate_be_repeated(rate: Rate | None) -> bool:
    return rate is not None and rate.type == RateType.FIXED and rate.new_business is not True


def is_rate_eligible_for_balance(rate: Rate, balance: Decimal, property_value: Decimal) -> bool:
    ltv = balance / property_value * 100
    if ltv < rate.min_ltv or ltv > rate.max_ltv:
        return False
    if rate.min_loan is not None and balance < rate.min_loan:
        return False
    return True


def generate_repeating_rate_periods(
    fixed_rate: Rate,
    catalogue: RateCatalogue,
    mortgage_amount: Decimal,
    property_value: Decimal,
    term_months: int,
    start_month: int = 1,
    ber: str | None = None,
    include_buffers: bool = False,
) -> list[RatePeriod]:
    """Fixed -> (1-month variable buffer) -> fixed -> ... until the term is covered.

    Stops when the fixed rate is no longer eligible for the projected balance,
    and finishes with an open-ended follow-on variable period when one exists.
    """
    if not fixed_rate.fixed_term_years:
        return []

    months_remaining = term_months - start_month + 1
    if months_remaining <= 0:
        return []

    lender = catalogue.lender(fixed_rate.lender_id)
    lender_name = lender.name if lender else fixed_rate.lender_id
    fixed_months = fixed_rate.fixed_term_years * 12
    buffer_months = 1

    balance = mortgage_amount
    elapsed = start_month - 1
    cycle = 1
    periods: list[RatePeriod] = []

    def follow_on_period(duration: int) -> RatePeriod | None:
        ltv = balance / property_value * 100
        variable = find_variable_rate(fixed_rate, catalogue.rates, ltv, ber)
        if variable is None:
            return None
        name = catalogue.lender(variable.lender_id)
        label = default_label(name.name if name else variable.lender_id, variable)
        if duration:
            label = f"{label} (buffer {cycle})"
        return RatePeriod(
            id=str(uuid.uuid4()),
            lender_id=variable.lender_id,
            rate_id=variable.id,
            duration_months=duration,
            label=label,
        )

    while months_remaining > 0:
        if not is_rate_eligible_for_balance(fixed_rate, balance, property_value):
            if include_buffers:
                final = follow_on_period(0)
                if final:
                    periods.append(final)
            break

        if months_remaining < fixed_months:
            final = follow_on_period(0)
            if final:
                periods.append(final)
            break

        label = default_label(lender_name, fixed_rate)
        periods.append(RatePeriod(
            id=str(uuid.uuid4()),
            lender_id=fixed_rate.lender_id,
            rate_id=fixed_rate.id,
            duration_months=fixed_months,
            label=label if cycle == 1 else f"{label} (cycle {cycle})",
        ))
        balance = remaining_balance(balance, fixed_rate.rate, term_months - elapsed, fixed_months)
        elapsed += fixed_months
        months_remaining -= fixed_months
        if months_remaining <= 0:
            break

        if include_buffers:
            is_last = months_remaining - buffer_months < fixed_months
            buffer = follow_on_period(0 if is_last else buffer_months)
            if buffer is None or is_last:
                if buffer:
                    periods.append(buffer)
                break
            periods.append(buffer)
            variable = next(r for r in catalogue.rates if r.id == buffer.rate_id)
            balance = remaining_balance(balance, variable.rate, term_months - elapsed, buffer_months)
            elapsed += buffer_months
            months_remaining -= buffer_months

        cycle += 1

    logger.debug("Generated %d repeating periods for rate %s", len(periods), fixed_rate.id)
    return periods


@dataclass(frozen=True)
class BufferSuggestion:
    """A fixed period not followed by its natural follow-on variable rate."""
    after_index: int
    fixed_rate: Rate
    suggested_rate: Rate
    ltv_at_end: Decimal
    lender_name: str
    is_trailing: bool = False


def buffer_suggestions(
    resolved: list[ResolvedRatePeriod],
    catalogue: RateCatalogue,
    closing_balances: dict[int, Decimal],
    mortgage_amount: Decimal,
    property_value: Decimal,
    ber: str | None = None,
) -> list[BufferSuggestion]:
    """Suggest the lender's follow-on rate after fixed periods that lack one.

    closing_balances maps month -> closing balance from a completed run.
    """
    suggestions: list[BufferSuggestion] = []
    if not resolved or property_value <= 0:
        return suggestions

    def lookup(period: ResolvedRatePeriod) -> Rate | None:
        pool = catalogue.custom_rates if period.is_custom else catalogue.rates
        return next((r for r in pool if r.id == period.rate_id), None)

    def follow_on(period: ResolvedRatePeriod, rate: Rate) -> tuple[Rate | None, Decimal]:
        balance = closing_balances.get(period.end_month, mortgage_amount)
        ltv = balance / property_value * 100
        return find_variable_rate(rate, catalogue.rates, ltv, ber), ltv

    for i, (current, nxt) in enumerate(zip(resolved, resolved[1:])):
        if current.type != RateType.FIXED or current.is_open_ended:
            continue
        rate = lookup(current)
        if rate is None:
            continue
        natural, ltv = follow_on(current, rate)
        if natural is None:
            continue
        if nxt.is_custom or nxt.rate_id != natural.id or nxt.lender_id != natural.lender_id:
            suggestions.append(BufferSuggestion(i, rate, natural, ltv, current.lender_name))

    last = resolved[-1]
    if last.type == RateType.FIXED and not last.is_open_ended:
        rate = lookup(last)
        if rate is not None:
            natural, ltv = follow_on(last, rate)
            if natural is not None:
                suggestions.append(BufferSuggestion(
                    len(resolved) - 1, rate, natural, ltv, last.lender_name, is_trailing=True
                ))

    return suggestions
