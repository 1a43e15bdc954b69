"""Month-by-month amortization over a stack of rate periods.

Pure functions: records in, records out. No I/O. Warnings accumulate in a
list local to each run.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP

from mortgage_ie.config import settings
from mortgage_ie.engine.completeness import check_completeness
from mortgage_ie.engine.errors import (
    InvalidLoanError,
    InvalidOverpaymentError,
    InvalidPolicyError,
    UnknownPolicyError,
)
from mortgage_ie.engine.overpayments import (
    allowance_year_key,
    calendar_date,
    check_allowance,
    describe_policy,
    due_overpayments,
    transaction_window_key,
    window_label,
    yearly_overpayment_plans,
)
from mortgage_ie.engine.payments import monthly_payment, monthly_rate
from mortgage_ie.engine.rates import (
    BufferSuggestion,
    buffer_suggestions,
    find_period_for_month,
    resolve_rate_periods,
)
from mortgage_ie.engine.self_build import DrawdownSchedule, is_drawdown_total_valid
from mortgage_ie.models.overpayments import (
    AllowanceBasis,
    AppliedOverpayment,
    OverpaymentEffect,
    OverpaymentPolicy,
    OverpaymentType,
    PeriodOverpaymentPlan,
)
from mortgage_ie.models.rates import RateCatalogue, RateType
from mortgage_ie.models.self_build import ConstructionRepaymentType, SelfBuildPhase
from mortgage_ie.models.simulation import (
    AmortizationMonth,
    AmortizationResult,
    AmortizationYear,
    Milestone,
    MilestoneType,
    Severity,
    SimulationCompleteness,
    SimulationState,
    SimulationSummary,
    SimulationWarning,
    WarningType,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")


def validate_input(state: SimulationState) -> None:
    inp = state.input
    if inp.mortgage_amount <= 0:
        raise InvalidLoanError(f"Mortgage amount must be positive, got {inp.mortgage_amount}")
    if inp.mortgage_term_months <= 0:
        raise InvalidLoanError(f"Mortgage term must be positive, got {inp.mortgage_term_months}")
    if inp.mortgage_term_months > settings.max_term_months:
        raise InvalidLoanError(
            f"Mortgage term {inp.mortgage_term_months} exceeds {settings.max_term_months} months"
        )


def validate_overpayments(state: SimulationState, policies: Iterable[OverpaymentPolicy]) -> None:
    for policy in policies:
        if policy.allowance_value is None:
            raise InvalidPolicyError(f"Overpayment policy {policy.id} has no allowance value")
    for config in state.overpayment_configs:
        if config.amount is None or config.start_month is None:
            raise InvalidOverpaymentError(
                f"Overpayment {config.id} needs an amount and a start month"
            )


def run_amortization(
    state: SimulationState,
    catalogue: RateCatalogue,
    policies: list[OverpaymentPolicy] | None = None,
) -> AmortizationResult:
    """Build the full month ledger for one simulation.

    Configuration errors raise before any row is produced. A stack that
    stops short of the term yields a partial ledger; see check_completeness.
    """
    validate_input(state)
    inp = state.input
    term = inp.mortgage_term_months

    if not state.rate_periods:
        logger.info("No rate periods supplied; nothing to simulate")
        return AmortizationResult()

    resolved = resolve_rate_periods(state.rate_periods, catalogue)

    policy_by_id = {p.id: p for p in policies or []}
    for period in resolved:
        if period.overpayment_policy_id and period.overpayment_policy_id not in policy_by_id:
            raise UnknownPolicyError(
                f"Lender {period.lender_id} references unknown overpayment policy "
                f"{period.overpayment_policy_id}"
            )
    validate_overpayments(state, policy_by_id.values())

    schedule = None
    sb = state.self_build_config
    if sb is not None and sb.is_active:
        schedule = DrawdownSchedule.from_config(sb, inp.mortgage_amount)

    effects = {c.id: c.effect for c in state.overpayment_configs}
    labels = {c.id: c.display_label for c in state.overpayment_configs}

    months: list[AmortizationMonth] = []
    applied_all: list[AppliedOverpayment] = []
    warnings: list[SimulationWarning] = []

    balance = ZERO if schedule else inp.mortgage_amount
    drawn = ZERO
    cum_interest = ZERO
    cum_principal = ZERO
    cum_overpayments = ZERO
    cum_reduce_term = ZERO

    payment: Decimal | None = None
    last_period_id: str | None = None
    previous_phase: SelfBuildPhase | None = None

    year_used: dict[str, Decimal] = defaultdict(Decimal)
    year_start_balance: dict[str, Decimal] = {}
    transactions: dict[str, int] = defaultdict(int)

    for month in range(1, term + 1):
        if balance <= 0 and (schedule is None or drawn >= inp.mortgage_amount):
            break

        period = find_period_for_month(resolved, month)
        if period is None:
            logger.info("Rate periods end at month %d of %d; ledger is partial", month - 1, term)
            break

        # Drawdowns land before interest is charged
        drawdown = ZERO
        phase = None
        interest_only = False
        if schedule is not None:
            drawdown = schedule.drawdown_for_month(month)
            balance += drawdown
            drawn += drawdown
            phase = schedule.phase(month)
            interest_only = schedule.is_interest_only(month)

        entering_repayment = (
            phase == SelfBuildPhase.REPAYMENT and previous_phase != SelfBuildPhase.REPAYMENT
        )
        previous_phase = phase

        year_key = allowance_year_key(period.period_id, month, inp.start_date)
        if year_key not in year_start_balance:
            year_start_balance[year_key] = balance

        # Repricing amortizes over what is left of the whole term. Adding back
        # reduce_term overpayments keeps the payment up so the term shortens.
        if not interest_only and (
            payment is None
            or period.period_id != last_period_id
            or drawdown > 0
            or entering_repayment
        ):
            payment = monthly_payment(balance + cum_reduce_term, period.rate, term - month + 1)
            last_period_id = period.period_id

        interest = (balance * monthly_rate(period.rate)).quantize(TWO_PLACES, ROUND_HALF_UP)
        if interest_only:
            principal = ZERO
            scheduled = interest
        else:
            if month == term:
                principal = balance  # Last month clears cent residue
            else:
                principal = min(max(payment - interest, ZERO), balance)
            scheduled = interest + principal

        # Overpayments, capped at what the scheduled principal leaves owing
        policy = policy_by_id.get(period.overpayment_policy_id) if period.type == RateType.FIXED else None
        room = balance - principal
        overpayment = ZERO
        reduce_payment_amount = ZERO
        month_used = ZERO
        applied_this_month: list[AppliedOverpayment] = []
        for config in due_overpayments(state.overpayment_configs, period, month):
            amount = min(config.amount, room - overpayment)
            if amount <= 0:
                continue

            within_allowance = True
            excess = ZERO
            if policy is not None:
                if policy.basis == AllowanceBasis.MONTHLY:
                    check = check_allowance(policy, amount, balance, scheduled, month_used)
                else:
                    check = check_allowance(
                        policy, amount, year_start_balance[year_key], scheduled, year_used[year_key]
                    )
                within_allowance = not check.exceeded
                excess = check.excess
                if check.exceeded:
                    warnings.append(SimulationWarning(
                        type=WarningType.ALLOWANCE_EXCEEDED,
                        month=month,
                        message=f"Exceeds {policy.label} allowance by €{excess:,.2f}",
                        severity=Severity.WARNING,
                        config_id=config.id,
                        overpayment_label=labels[config.id],
                    ))

                if policy.max_transactions and policy.max_transactions_window:
                    key = transaction_window_key(
                        period.period_id, month, inp.start_date, policy.max_transactions_window
                    )
                    transactions[key] += 1
                    if transactions[key] > policy.max_transactions:
                        warnings.append(SimulationWarning(
                            type=WarningType.TRANSACTION_LIMIT_EXCEEDED,
                            month=month,
                            message=(
                                f"Exceeds {policy.max_transactions} overpayments per "
                                f"{window_label(policy.max_transactions_window)} limit"
                            ),
                            severity=Severity.WARNING,
                            config_id=config.id,
                            overpayment_label=labels[config.id],
                        ))

            applied_this_month.append(AppliedOverpayment(
                month=month,
                amount=amount,
                config_id=config.id,
                is_recurring=config.type == OverpaymentType.RECURRING,
                within_allowance=within_allowance,
                excess=excess,
            ))
            overpayment += amount
            month_used += amount
            year_used[year_key] += amount
            if effects[config.id] == OverpaymentEffect.REDUCE_PAYMENT:
                reduce_payment_amount += amount
            else:
                cum_reduce_term += amount

        applied_all.extend(applied_this_month)
        closing = max(ZERO, balance - principal - overpayment)

        if closing == 0 and period.type == RateType.FIXED and not period.is_open_ended:
            months_left = period.end_month - month
            if months_left > 0:
                warnings.append(SimulationWarning(
                    type=WarningType.EARLY_REDEMPTION,
                    month=month,
                    message=(
                        f"Mortgage paid off {months_left} months before fixed period ends. "
                        "Early redemption fees may apply."
                    ),
                    severity=Severity.ERROR,
                ))

        cum_interest += interest
        cum_principal += principal + overpayment
        cum_overpayments += overpayment

        months.append(AmortizationMonth(
            month=month,
            year=(month + 11) // 12,
            month_of_year=(month - 1) % 12 + 1,
            date=calendar_date(inp.start_date, month) if inp.start_date else None,
            opening_balance=balance,
            closing_balance=closing,
            scheduled_payment=scheduled,
            interest_portion=interest,
            principal_portion=principal,
            overpayment=overpayment,
            total_payment=scheduled + overpayment,
            rate=period.rate,
            rate_period_id=period.period_id,
            cumulative_interest=cum_interest,
            cumulative_principal=cum_principal,
            cumulative_overpayments=cum_overpayments,
            cumulative_total=cum_interest + cum_principal,
            drawdown_this_month=drawdown if schedule else None,
            cumulative_drawn=drawn if schedule else None,
            phase=phase,
            is_interest_only=interest_only,
        ))

        # reduce_payment keeps the term and lowers the payment from here on
        if reduce_payment_amount > 0 and closing > 0 and month < term and not interest_only:
            payment = monthly_payment(closing + cum_reduce_term, period.rate, term - month)

        balance = closing

    logger.debug(
        "Simulated %d of %d months, %d overpayments, %d warnings",
        len(months), term, len(applied_all), len(warnings),
    )
    return AmortizationResult(
        months=months,
        applied_overpayments=applied_all,
        warnings=warnings,
        resolved_periods=resolved,
    )


def baseline_interest(
    state: SimulationState,
    catalogue: RateCatalogue,
    policies: list[OverpaymentPolicy] | None = None,
) -> Decimal:
    """Total interest for the same mortgage with no overpayments."""
    result = run_amortization(replace(state, overpayment_configs=[]), catalogue, policies)
    return result.months[-1].cumulative_interest if result.months else ZERO


def summarize(
    result: AmortizationResult,
    baseline: Decimal,
    term_months: int,
    interest_and_capital_baseline: Decimal | None = None,
) -> SimulationSummary:
    if not result.months:
        return SimulationSummary(ZERO, ZERO, 0, ZERO, 0)

    last = result.months[-1]
    actual_term = len(result.months)

    extra = None
    if interest_and_capital_baseline is not None:
        diff = baseline - interest_and_capital_baseline
        if abs(diff) > 1:
            extra = diff

    # Months saved only counts when the mortgage was actually cleared
    paid_off = last.closing_balance <= 0
    return SimulationSummary(
        total_interest=last.cumulative_interest,
        total_paid=last.cumulative_total,
        actual_term_months=actual_term,
        interest_saved=max(ZERO, baseline - last.cumulative_interest),
        months_saved=term_months - actual_term if paid_off else 0,
        extra_interest_from_self_build=extra,
    )


def aggregate_by_year(
    months: list[AmortizationMonth],
    warnings: list[SimulationWarning] | None = None,
) -> list[AmortizationYear]:
    """Group rows by calendar year when dated, else by mortgage year."""
    if not months:
        return []

    dated = months[0].date is not None
    grouped: dict[int, list[AmortizationMonth]] = defaultdict(list)
    for m in months:
        grouped[m.date.year if dated else m.year].append(m)

    warned_months = {w.month for w in warnings or []}
    years = []
    for year in sorted(grouped):
        rows = grouped[year]
        first, last = rows[0], rows[-1]

        rate_changes: list[str] = []
        for m in rows:
            if not rate_changes or rate_changes[-1] != m.rate_period_id:
                rate_changes.append(m.rate_period_id)

        years.append(AmortizationYear(
            year=year,
            opening_balance=first.opening_balance,
            closing_balance=last.closing_balance,
            total_interest=sum((m.interest_portion for m in rows), ZERO),
            total_principal=sum((m.principal_portion for m in rows), ZERO),
            total_overpayments=sum((m.overpayment for m in rows), ZERO),
            total_payments=sum((m.total_payment for m in rows), ZERO),
            average_rate=(sum((m.rate for m in rows), ZERO) / len(rows)).quantize(
                FOUR_PLACES, ROUND_HALF_UP
            ),
            rate_changes=rate_changes,
            months=rows,
            cumulative_interest=last.cumulative_interest,
            cumulative_principal=last.cumulative_principal,
            cumulative_total=last.cumulative_total,
            has_warnings=any(m.month in warned_months for m in rows),
        ))
    return years


MILESTONE_LABELS = {
    MilestoneType.MORTGAGE_START: "Mortgage Starts",
    MilestoneType.CONSTRUCTION_COMPLETE: "Construction Complete",
    MilestoneType.FULL_PAYMENTS_START: "Full Payments Start",
    MilestoneType.PRINCIPAL_25: "25% Paid Off",
    MilestoneType.PRINCIPAL_50: "50% Paid Off",
    MilestoneType.PRINCIPAL_75: "75% Paid Off",
    MilestoneType.LTV_80: "LTV Below 80%",
    MilestoneType.MORTGAGE_COMPLETE: "Mortgage Complete",
}


def milestones(state: SimulationState, months: list[AmortizationMonth]) -> list[Milestone]:
    if not months:
        return []

    inp = state.input
    amount = inp.mortgage_amount
    sb = state.self_build_config
    self_build = sb is not None and sb.is_active
    construction_end = 0
    interest_only_end = 0
    drawdown_complete = True
    if self_build:
        construction_end = max(s.month for s in sb.drawdown_stages)
        interest_only_end = construction_end + sb.interest_only_months
        drawdown_complete = is_drawdown_total_valid(sb, amount)

    def milestone(kind: MilestoneType, row: AmortizationMonth, value: Decimal) -> Milestone:
        return Milestone(kind, row.month, MILESTONE_LABELS[kind], value, row.date)

    start_value = months[0].opening_balance if self_build else amount
    reached = [Milestone(
        MilestoneType.MORTGAGE_START, 1, MILESTONE_LABELS[MilestoneType.MORTGAGE_START],
        start_value, inp.start_date,
    )]
    seen = {MilestoneType.MORTGAGE_START}

    thresholds = [
        (MilestoneType.PRINCIPAL_25, amount * Decimal("0.75")),
        (MilestoneType.PRINCIPAL_50, amount * Decimal("0.5")),
        (MilestoneType.PRINCIPAL_75, amount * Decimal("0.25")),
    ]
    ltv_80 = inp.property_value * Decimal("0.8")
    if amount > ltv_80:
        thresholds.append((MilestoneType.LTV_80, ltv_80))

    for row in months:
        if self_build and drawdown_complete:
            if row.month == construction_end and MilestoneType.CONSTRUCTION_COMPLETE not in seen:
                reached.append(milestone(MilestoneType.CONSTRUCTION_COMPLETE, row, row.closing_balance))
                seen.add(MilestoneType.CONSTRUCTION_COMPLETE)
            if (
                interest_only_end > construction_end
                and row.month == interest_only_end + 1
                and MilestoneType.FULL_PAYMENTS_START not in seen
            ):
                reached.append(milestone(MilestoneType.FULL_PAYMENTS_START, row, row.opening_balance))
                seen.add(MilestoneType.FULL_PAYMENTS_START)

        if not self_build or (drawdown_complete and row.month > interest_only_end):
            for kind, threshold in thresholds:
                if kind not in seen and row.closing_balance <= threshold:
                    reached.append(milestone(kind, row, row.closing_balance))
                    seen.add(kind)

        cleared = not self_build or (drawdown_complete and row.month >= construction_end)
        if cleared and row.closing_balance <= 0:
            reached.append(milestone(MilestoneType.MORTGAGE_COMPLETE, row, ZERO))
            break

    return reached


def overpayment_plans(
    state: SimulationState,
    result: AmortizationResult,
    policies: list[OverpaymentPolicy] | None = None,
) -> list[PeriodOverpaymentPlan]:
    """Largest fee-free monthly overpayment per year, for each fixed period with an allowance."""
    inp = state.input
    policy_by_id = {p.id: p for p in policies or []}
    closing = {m.month: m.closing_balance for m in result.months}

    construction_end = None
    sb = state.self_build_config
    if sb is not None and sb.is_active:
        construction_end = max(s.month for s in sb.drawdown_stages)

    plans = []
    for period in result.resolved_periods:
        policy = policy_by_id.get(period.overpayment_policy_id)
        if policy is None or period.type != RateType.FIXED:
            continue
        if period.start_month > len(result.months):
            continue
        balance = closing.get(period.start_month - 1, inp.mortgage_amount)
        years = yearly_overpayment_plans(
            policy, period, balance, inp.mortgage_term_months, inp.start_date, construction_end
        )
        if years:
            plans.append(PeriodOverpaymentPlan(period.period_id, describe_policy(policy), years))
    return plans


@dataclass(frozen=True)
class SimulationReport:
    result: AmortizationResult
    years: list[AmortizationYear]
    summary: SimulationSummary
    milestones: list[Milestone]
    completeness: SimulationCompleteness
    buffer_suggestions: list[BufferSuggestion] = field(default_factory=list)
    overpayment_plans: list[PeriodOverpaymentPlan] = field(default_factory=list)


def simulate(
    state: SimulationState,
    catalogue: RateCatalogue,
    policies: list[OverpaymentPolicy] | None = None,
) -> SimulationReport:
    """Run the ledger plus everything derived from it."""
    result = run_amortization(state, catalogue, policies)
    baseline = baseline_interest(state, catalogue, policies)

    # Self-build: what interest-only construction costs versus paying capital
    ic_baseline = None
    sb = state.self_build_config
    if (
        sb is not None
        and sb.is_active
        and sb.construction_repayment_type == ConstructionRepaymentType.INTEREST_ONLY
    ):
        ic_state = replace(
            state,
            self_build_config=replace(
                sb, construction_repayment_type=ConstructionRepaymentType.INTEREST_AND_CAPITAL
            ),
        )
        ic_baseline = baseline_interest(ic_state, catalogue, policies)

    inp = state.input
    closing = {m.month: m.closing_balance for m in result.months}
    return SimulationReport(
        result=result,
        years=aggregate_by_year(result.months, result.warnings),
        summary=summarize(result, baseline, inp.mortgage_term_months, ic_baseline),
        milestones=milestones(state, result.months),
        completeness=check_completeness(
            result.months, inp.mortgage_amount, inp.mortgage_term_months
        ),
        buffer_suggestions=buffer_suggestions(
            result.resolved_periods, catalogue, closing,
            inp.mortgage_amount, inp.property_value, inp.ber,
        ),
        overpayment_plans=overpayment_plans(state, result, policies),
    )
