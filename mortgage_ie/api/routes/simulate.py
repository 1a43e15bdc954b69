"""Simulation routes: amortization ledger, APRC and rate-period helpers."""

import logging

from fastapi import APIRouter, HTTPException

from mortgage_ie.api.schemas import (
    AmortizationMonthResponse,
    AmortizationYearResponse,
    AppliedOverpaymentResponse,
    AprcRequest,
    AprcResponse,
    BufferSuggestionResponse,
    CompletenessResponse,
    FollowOnRateRequest,
    FollowOnRateResponse,
    MilestoneResponse,
    PeriodOverpaymentPlanResponse,
    RatePeriodResponse,
    RateSchema,
    RepeatingPeriodsRequest,
    ResolvedPeriodResponse,
    SimulateRequest,
    SimulateResponse,
    SummaryResponse,
    WarningResponse,
)
from mortgage_ie.engine.aprc import AprcConfig, calculate_aprc, infer_follow_on_rate
from mortgage_ie.engine.rates import generate_repeating_rate_periods
from mortgage_ie.engine.simulation import simulate
from mortgage_ie.models.overpayments import OverpaymentConfig, OverpaymentPolicy
from mortgage_ie.models.rates import Lender, Rate, RateCatalogue, RatePeriod
from mortgage_ie.models.self_build import DrawdownStage, SelfBuildConfig
from mortgage_ie.models.simulation import SimulationInput, SimulationState

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["simulate"])


def _build_rate(r: RateSchema) -> Rate:
    return Rate(
        **r.model_dump(exclude={"buyer_types", "ber_eligible"}),
        buyer_types=tuple(r.buyer_types),
        ber_eligible=tuple(r.ber_eligible) if r.ber_eligible is not None else None,
    )


def _build_catalogue(req: SimulateRequest) -> RateCatalogue:
    """Build the rate catalogue from request data."""
    return RateCatalogue(
        rates=[_build_rate(r) for r in req.rates],
        custom_rates=[_build_rate(r) for r in req.custom_rates],
        lenders=[Lender(**lender.model_dump()) for lender in req.lenders],
    )


def _build_state(req: SimulateRequest) -> SimulationState:
    self_build = None
    if req.self_build is not None:
        self_build = SelfBuildConfig(
            enabled=req.self_build.enabled,
            construction_repayment_type=req.self_build.construction_repayment_type,
            interest_only_months=req.self_build.interest_only_months,
            drawdown_stages=[DrawdownStage(**s.model_dump()) for s in req.self_build.drawdown_stages],
        )
    return SimulationState(
        input=SimulationInput(
            mortgage_amount=req.mortgage_amount,
            mortgage_term_months=req.mortgage_term_months,
            property_value=req.property_value,
            start_date=req.start_date,
            ber=req.ber,
        ),
        rate_periods=[RatePeriod(**p.model_dump()) for p in req.rate_periods],
        overpayment_configs=[OverpaymentConfig(**c.model_dump()) for c in req.overpayment_configs],
        self_build_config=self_build,
    )


@router.post("/simulate", response_model=SimulateResponse)
async def run_simulation(req: SimulateRequest):
    """Build the month-by-month ledger with yearly rollups and milestones."""
    policies = [OverpaymentPolicy(**p.model_dump()) for p in req.overpayment_policies]
    try:
        report = simulate(_build_state(req), _build_catalogue(req), policies)
    except ValueError as e:
        logger.warning("Rejected simulation: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    result = report.result
    logger.info(
        "Simulated %d months over %d rate periods",
        len(result.months), len(result.resolved_periods),
    )
    return SimulateResponse(
        months=[AmortizationMonthResponse.model_validate(m) for m in result.months],
        years=[AmortizationYearResponse.model_validate(y) for y in report.years],
        applied_overpayments=[
            AppliedOverpaymentResponse.model_validate(a) for a in result.applied_overpayments
        ],
        warnings=[WarningResponse.model_validate(w) for w in result.warnings],
        resolved_periods=[ResolvedPeriodResponse.model_validate(p) for p in result.resolved_periods],
        summary=SummaryResponse.model_validate(report.summary),
        milestones=[MilestoneResponse.model_validate(m) for m in report.milestones],
        completeness=CompletenessResponse.model_validate(report.completeness),
        buffer_suggestions=[
            BufferSuggestionResponse(
                after_index=s.after_index,
                fixed_rate_id=s.fixed_rate.id,
                suggested_rate_id=s.suggested_rate.id,
                suggested_rate=s.suggested_rate.rate,
                ltv_at_end=s.ltv_at_end,
                lender_name=s.lender_name,
                is_trailing=s.is_trailing,
            )
            for s in report.buffer_suggestions
        ],
        overpayment_plans=[
            PeriodOverpaymentPlanResponse.model_validate(p) for p in report.overpayment_plans
        ],
    )


@router.post("/aprc", response_model=AprcResponse)
async def run_aprc(req: AprcRequest):
    """APRC for a fixed period followed by a variable rate."""
    config = AprcConfig(
        loan_amount=req.loan_amount,
        term_years=req.term_years,
        valuation_fee=req.valuation_fee,
        security_release_fee=req.security_release_fee,
    )
    try:
        aprc = calculate_aprc(req.fixed_rate, req.fixed_term_months, req.follow_on_rate, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return AprcResponse(aprc=aprc)


@router.post("/aprc/follow-on-rate", response_model=FollowOnRateResponse)
async def run_follow_on_rate(req: FollowOnRateRequest):
    """Variable rate implied by a lender's published APRC."""
    config = AprcConfig(
        loan_amount=req.loan_amount,
        term_years=req.term_years,
        valuation_fee=req.valuation_fee,
        security_release_fee=req.security_release_fee,
    )
    try:
        rate = infer_follow_on_rate(req.fixed_rate, req.fixed_term_years, req.observed_aprc, config)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return FollowOnRateResponse(follow_on_rate=rate)


@router.post("/rate-periods/repeating", response_model=list[RatePeriodResponse])
async def run_repeating_periods(req: RepeatingPeriodsRequest):
    """Repeat a fixed rate until the term is covered, then roll onto its variable rate."""
    catalogue = RateCatalogue(
        rates=[_build_rate(r) for r in req.rates],
        lenders=[Lender(**lender.model_dump()) for lender in req.lenders],
    )
    fixed_rate = next((r for r in catalogue.rates if r.id == req.fixed_rate_id), None)
    if fixed_rate is None:
        raise HTTPException(status_code=400, detail=f"Rate {req.fixed_rate_id} not found")

    periods = generate_repeating_rate_periods(
        fixed_rate,
        catalogue,
        req.mortgage_amount,
        req.property_value,
        req.mortgage_term_months,
        start_month=req.start_month,
        ber=req.ber,
        include_buffers=req.include_buffers,
    )
    return [RatePeriodResponse.model_validate(p) for p in periods]
