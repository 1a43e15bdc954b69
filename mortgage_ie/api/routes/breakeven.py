"""Breakeven routes: rent vs buy, remortgage and cashback comparison."""

import logging
import math
from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from mortgage_ie.api.schemas import (
    CashbackRequest,
    CashbackResponse,
    RemortgageRequest,
    RemortgageResponse,
    RemortgageYearResponse,
    RentVsBuyRequest,
    RentVsBuyResponse,
)
from mortgage_ie.engine.breakeven import format_breakeven_period, remortgage, rent_vs_buy
from mortgage_ie.engine.cashback import compare_cashback
from mortgage_ie.models.breakeven import (
    CashbackInputs,
    CashbackOption,
    RemortgageInputs,
    RentVsBuyInputs,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/breakeven", tags=["breakeven"])


@router.post("/rent-vs-buy", response_model=RentVsBuyResponse)
async def run_rent_vs_buy(req: RentVsBuyRequest):
    """When does buying overtake renting and investing the difference?"""
    try:
        result = rent_vs_buy(RentVsBuyInputs(**req.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return RentVsBuyResponse.model_validate({
        **asdict(result),
        "breakeven_period": format_breakeven_period(result.breakeven_month),
    })


@router.post("/remortgage", response_model=RemortgageResponse)
async def run_remortgage(req: RemortgageRequest):
    """When do the savings from switching cover the cost of switching?"""
    try:
        result = remortgage(RemortgageInputs(**req.model_dump()))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    # JSON has no infinity
    months = result.breakeven_months
    details = result.interest_savings_details
    return RemortgageResponse(
        breakeven_months=int(months) if math.isfinite(months) else None,
        breakeven_period=format_breakeven_period(months),
        current_monthly_payment=result.current_monthly_payment,
        new_monthly_payment=result.new_monthly_payment,
        monthly_savings=result.monthly_savings,
        switching_costs=result.switching_costs,
        year_one_savings=result.year_one_savings,
        total_savings_over_term=result.total_savings_over_term,
        interest_saved=details.interest_saved,
        net_benefit=details.net_benefit,
        yearly_breakdown=[RemortgageYearResponse.model_validate(y) for y in result.yearly_breakdown],
        description=result.description,
    )


@router.post("/cashback", response_model=CashbackResponse)
async def run_cashback(req: CashbackRequest):
    """Compare rate and cashback offers over the longest fixed period."""
    inputs = CashbackInputs(
        mortgage_amount=req.mortgage_amount,
        mortgage_term_months=req.mortgage_term_months,
        options=[CashbackOption(**o.model_dump()) for o in req.options],
    )
    try:
        result = compare_cashback(inputs)
    except ValueError as e:
        logger.warning("Rejected cashback comparison: %s", e)
        raise HTTPException(status_code=400, detail=str(e))
    return CashbackResponse.model_validate(result)
