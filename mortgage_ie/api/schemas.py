"""Pydantic schemas for API request/response models."""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from mortgage_ie.models.breakeven import CashbackType
from mortgage_ie.models.overpayments import (
    AllowanceBasis,
    AllowanceType,
    OverpaymentEffect,
    OverpaymentFrequency,
    OverpaymentType,
    TransactionWindow,
)
from mortgage_ie.models.rates import BuyerType, RateType
from mortgage_ie.models.self_build import ConstructionRepaymentType, SelfBuildPhase
from mortgage_ie.models.simulation import MilestoneType, Severity, WarningType


# ---- Request schemas ----

class RateSchema(BaseModel):
    id: str
    name: str
    lender_id: str
    type: RateType
    rate: Decimal = Field(..., description="Annual percentage, 3.45 means 3.45%")
    fixed_term_years: int | None = None
    apr: Decimal | None = None
    min_ltv: Decimal = Decimal("0")
    max_ltv: Decimal = Decimal("90")
    min_loan: Decimal | None = None
    buyer_types: list[BuyerType] = []
    ber_eligible: list[str] | None = None
    new_business: bool | None = None
    custom_lender_name: str | None = None


class LenderSchema(BaseModel):
    id: str
    name: str
    overpayment_policy_id: str | None = None


class OverpaymentPolicySchema(BaseModel):
    id: str
    label: str
    allowance_type: AllowanceType
    allowance_value: Decimal
    allowance_basis: AllowanceBasis | None = None
    min_amount: Decimal | None = None
    charge_cap: Decimal | None = None
    max_transactions: int | None = None
    max_transactions_window: TransactionWindow | None = None


class RatePeriodSchema(BaseModel):
    id: str
    lender_id: str
    rate_id: str
    duration_months: int = Field(..., ge=0, description="0 runs until the mortgage ends")
    is_custom: bool = False
    label: str | None = None


class OverpaymentConfigSchema(BaseModel):
    id: str
    rate_period_id: str
    type: OverpaymentType
    amount: Decimal = Field(..., gt=0)
    start_month: int = Field(..., ge=1)
    frequency: OverpaymentFrequency = OverpaymentFrequency.MONTHLY
    end_month: int | None = None
    effect: OverpaymentEffect = OverpaymentEffect.REDUCE_TERM
    label: str | None = None
    enabled: bool = True


class DrawdownStageSchema(BaseModel):
    month: int = Field(..., ge=1)
    amount: Decimal = Field(..., gt=0)
    id: str | None = None
    label: str | None = None


class SelfBuildSchema(BaseModel):
    enabled: bool = False
    construction_repayment_type: ConstructionRepaymentType = ConstructionRepaymentType.INTEREST_ONLY
    interest_only_months: int = Field(0, ge=0)
    drawdown_stages: list[DrawdownStageSchema] = []


class SimulateRequest(BaseModel):
    mortgage_amount: Decimal
    mortgage_term_months: int
    property_value: Decimal
    start_date: datetime.date | None = None
    ber: str | None = None
    rate_periods: list[RatePeriodSchema]
    overpayment_configs: list[OverpaymentConfigSchema] = []
    self_build: SelfBuildSchema | None = None

    # Catalogue data (loading it is the caller's job)
    rates: list[RateSchema] = []
    custom_rates: list[RateSchema] = []
    lenders: list[LenderSchema] = []
    overpayment_policies: list[OverpaymentPolicySchema] = []


class RentVsBuyRequest(BaseModel):
    property_value: Decimal = Field(..., gt=0)
    deposit: Decimal = Field(..., ge=0)
    mortgage_term_months: int = Field(..., gt=0)
    mortgage_rate: Decimal = Field(..., ge=0)
    current_monthly_rent: Decimal = Field(..., ge=0)
    legal_fees: Decimal | None = None
    rent_inflation_rate: Decimal = Decimal("2")
    home_appreciation_rate: Decimal = Decimal("4")
    maintenance_rate: Decimal = Decimal("1")
    opportunity_cost_rate: Decimal = Decimal("6")
    sale_cost_rate: Decimal = Decimal("3")
    service_charge: Decimal = Decimal("0")
    service_charge_increase: Decimal = Decimal("0")


class RemortgageRequest(BaseModel):
    outstanding_balance: Decimal = Field(..., gt=0)
    current_rate: Decimal = Field(..., ge=0)
    new_rate: Decimal = Field(..., ge=0)
    remaining_term_months: int = Field(..., gt=0)
    legal_fees: Decimal | None = None
    cashback: Decimal = Decimal("0")
    erc: Decimal = Decimal("0")


class CashbackOptionSchema(BaseModel):
    label: str
    rate: Decimal = Field(..., ge=0)
    cashback_type: CashbackType
    cashback_value: Decimal = Field(..., ge=0)
    cashback_cap: Decimal | None = None
    fixed_period_years: int = Field(0, ge=0)


class CashbackRequest(BaseModel):
    mortgage_amount: Decimal = Field(..., gt=0)
    mortgage_term_months: int = Field(..., gt=0)
    options: list[CashbackOptionSchema] = Field(..., min_length=1)


class AprcRequest(BaseModel):
    fixed_rate: Decimal
    fixed_term_months: int = Field(..., ge=0)
    follow_on_rate: Decimal
    loan_amount: Decimal = Decimal("250000")
    term_years: int = 20
    valuation_fee: Decimal = Decimal("0")
    security_release_fee: Decimal = Decimal("0")


class FollowOnRateRequest(BaseModel):
    fixed_rate: Decimal
    fixed_term_years: int = Field(..., ge=0)
    observed_aprc: Decimal = Field(..., description="Published APRC, as a percentage")
    loan_amount: Decimal = Decimal("250000")
    term_years: int = 20
    valuation_fee: Decimal = Decimal("0")
    security_release_fee: Decimal = Decimal("0")


class RepeatingPeriodsRequest(BaseModel):
    fixed_rate_id: str
    mortgage_amount: Decimal = Field(..., gt=0)
    property_value: Decimal = Field(..., gt=0)
    mortgage_term_months: int = Field(..., gt=0)
    start_month: int = Field(1, ge=1)
    ber: str | None = None
    include_buffers: bool = False
    rates: list[RateSchema]
    lenders: list[LenderSchema] = []


# ---- Response schemas ----

class OrmModel(BaseModel):
    model_config = {"from_attributes": True}


class AmortizationMonthResponse(OrmModel):
    month: int
    year: int
    month_of_year: int
    date: datetime.date | None = None
    opening_balance: Decimal
    closing_balance: Decimal
    scheduled_payment: Decimal
    interest_portion: Decimal
    principal_portion: Decimal
    overpayment: Decimal
    total_payment: Decimal
    rate: Decimal
    rate_period_id: str
    cumulative_interest: Decimal
    cumulative_principal: Decimal
    cumulative_overpayments: Decimal
    cumulative_total: Decimal
    drawdown_this_month: Decimal | None = None
    cumulative_drawn: Decimal | None = None
    phase: SelfBuildPhase | None = None
    is_interest_only: bool = False


class AmortizationYearResponse(OrmModel):
    year: int
    opening_balance: Decimal
    closing_balance: Decimal
    total_interest: Decimal
    total_principal: Decimal
    total_overpayments: Decimal
    total_payments: Decimal
    average_rate: Decimal
    rate_changes: list[str]
    cumulative_interest: Decimal
    cumulative_principal: Decimal
    cumulative_total: Decimal
    has_warnings: bool


class AppliedOverpaymentResponse(OrmModel):
    month: int
    amount: Decimal
    config_id: str
    is_recurring: bool
    within_allowance: bool
    excess: Decimal


class WarningResponse(OrmModel):
    type: WarningType
    month: int
    message: str
    severity: Severity
    config_id: str | None = None
    overpayment_label: str | None = None


class ResolvedPeriodResponse(OrmModel):
    period_id: str
    rate_id: str
    rate: Decimal
    type: RateType
    start_month: int
    duration_months: int
    end_month: int | None
    lender_id: str
    lender_name: str
    label: str
    overpayment_policy_id: str | None = None


class SummaryResponse(OrmModel):
    total_interest: Decimal
    total_paid: Decimal
    actual_term_months: int
    interest_saved: Decimal
    months_saved: int
    extra_interest_from_self_build: Decimal | None = None


class MilestoneResponse(OrmModel):
    type: MilestoneType
    month: int
    label: str
    value: Decimal | None = None
    date: datetime.date | None = None


class CompletenessResponse(OrmModel):
    is_complete: bool
    total_months: int
    covered_months: int
    missing_months: int
    remaining_balance: Decimal


class BufferSuggestionResponse(BaseModel):
    after_index: int
    fixed_rate_id: str
    suggested_rate_id: str
    suggested_rate: Decimal
    ltv_at_end: Decimal
    lender_name: str
    is_trailing: bool


class YearlyOverpaymentPlanResponse(OrmModel):
    year: int
    start_month: int
    end_month: int
    monthly_amount: Decimal
    estimated_balance: Decimal


class PeriodOverpaymentPlanResponse(OrmModel):
    period_id: str
    policy_description: str
    years: list[YearlyOverpaymentPlanResponse]


class SimulateResponse(BaseModel):
    months: list[AmortizationMonthResponse]
    years: list[AmortizationYearResponse]
    applied_overpayments: list[AppliedOverpaymentResponse]
    warnings: list[WarningResponse]
    resolved_periods: list[ResolvedPeriodResponse]
    summary: SummaryResponse
    milestones: list[MilestoneResponse]
    completeness: CompletenessResponse
    buffer_suggestions: list[BufferSuggestionResponse] = []
    overpayment_plans: list[PeriodOverpaymentPlanResponse] = []


class RentVsBuyYearResponse(OrmModel):
    year: int
    cumulative_rent: Decimal
    cumulative_ownership: Decimal
    home_value: Decimal
    mortgage_balance: Decimal
    equity: Decimal
    net_ownership_cost: Decimal


class RentVsBuyResponse(OrmModel):
    breakeven_month: int | None
    breakeven_period: str
    break_even_on_sale_month: int | None
    equity_recovery_month: int | None
    monthly_mortgage_payment: Decimal
    mortgage_amount: Decimal
    deposit: Decimal
    stamp_duty: Decimal
    legal_fees: Decimal
    purchase_costs: Decimal
    upfront_costs: Decimal
    yearly_breakdown: list[RentVsBuyYearResponse]
    description: str


class RemortgageYearResponse(OrmModel):
    year: int
    cumulative_savings: Decimal
    net_savings: Decimal
    remaining_balance_current: Decimal
    remaining_balance_new: Decimal
    interest_paid_current: Decimal
    interest_paid_new: Decimal
    interest_saved: Decimal


class RemortgageResponse(BaseModel):
    breakeven_months: int | None = Field(None, description="None when switching never pays off")
    breakeven_period: str
    current_monthly_payment: Decimal
    new_monthly_payment: Decimal
    monthly_savings: Decimal
    switching_costs: Decimal
    year_one_savings: Decimal
    total_savings_over_term: Decimal
    interest_saved: Decimal
    net_benefit: Decimal
    yearly_breakdown: list[RemortgageYearResponse]
    description: str


class CashbackOptionResponse(OrmModel):
    label: str
    rate: Decimal
    fixed_period_years: int
    monthly_payment: Decimal
    monthly_payment_diff: Decimal
    cashback_amount: Decimal
    interest_paid: Decimal
    principal_paid: Decimal
    balance_at_end: Decimal
    net_cost: Decimal
    adjusted_balance: Decimal


class CashbackYearResponse(OrmModel):
    year: int
    balances: list[Decimal]
    net_costs: list[Decimal]
    adjusted_balances: list[Decimal]
    interest_paid: list[Decimal]
    principal_paid: list[Decimal]


class CashbackPairResponse(OrmModel):
    option_a_index: int
    option_b_index: int
    option_a_label: str
    option_b_label: str
    breakeven_month: int | None
    description: str


class CashbackResponse(OrmModel):
    comparison_period_months: int
    comparison_period_years: int
    all_variable: bool
    options: list[CashbackOptionResponse]
    cheapest_monthly_index: int
    cheapest_net_cost_index: int
    cheapest_adjusted_balance_index: int
    savings_vs_worst: Decimal
    yearly_breakdown: list[CashbackYearResponse]
    projection_year: CashbackYearResponse | None
    pairwise_breakevens: list[CashbackPairResponse]
    description: str


class AprcResponse(BaseModel):
    aprc: Decimal


class FollowOnRateResponse(BaseModel):
    follow_on_rate: Decimal


class RatePeriodResponse(OrmModel):
    id: str
    lender_id: str
    rate_id: str
    duration_months: int
    is_custom: bool
    label: str | None = None
