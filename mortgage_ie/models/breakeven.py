from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


# ---- Rent vs buy ----

@dataclass(frozen=True)
class RentVsBuyInputs:
    property_value: Decimal
    deposit: Decimal
    mortgage_term_months: int
    mortgage_rate: Decimal  # Annual percentage
    current_monthly_rent: Decimal
    legal_fees: Decimal | None = None  # Defaults to settings.legal_fees
    rent_inflation_rate: Decimal = Decimal("2")
    home_appreciation_rate: Decimal = Decimal("4")  # Irish long-term avg ~2.6%, recent ~7%
    maintenance_rate: Decimal = Decimal("1")  # % of property value per year
    opportunity_cost_rate: Decimal = Decimal("6")  # Return on invested deposit
    sale_cost_rate: Decimal = Decimal("3")  # Agent fees etc.
    service_charge: Decimal = Decimal("0")  # Monthly, apartments
    service_charge_increase: Decimal = Decimal("0")  # Annual %


@dataclass(frozen=True)
class RentVsBuyYear:
    year: int
    cumulative_rent: Decimal
    cumulative_ownership: Decimal
    home_value: Decimal
    mortgage_balance: Decimal
    equity: Decimal
    net_ownership_cost: Decimal  # Ownership cost - equity built


@dataclass(frozen=True)
class NetWorthBreakevenDetails:
    cumulative_rent: Decimal
    net_ownership_cost: Decimal
    cumulative_ownership: Decimal
    equity: Decimal


@dataclass(frozen=True)
class SaleBreakevenDetails:
    home_value: Decimal
    sale_costs: Decimal
    mortgage_balance: Decimal
    sale_proceeds: Decimal
    upfront_costs: Decimal


@dataclass(frozen=True)
class EquityBreakevenDetails:
    home_value: Decimal
    mortgage_balance: Decimal
    equity: Decimal
    upfront_costs: Decimal


@dataclass(frozen=True)
class RentVsBuyResult:
    breakeven_month: int | None
    breakeven_details: NetWorthBreakevenDetails | None
    break_even_on_sale_month: int | None
    break_even_on_sale_details: SaleBreakevenDetails | None
    equity_recovery_month: int | None
    equity_recovery_details: EquityBreakevenDetails | None
    monthly_mortgage_payment: Decimal
    mortgage_amount: Decimal
    deposit: Decimal
    stamp_duty: Decimal
    legal_fees: Decimal
    purchase_costs: Decimal  # Stamp duty + legal fees
    upfront_costs: Decimal  # Deposit + purchase costs
    yearly_breakdown: list[RentVsBuyYear]
    description: str


# ---- Remortgage ----

@dataclass(frozen=True)
class RemortgageInputs:
    outstanding_balance: Decimal
    current_rate: Decimal
    new_rate: Decimal
    remaining_term_months: int
    legal_fees: Decimal | None = None  # Defaults to settings.remortgage_legal_fees
    cashback: Decimal = Decimal("0")
    erc: Decimal = Decimal("0")  # Early repayment charge


@dataclass(frozen=True)
class RemortgageYear:
    year: int
    cumulative_savings: Decimal  # Gross payment savings
    net_savings: Decimal  # Cumulative savings - switching costs
    remaining_balance_current: Decimal
    remaining_balance_new: Decimal
    interest_paid_current: Decimal
    interest_paid_new: Decimal
    interest_saved: Decimal


@dataclass(frozen=True)
class RemortgageBreakevenDetails:
    monthly_savings: Decimal
    breakeven_months: int
    switching_costs: Decimal
    cumulative_savings_at_breakeven: Decimal
    interest_saved_at_breakeven: Decimal


@dataclass(frozen=True)
class InterestSavingsDetails:
    total_interest_current: Decimal
    total_interest_new: Decimal
    interest_saved: Decimal
    switching_costs: Decimal
    net_benefit: Decimal


@dataclass(frozen=True)
class RemortgageResult:
    breakeven_months: float  # math.inf when switching never pays off
    breakeven_details: RemortgageBreakevenDetails | None
    current_monthly_payment: Decimal
    new_monthly_payment: Decimal
    monthly_savings: Decimal
    legal_fees: Decimal
    cashback: Decimal
    erc: Decimal
    switching_costs: Decimal
    year_one_savings: Decimal
    total_savings_over_term: Decimal
    interest_savings_details: InterestSavingsDetails
    yearly_breakdown: list[RemortgageYear]
    description: str


# ---- Cashback comparison ----

class CashbackType(Enum):
    FLAT = "flat"
    PERCENTAGE = "percentage"


@dataclass(frozen=True)
class CashbackOption:
    label: str
    rate: Decimal
    cashback_type: CashbackType
    cashback_value: Decimal
    cashback_cap: Decimal | None = None
    fixed_period_years: int = 0  # 0 means variable


@dataclass(frozen=True)
class CashbackInputs:
    mortgage_amount: Decimal
    mortgage_term_months: int
    options: list[CashbackOption]


@dataclass(frozen=True)
class CashbackOptionResult:
    label: str
    rate: Decimal
    fixed_period_years: int
    monthly_payment: Decimal
    monthly_payment_diff: Decimal  # vs cheapest monthly payment
    cashback_amount: Decimal
    interest_paid: Decimal
    principal_paid: Decimal
    balance_at_end: Decimal
    net_cost: Decimal  # Interest paid - cashback
    adjusted_balance: Decimal  # Balance at end - cashback


@dataclass(frozen=True)
class CashbackYear:
    year: int
    balances: list[Decimal]
    net_costs: list[Decimal]
    adjusted_balances: list[Decimal]
    interest_paid: list[Decimal]
    principal_paid: list[Decimal]


@dataclass(frozen=True)
class CashbackMonth:
    month: int
    net_costs: list[Decimal]
    balances: list[Decimal]


@dataclass(frozen=True)
class CashbackPairBreakeven:
    option_a_index: int
    option_b_index: int
    option_a_label: str
    option_b_label: str
    breakeven_month: int | None
    description: str


@dataclass(frozen=True)
class CashbackResult:
    comparison_period_months: int
    comparison_period_years: int
    all_variable: bool
    options: list[CashbackOptionResult]
    cheapest_monthly_index: int
    cheapest_net_cost_index: int
    cheapest_adjusted_balance_index: int
    savings_vs_worst: Decimal
    yearly_breakdown: list[CashbackYear]
    monthly_breakdown: list[CashbackMonth]
    projection_year: CashbackYear | None
    pairwise_breakevens: list[CashbackPairBreakeven]
    description: str
