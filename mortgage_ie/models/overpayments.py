from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class OverpaymentType(Enum):
    ONE_TIME = "one_time"
    RECURRING = "recurring"


class OverpaymentFrequency(Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    @property
    def interval_months(self) -> int:
        return {"monthly": 1, "quarterly": 3, "yearly": 12}[self.value]


class OverpaymentEffect(Enum):
    REDUCE_TERM = "reduce_term"
    REDUCE_PAYMENT = "reduce_payment"


class AllowanceType(Enum):
    PERCENTAGE = "percentage"
    FLAT = "flat"


class AllowanceBasis(Enum):
    BALANCE = "balance"    # % of balance at start of the year, per year
    MONTHLY = "monthly"    # % of the monthly payment, per month


class TransactionWindow(Enum):
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    FIXED_PERIOD = "fixed_period"


@dataclass(frozen=True)
class OverpaymentConfig:
    id: str
    rate_period_id: str
    type: OverpaymentType
    amount: Decimal
    start_month: int
    frequency: OverpaymentFrequency = OverpaymentFrequency.MONTHLY
    end_month: int | None = None  # Inclusive, recurring only
    effect: OverpaymentEffect = OverpaymentEffect.REDUCE_TERM
    label: str | None = None
    enabled: bool = True

    @property
    def display_label(self) -> str:
        if self.label:
            return self.label
        return "One-time" if self.type == OverpaymentType.ONE_TIME else "Recurring"


@dataclass(frozen=True)
class OverpaymentPolicy:
    """Lender rule for fee-free overpayments during a fixed period."""
    id: str
    label: str
    allowance_type: AllowanceType
    allowance_value: Decimal
    allowance_basis: AllowanceBasis | None = None  # Percentage policies only
    min_amount: Decimal | None = None  # Floor on the allowance
    charge_cap: Decimal | None = None  # Max excess a lender will charge on
    max_transactions: int | None = None
    max_transactions_window: TransactionWindow | None = None

    @property
    def basis(self) -> AllowanceBasis:
        return self.allowance_basis or AllowanceBasis.BALANCE


@dataclass(frozen=True)
class AppliedOverpayment:
    month: int
    amount: Decimal
    config_id: str
    is_recurring: bool
    within_allowance: bool = True
    excess: Decimal = Decimal("0")


@dataclass(frozen=True)
class AllowanceCheck:
    ceiling: Decimal
    within: Decimal
    excess: Decimal
    chargeable_excess: Decimal

    @property
    def exceeded(self) -> bool:
        return self.excess > 0


@dataclass(frozen=True)
class YearlyOverpaymentPlan:
    """Maximum fee-free overpayment for one year of a fixed period."""
    year: int
    start_month: int
    end_month: int
    monthly_amount: Decimal
    estimated_balance: Decimal


@dataclass(frozen=True)
class PeriodOverpaymentPlan:
    period_id: str
    policy_description: str
    years: list[YearlyOverpaymentPlan]
