from dataclasses import dataclass, field
import datetime
from decimal import Decimal
from enum import Enum

from mortgage_ie.models.overpayments import AppliedOverpayment, OverpaymentConfig
from mortgage_ie.models.rates import RatePeriod, ResolvedRatePeriod
from mortgage_ie.models.self_build import SelfBuildConfig, SelfBuildPhase


@dataclass(frozen=True)
class SimulationInput:
    mortgage_amount: Decimal
    mortgage_term_months: int
    property_value: Decimal
    start_date: datetime.date | None = None
    ber: str | None = None  # Passed through untouched


@dataclass(frozen=True)
class SimulationState:
    input: SimulationInput
    rate_periods: list[RatePeriod] = field(default_factory=list)
    overpayment_configs: list[OverpaymentConfig] = field(default_factory=list)
    self_build_config: SelfBuildConfig | None = None


class WarningType(Enum):
    ALLOWANCE_EXCEEDED = "allowance_exceeded"
    EARLY_REDEMPTION = "early_redemption"
    TRANSACTION_LIMIT_EXCEEDED = "transaction_limit_exceeded"


class Severity(Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class SimulationWarning:
    type: WarningType
    month: int
    message: str
    severity: Severity
    config_id: str | None = None
    overpayment_label: str | None = None


@dataclass(frozen=True)
class AmortizationMonth:
    month: int
    year: int  # Mortgage year, 1-indexed
    month_of_year: int
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
    cumulative_principal: Decimal  # Includes overpayments
    cumulative_overpayments: Decimal
    cumulative_total: Decimal
    date: datetime.date | None = None

    # Self-build only
    drawdown_this_month: Decimal | None = None
    cumulative_drawn: Decimal | None = None
    phase: SelfBuildPhase | None = None
    is_interest_only: bool = False


@dataclass(frozen=True)
class AmortizationResult:
    months: list[AmortizationMonth] = field(default_factory=list)
    applied_overpayments: list[AppliedOverpayment] = field(default_factory=list)
    warnings: list[SimulationWarning] = field(default_factory=list)
    resolved_periods: list[ResolvedRatePeriod] = field(default_factory=list)


@dataclass(frozen=True)
class AmortizationYear:
    year: int  # Calendar year when a start date is set, else mortgage year
    opening_balance: Decimal
    closing_balance: Decimal
    total_interest: Decimal
    total_principal: Decimal
    total_overpayments: Decimal
    total_payments: Decimal
    average_rate: Decimal
    rate_changes: list[str]
    months: list[AmortizationMonth]
    cumulative_interest: Decimal
    cumulative_principal: Decimal
    cumulative_total: Decimal
    has_warnings: bool = False


@dataclass(frozen=True)
class SimulationSummary:
    total_interest: Decimal
    total_paid: Decimal
    actual_term_months: int
    interest_saved: Decimal
    months_saved: int
    extra_interest_from_self_build: Decimal | None = None


class MilestoneType(Enum):
    MORTGAGE_START = "mortgage_start"
    CONSTRUCTION_COMPLETE = "construction_complete"
    FULL_PAYMENTS_START = "full_payments_start"
    PRINCIPAL_25 = "principal_25_percent"
    PRINCIPAL_50 = "principal_50_percent"
    PRINCIPAL_75 = "principal_75_percent"
    LTV_80 = "ltv_80_percent"
    MORTGAGE_COMPLETE = "mortgage_complete"


@dataclass(frozen=True)
class Milestone:
    type: MilestoneType
    month: int
    label: str
    value: Decimal | None = None
    date: datetime.date | None = None


@dataclass(frozen=True)
class SimulationCompleteness:
    is_complete: bool
    total_months: int
    covered_months: int
    missing_months: int
    remaining_balance: Decimal
