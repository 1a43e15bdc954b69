from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class RateType(Enum):
    FIXED = "fixed"
    VARIABLE = "variable"


class BuyerType(Enum):
    FTB = "ftb"            # First-time buyer
    MOVER = "mover"
    BTL = "btl"            # Buy-to-let
    SWITCHER_PDH = "switcher-pdh"
    SWITCHER_BTL = "switcher-btl"


@dataclass(frozen=True)
class Rate:
    """Catalogue entry. Never mutated after being read."""
    id: str
    name: str
    lender_id: str
    type: RateType
    rate: Decimal  # Annual percentage, 3.45 means 3.45%
    fixed_term_years: int | None = None
    apr: Decimal | None = None

    # Eligibility (used by follow-on matching, not by the amortization loop)
    min_ltv: Decimal = Decimal("0")
    max_ltv: Decimal = Decimal("90")
    min_loan: Decimal | None = None
    buyer_types: tuple[BuyerType, ...] = ()
    ber_eligible: tuple[str, ...] | None = None
    new_business: bool | None = None

    # Custom (user-defined) rates may name a lender that is not in the catalogue
    custom_lender_name: str | None = None

    @property
    def is_buy_to_let(self) -> bool:
        return any(bt in (BuyerType.BTL, BuyerType.SWITCHER_BTL) for bt in self.buyer_types)


@dataclass(frozen=True)
class Lender:
    id: str
    name: str
    overpayment_policy_id: str | None = None


@dataclass(frozen=True)
class RatePeriod:
    """One segment of a rate-period stack.

    Start month is never stored; it is derived from the durations of the
    periods before it. duration_months == 0 runs until the mortgage ends.
    """
    id: str
    lender_id: str
    rate_id: str
    duration_months: int
    is_custom: bool = False
    label: str | None = None


@dataclass(frozen=True)
class ResolvedRatePeriod:
    period_id: str
    rate_id: str
    rate: Decimal
    type: RateType
    start_month: int
    duration_months: int
    lender_id: str
    lender_name: str
    rate_name: str
    label: str
    fixed_term_years: int | None = None
    overpayment_policy_id: str | None = None
    is_custom: bool = False

    @property
    def is_open_ended(self) -> bool:
        return self.duration_months == 0

    @property
    def end_month(self) -> int | None:
        """Last month (inclusive) covered by this period, None if open-ended."""
        if self.is_open_ended:
            return None
        return self.start_month + self.duration_months - 1

    def contains(self, month: int) -> bool:
        if month < self.start_month:
            return False
        return self.end_month is None or month <= self.end_month


@dataclass(frozen=True)
class RateCatalogue:
    """Reference data the resolver reads from."""
    rates: list[Rate] = field(default_factory=list)
    custom_rates: list[Rate] = field(default_factory=list)
    lenders: list[Lender] = field(default_factory=list)

    def lender(self, lender_id: str) -> Lender | None:
        return next((lender for lender in self.lenders if lender.id == lender_id), None)
