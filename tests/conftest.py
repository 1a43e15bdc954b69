"""Canonical test fixtures used across all engine tests.

Fixture: €300K mortgage on a €400K home (75% LTV), 30 years.
Lender A: 4-year fixed at 3.5%, follow-on variable at 4.15%,
10% of balance per year fee-free overpayments during the fixed period.
"""

import pytest
from decimal import Decimal

from mortgage_ie.models.overpayments import AllowanceBasis, AllowanceType, OverpaymentPolicy
from mortgage_ie.models.rates import BuyerType, Lender, Rate, RateCatalogue, RatePeriod, RateType
from mortgage_ie.models.simulation import SimulationInput, SimulationState


@pytest.fixture
def fixed_rate() -> Rate:
    return Rate(
        id="fixed-4",
        name="4 Year Fixed",
        lender_id="lender-a",
        type=RateType.FIXED,
        rate=Decimal("3.5"),
        fixed_term_years=4,
        min_ltv=Decimal("0"),
        max_ltv=Decimal("80"),
        buyer_types=(BuyerType.FTB, BuyerType.MOVER),
    )


@pytest.fixture
def variable_rate() -> Rate:
    return Rate(
        id="variable",
        name="Standard Variable",
        lender_id="lender-a",
        type=RateType.VARIABLE,
        rate=Decimal("4.15"),
        min_ltv=Decimal("0"),
        max_ltv=Decimal("90"),
        buyer_types=(BuyerType.FTB, BuyerType.MOVER),
        new_business=False,
    )


@pytest.fixture
def balance_policy() -> OverpaymentPolicy:
    """10% of the balance per year, fee-free."""
    return OverpaymentPolicy(
        id="ten-pct",
        label="10% of balance",
        allowance_type=AllowanceType.PERCENTAGE,
        allowance_value=Decimal("10"),
        allowance_basis=AllowanceBasis.BALANCE,
    )


@pytest.fixture
def catalogue(fixed_rate, variable_rate) -> RateCatalogue:
    return RateCatalogue(
        rates=[fixed_rate, variable_rate],
        lenders=[Lender(id="lender-a", name="Lender A", overpayment_policy_id="ten-pct")],
    )


@pytest.fixture
def canonical_input() -> SimulationInput:
    return SimulationInput(
        mortgage_amount=Decimal("300000"),
        mortgage_term_months=360,
        property_value=Decimal("400000"),
    )


@pytest.fixture
def fixed_then_variable() -> list[RatePeriod]:
    return [
        RatePeriod(id="p1", lender_id="lender-a", rate_id="fixed-4", duration_months=48),
        RatePeriod(id="p2", lender_id="lender-a", rate_id="variable", duration_months=0),
    ]


@pytest.fixture
def variable_only() -> list[RatePeriod]:
    return [RatePeriod(id="v", lender_id="lender-a", rate_id="variable", duration_months=0)]


@pytest.fixture
def canonical_state(canonical_input, fixed_then_variable) -> SimulationState:
    return SimulationState(input=canonical_input, rate_periods=fixed_then_variable)
