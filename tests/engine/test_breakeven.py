import math
from decimal import Decimal

from mortgage_ie.engine.breakeven import (
    format_breakeven_period,
    monthly_compound_rate,
    remortgage,
    rent_vs_buy,
    stable_crossover,
)
from mortgage_ie.engine.payments import monthly_payment
from mortgage_ie.models.breakeven import RemortgageInputs, RentVsBuyInputs


class TestStableCrossover:
    def test_settles(self):
        assert stable_crossover([False, True, True]) == 2

    def test_flip_flop_uses_last_crossing(self):
        assert stable_crossover([True, False, True]) == 3

    def test_holds_throughout(self):
        assert stable_crossover([True, True]) == 1

    def test_never_settles(self):
        assert stable_crossover([True, True, False]) is None
        assert stable_crossover([]) is None


class TestFormatPeriod:
    def test_formats(self):
        assert format_breakeven_period(None) == "Never"
        assert format_breakeven_period(math.inf) == "Never"
        assert format_breakeven_period(1) == "1 month"
        assert format_breakeven_period(12) == "1 year"
        assert format_breakeven_period(13) == "1 year 1 month"
        assert format_breakeven_period(27) == "2 years 3 months"

    def test_compound_rate(self):
        r = monthly_compound_rate(Decimal("12"))
        assert abs((1 + r) ** 12 - Decimal("1.12")) < Decimal("0.000001")


def _rent_vs_buy(**overrides) -> RentVsBuyInputs:
    values = dict(
        property_value=Decimal("400000"),
        deposit=Decimal("40000"),
        mortgage_term_months=360,
        mortgage_rate=Decimal("4"),
        current_monthly_rent=Decimal("2000"),
    )
    values.update(overrides)
    return RentVsBuyInputs(**values)


class TestRentVsBuy:
    def test_upfront_costs(self):
        result = rent_vs_buy(_rent_vs_buy())
        assert result.mortgage_amount == Decimal("360000.00")
        assert result.stamp_duty == Decimal("4000.00")
        assert result.legal_fees == Decimal("4000.00")
        assert result.purchase_costs == Decimal("8000.00")
        assert result.upfront_costs == Decimal("48000.00")

    def test_payment(self):
        result = rent_vs_buy(_rent_vs_buy())
        assert result.monthly_mortgage_payment == monthly_payment(
            Decimal("360000"), Decimal("4"), 360
        )

    def test_explicit_legal_fees(self):
        result = rent_vs_buy(_rent_vs_buy(legal_fees=Decimal("2500")))
        assert result.legal_fees == Decimal("2500.00")
        assert result.upfront_costs == Decimal("46500.00")

    def test_yearly_rows(self):
        assert len(rent_vs_buy(_rent_vs_buy()).yearly_breakdown) == 30

    def test_partial_final_year(self):
        years = rent_vs_buy(_rent_vs_buy(mortgage_term_months=30)).yearly_breakdown
        assert [y.year for y in years] == [1, 2, 3]

    def test_high_rent_buys_early(self):
        result = rent_vs_buy(_rent_vs_buy(
            property_value=Decimal("200000"),
            deposit=Decimal("20000"),
            mortgage_rate=Decimal("3"),
            current_monthly_rent=Decimal("5000"),
        ))
        assert result.breakeven_month is not None
        assert result.breakeven_month <= 2
        assert result.breakeven_details.net_ownership_cost < result.breakeven_details.cumulative_rent
        assert result.description.startswith("Buying beats renting after")

    def test_cheap_rent_never_breaks_even(self):
        result = rent_vs_buy(_rent_vs_buy(current_monthly_rent=Decimal("100")))
        assert result.breakeven_month is None
        assert result.breakeven_details is None
        assert result.description == "Renting stays cheaper than buying over the full 30 years"

    def test_sale_after_equity(self):
        result = rent_vs_buy(_rent_vs_buy())
        # Sale costs come out of equity, so selling breaks even no sooner
        assert result.equity_recovery_month is not None
        assert result.break_even_on_sale_month is not None
        assert result.break_even_on_sale_month >= result.equity_recovery_month
        assert result.equity_recovery_details.equity > result.upfront_costs


def _remortgage(**overrides) -> RemortgageInputs:
    values = dict(
        outstanding_balance=Decimal("300000"),
        current_rate=Decimal("4.5"),
        new_rate=Decimal("3.5"),
        remaining_term_months=300,
    )
    values.update(overrides)
    return RemortgageInputs(**values)


class TestRemortgage:
    def test_pays_off_within_a_year(self):
        result = remortgage(_remortgage())
        assert result.legal_fees == Decimal("1350.0")
        assert result.switching_costs == Decimal("1350.0")
        assert 1 < result.breakeven_months < 12
        details = result.breakeven_details
        assert details.interest_saved_at_breakeven >= details.switching_costs
        assert result.description.startswith("Switching pays for itself after")

    def test_savings_figures(self):
        result = remortgage(_remortgage())
        assert result.monthly_savings == result.current_monthly_payment - result.new_monthly_payment
        assert result.year_one_savings == result.monthly_savings * 12 - result.switching_costs
        assert result.total_savings_over_term == result.monthly_savings * 300 - result.switching_costs
        interest = result.interest_savings_details
        assert interest.net_benefit == interest.interest_saved - interest.switching_costs

    def test_same_rate_never_pays(self):
        result = remortgage(_remortgage(current_rate=Decimal("4"), new_rate=Decimal("4")))
        assert result.monthly_savings == Decimal("0")
        assert result.breakeven_months == math.inf
        assert result.breakeven_details is None
        assert result.description == "Switching does not pay off: the new rate is not lower"

    def test_costs_never_recovered(self):
        result = remortgage(_remortgage(
            outstanding_balance=Decimal("100000"),
            current_rate=Decimal("4.0"),
            new_rate=Decimal("3.9"),
            remaining_term_months=12,
        ))
        assert result.breakeven_months == math.inf
        assert result.description == "Switching costs are not recovered within the remaining term"

    def test_cashback_covers_costs(self):
        result = remortgage(_remortgage(legal_fees=Decimal("0"), cashback=Decimal("1500")))
        assert result.switching_costs == Decimal("0")
        assert result.breakeven_months == 1

    def test_erc_adds_to_costs(self):
        result = remortgage(_remortgage(legal_fees=Decimal("1000"), erc=Decimal("2000")))
        assert result.switching_costs == Decimal("3000")

    def test_yearly_rows(self):
        assert len(remortgage(_remortgage()).yearly_breakdown) == 25
        short = remortgage(_remortgage(remaining_term_months=12))
        assert len(short.yearly_breakdown) == 1
