from decimal import Decimal

import pytest

from mortgage_ie.engine.cashback import comparison_period_months, compare_cashback
from mortgage_ie.models.breakeven import CashbackInputs, CashbackOption, CashbackType


def _option(label, rate, cashback="0", cashback_type=CashbackType.FLAT, years=5, cap=None):
    return CashbackOption(
        label=label,
        rate=Decimal(rate),
        cashback_type=cashback_type,
        cashback_value=Decimal(cashback),
        cashback_cap=Decimal(cap) if cap else None,
        fixed_period_years=years,
    )


@pytest.fixture
def low_rate_vs_cashback() -> CashbackInputs:
    """3.3% with nothing back versus 3.5% with 2% cashback, both 5-year fixed."""
    return CashbackInputs(
        mortgage_amount=Decimal("300000"),
        mortgage_term_months=300,
        options=[
            _option("Low rate", "3.3"),
            _option("Cashback", "3.5", "2", CashbackType.PERCENTAGE),
        ],
    )


class TestComparisonPeriod:
    def test_longest_fixed_period(self):
        options = [_option("a", "3", years=3), _option("b", "3", years=5)]
        assert comparison_period_months(options, 300) == 60

    def test_capped_at_term(self):
        assert comparison_period_months([_option("a", "3", years=5)], 48) == 48

    def test_all_variable_uses_term(self):
        assert comparison_period_months([_option("a", "3", years=0)], 300) == 300


class TestCompareCashback:
    def test_cashback_amounts(self, low_rate_vs_cashback):
        result = compare_cashback(low_rate_vs_cashback)
        assert result.options[0].cashback_amount == Decimal("0.00")
        assert result.options[1].cashback_amount == Decimal("6000.00")

    def test_cheapest_indexes(self, low_rate_vs_cashback):
        result = compare_cashback(low_rate_vs_cashback)
        assert result.cheapest_monthly_index == 0
        assert result.cheapest_net_cost_index == 1
        assert result.options[0].monthly_payment < result.options[1].monthly_payment
        assert result.options[0].monthly_payment_diff == Decimal("0")

    def test_net_cost_is_interest_less_cashback(self, low_rate_vs_cashback):
        for option in compare_cashback(low_rate_vs_cashback).options:
            assert option.net_cost == option.interest_paid - option.cashback_amount
            assert option.adjusted_balance == option.balance_at_end - option.cashback_amount
            assert option.balance_at_end == Decimal("300000") - option.principal_paid

    def test_breakdowns(self, low_rate_vs_cashback):
        result = compare_cashback(low_rate_vs_cashback)
        assert result.comparison_period_months == 60
        assert result.comparison_period_years == 5
        assert not result.all_variable
        assert [y.year for y in result.yearly_breakdown] == [1, 2, 3, 4, 5]
        assert len(result.monthly_breakdown) == 48
        assert result.projection_year.year == 6

    def test_cashback_ahead_throughout(self, low_rate_vs_cashback):
        result = compare_cashback(low_rate_vs_cashback)
        pair = result.pairwise_breakevens[0]
        assert pair.breakeven_month is None
        assert pair.description == "Cashback is cheaper than Low rate throughout"

    def test_description(self, low_rate_vs_cashback):
        result = compare_cashback(low_rate_vs_cashback)
        assert result.savings_vs_worst > 0
        assert result.description.startswith("Cashback has the lowest net cost over 5 years")
        assert result.description.endswith("versus Low rate")

    def test_small_cashback_overtaken(self):
        result = compare_cashback(CashbackInputs(
            mortgage_amount=Decimal("300000"),
            mortgage_term_months=300,
            options=[_option("Low", "3.0"), _option("Cashback", "3.5", "1000")],
        ))
        pair = result.pairwise_breakevens[0]
        assert 1 < pair.breakeven_month < 24
        assert "Low becomes cheaper than Cashback after" in pair.description
        assert result.cheapest_net_cost_index == 0

    def test_all_variable(self):
        result = compare_cashback(CashbackInputs(
            mortgage_amount=Decimal("300000"),
            mortgage_term_months=120,
            options=[_option("a", "3.9", years=0), _option("b", "4.1", "3000", years=0)],
        ))
        assert result.all_variable
        assert result.comparison_period_months == 120
        assert result.projection_year is None
        assert len(result.yearly_breakdown) == 10
        # Both loans clear at the end of the term
        assert result.options[0].balance_at_end == Decimal("0")

    def test_pairs(self):
        options = [_option(str(i), f"3.{i}", str(i * 1000)) for i in range(5)]
        result = compare_cashback(CashbackInputs(Decimal("300000"), 300, options))
        assert len(result.pairwise_breakevens) == 10

    def test_no_options(self):
        with pytest.raises(ValueError):
            compare_cashback(CashbackInputs(Decimal("300000"), 300, []))

    def test_non_positive_amount(self):
        with pytest.raises(ValueError):
            compare_cashback(CashbackInputs(Decimal("0"), 300, [_option("a", "3")]))
