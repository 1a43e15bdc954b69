from decimal import Decimal

from mortgage_ie.engine.payments import (
    cost_of_credit_pct,
    follow_on_ltv,
    follow_on_payment,
    monthly_payment,
    monthly_rate,
    remaining_balance,
    total_repayable,
)


class TestMonthlyPayment:
    def test_standard_mortgage(self):
        """€400K at 7% over 30 years."""
        assert monthly_payment(Decimal("400000"), Decimal("7"), 360) == Decimal("2661.21")

    def test_irish_first_time_buyer(self):
        assert monthly_payment(Decimal("300000"), Decimal("3.5"), 360) == Decimal("1347.13")

    def test_zero_rate(self):
        assert monthly_payment(Decimal("360000"), Decimal("0"), 360) == Decimal("1000.00")

    def test_zero_principal(self):
        assert monthly_payment(Decimal("0"), Decimal("3.5"), 360) == Decimal("0")

    def test_zero_months(self):
        assert monthly_payment(Decimal("300000"), Decimal("3.5"), 0) == Decimal("0")

    def test_rate_is_a_percentage(self):
        assert monthly_rate(Decimal("6")) == Decimal("0.005")


class TestRemainingBalance:
    def test_nothing_paid(self):
        assert remaining_balance(Decimal("300000"), Decimal("3.5"), 360, 0) == Decimal("300000.00")

    def test_fully_paid(self):
        assert remaining_balance(Decimal("300000"), Decimal("3.5"), 360, 360) == Decimal("0")

    def test_zero_rate_is_linear(self):
        assert remaining_balance(Decimal("360000"), Decimal("0"), 360, 120) == Decimal("240000.00")

    def test_balance_falls_over_fixed_term(self):
        balance = remaining_balance(Decimal("300000"), Decimal("3.5"), 360, 48)
        assert Decimal("270000") < balance < Decimal("300000")


class TestFollowOn:
    def test_follow_on_payment(self, fixed_rate, variable_rate):
        pmt = follow_on_payment(fixed_rate, variable_rate, Decimal("300000"), 360)
        balance = remaining_balance(Decimal("300000"), Decimal("3.5"), 360, 48)
        assert pmt == monthly_payment(balance, Decimal("4.15"), 312)

    def test_no_follow_on_for_variable(self, variable_rate):
        assert follow_on_payment(variable_rate, variable_rate, Decimal("300000"), 360) is None

    def test_no_follow_on_without_variable(self, fixed_rate):
        assert follow_on_payment(fixed_rate, None, Decimal("300000"), 360) is None

    def test_fixed_term_covers_mortgage(self, fixed_rate, variable_rate):
        assert follow_on_payment(fixed_rate, variable_rate, Decimal("300000"), 48) is None

    def test_total_repayable_split(self, fixed_rate):
        total = total_repayable(fixed_rate, Decimal("1000"), Decimal("1100"), 360)
        assert total == Decimal("1000") * 48 + Decimal("1100") * 312

    def test_total_repayable_single_rate(self, variable_rate):
        assert total_repayable(variable_rate, Decimal("1000"), None, 360) == Decimal("360000")

    def test_follow_on_ltv_drops(self):
        ltv = follow_on_ltv(Decimal("300000"), Decimal("3.5"), 360, 48, Decimal("75"))
        assert ltv < Decimal("75")

    def test_cost_of_credit(self):
        assert cost_of_credit_pct(Decimal("450000"), Decimal("300000")) == Decimal("50.00")
        assert cost_of_credit_pct(None, Decimal("300000")) is None
