"""Does a ledger actually span the declared term and clear the balance?"""

from decimal import Decimal

from mortgage_ie.models.simulation import AmortizationMonth, SimulationCompleteness


def check_completeness(
    months: list[AmortizationMonth], mortgage_amount: Decimal, term_months: int
) -> SimulationCompleteness:
    """Complete when the final closing balance is below one cent.

    Early payoff counts as complete. A stack that stops short of the term
    leaves a positive balance and reports the missing months.
    """
    if not months:
        return SimulationCompleteness(
            is_complete=False,
            total_months=term_months,
            covered_months=0,
            missing_months=term_months,
            remaining_balance=mortgage_amount,
        )

    remaining = months[-1].closing_balance
    return SimulationCompleteness(
        is_complete=remaining < Decimal("0.01"),
        total_months=term_months,
        covered_months=len(months),
        missing_months=max(0, term_months - len(months)),
        remaining_balance=remaining,
    )
