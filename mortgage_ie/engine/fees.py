"""Irish purchase and switching fees.

Pure functions. Band thresholds come from settings.
"""

from decimal import Decimal, ROUND_HALF_UP

from mortgage_ie.config import settings
from mortgage_ie.models.breakeven import CashbackType

TWO_PLACES = Decimal("0.01")


def stamp_duty(property_value: Decimal) -> Decimal:
    """Residential stamp duty, charged band by band on the price."""
    if property_value <= 0:
        return Decimal("0")

    duty = Decimal("0")
    lower = Decimal("0")
    for limit, rate in sorted(settings.stamp_duty_bands.items()):
        upper = Decimal(limit)
        if property_value <= lower:
            break
        duty += (min(property_value, upper) - lower) * Decimal(str(rate))
        lower = upper
    if property_value > lower:
        duty += (property_value - lower) * Decimal(str(settings.stamp_duty_top_rate))
    return duty.quantize(TWO_PLACES, ROUND_HALF_UP)


def default_legal_fees() -> Decimal:
    return Decimal(str(settings.legal_fees))


def default_remortgage_legal_fees() -> Decimal:
    return Decimal(str(settings.remortgage_legal_fees))


def cashback_amount(
    mortgage_amount: Decimal,
    cashback_type: CashbackType,
    value: Decimal,
    cap: Decimal | None = None,
) -> Decimal:
    """Flat amount, or a percentage of the loan, optionally capped."""
    if cashback_type == CashbackType.FLAT:
        amount = value
    else:
        amount = mortgage_amount * value / 100
    if cap is not None and amount > cap:
        amount = cap
    return amount.quantize(TWO_PLACES, ROUND_HALF_UP)
