"""Decimal helpers shared by every monetary calculation."""

from decimal import ROUND_HALF_UP, Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")
RATE_QUANTUM = Decimal("0.000001")
RATIO_QUANTUM = Decimal("0.0001")
ONE_HUNDRED = Decimal("100")


def round_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percentage(actual: Decimal, planned: Decimal) -> float:
    """
    Percentage of plan reached.

    Zero when nothing was planned. The ratio is rounded to four places
    before scaling to a percentage.
    """
    if planned <= ZERO:
        return 0.0
    ratio = (actual / planned).quantize(RATIO_QUANTUM, rounding=ROUND_HALF_UP)
    return float(ratio * ONE_HUNDRED)
