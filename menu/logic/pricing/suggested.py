"""Suggested sale price derived from ingredient cost."""
from decimal import Decimal, ROUND_CEILING

from menu.utilities.config import MARKUP_MULTIPLIER, PRICE_STEP

__all__ = ["suggested_price"]


def suggested_price(cost: float, markup: float = MARKUP_MULTIPLIER, step: float = PRICE_STEP) -> float:
    """Apply the markup and round UP to the next multiple of ``step``.

    Decimal arithmetic keeps exact multiples exact: a cost of 2.50 prices at
    5.50, not 5.55.
    """
    if cost <= 0:
        return 0.0
    raw = Decimal(str(cost)) * Decimal(str(markup))
    step_d = Decimal(str(step))
    steps = (raw / step_d).to_integral_value(rounding=ROUND_CEILING)
    return float(steps * step_d)
