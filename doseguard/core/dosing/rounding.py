"""Increment rounding for doses and IOB."""

from decimal import ROUND_HALF_UP, Decimal


def round_to_increment(value: float, increment: float) -> float:
    """Round ``value`` to the nearest multiple of ``increment``, halves up.

    Goes through Decimal built from the shortest float repr so values
    such as 0.25 at increment 0.1 round to 0.3 rather than drifting below
    the half boundary.
    """
    if increment <= 0:
        msg = "increment must be positive"
        raise ValueError(msg)
    step = Decimal(repr(increment))
    steps = (Decimal(repr(value)) / step).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    return float(steps * step)


def is_multiple_of(value: float, increment: float) -> bool:
    return Decimal(repr(value)) % Decimal(repr(increment)) == 0
