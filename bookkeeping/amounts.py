"""
Amount Handling Module

Decimal helpers for monetary values in a single-currency ledger.
NEVER uses float for monetary values: inputs are converted through str()
and rounded to the configured precision.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Iterable, Union

from .errors import InvalidAmountError

# Set global decimal context for financial precision
getcontext().prec = 28

ZERO = Decimal('0')

AmountLike = Union[Decimal, int, float, str]


def to_decimal(value: AmountLike) -> Decimal:
    """Convert a number or numeric string to Decimal without float artifacts"""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    if not result.is_finite():
        raise InvalidAmountError(f"Invalid amount: {value!r}")
    return result


def quantize(value: AmountLike, precision: int = 2) -> Decimal:
    """Round to the given number of decimal places (ROUND_HALF_UP)"""
    return to_decimal(value).quantize(
        Decimal('0.1') ** precision,
        rounding=ROUND_HALF_UP
    )


def total(values: Iterable[Decimal]) -> Decimal:
    """Sum Decimal values starting from an exact zero"""
    return sum(values, ZERO)


def is_close(a: AmountLike, b: AmountLike, tolerance: AmountLike) -> bool:
    """Check whether two amounts differ by no more than the tolerance"""
    return abs(to_decimal(a) - to_decimal(b)) <= to_decimal(tolerance)
