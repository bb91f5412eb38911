"""
Exact conversion between human amounts and integer base units
"""
from decimal import Decimal, InvalidOperation
from typing import Union

from qrypta.core.errors import AmountConversionError

DEFAULT_DECIMALS = 18
UINT256_MAX = 2 ** 256 - 1
UINT256_DIGITS = len(str(UINT256_MAX))


def to_base_units(amount_human: Union[str, Decimal], decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a human decimal amount to integer base units without rounding

    Works on the digit tuple so no decimal context precision is involved.

    Args:
        amount_human: Decimal string such as "1.25"
        decimals: Token decimals

    Returns:
        Base-unit amount (e.g. 1250000000000000000 for "1.25" at 18 decimals)

    Raises:
        AmountConversionError: value is not exactly representable at `decimals`
    """
    raw = str(amount_human).strip()
    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise AmountConversionError(raw, decimals, "not a number") from None
    if not value.is_finite():
        raise AmountConversionError(raw, decimals, "not finite")
    if value.is_signed() and value != 0:
        raise AmountConversionError(raw, decimals, "negative")

    _, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits)) if digits else 0
    if coefficient == 0:
        return 0
    # Bound the exponent before any power of ten is built
    if value.adjusted() + decimals >= UINT256_DIGITS:
        raise AmountConversionError(raw, decimals, "exceeds uint256")
    shift = exponent + decimals
    if shift < 0 and -shift > len(digits):
        raise AmountConversionError(raw, decimals, f"more than {decimals} fractional digits")
    if shift >= 0:
        base_units = coefficient * 10 ** shift
    else:
        base_units, remainder = divmod(coefficient, 10 ** -shift)
        if remainder:
            raise AmountConversionError(raw, decimals, f"more than {decimals} fractional digits")

    if base_units > UINT256_MAX:
        raise AmountConversionError(raw, decimals, "exceeds uint256")
    return base_units


def from_base_units(base_units: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Format base units as a canonical decimal string ("1.25", "3", "0.000001")"""
    sign = "-" if base_units < 0 else ""
    whole, fraction = divmod(abs(base_units), 10 ** decimals)
    if decimals == 0 or fraction == 0:
        return f"{sign}{whole}"
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{fraction_text}"
