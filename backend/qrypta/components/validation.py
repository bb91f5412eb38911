"""
Input validation for transfer intents

Pure functions: the is_* forms answer yes/no, the validate_* forms return the
normalized value or raise the matching InvalidInput subclass.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Optional

from qrypta.core.errors import InvalidAddress, InvalidAmount

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_address_like(value: Optional[str]) -> bool:
    if not isinstance(value, str):
        return False
    return ADDRESS_PATTERN.fullmatch(value.strip()) is not None


def validate_address(value: Optional[str]) -> str:
    """Return the stripped address or raise InvalidAddress"""
    if not is_address_like(value):
        raise InvalidAddress(value)
    return value.strip()


def _parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return Decimal(value.strip())
    except InvalidOperation:
        return None


def is_valid_amount(value: Optional[str]) -> bool:
    amount = _parse_decimal(value)
    return amount is not None and amount.is_finite() and amount > 0


def validate_amount(value: Optional[str]) -> Decimal:
    """Return the amount as a finite, strictly positive Decimal or raise InvalidAmount"""
    amount = _parse_decimal(value)
    if amount is None or not amount.is_finite() or amount <= 0:
        raise InvalidAmount(value)
    return amount
