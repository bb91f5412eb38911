"""
Tests for address and amount validation
"""
from decimal import Decimal

import pytest

from qrypta.components.validation import (is_address_like, is_valid_amount,
                                          validate_address, validate_amount)
from qrypta.core.errors import InvalidAddress, InvalidAmount, InvalidInput


@pytest.mark.parametrize(
    "value",
    [
        "",
        "0x",
        "0x" + "a" * 39,
        "0x" + "a" * 41,
        "a" * 42,
        "0X" + "a" * 40,
        "0x" + "g" * 40,
        "0x" + "a" * 20 + " " + "a" * 19,
        None,
    ],
)
def test_validate_address_rejects(value):
    assert not is_address_like(value)
    with pytest.raises(InvalidAddress) as exc:
        validate_address(value)
    assert isinstance(exc.value, InvalidInput)
    assert exc.value.field == "recipient"


@pytest.mark.parametrize(
    "value",
    ["0x" + "a" * 40, "0x" + "AbCdEf0123" * 4, "  0x" + "1" * 40 + "\n"],
)
def test_validate_address_accepts(value):
    assert is_address_like(value)
    assert validate_address(value) == value.strip()


@pytest.mark.parametrize(
    "value",
    ["", "   ", "abc", "0", "0.000", "-1", "-0.5", "NaN", "sNaN", "Infinity", "-inf", "1..2", "1,5", None],
)
def test_validate_amount_rejects(value):
    assert not is_valid_amount(value)
    with pytest.raises(InvalidAmount):
        validate_amount(value)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1", Decimal("1")),
        ("1.25", Decimal("1.25")),
        (" 2.5 ", Decimal("2.5")),
        ("0.000000000000000001", Decimal("1e-18")),
        ("1e3", Decimal("1000")),
    ],
)
def test_validate_amount_accepts(value, expected):
    assert is_valid_amount(value)
    assert validate_amount(value) == expected
